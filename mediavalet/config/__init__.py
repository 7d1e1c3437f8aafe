"""
MediaValet Config - YAML configuration loading
"""

from .loader import load_agent_config, load_config, load_llm_config

__all__ = ["load_agent_config", "load_config", "load_llm_config"]
