"""
MediaValet configuration loading

YAML file with ${VAR} environment variable substitution:

    agent:
      model: gemini/gemini-2.5-flash
      max_iterations: 8
      context_memory_enabled: true
      fallback_policy: auto
      breaker:
        failure_threshold: 5
    llm:
      api_key: ${GEMINI_API_KEY}
    green_api:
      base_url: https://api.green-api.com/waInstance1101
      instance_token: ${GREEN_API_TOKEN}
    database:
      dsn: ${DATABASE_URL}
"""

import os
import re
from typing import Any, Dict

import yaml

from ..llm.base import LLMConfig
from ..orchestrator.config import AgentConfig

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def load_config(path: str) -> Dict[str, Any]:
    """Read YAML config file with ${VAR} environment variable substitution."""
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    def _replace_env(match):
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(
                f"Environment variable '{var_name}' not set "
                f"(referenced in config file '{path}')"
            )
        return value

    resolved = _ENV_VAR_RE.sub(_replace_env, raw)
    return yaml.safe_load(resolved) or {}


def load_agent_config(path: str) -> AgentConfig:
    config = load_config(path)
    return AgentConfig.from_dict(config.get("agent") or {})


def load_llm_config(path: str) -> LLMConfig:
    """LLMConfig from the ``llm`` section; the model defaults to the agent model."""
    config = load_config(path)
    llm = dict(config.get("llm") or {})
    llm.setdefault("model", (config.get("agent") or {}).get("model") or AgentConfig.model)
    return LLMConfig.from_dict(llm)
