"""
MediaValet Channels - Outbound messaging and best-effort notifications
"""

from .acks import (
    apply_provider_to_message,
    build_ack_message,
    get_tool_ack_message,
    send_tool_ack_message,
)
from .green_api import GreenApiChannel
from .notifier import Notifier

__all__ = [
    "apply_provider_to_message",
    "build_ack_message",
    "get_tool_ack_message",
    "send_tool_ack_message",
    "GreenApiChannel",
    "Notifier",
]
