"""
MediaValet Notifier - Best-effort side channel to the user

Acknowledgments, inline tool errors and asset deliveries must never fail the
primary control flow. Every send goes through ``Notifier``, which returns a
bool and records failures on the ``mediavalet.notify`` logger instead of
raising.
"""

import logging
from typing import Any, Awaitable, List, Optional

from ..protocols import MessagingChannelProtocol

logger = logging.getLogger(__name__)
_notify_logger = logging.getLogger("mediavalet.notify")

DEFAULT_TYPING_DELAY_MS = 1000


class Notifier:
    """
    Best-effort wrapper around a messaging channel.

    Args:
        channel: Messaging channel; ``None`` turns every send into a no-op
        typing_delay: Typing indicator duration passed to the channel (ms)
    """

    def __init__(
        self,
        channel: Optional[MessagingChannelProtocol] = None,
        typing_delay: int = DEFAULT_TYPING_DELAY_MS,
    ):
        self.channel = channel
        self.typing_delay = typing_delay

    @property
    def enabled(self) -> bool:
        return self.channel is not None

    async def _deliver(self, label: str, chat_id: Optional[str], send: Awaitable[Any]) -> bool:
        try:
            await send
            return True
        except Exception as e:
            _notify_logger.warning(f"[Notify] {label} to {chat_id} failed: {e}", exc_info=True)
            return False

    async def send_text(
        self,
        chat_id: Optional[str],
        text: str,
        quoted_message_id: Optional[str] = None,
    ) -> bool:
        if not self.channel or not chat_id or not text:
            return False
        return await self._deliver(
            "text",
            chat_id,
            self.channel.send_text_message(chat_id, text, quoted_message_id, self.typing_delay),
        )

    async def send_error(
        self,
        chat_id: Optional[str],
        error: str,
        quoted_message_id: Optional[str] = None,
    ) -> bool:
        """Send an error message, prefixed with ❌ unless it already is."""
        message = error if error.startswith("❌") else f"❌ {error}"
        return await self.send_text(chat_id, message, quoted_message_id)

    async def send_file(
        self,
        chat_id: Optional[str],
        url: str,
        file_name: str,
        caption: str = "",
        quoted_message_id: Optional[str] = None,
    ) -> bool:
        if not self.channel or not chat_id or not url:
            return False
        return await self._deliver(
            f"file {file_name}",
            chat_id,
            self.channel.send_file_by_url(
                chat_id, url, file_name, caption, quoted_message_id, self.typing_delay
            ),
        )

    async def send_location(
        self,
        chat_id: Optional[str],
        latitude: float,
        longitude: float,
        quoted_message_id: Optional[str] = None,
    ) -> bool:
        if not self.channel or not chat_id:
            return False
        return await self._deliver(
            "location",
            chat_id,
            self.channel.send_location(
                chat_id, latitude, longitude, "", "", quoted_message_id, self.typing_delay
            ),
        )

    async def send_poll(
        self,
        chat_id: Optional[str],
        question: str,
        options: List[str],
        quoted_message_id: Optional[str] = None,
    ) -> bool:
        if not self.channel or not chat_id:
            return False
        return await self._deliver(
            "poll",
            chat_id,
            self.channel.send_poll(
                chat_id, question, options, False, quoted_message_id, self.typing_delay
            ),
        )
