"""
MediaValet Result Sender - Delivers a step or run result to the chat

Delivery order is fixed: location, poll, image, video, audio, text.
Every send is best effort; one failed asset never blocks the rest.

Usage:
    sender = ResultSender(notifier, registry)
    await sender.send_step_results(chat_id, result, step_number=2,
                                   quoted_message_id=msg_id, user_text=prompt)
"""

import logging
import re
from typing import List, Optional

from ..channels.notifier import Notifier
from ..constants import URL_BEARING_TOOLS
from ..text.cleaning import clean_json_wrapper, clean_media_description, strip_urls
from ..text.pipeline import is_intermediate_tool_output_in_pipeline
from ..tools.models import poll_options
from ..tools.registry import ToolRegistry
from .models import RunResult, now_ms

logger = logging.getLogger(__name__)

# Text at most this much longer than a caption that contains it is filler
CAPTION_FILLER_CHARS = 10
# Leftover text shorter than this adds nothing next to a structured output
MIN_TEXT_WITH_STRUCTURED_OUTPUT = 20

POLL_SEND_FAILED = "❌ Failed to send the poll. Please try again."


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip().lower()


def is_caption_duplicate(text: str, caption: str) -> bool:
    """True when text repeats, is part of, or only pads the caption."""
    norm_text = _normalize(text)
    norm_caption = _normalize(caption)
    if not norm_text or not norm_caption:
        return False
    if norm_text == norm_caption or norm_text in norm_caption:
        return True
    return norm_caption in norm_text and len(norm_text) - len(norm_caption) <= CAPTION_FILLER_CHARS


class ResultSender:
    """
    Sends the assets and text of one result through the Notifier.

    Args:
        notifier: Best-effort channel wrapper
        registry: Tool descriptors used by pipeline suppression
        public_base_url: Prefix for media URLs that are not absolute
    """

    def __init__(
        self,
        notifier: Notifier,
        registry: Optional[ToolRegistry] = None,
        public_base_url: Optional[str] = None,
    ):
        self.notifier = notifier
        self.registry = registry or ToolRegistry()
        self.public_base_url = public_base_url

    async def send_step_results(
        self,
        chat_id: Optional[str],
        result: RunResult,
        step_number: Optional[int] = None,
        quoted_message_id: Optional[str] = None,
        user_text: Optional[str] = None,
    ) -> List[str]:
        """Deliver everything the result carries; returns the kinds delivered, in order."""
        step_info = f" for step {step_number}" if step_number else ""
        sent: List[str] = []
        captions: List[str] = []

        image_caption = self._caption(result.image_caption, result.text) if result.image_url else ""
        video_caption = self._caption(result.video_caption, result.text) if result.video_url else ""

        location_info_sent = ""
        if result.has_location:
            ok = await self.notifier.send_location(
                chat_id, result.latitude, result.longitude, quoted_message_id
            )
            if ok:
                sent.append("location")
            info = clean_json_wrapper(result.location_info or "").strip()
            if info and not any(is_caption_duplicate(info, c) for c in (image_caption, video_caption)):
                if await self.notifier.send_text(chat_id, f"📍 {info}", quoted_message_id):
                    location_info_sent = info
            logger.info(f"[ResultSender] Location sent{step_info}")

        if result.poll:
            question = result.poll.get("question", "")
            ok = await self.notifier.send_poll(
                chat_id, question, poll_options(result.poll), quoted_message_id
            )
            if ok:
                sent.append("poll")
                logger.info(f"[ResultSender] Poll sent{step_info}")
            else:
                logger.error(f"[ResultSender] Failed to send poll{step_info}")
                await self.notifier.send_text(chat_id, POLL_SEND_FAILED, quoted_message_id)

        if result.image_url:
            ok = await self.notifier.send_file(
                chat_id,
                self._absolute(result.image_url),
                f"agent_image_{now_ms()}.png",
                image_caption,
                quoted_message_id,
            )
            if ok:
                sent.append("image")
                captions.append(image_caption)
                logger.info(f"[ResultSender] Image sent{step_info}")

        if result.video_url:
            ok = await self.notifier.send_file(
                chat_id,
                self._absolute(result.video_url),
                f"agent_video_{now_ms()}.mp4",
                video_caption,
                quoted_message_id,
            )
            if ok:
                sent.append("video")
                captions.append(video_caption)
                logger.info(f"[ResultSender] Video sent{step_info}")

        if result.audio_url:
            ok = await self.notifier.send_file(
                chat_id,
                self._absolute(result.audio_url),
                f"agent_audio_{now_ms()}.mp3",
                "",
                quoted_message_id,
            )
            if ok:
                sent.append("audio")
                logger.info(f"[ResultSender] Audio sent{step_info}")

        text = self._text_to_send(result, user_text, captions, location_info_sent)
        if text and await self.notifier.send_text(chat_id, text, quoted_message_id):
            sent.append("text")
            logger.info(f"[ResultSender] Text sent{step_info}")

        return sent

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _caption(explicit: Optional[str], text: Optional[str]) -> str:
        return clean_media_description(explicit or text or "")

    def _absolute(self, url: str) -> str:
        if url.startswith("http") or not self.public_base_url:
            return url
        return f"{self.public_base_url.rstrip('/')}/{url.lstrip('/')}"

    def _text_to_send(
        self,
        result: RunResult,
        user_text: Optional[str],
        captions: List[str],
        location_info_sent: str,
    ) -> str:
        text = clean_json_wrapper(result.text or "").strip()
        if not text:
            return ""

        if result.audio_url:
            logger.debug("[ResultSender] Skipping text, audio is the response")
            return ""

        if is_intermediate_tool_output_in_pipeline(result, user_text, self.registry):
            logger.info("[ResultSender] Skipping text, intermediate pipeline output")
            return ""

        if any(is_caption_duplicate(text, caption) for caption in captions):
            logger.debug("[ResultSender] Skipping text, duplicates the media caption")
            return ""

        if location_info_sent and is_caption_duplicate(text, location_info_sent):
            logger.debug("[ResultSender] Skipping text, restates the location")
            return ""

        if not any(tool in URL_BEARING_TOOLS for tool in result.tools_used):
            text = strip_urls(text).strip()

        if result.has_structured_output and len(text) < MIN_TEXT_WITH_STRUCTURED_OUTPUT:
            logger.debug("[ResultSender] Skipping text, too short next to structured output")
            return ""

        return text
