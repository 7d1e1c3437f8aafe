"""
MediaValet Result Processor - Turns a finished loop into a RunResult

Picks the most recent asset of each media kind from the context, pulls the
location out of the location tool's last result, and cleans the model's
free text.
"""

import logging
from typing import List, Optional

from ..constants import EMPTY_RESPONSE_FALLBACK, TASK_COMPLETED_TEXT, TOOL_SEND_LOCATION
from ..text.cleaning import clean_json_wrapper, clean_thinking_patterns
from ..tools.models import poll_options
from .context import ExecutionContext
from .models import RunResult

logger = logging.getLogger(__name__)


class ResultProcessor:
    """Builds the structured result of a single conversational run."""

    def process_result(
        self,
        raw_text: Optional[str],
        context: ExecutionContext,
        iterations: int,
    ) -> RunResult:
        text = clean_thinking_patterns(raw_text)
        assets = context.generated_assets

        latest_image = assets.latest_image(since=context.started_at)
        latest_video = assets.latest_video(since=context.started_at)
        latest_audio = assets.latest_audio(since=context.started_at)
        latest_poll = assets.latest_poll(since=context.started_at)

        latitude: Optional[float] = None
        longitude: Optional[float] = None
        location_info: Optional[str] = None
        location_result = context.previous_tool_results.get(TOOL_SEND_LOCATION)
        if location_result is not None and location_result.has_location:
            latitude = location_result.latitude
            longitude = location_result.longitude
            info = location_result.location_info or location_result.data_text()
            location_info = clean_json_wrapper(info) or None
            logger.debug(f"[ResultProcessor] Location found: {latitude}, {longitude}")

        if context.suppress_final_response:
            logger.info("[ResultProcessor] Final text suppressed by tool request")
            final_text = ""
        else:
            final_text = clean_json_wrapper(text)

        has_assets = bool(latest_image or latest_video or latest_audio or latest_poll)
        has_tool_activity = bool(context.tool_calls or context.previous_tool_results)
        if (
            not final_text.strip()
            and not context.suppress_final_response
            and not has_assets
            and latitude is None
            and not has_tool_activity
        ):
            logger.warning("[ResultProcessor] Model returned no usable text")
            final_text = text.strip() or EMPTY_RESPONSE_FALLBACK

        poll = None
        if latest_poll:
            poll = {"question": latest_poll.question, "options": poll_options({"options": latest_poll.options})}

        return RunResult(
            success=True,
            text=final_text,
            image_url=latest_image.url if latest_image else None,
            image_caption=latest_image.caption if latest_image else "",
            video_url=latest_video.url if latest_video else None,
            video_caption=latest_video.caption if latest_video else "",
            audio_url=latest_audio.url if latest_audio else None,
            poll=poll,
            latitude=latitude,
            longitude=longitude,
            location_info=location_info,
            tools_used=list(context.previous_tool_results),
            iterations=iterations,
            tool_calls=context.tool_calls_as_dicts(),
            tool_results=context.tool_results_as_dicts(),
            multi_step=False,
            suppressed_final_response=context.suppress_final_response,
            original_message_id=context.original_message_id,
        )

    @staticmethod
    def process_final_text(step_results: List[RunResult]) -> str:
        """Combine step texts, labeled by step index."""
        parts = [
            f"Step {i + 1}: {result.text}"
            for i, result in enumerate(step_results)
            if result.text and result.text.strip()
        ]
        return "\n\n".join(parts) if parts else TASK_COMPLETED_TEXT
