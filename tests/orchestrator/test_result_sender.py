"""Tests for mediavalet.orchestrator.result_sender"""

import pytest

from mediavalet.orchestrator.models import RunResult
from mediavalet.orchestrator.result_sender import (
    POLL_SEND_FAILED,
    ResultSender,
    is_caption_duplicate,
)


class RecordingNotifier:
    """Notifier double recording every send in order."""

    def __init__(self, fail_urls=(), fail_polls=False):
        self.events = []
        self.fail_urls = set(fail_urls)
        self.fail_polls = fail_polls

    async def send_text(self, chat_id, text, quoted_message_id=None):
        self.events.append(("text", text))
        return True

    async def send_file(self, chat_id, url, file_name, caption="", quoted_message_id=None):
        self.events.append(("file", url, file_name, caption))
        return url not in self.fail_urls

    async def send_location(self, chat_id, latitude, longitude, quoted_message_id=None):
        self.events.append(("location", latitude, longitude))
        return True

    async def send_poll(self, chat_id, question, options, quoted_message_id=None):
        self.events.append(("poll", question, options))
        return not self.fail_polls

    def texts(self):
        return [e[1] for e in self.events if e[0] == "text"]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sender(notifier):
    return ResultSender(notifier)


# =========================================================================
# Ordering
# =========================================================================


class TestDeliveryOrder:

    @pytest.mark.asyncio
    async def test_fixed_order(self, sender, notifier):
        result = RunResult(
            success=True,
            text="Everything you asked for is above, enjoy it all",
            latitude=32.08,
            longitude=34.78,
            location_info="Dizengoff Center, Tel Aviv",
            poll={"question": "Like it?", "options": ["Yes", "No"]},
            image_url="https://cdn/a.png",
            image_caption="A beach at sunset",
            video_url="https://cdn/v.mp4",
            video_caption="Waves rolling in",
            audio_url="https://cdn/s.mp3",
        )

        sent = await sender.send_step_results("chat", result, step_number=1)

        assert sent == ["location", "poll", "image", "video", "audio"]
        kinds = [e[0] for e in notifier.events]
        assert kinds == ["location", "text", "poll", "file", "file", "file"]
        assert notifier.events[1] == ("text", "📍 Dizengoff Center, Tel Aviv")
        assert notifier.events[3][3] == "A beach at sunset"
        assert notifier.events[4][3] == "Waves rolling in"
        assert notifier.events[5][2].startswith("agent_audio_")
        assert notifier.events[5][3] == ""

    @pytest.mark.asyncio
    async def test_failed_asset_does_not_block_the_rest(self, notifier):
        notifier.fail_urls = {"https://cdn/a.png"}
        sender = ResultSender(notifier)
        result = RunResult(success=True, image_url="https://cdn/a.png", video_url="https://cdn/v.mp4")

        sent = await sender.send_step_results("chat", result)

        assert sent == ["video"]

    @pytest.mark.asyncio
    async def test_poll_failure_reported(self, notifier):
        notifier.fail_polls = True
        sender = ResultSender(notifier)
        await sender.send_step_results("chat", RunResult(success=True, poll={"question": "Q?", "options": ["a"]}))
        assert notifier.texts() == [POLL_SEND_FAILED]

    @pytest.mark.asyncio
    async def test_relative_urls_made_absolute(self, notifier):
        sender = ResultSender(notifier, public_base_url="https://files.example.com/")
        await sender.send_step_results("chat", RunResult(success=True, image_url="/static/a.png"))
        assert notifier.events[0][1] == "https://files.example.com/static/a.png"


# =========================================================================
# Text suppression
# =========================================================================


class TestTextSuppression:

    @pytest.mark.asyncio
    async def test_distinct_text_after_media(self, sender, notifier):
        result = RunResult(
            success=True,
            text="I drew the cat floating between planets, as you asked",
            image_url="https://cdn/a.png",
            image_caption="A cat in space",
        )
        sent = await sender.send_step_results("chat", result)
        assert sent == ["image", "text"]

    @pytest.mark.asyncio
    async def test_text_used_as_caption_not_repeated(self, sender, notifier):
        result = RunResult(success=True, text="A cute cat sleeping on the sofa", image_url="https://cdn/a.png")
        sent = await sender.send_step_results("chat", result)
        assert sent == ["image"]
        assert notifier.events[0][3] == "A cute cat sleeping on the sofa"

    @pytest.mark.asyncio
    async def test_short_text_next_to_media_dropped(self, sender, notifier):
        result = RunResult(success=True, text="Enjoy!", image_url="https://cdn/a.png", image_caption="A cat")
        assert await sender.send_step_results("chat", result) == ["image"]

    @pytest.mark.asyncio
    async def test_audio_is_the_answer(self, sender, notifier):
        result = RunResult(success=True, text="Here is your song, I hope you like it", audio_url="https://cdn/s.mp3")
        assert await sender.send_step_results("chat", result) == ["audio"]

    @pytest.mark.asyncio
    async def test_urls_stripped_from_plain_answers(self, sender, notifier):
        result = RunResult(success=True, text="Read more at https://x.com about cats and dogs")
        await sender.send_step_results("chat", result)
        assert notifier.texts() == ["Read more at about cats and dogs"]

    @pytest.mark.asyncio
    async def test_urls_kept_for_search_results(self, sender, notifier):
        text = "Read more at https://x.com about cats and dogs"
        result = RunResult(success=True, text=text, tools_used=["search_web"])
        await sender.send_step_results("chat", result)
        assert notifier.texts() == [text]

    @pytest.mark.asyncio
    async def test_pipeline_text_suppressed(self, sender, notifier):
        result = RunResult(
            success=True,
            text="Based on the conversation history, the group talked about their trip",
            image_url="https://cdn/a.png",
            image_caption="Group trip portrait",
            tools_used=["get_chat_history", "create_image"],
        )
        sent = await sender.send_step_results("chat", result, user_text="draw our chat")
        assert sent == ["image"]

    @pytest.mark.asyncio
    async def test_location_restatement_dropped(self, sender, notifier):
        result = RunResult(
            success=True,
            text="Dizengoff Center, Tel Aviv",
            latitude=32.0,
            longitude=34.7,
            location_info="Dizengoff Center, Tel Aviv",
        )
        await sender.send_step_results("chat", result)
        assert notifier.texts() == ["📍 Dizengoff Center, Tel Aviv"]


class TestIsCaptionDuplicate:

    def test_equal_ignoring_case_and_spaces(self):
        assert is_caption_duplicate("A  Cat", "a cat") is True

    def test_text_inside_caption(self):
        assert is_caption_duplicate("cat", "a cat in space") is True

    def test_caption_plus_filler(self):
        assert is_caption_duplicate("A cat in space!!", "A cat in space") is True

    def test_longer_text_is_not_duplicate(self):
        assert is_caption_duplicate("A cat in space, drawn in watercolor style", "A cat in space") is False

    def test_empty(self):
        assert is_caption_duplicate("", "x") is False
