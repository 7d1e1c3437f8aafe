"""Tests for mediavalet.tools.models"""

from mediavalet.tools.models import FunctionResponse, ResultKind, ToolResult, poll_options


class TestToolResult:

    def test_from_dict_with_wire_keys(self):
        result = ToolResult.from_raw({
            "success": True,
            "imageUrl": "https://cdn/a.png",
            "imageCaption": "A cat",
            "suppressFinalResponse": True,
            "taskId": "t-1",
        })
        assert result.image_url == "https://cdn/a.png"
        assert result.suppress_final_response is True
        assert result.kind == ResultKind.IMAGE
        assert result.to_dict() == {
            "success": True,
            "imageUrl": "https://cdn/a.png",
            "imageCaption": "A cat",
            "suppressFinalResponse": True,
            "taskId": "t-1",
        }

    def test_from_none_and_scalars(self):
        assert ToolResult.from_raw(None).failed is True
        result = ToolResult.from_raw("plain text")
        assert result.success is True
        assert result.data_text() == "plain text"

    def test_existing_result_passed_through(self):
        result = ToolResult(success=True)
        assert ToolResult.from_raw(result) is result

    def test_failed(self):
        assert ToolResult(error="x").failed is True
        assert ToolResult(success=False).failed is True
        assert ToolResult(success=True).failed is False
        assert ToolResult.failure("nope").error == "nope"

    def test_location_kind(self):
        result = ToolResult(latitude=32.0, longitude=34.0)
        assert result.has_location is True
        assert result.kind == ResultKind.LOCATION
        assert ToolResult(latitude=32.0).has_location is False

    def test_data_text_only_for_strings(self):
        assert ToolResult(data={"a": 1}).data_text() == ""


class TestHelpers:

    def test_poll_options_shapes(self):
        poll = {"options": [{"optionName": "Yes"}, "No", {"name": "Maybe"}, ""]}
        assert poll_options(poll) == ["Yes", "No", "Maybe"]
        assert poll_options(None) == []

    def test_function_response_blocked(self):
        assert FunctionResponse("x", {"blocked": True}).blocked is True
        assert FunctionResponse("x", {}).blocked is False
