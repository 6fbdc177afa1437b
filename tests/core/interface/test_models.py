"""Tests for the canonical request/response schema."""

from llm_bridge.core.interface.models import (
    Content,
    GenerateContentConfig,
    LlmRequest,
    LlmResponse,
    Part,
    UsageMetadata,
)


class TestPart:
    def test_from_text(self) -> None:
        part = Part.from_text("hi")
        assert part.text == "hi"
        assert part.function_call is None

    def test_from_function_call(self) -> None:
        part = Part.from_function_call("search", {"q": "x"}, id="call_1")
        assert part.function_call is not None
        assert part.function_call.id == "call_1"
        assert part.function_call.args == {"q": "x"}

    def test_from_function_call_defaults_args(self) -> None:
        part = Part.from_function_call("noop")
        assert part.function_call is not None
        assert part.function_call.args == {}

    def test_from_function_response(self) -> None:
        part = Part.from_function_response({"ok": True}, id="call_1", name="search")
        assert part.function_response is not None
        assert part.function_response.response == {"ok": True}


class TestContent:
    def test_text_joins_text_parts_with_newline(self) -> None:
        content = Content(
            role="model",
            parts=[Part.from_text("a"), Part.from_function_call("f"), Part.from_text("b")],
        )
        assert content.text == "a\nb"
        assert [c.name for c in content.function_calls] == ["f"]

    def test_default_role_is_user(self) -> None:
        assert Content().role == "user"


class TestLlmRequest:
    def test_validate_from_json(self) -> None:
        request = LlmRequest.model_validate(
            {
                "contents": [{"role": "user", "parts": [{"text": "Hello"}]}],
                "config": {"system_instruction": "Be brief."},
            }
        )
        assert request.contents[0].parts[0].text == "Hello"
        assert request.config is not None
        assert request.config.system_instruction == "Be brief."

    def test_turn_shaped_system_instruction(self) -> None:
        config = GenerateContentConfig(
            system_instruction=Content(parts=[Part.from_text("A")])
        )
        assert isinstance(config.system_instruction, Content)


class TestLlmResponse:
    def test_from_parts_empty_has_no_content(self) -> None:
        response = LlmResponse.from_parts([], turn_complete=True)
        assert response.content is None
        assert response.turn_complete is True
        assert response.text == ""
        assert response.function_calls == []

    def test_from_parts_uses_model_role(self) -> None:
        response = LlmResponse.from_parts([Part.from_text("x")])
        assert response.content is not None
        assert response.content.role == "model"

    def test_from_error(self) -> None:
        response = LlmResponse.from_error("API_ERROR_500", "boom")
        assert response.error_code == "API_ERROR_500"
        assert response.error_message == "boom"
        assert response.turn_complete is True
        assert response.content is None


class TestUsageMetadata:
    def test_from_counts_sums_total(self) -> None:
        usage = UsageMetadata.from_counts(10, 5)
        assert usage.total_token_count == 15
