"""Tests for AI provider implementations.

Shared behaviour (_parse, prompts, error normalization) lives in BaseReviewer
and is tested once via a lightweight stub. Provider-specific tests cover only
the SDK client setup and _call_api.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from prwarden_core.errors import MalformedResponseError, TransportError
from prwarden_core.providers.anthropic import AnthropicReviewer
from prwarden_core.providers.base import BaseReviewer
from prwarden_core.providers.openai import OpenAIReviewer

VALID_JSON = json.dumps(
    {"comments": [{"context": "foo.bar(x)", "comment": "missing null check", "suggestion": "add a guard"}]}
)


class _StubReviewer(BaseReviewer):
    """Minimal concrete subclass used to test BaseReviewer shared methods."""

    def __init__(self, response: str = VALID_JSON, **kwargs):
        super().__init__(**kwargs)
        self.response = response
        self.calls = 0

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        return self.response


class TestBaseReviewerParse:
    def test_parses_valid_json(self):
        result = _StubReviewer()._parse(VALID_JSON)
        assert len(result) == 1
        assert result[0].context == "foo.bar(x)"
        assert result[0].comment == "missing null check"
        assert result[0].suggestion == "add a guard"

    def test_strips_markdown_code_fences(self):
        raw = f"```json\n{VALID_JSON}\n```"
        assert len(_StubReviewer()._parse(raw)) == 1

    def test_strips_bare_fences(self):
        raw = f"```\n{VALID_JSON}\n```"
        assert len(_StubReviewer()._parse(raw)) == 1

    def test_preserves_code_blocks_inside_suggestions(self):
        payload = json.dumps(
            {"comments": [{"context": "x", "comment": "c", "suggestion": "Use:\n```js\nfoo()\n```"}]}
        )
        result = _StubReviewer()._parse(f"```json\n{payload}\n```")
        assert "```js" in result[0].suggestion

    def test_empty_comments_list(self):
        assert _StubReviewer()._parse('{"comments": []}') == []

    def test_invalid_json_is_fatal(self):
        with pytest.raises(MalformedResponseError) as exc:
            _StubReviewer()._parse("not json at all")
        assert exc.value.raw == "not json at all"

    def test_bare_list_is_fatal(self):
        with pytest.raises(MalformedResponseError):
            _StubReviewer()._parse("[]")

    def test_entry_without_context_is_fatal(self):
        with pytest.raises(MalformedResponseError):
            _StubReviewer()._parse('{"comments": [{"comment": "x"}]}')

    def test_missing_suggestion_defaults_to_empty(self):
        result = _StubReviewer()._parse('{"comments": [{"context": "a", "comment": "b"}]}')
        assert result[0].suggestion == ""

    def test_truncates_to_max_comments(self):
        entries = [{"context": f"c{i}", "comment": "x", "suggestion": "y"} for i in range(5)]
        result = _StubReviewer(max_comments=3)._parse(json.dumps({"comments": entries}))
        assert [c.context for c in result] == ["c0", "c1", "c2"]


class TestBaseReviewerPrompts:
    def test_system_prompt_mentions_comment_limit(self):
        assert "max 2" in _StubReviewer(max_comments=2)._build_system_prompt()

    def test_system_prompt_includes_guidelines(self):
        prompt = _StubReviewer(guidelines="## Team rules")._build_system_prompt()
        assert "## Team rules" in prompt

    def test_user_prompt_contains_diff(self):
        prompt = _StubReviewer()._build_user_prompt("+added line")
        assert "+added line" in prompt
        assert '"comments"' in prompt


class TestBaseReviewerReview:
    def test_review_returns_candidates(self):
        reviewer = _StubReviewer()
        result = reviewer.review("+foo.bar(x)")
        assert len(result) == 1
        assert reviewer.calls == 1

    def test_api_failure_becomes_transport_error_without_retry(self):
        class _AlwaysFail(BaseReviewer):
            calls = 0

            def _call_api(self, system_prompt: str, user_prompt: str) -> str:
                _AlwaysFail.calls += 1
                raise RuntimeError("network error")

        with pytest.raises(TransportError):
            _AlwaysFail().review("+x")
        assert _AlwaysFail.calls == 1

    def test_none_response_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            _StubReviewer(response=None).review("+x")


class TestAnthropicReviewer:
    def test_builds_sdk_client_from_api_key(self):
        with patch("prwarden_core.providers.anthropic.Anthropic") as sdk:
            reviewer = AnthropicReviewer(api_key="key")
        sdk.assert_called_once_with(api_key="key")
        assert reviewer.client is sdk.return_value

    def test_model_is_claude(self):
        assert "claude" in AnthropicReviewer.MODEL

    def test_call_api_continues_prefilled_json(self):
        from anthropic.types import TextBlock

        client = MagicMock()
        client.messages.create.return_value.content = [
            TextBlock(type="text", text='"comments": '),
            TextBlock(type="text", text="[]}"),
        ]
        reviewer = AnthropicReviewer(api_key="key", client=client)
        assert reviewer.review("+x") == []
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["temperature"] == 0
        assert kwargs["messages"][-1] == {"role": "assistant", "content": "{"}

    def test_max_tokens_stop_is_logged(self, caplog):
        client = MagicMock()
        client.messages.create.return_value.stop_reason = "max_tokens"
        client.messages.create.return_value.content = []
        reviewer = AnthropicReviewer(api_key="key", client=client)
        with pytest.raises(MalformedResponseError):
            reviewer.review("+x")
        assert "max_tokens" in caplog.text


class TestOpenAIReviewer:
    def test_builds_sdk_client_from_api_key(self):
        with patch("prwarden_core.providers.openai.OpenAI") as sdk:
            reviewer = OpenAIReviewer(api_key="key")
        sdk.assert_called_once_with(api_key="key")
        assert reviewer.client is sdk.return_value

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIReviewer.MODEL

    def _client(self, content=VALID_JSON, finish_reason="stop"):
        client = MagicMock()
        choice = MagicMock()
        choice.message.content = content
        choice.finish_reason = finish_reason
        client.chat.completions.create.return_value.choices = [choice]
        return client

    def test_call_api_uses_json_mode(self):
        client = self._client()
        reviewer = OpenAIReviewer(api_key="key", client=client, max_comments=3)

        result = reviewer.review("+foo.bar(x)")

        assert result[0].context == "foo.bar(x)"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0
        assert kwargs["response_format"] == {"type": "json_object"}

    def test_truncated_completion_is_logged(self, caplog):
        reviewer = OpenAIReviewer(api_key="key", client=self._client(content='{"comments": [', finish_reason="length"))
        with pytest.raises(MalformedResponseError):
            reviewer.review("+x")
        assert "max_tokens" in caplog.text
