"""
Tests for model adapters and credential checks. Provider SDK clients are mocked.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cascade_extractor.config import Settings
from cascade_extractor.errors import ProviderCallFailed, ProviderUnavailable
from cascade_extractor.llm_client import (
    AnthropicAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    build_adapters,
    is_valid_anthropic_key,
    is_valid_gemini_key,
    is_valid_openai_key,
    key_status,
)


GEMINI_KEY = "AIzaSyTestKey1234567890"
OPENAI_KEY = "sk-test-1234567890"
ANTHROPIC_KEY = "sk-ant-test-1234567890"


class TestKeyChecks:

    def test_openai(self):
        assert is_valid_openai_key(OPENAI_KEY)
        assert not is_valid_openai_key("pk-1234")
        assert not is_valid_openai_key("sk-your-key-here")
        assert not is_valid_openai_key(None)

    def test_anthropic(self):
        assert is_valid_anthropic_key(ANTHROPIC_KEY)
        assert not is_valid_anthropic_key(OPENAI_KEY)
        assert not is_valid_anthropic_key("sk-ant-placeholder")

    def test_gemini(self):
        assert is_valid_gemini_key(GEMINI_KEY)
        assert not is_valid_gemini_key("short")
        assert not is_valid_gemini_key("")

    def test_key_status(self):
        assert key_status(None, is_valid_openai_key) == "not set"
        assert key_status("your-openai-key", is_valid_openai_key) == "placeholder value (invalid)"
        assert key_status("abc", is_valid_openai_key) == "invalid format"
        assert key_status(OPENAI_KEY, is_valid_openai_key) == "configured (format looks valid)"


@pytest.fixture
def mock_sdks():
    with patch("cascade_extractor.llm_client.genai") as genai, \
            patch("cascade_extractor.llm_client.AsyncOpenAI") as openai_client, \
            patch("cascade_extractor.llm_client.anthropic.AsyncAnthropic") as anthropic_client:
        yield SimpleNamespace(genai=genai, openai=openai_client, anthropic=anthropic_client)


class TestBuildAdapters:

    def test_all_keys(self, mock_sdks):
        settings = Settings(gemini_api_key=GEMINI_KEY, openai_api_key=OPENAI_KEY,
                            anthropic_api_key=ANTHROPIC_KEY)

        adapters = build_adapters(settings)

        assert [type(a) for a in adapters] == [GeminiAdapter, OpenAIAdapter, AnthropicAdapter]
        assert [a.priority for a in adapters] == [1, 2, 3]
        mock_sdks.genai.configure.assert_called_once_with(api_key=GEMINI_KEY)
        mock_sdks.openai.assert_called_once_with(api_key=OPENAI_KEY)

    def test_invalid_keys_are_skipped(self, mock_sdks):
        settings = Settings(gemini_api_key="short", openai_api_key="your-key",
                            anthropic_api_key=ANTHROPIC_KEY)

        adapters = build_adapters(settings)

        assert [a.name for a in adapters] == ["Anthropic Claude"]

    def test_no_keys(self, mock_sdks):
        assert build_adapters(Settings()) == []

    def test_describe(self, mock_sdks):
        adapter = OpenAIAdapter(OPENAI_KEY, model="gpt-4o")
        assert adapter.describe() == {"provider": "OpenAI GPT-4", "model": "gpt-4o", "priority": "2"}

    def test_unavailable(self):
        with pytest.raises(ProviderUnavailable):
            OpenAIAdapter("")


class TestAdapterCalls:

    @pytest.mark.asyncio
    async def test_openai_call(self, mock_sdks):
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content='{"pod": "NA"}'))]
        client = mock_sdks.openai.return_value
        client.chat.completions.create = AsyncMock(return_value=response)

        text = await OpenAIAdapter(OPENAI_KEY).call("prompt")

        assert text == '{"pod": "NA"}'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][-1] == {"role": "user", "content": "prompt"}

    @pytest.mark.asyncio
    async def test_openai_failure_is_wrapped(self, mock_sdks):
        client = mock_sdks.openai.return_value
        client.chat.completions.create = AsyncMock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(ProviderCallFailed, match="connection reset"):
            await OpenAIAdapter(OPENAI_KEY).call("prompt")

    @pytest.mark.asyncio
    async def test_anthropic_call_joins_text_blocks(self, mock_sdks):
        client = mock_sdks.anthropic.return_value
        client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(text='{"pod": '), SimpleNamespace(text='"EMEA"}')]
        ))

        assert await AnthropicAdapter(ANTHROPIC_KEY).call("prompt") == '{"pod": "EMEA"}'

    @pytest.mark.asyncio
    async def test_anthropic_failure_is_wrapped(self, mock_sdks):
        client = mock_sdks.anthropic.return_value
        client.messages.create = AsyncMock(side_effect=ValueError("overloaded"))

        with pytest.raises(ProviderCallFailed):
            await AnthropicAdapter(ANTHROPIC_KEY).call("prompt")

    @pytest.mark.asyncio
    async def test_gemini_call(self, mock_sdks):
        model = mock_sdks.genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text='{"period": "12"}'))

        assert await GeminiAdapter(GEMINI_KEY).call("prompt") == '{"period": "12"}'
        model.generate_content_async.assert_awaited_once_with("prompt")
