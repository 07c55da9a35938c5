"""Model extractor adapters, one per LLM provider"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import anthropic
import google.generativeai as genai
from openai import AsyncOpenAI

from .config import (
    ANTHROPIC_MODEL,
    GEMINI_MODEL,
    MODEL_MAX_TOKENS,
    MODEL_TEMPERATURE,
    OPENAI_MODEL,
    Settings,
)
from .errors import ProviderCallFailed, ProviderUnavailable
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def _is_placeholder(key: str) -> bool:
    return 'placeholder' in key.lower() or 'your-' in key.lower()


def is_valid_openai_key(key: Optional[str]) -> bool:
    return bool(key) and key.startswith('sk-') and not _is_placeholder(key)


def is_valid_anthropic_key(key: Optional[str]) -> bool:
    return bool(key) and key.startswith('sk-ant-') and not _is_placeholder(key)


def is_valid_gemini_key(key: Optional[str]) -> bool:
    return bool(key) and len(key) > 10 and not _is_placeholder(key)


class ModelAdapter(ABC):
    """A remote extraction backend: prompt in, raw response text out"""

    name: str = "model"
    model: str = ""
    priority: int = 100

    @abstractmethod
    async def call(self, prompt: str) -> str:
        """Send the prompt; raise ProviderCallFailed on any provider error"""

    def describe(self) -> Dict[str, str]:
        return {"provider": self.name, "model": self.model, "priority": str(self.priority)}

    def __repr__(self):
        return f"{type(self).__name__}(model={self.model!r}, priority={self.priority})"


class GeminiAdapter(ModelAdapter):
    name = "Google Gemini"
    priority = 1

    def __init__(self, api_key: str, model: str = GEMINI_MODEL):
        if not is_valid_gemini_key(api_key):
            raise ProviderUnavailable("Gemini API key missing or malformed")
        genai.configure(api_key=api_key)
        self.model = model
        self.client = genai.GenerativeModel(
            model_name=model,
            generation_config={
                "temperature": MODEL_TEMPERATURE,
                "max_output_tokens": MODEL_MAX_TOKENS,
            },
            system_instruction=SYSTEM_PROMPT,
        )

    async def call(self, prompt: str) -> str:
        try:
            response = await self.client.generate_content_async(prompt)
            return response.text
        except Exception as e:
            raise ProviderCallFailed(f"Gemini call failed: {e}", {"provider": self.name}) from e


class OpenAIAdapter(ModelAdapter):
    name = "OpenAI GPT-4"
    priority = 2

    def __init__(self, api_key: str, model: str = OPENAI_MODEL):
        if not is_valid_openai_key(api_key):
            raise ProviderUnavailable("OpenAI API key missing or malformed")
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key)

    async def call(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=MODEL_TEMPERATURE,
                max_tokens=MODEL_MAX_TOKENS,
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            raise ProviderCallFailed(f"OpenAI call failed: {e}", {"provider": self.name}) from e


class AnthropicAdapter(ModelAdapter):
    name = "Anthropic Claude"
    priority = 3

    def __init__(self, api_key: str, model: str = ANTHROPIC_MODEL):
        if not is_valid_anthropic_key(api_key):
            raise ProviderUnavailable("Anthropic API key missing or malformed")
        self.model = model
        self.client = anthropic.AsyncAnthropic(api_key=api_key)

    async def call(self, prompt: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=MODEL_MAX_TOKENS,
                temperature=MODEL_TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            raise ProviderCallFailed(f"Anthropic rate limit hit: {e}", {"provider": self.name}) from e
        except Exception as e:
            raise ProviderCallFailed(f"Anthropic call failed: {e}", {"provider": self.name}) from e
        return "".join(block.text for block in response.content if getattr(block, "text", None))


ADAPTER_TYPES = (
    (GeminiAdapter, "gemini_api_key"),
    (OpenAIAdapter, "openai_api_key"),
    (AnthropicAdapter, "anthropic_api_key"),
)


def build_adapters(settings: Settings) -> List[ModelAdapter]:
    """
    Instantiate every adapter whose credential passes the format check

    Returns:
        Adapters sorted by priority (highest priority first)
    """
    adapters = []
    for adapter_type, key_attr in ADAPTER_TYPES:
        try:
            adapters.append(adapter_type(getattr(settings, key_attr)))
        except ProviderUnavailable as e:
            logger.debug(f"{adapter_type.name} unavailable: {e}")

    if adapters:
        logger.info("Model adapters ready: " + ", ".join(a.name for a in sorted(adapters, key=lambda a: a.priority)))
    else:
        logger.warning("No valid model API keys configured; only pattern extraction is available")
    return sorted(adapters, key=lambda a: a.priority)


def key_status(key: Optional[str], validator) -> str:
    """Human-readable credential status used by the check-keys command"""
    if not key:
        return "not set"
    if _is_placeholder(key):
        return "placeholder value (invalid)"
    if not validator(key):
        return "invalid format"
    return "configured (format looks valid)"
