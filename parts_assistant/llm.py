"""
LLM Helper Module

Wraps the external text-completion capability behind one async call:

    await client.generate(prompt, system_instruction) -> CompletionResult

Providers are tried in a fixed preference order (Gemini, Anthropic, OpenAI) and the
first one with an API key configured is the only one used. With no key configured
the client reports itself unavailable and every call returns an `unavailable`
result, which callers treat as "use the rule-based path".

Provider SDKs are imported inside each provider so tests can monkeypatch the
providers without the SDKs needing network access.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .agent_types import CompletionFailure, CompletionResult
from .config import Settings

logger = logging.getLogger(__name__)


# =============================================================================
# PROVIDERS
# =============================================================================

class CompletionProvider(ABC):
    """One configured completion backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider identifier used in logs and results."""
        pass

    @abstractmethod
    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        """Return the raw completion text (may be empty). May raise on provider errors."""
        pass


class GeminiProvider(CompletionProvider):
    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    @property
    def name(self) -> str:
        return "gemini"

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        try:
            import google.generativeai as genai
        except ImportError as exc:
            raise RuntimeError(
                "google-generativeai package is not installed. Install it to use Gemini."
            ) from exc

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system_instruction)
        response = await model.generate_content_async(prompt)
        return response.text or ""


class AnthropicProvider(CompletionProvider):
    def __init__(self, api_key: str, model: str, max_tokens: int = 1024) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens

    @property
    def name(self) -> str:
        return "anthropic"

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        try:
            import anthropic
        except ImportError as exc:
            raise RuntimeError(
                "anthropic package is not installed. Install it to use Claude."
            ) from exc

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        kwargs = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_instruction:
            kwargs["system"] = system_instruction
        message = await client.messages.create(**kwargs)
        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""


class OpenAIProvider(CompletionProvider):
    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    @property
    def name(self) -> str:
        return "openai"

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        try:
            from openai import AsyncOpenAI
        except ImportError as exc:
            raise RuntimeError(
                "openai package is not installed. Install it to use OpenAI."
            ) from exc

        client = AsyncOpenAI(api_key=self._api_key)
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        completion = await client.chat.completions.create(model=self._model, messages=messages)
        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""


# =============================================================================
# CLIENT
# =============================================================================

class CompletionClient:
    """
    Selection policy plus failure handling around the configured providers.

    generate() never raises (cancellation aside): provider errors, timeouts and
    blank replies all come back as a CompletionResult with ok=False.
    """

    def __init__(self, providers: list[CompletionProvider], timeout_seconds: float = 20.0) -> None:
        self._providers = list(providers)
        self._timeout = timeout_seconds

    @property
    def available(self) -> bool:
        return bool(self._providers)

    @property
    def provider_name(self) -> Optional[str]:
        return self._providers[0].name if self._providers else None

    async def generate(self, prompt: str, system_instruction: Optional[str] = None) -> CompletionResult:
        if not self._providers:
            return CompletionResult.failed(CompletionFailure.UNAVAILABLE)

        provider = self._providers[0]
        logger.info("calling completion provider %s", provider.name)
        try:
            text = await asyncio.wait_for(
                provider.complete(prompt, system_instruction),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("completion provider %s timed out after %.1fs", provider.name, self._timeout)
            return CompletionResult.failed(CompletionFailure.TIMEOUT, provider.name)
        except Exception as exc:
            logger.warning("completion provider %s failed: %s", provider.name, exc)
            return CompletionResult.failed(CompletionFailure.ERROR, provider.name)

        if not text or not text.strip():
            logger.warning("completion provider %s returned empty text", provider.name)
            return CompletionResult.failed(CompletionFailure.EMPTY, provider.name)

        return CompletionResult(ok=True, text=text, provider=provider.name)


def build_completion_client(settings: Settings) -> CompletionClient:
    """Create a client holding every provider whose API key is configured, in preference order."""
    providers: list[CompletionProvider] = []
    if settings.google_api_key:
        providers.append(GeminiProvider(settings.google_api_key, settings.gemini_model))
    if settings.anthropic_api_key:
        providers.append(AnthropicProvider(settings.anthropic_api_key, settings.anthropic_model))
    if settings.openai_api_key:
        providers.append(OpenAIProvider(settings.openai_api_key, settings.openai_model))

    if providers:
        logger.info("completion provider selected: %s", providers[0].name)
    else:
        logger.info("no completion provider configured; using rule-based mode")
    return CompletionClient(providers, timeout_seconds=settings.llm_timeout_seconds)


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the span from the first '{' to the last '}' in `text`, or None.

    Tolerates prose or code fences around the JSON the model was asked for.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]
