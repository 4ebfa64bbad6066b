from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from core.config import (
    ANTHROPIC_API_KEY,
    LLM_MAX_RETRIES,
    LLM_PROVIDER,
    LLM_TIMEOUT_SEC,
    MODEL_NAME,
    OPENAI_API_KEY,
)
from interview_agent.errors import CompletionError
from interview_agent.rules import API_KEY_VISIBLE_PREFIX

logger = logging.getLogger("interview_agent.ai.llm")

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class CompletionRequest:
    system_instruction: str
    user_prompt: str
    max_output_tokens: int = 2048


class CompletionClient(Protocol):
    async def complete(self, request: CompletionRequest) -> str:
        ...

    def set_api_key(self, key: str) -> None:
        ...

    def masked_api_key(self) -> str | None:
        ...


def mask_api_key(key: str | None) -> str | None:
    key = str(key or "").strip()
    if not key:
        return None
    return key[:API_KEY_VISIBLE_PREFIX] + "..."


class _RetryingCompletionClient(ABC):
    """
    Shared call loop: optional timeout, optional bounded retry with linear backoff.
    Defaults (no timeout, no retry) keep a hung call hanging, as the session expects.
    """

    provider = "base"

    def __init__(self, api_key: str = "", model: str = "", timeout_sec: float = 0.0, retries: int = 0):
        self._api_key = str(api_key or "").strip()
        self.model = model
        self.timeout_sec = max(0.0, float(timeout_sec or 0.0))
        self.retries = max(0, int(retries or 0))

    def set_api_key(self, key: str) -> None:
        self._api_key = str(key or "").strip()
        self._reset_client()

    def masked_api_key(self) -> str | None:
        return mask_api_key(self._api_key)

    def _reset_client(self) -> None:
        pass

    @abstractmethod
    async def _send(self, request: CompletionRequest) -> str:
        ...

    async def complete(self, request: CompletionRequest) -> str:
        if not self._api_key:
            raise CompletionError("No API key configured. Set one via SET_API_KEY or the provider environment variable.")

        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            try:
                call = self._send(request)
                if self.timeout_sec > 0:
                    return await asyncio.wait_for(call, timeout=self.timeout_sec)
                return await call
            except asyncio.TimeoutError as exc:
                last_error = exc
                logger.warning("completion timeout | provider=%s attempt=%s", self.provider, attempt + 1)
            except Exception as exc:
                last_error = exc
                logger.warning("completion failure | provider=%s attempt=%s err=%s", self.provider, attempt + 1, exc)

            if attempt < self.retries:
                await asyncio.sleep(0.35 * (attempt + 1))

        raise CompletionError(f"{self.provider} completion failed: {last_error or 'timeout'}") from last_error


class AnthropicCompletionClient(_RetryingCompletionClient):
    provider = "anthropic"

    def __init__(self, api_key: str = "", model: str = "", timeout_sec: float = 0.0, retries: int = 0):
        super().__init__(api_key, model or DEFAULT_ANTHROPIC_MODEL, timeout_sec, retries)
        self._client: AsyncAnthropic | None = None

    def _reset_client(self) -> None:
        self._client = None

    async def _send(self, request: CompletionRequest) -> str:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=request.max_output_tokens,
            system=request.system_instruction,
            messages=[{"role": "user", "content": request.user_prompt}],
        )
        return "".join(
            str(getattr(block, "text", "") or "")
            for block in response.content
            if getattr(block, "type", "text") == "text"
        )


class OpenAICompletionClient(_RetryingCompletionClient):
    provider = "openai"

    def __init__(self, api_key: str = "", model: str = "", timeout_sec: float = 0.0, retries: int = 0):
        super().__init__(api_key, model or DEFAULT_OPENAI_MODEL, timeout_sec, retries)
        self._client: AsyncOpenAI | None = None

    def _reset_client(self) -> None:
        self._client = None

    async def _send(self, request: CompletionRequest) -> str:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        response = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=request.max_output_tokens,
            messages=[
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_prompt},
            ],
        )
        message = response.choices[0].message.content
        return str(message or "")


def build_completion_client() -> CompletionClient:
    if LLM_PROVIDER == "openai":
        return OpenAICompletionClient(OPENAI_API_KEY, MODEL_NAME, LLM_TIMEOUT_SEC, LLM_MAX_RETRIES)
    if LLM_PROVIDER != "anthropic":
        logger.warning("Unknown LLM_PROVIDER=%s, using anthropic", LLM_PROVIDER)
    return AnthropicCompletionClient(ANTHROPIC_API_KEY, MODEL_NAME, LLM_TIMEOUT_SEC, LLM_MAX_RETRIES)
