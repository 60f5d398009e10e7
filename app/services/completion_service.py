"""Adapter for OpenAI chat completions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from app.config import Settings
from app.exceptions import (
    PipelineError,
    UnknownPipelineError,
    UpstreamAuthError,
    UpstreamMalformedResponseError,
    UpstreamRateLimitedError,
    UpstreamTimeoutError,
)
from app.models import CompletionOptions, PromptPair
from app.retry import RetryPolicy, exponential_backoff, retry_async

logger = logging.getLogger(__name__)

_AUTH_STATUSES = {401, 403}


def is_transient(exc: BaseException) -> bool:
    """Only timeouts and rate limits are worth another attempt."""

    return isinstance(exc, (UpstreamTimeoutError, UpstreamRateLimitedError))


class CompletionService:
    """Wrapper around OpenAI's chat completions endpoint.

    Holds only the shared HTTP client and read-only settings, so one instance
    can serve concurrent requests.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._sleep = sleep
        self._endpoint = f"{settings.openai_base_url.rstrip('/')}/chat/completions"
        self._policy = RetryPolicy(
            max_attempts=settings.chat_max_retries + 1,
            retry_predicate=is_transient,
            backoff=exponential_backoff(settings.chat_backoff_base),
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    def default_options(self) -> CompletionOptions:
        return CompletionOptions(
            model=self._settings.chat_model,
            temperature=self._settings.chat_temperature,
            max_tokens=self._settings.chat_max_tokens,
        )

    async def complete(self, prompt: PromptPair, options: CompletionOptions | None = None) -> str:
        """Generate text for the prompt pair, retrying transient failures."""

        options = options or self.default_options()
        payload = {
            "model": options.model,
            "messages": [
                {"role": "system", "content": prompt.system_instruction},
                {"role": "user", "content": prompt.user_instruction},
            ],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

        return await retry_async(lambda: self._send(payload), self._policy, sleep=self._sleep)

    async def ping(self) -> bool:
        """Send a tiny completion to confirm credential and connectivity."""

        payload = {
            "model": self._settings.chat_model,
            "messages": [
                {"role": "user", "content": "Respond with 'OK' if you can read this."}
            ],
            "max_tokens": 5,
        }
        try:
            reply = await self._send(payload)
        except PipelineError as exc:
            logger.error(
                "Upstream connectivity check failed",
                extra={"error_code": exc.code, "detail": exc.detail},
            )
            return False

        logger.info(
            "Upstream connectivity check succeeded",
            extra={"model": self._settings.chat_model, "reply": reply},
        )
        return True

    async def _send(self, payload: dict[str, Any]) -> str:
        """Perform one attempt and classify its outcome."""

        headers = {
            "Authorization": f"Bearer {self._settings.openai_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(
                self._endpoint,
                headers=headers,
                json=payload,
                timeout=self._settings.chat_timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Chat completion timed out", exc_info=exc)
            raise UpstreamTimeoutError(detail=str(exc) or type(exc).__name__) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.error(
                "Chat completion failed",
                extra={
                    "status_code": status_code,
                    "response_text": exc.response.text,
                },
            )
            detail = f"provider status {status_code}"
            if status_code in _AUTH_STATUSES:
                raise UpstreamAuthError(detail=detail) from exc
            if status_code == 429:
                raise UpstreamRateLimitedError(detail=detail) from exc
            raise UnknownPipelineError(detail=detail) from exc
        except httpx.HTTPError as exc:
            logger.exception("Unexpected chat HTTP error")
            raise UnknownPipelineError(detail=type(exc).__name__) from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Chat response is not JSON", extra={"response_text": response.text})
            raise UpstreamMalformedResponseError(detail="non-JSON body") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.error("Malformed chat response", extra={"raw_response": data})
            raise UpstreamMalformedResponseError(detail="missing choices[0].message.content") from exc

        if not isinstance(content, str) or not content.strip():
            raise UpstreamMalformedResponseError(detail="empty content")

        return content
