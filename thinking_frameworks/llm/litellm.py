"""Resilient LLM client: retry with exponential backoff, cancellation, truncation checks."""
from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional

import litellm

from thinking_frameworks.cancellation import CancellationToken, OperationCancelledError
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.llm.exceptions import LLMAPIError, NoCompletionError
from thinking_frameworks.models import Message, Usage
from utils.logger import get_logger
from utils.observability import observe

logger = get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
MAX_RETRIES = 3
BASE_DELAY_SECONDS = 1.0

# Failures below the HTTP layer carry no useful status and are retried.
_TRANSPORT_ERRORS = (litellm.APIConnectionError, litellm.Timeout, ConnectionError, asyncio.TimeoutError)


class LiteLLM(BaseLLM):
    """Wrapper around litellm.acompletion."""

    def __init__(
        self,
        model: str | None = None,
        *,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_DELAY_SECONDS,
    ) -> None:
        self.model = model or os.getenv("LLM_MODEL", "gpt-4o-mini")
        self.max_retries = max_retries
        self.base_delay = base_delay

    @observe(llm=True)
    async def completion(
        self,
        messages: List[Message],
        *,
        credential: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        cancellation: Optional[CancellationToken] = None,
    ) -> BaseLLM.LLMResponse:
        cancellation = cancellation or CancellationToken()
        effective_model = model or self.model

        completion_kwargs: Dict[str, Any] = {
            "model": effective_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if credential:
            completion_kwargs["api_key"] = credential

        total_attempts = max(self.max_retries, 0) + 1
        last_error: Optional[LLMAPIError] = None

        for attempt in range(total_attempts):
            cancellation.raise_if_cancelled()

            if attempt > 0:
                delay = self.base_delay * 2 ** (attempt - 1)
                logger.warning("llm_retry", model=effective_model, attempt=attempt + 1, delay_ms=int(delay * 1000), error=str(last_error))
                await cancellation.sleep(delay)

            try:
                resp = await self._call(completion_kwargs, cancellation)
            except OperationCancelledError:
                raise
            except Exception as exc:
                status = _status_code(exc)
                if not _is_retryable(exc, status):
                    message = _provider_message(exc) or f"LLM API error: {status}"
                    raise LLMAPIError(message, status_code=status) from exc
                last_error = LLMAPIError(
                    f"LLM API error: {status if status is not None else exc.__class__.__name__} (attempt {attempt + 1}/{total_attempts})",
                    status_code=status,
                )
                if attempt + 1 == total_attempts:
                    raise last_error from exc
                continue

            return self._to_response(resp, effective_model)

    async def _call(self, completion_kwargs: Dict[str, Any], cancellation: CancellationToken) -> Any:
        """Race the provider call against the cancellation token."""
        call = asyncio.ensure_future(litellm.acompletion(**completion_kwargs))
        waiter = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not call.done():
                call.cancel()
        if call not in done:
            raise OperationCancelledError()
        return call.result()

    def _to_response(self, resp: Any, model: str) -> BaseLLM.LLMResponse:
        try:
            choice = resp.choices[0]
            message = choice.message
        except (IndexError, AttributeError, TypeError) as exc:
            raise NoCompletionError() from exc
        if message is None:
            raise NoCompletionError()

        finish_reason = getattr(choice, "finish_reason", None)
        if finish_reason == "length":
            logger.warning("llm_response_truncated", model=model, finish_reason=finish_reason)

        text = (getattr(message, "content", None) or "").strip()
        return BaseLLM.LLMResponse(
            text=text,
            finish_reason=finish_reason if isinstance(finish_reason, str) else None,
            usage=self._extract_token_usage(resp),
        )

    def _extract_token_usage(self, resp: Any) -> Usage:
        """Extract token usage from provider response with fallbacks for different providers."""
        def _get_token(obj: Any, *keys: str) -> int | None:
            for key in keys:
                if isinstance(obj, dict):
                    val = obj.get(key)
                elif hasattr(obj, key):
                    val = getattr(obj, key, None)
                else:
                    continue
                if isinstance(val, int):
                    return val
            return None

        usage = getattr(resp, "usage", None) or (resp.get("usage") if isinstance(resp, dict) else None)
        if usage is None:
            return Usage()

        prompt_tokens = _get_token(usage, "prompt_tokens", "input_tokens") or 0
        completion_tokens = _get_token(usage, "completion_tokens", "output_tokens") or 0
        total_tokens = _get_token(usage, "total_tokens")

        # Compute total if missing but components available
        if total_tokens is None:
            total_tokens = prompt_tokens + completion_tokens

        return Usage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens, total_tokens=total_tokens)


def _status_code(exc: Exception) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def _is_retryable(exc: Exception, status: Optional[int]) -> bool:
    if status is not None and status in RETRYABLE_STATUSES:
        return True
    return isinstance(exc, _TRANSPORT_ERRORS)


def _provider_message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    return str(exc)
