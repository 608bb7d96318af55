"""Anthropic Messages API client with retry logic and structured logging."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
from tenacity import (
    Retrying,
    after_log,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from bidengine.app.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

PROVIDER = "anthropic"

# 529 is the provider's "overloaded" status
RETRYABLE_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504, 529})


class LLMResponseError(UpstreamUnavailable):
    """Raised when the model API fails or answers in an unexpected shape."""


def is_retryable_llm_error(exception: BaseException) -> bool:
    """Check if a failed call is worth repeating (rate limit, overload, connection issues)."""
    if isinstance(exception, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


def _retry_after_or(backoff: Callable[[Any], float], max_wait: float) -> Callable[[Any], float]:
    """Honour a ``retry-after`` header when the provider sends one."""

    def wait(retry_state) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, httpx.HTTPStatusError):
            header = exc.response.headers.get("retry-after")
            try:
                return min(float(header), max_wait)
            except (TypeError, ValueError):
                pass
        return backoff(retry_state)

    return wait


def create_llm_retrying(max_attempts: int = 5, min_wait_seconds: float = 1.0, max_wait_seconds: float = 60.0) -> Retrying:
    """Build the retry policy for model calls.

    Uses exponential backoff, or the provider's ``retry-after`` hint when
    present, and re-raises the last error once attempts run out.
    """
    backoff = wait_exponential(multiplier=1, min=min(min_wait_seconds, max_wait_seconds), max=max_wait_seconds)
    return Retrying(
        retry=retry_if_exception(is_retryable_llm_error),
        stop=stop_after_attempt(max_attempts),
        wait=_retry_after_or(backoff, max_wait_seconds),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.INFO),
        reraise=True,
    )


def estimate_tokens(text: str) -> int:
    return len(text) // 4


class LLMClient:
    """Sends single-turn prompts to the Messages endpoint and returns the text reply."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.anthropic.com/v1",
        model: str = "claude-sonnet-4-20250514",
        api_version: str = "2023-06-01",
        timeout: float = 120.0,
        max_attempts: int = 5,
        max_wait_seconds: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.model = model
        self._max_attempts = max_attempts
        self._max_wait_seconds = max_wait_seconds
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "x-api-key": api_key,
                "anthropic-version": api_version,
                "content-type": "application/json",
            },
        )

    def close(self) -> None:
        self._http.close()

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        model: Optional[str] = None,
    ) -> str:
        model = model or self.model
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        logger.info(
            "LLM request to %s/%s",
            PROVIDER,
            model,
            extra={"event": "llm_request", "provider": PROVIDER, "model": model, "prompt_tokens": estimate_tokens(prompt)},
        )

        start_time = time.time()
        try:
            response = create_llm_retrying(self._max_attempts, max_wait_seconds=self._max_wait_seconds)(
                self._post, payload
            )
        except httpx.HTTPStatusError as exc:
            self._log_failure(model, start_time, exc)
            raise LLMResponseError("Model request failed", details=exc.response.text) from exc
        except httpx.HTTPError as exc:
            self._log_failure(model, start_time, exc)
            raise LLMResponseError("Model request failed", details=str(exc)) from exc
        except ValueError as exc:
            self._log_failure(model, start_time, exc)
            raise LLMResponseError("Model returned invalid JSON") from exc

        duration_ms = (time.time() - start_time) * 1000
        usage = response.get("usage") or {}
        logger.info(
            "LLM response from %s/%s (%.0fms)",
            PROVIDER,
            model,
            duration_ms,
            extra={
                "event": "llm_response",
                "provider": PROVIDER,
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "response_tokens": usage.get("output_tokens"),
            },
        )
        return self._parse_response(response)

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._http.post("/messages", json=payload)
        response.raise_for_status()
        return response.json()

    def _parse_response(self, response: Dict[str, Any]) -> str:
        content = response.get("content") or []
        if not content or not isinstance(content[0], dict):
            raise LLMResponseError("Model returned no content")
        first = content[0]
        if first.get("type") != "text":
            return ""
        return first.get("text") or ""

    def _log_failure(self, model: str, start_time: float, exc: Exception) -> None:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            "LLM request failed: %s",
            exc,
            extra={"event": "llm_response", "provider": PROVIDER, "model": model, "duration_ms": round(duration_ms, 2)},
        )
