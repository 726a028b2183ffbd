from __future__ import annotations

import random
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar

from errorbook import config
from errorbook import logger as logger_mod

from .errors import (
    AIConfigError,
    AIConnectionError,
    AIResponseError,
    AITimeoutError,
)

log = logger_mod.get_logger()

T = TypeVar("T")


class ErrorClass(str, Enum):
    NON_RETRYABLE = "non_retryable"
    RETRYABLE = "retryable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RetryConfig:
    """Retry/backoff settings for AI provider calls.

    `max_retries` counts retries after the first attempt, so the default of 2
    means 3 attempts in total.
    """

    max_retries: int = config.AI_MAX_RETRIES
    base_delay_s: float = config.AI_RETRY_BASE_DELAY_S
    max_delay_s: float = config.AI_RETRY_MAX_DELAY_S
    jitter: bool = True

    def __post_init__(self) -> None:
        # Clamp instead of raising to keep retry helpers low-friction.
        if self.max_retries < 0:
            object.__setattr__(self, "max_retries", 0)

        if self.base_delay_s <= 0:
            object.__setattr__(self, "base_delay_s", 0.1)

        if self.max_delay_s < self.base_delay_s:
            object.__setattr__(self, "max_delay_s", float(self.base_delay_s))

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


_AUTH_STATUSES = {401, 403}
_RETRYABLE_STATUSES = {408, 429, 502, 503, 504}

_AUTH_PATTERNS = [
    "api key",
    "api_key",
    "apikey",
    "unauthorized",
    "unauthenticated",
    "forbidden",
    "permission denied",
    "invalid authentication",
    "ai_auth_error",
]
_AUTH_STATUS_RE = re.compile(r"\b40[13]\b")

_NETWORK_PATTERNS = [
    "fetch failed",
    "network",
    "timeout",
    "timed out",
    "econnreset",
    "econnrefused",
    "enotfound",
    "eai_again",
    "etimedout",
    "socket hang up",
    "connection",
    "connect",
    "service unavailable",
    "bad gateway",
    "overloaded",
    "unavailable",
]
_NETWORK_STATUS_RE = re.compile(r"\b50[234]\b")


def _status_code(error: BaseException) -> Optional[int]:
    # openai: status_code; google-genai: code; httpx-style: response.status_code
    for candidate in (
        getattr(error, "status_code", None),
        getattr(error, "code", None),
        getattr(getattr(error, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def classify_error(error: BaseException) -> ErrorClass:
    """Decide whether a failed provider call is worth another attempt.

    Pure: looks only at the exception type, its status code and its message.
    Authentication signals win over network signals.
    """

    if isinstance(error, (AIConfigError, AIResponseError)):
        return ErrorClass.NON_RETRYABLE

    status = _status_code(error)
    msg = str(error).lower()

    if status in _AUTH_STATUSES:
        return ErrorClass.NON_RETRYABLE
    if any(p in msg for p in _AUTH_PATTERNS) or _AUTH_STATUS_RE.search(msg):
        return ErrorClass.NON_RETRYABLE

    if isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorClass.RETRYABLE
    if status in _RETRYABLE_STATUSES:
        return ErrorClass.RETRYABLE
    if any(p in msg for p in _NETWORK_PATTERNS) or _NETWORK_STATUS_RE.search(msg):
        return ErrorClass.RETRYABLE

    return ErrorClass.UNKNOWN


def backoff_delay(attempt_index: int, retry: RetryConfig) -> float:
    """Delay before retry number `attempt_index + 1` (0-based), without jitter."""
    return min(retry.max_delay_s, retry.base_delay_s * (2**attempt_index))


def deadline_after(timeout_s: Optional[float]) -> Optional[float]:
    if not timeout_s or timeout_s <= 0:
        return None
    return time.monotonic() + timeout_s


def remaining_time(deadline: Optional[float]) -> Optional[float]:
    """Seconds left until `deadline` (a time.monotonic() value), or None."""
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def _jittered(delay_s: float, jitter: bool) -> float:
    # 0.7x-1.3x keeps consecutive delays increasing for a factor of 2
    if not jitter:
        return delay_s
    return delay_s * (0.7 + random.random() * 0.6)


def _sleep_with_backoff(
    *, wait_s: float, attempt: int, total: int, context: str
) -> None:
    log.warning(
        f"⚠️ Retryable AI provider error while {context}; retrying in {wait_s:.1f}s "
        f"(attempt {attempt}/{total})"
    )
    time.sleep(wait_s)


def execute_with_retry(
    fn: Callable[[], T],
    *,
    context: str,
    retry: RetryConfig | None = None,
    classifier: Callable[[BaseException], ErrorClass] = classify_error,
    deadline: Optional[float] = None,
) -> T:
    """Execute a provider call with consistent retry/backoff.

    - Non-retryable errors propagate unchanged after a single attempt.
    - Retryable and unknown errors are retried until the budget runs out, then
      surface as AIConnectionError wrapping the last error.
    - `deadline` is a time.monotonic() value. Once it has passed, or the next
      backoff would overrun it, AITimeoutError is raised instead.
    """

    retry = retry or RetryConfig()
    total = retry.total_attempts
    last_error: Exception | None = None
    attempts = 0
    timed_out = False

    for attempt in range(1, total + 1):
        attempts = attempt
        try:
            return fn()

        except Exception as e:
            last_error = e

            if classifier(e) is ErrorClass.NON_RETRYABLE:
                log.error(
                    f"❌ Non-retryable AI provider error while {context} "
                    f"(attempt {attempt}/{total}): {e}"
                )
                raise

            if deadline is not None and time.monotonic() >= deadline:
                timed_out = True
                break

            if attempt == total:
                break

            wait = _jittered(backoff_delay(attempt - 1, retry), retry.jitter)
            if deadline is not None and time.monotonic() + wait >= deadline:
                timed_out = True
                break

            _sleep_with_backoff(
                wait_s=wait, attempt=attempt, total=total, context=context
            )

    if timed_out:
        log.error(
            f"❌ Deadline expired while {context} after {attempts} attempt(s): "
            f"{last_error}"
        )
        raise AITimeoutError(
            f"AI request timed out while {context}",
            attempts=attempts,
            last_error=last_error,
        ) from last_error

    log.error(
        f"❌ AI provider unreachable while {context} after {attempts} attempts: "
        f"{last_error}"
    )
    raise AIConnectionError(
        f"AI connection failed after {attempts} attempts while {context}",
        attempts=attempts,
        last_error=last_error,
    ) from last_error
