from __future__ import annotations

from typing import Any, Optional


class AIError(RuntimeError):
    """Base error for errorbook.ai.

    `code` is stable and safe to hand to the route layer; the message is
    human-readable.
    """

    code = "AI_UNKNOWN_ERROR"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class AIConfigError(AIError):
    """Provider configuration is missing or inconsistent."""

    code = "AI_CONFIG_ERROR"


class AIAuthError(AIConfigError):
    """Credential is missing, empty, or rejected by the vendor."""

    code = "AI_AUTH_ERROR"


class AIConnectionError(AIError):
    """The vendor could not be reached after every allowed attempt."""

    code = "AI_CONNECTION_FAILED"

    def __init__(
        self, message: str, *, attempts: int, last_error: Optional[BaseException]
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["attempts"] = self.attempts
        d["last_error"] = str(self.last_error) if self.last_error else None
        return d


class AITimeoutError(AIConnectionError):
    """The caller's deadline expired before a successful attempt."""

    code = "AI_TIMEOUT"


class AIResponseError(AIError):
    """The vendor answered, but the reply is unusable."""

    code = "AI_RESPONSE_ERROR"


class AIParseError(AIResponseError):
    """Raised when a reply does not carry the expected tagged sections."""


class AIValidationError(AIResponseError):
    """Raised when a parsed reply violates the result schema."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid AI result: {field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["reason"] = self.reason
        return d
