"""AI provider integration layer (OpenAI-compatible / Gemini).

Design goals:
- Keep provider-specific SDKs isolated behind one small capability set.
- Retry transient failures with backoff; fail fast on configuration errors.
- Normalize every reply into a validated ParsedQuestion.
"""

from ._retry import ErrorClass, RetryConfig, classify_error, execute_with_retry
from .base import (
    AIService,
    AppConfig,
    GeminiConfig,
    OpenAIConfig,
    OpenAIInstance,
    PromptOverrides,
)
from .errors import (
    AIAuthError,
    AIConfigError,
    AIConnectionError,
    AIError,
    AIParseError,
    AIResponseError,
    AITimeoutError,
    AIValidationError,
)
from .factory import get_ai_service, load_app_config
from .gemini_client import GeminiProvider
from .openai_client import OpenAIProvider
from .schema import validate_parsed_question
from .types import ParsedQuestion, ReanswerResult

__all__ = [
    "AIAuthError",
    "AIConfigError",
    "AIConnectionError",
    "AIError",
    "AIParseError",
    "AIResponseError",
    "AIService",
    "AITimeoutError",
    "AIValidationError",
    "AppConfig",
    "ErrorClass",
    "GeminiConfig",
    "GeminiProvider",
    "OpenAIConfig",
    "OpenAIInstance",
    "OpenAIProvider",
    "ParsedQuestion",
    "PromptOverrides",
    "ReanswerResult",
    "RetryConfig",
    "classify_error",
    "execute_with_retry",
    "get_ai_service",
    "load_app_config",
    "validate_parsed_question",
]
