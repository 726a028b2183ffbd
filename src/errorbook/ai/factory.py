from __future__ import annotations

import json
import os
from typing import Any, Optional

from errorbook import config
from errorbook import logger as logger_mod

from .base import AIService, AppConfig
from .errors import AIConfigError
from .gemini_client import GeminiProvider
from .openai_client import OpenAIProvider

log = logger_mod.get_logger()

_DEFAULT_INSTANCE_ID = "default"


def _env_defaults() -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "aiProvider": config.AI_PROVIDER,
        "gemini": {
            "apiKey": config.GOOGLE_API_KEY,
            "baseUrl": config.GEMINI_BASE_URL,
            "model": config.GEMINI_MODEL,
        },
    }
    if config.OPENAI_API_KEY:
        defaults["openai"] = {
            "instances": [
                {
                    "id": _DEFAULT_INSTANCE_ID,
                    "name": "OpenAI (env)",
                    "apiKey": config.OPENAI_API_KEY,
                    "baseUrl": config.OPENAI_BASE_URL,
                    "model": config.OPENAI_MODEL,
                }
            ],
            "activeInstanceId": _DEFAULT_INSTANCE_ID,
        }
    return defaults


def _normalize_openai_section(section: Any) -> Any:
    # Older snapshots stored a single flat {apiKey, baseUrl, model} block.
    if not isinstance(section, dict) or "instances" in section:
        return section
    if not section.get("apiKey"):
        return None
    return {
        "instances": [{"id": _DEFAULT_INSTANCE_ID, "name": "OpenAI", **section}],
        "activeInstanceId": _DEFAULT_INSTANCE_ID,
    }


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """Read the stored settings snapshot merged over environment defaults.

    Read-only: the settings screen owns the file. Section-level merge, so a
    file that sets only `gemini.model` keeps the env API key. An `openai`
    section in the file replaces the env instance block as a whole.
    """

    path = path or config.CONFIG_FILE_PATH
    data = _env_defaults()

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                user = json.load(f)
        except (OSError, ValueError) as e:
            raise AIConfigError(f"Failed to read config file {path}: {e}") from e

        if not isinstance(user, dict):
            raise AIConfigError(
                f"Config file {path} must hold a JSON object, got {type(user).__name__}"
            )

        for key, value in user.items():
            if key == "openai":
                data[key] = _normalize_openai_section(value)
            elif isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
    else:
        log.debug(f"No config file at {path}; using environment defaults")

    return AppConfig.from_dict(data)


def get_ai_service(app_config: AppConfig, **kwargs: Any) -> AIService:
    """Build the provider selected by `app_config.ai_provider`.

    - "openai": the active instance of the multi-instance OpenAI config.
    - "gemini": the Gemini config.
    - anything else: Gemini, as the fallback of last resort.

    Extra keyword arguments (retry, timeout_s, client) go to the provider.
    """

    provider = (app_config.ai_provider or "").lower().strip()
    kwargs.setdefault("prompts", app_config.prompts)

    if provider == "openai":
        if app_config.openai is None:
            raise AIConfigError("AI provider is 'openai' but no OpenAI instances exist")
        instance = app_config.openai.active_instance()
        log.info(f"Using OpenAI provider (instance: {instance.name or instance.id})")
        return OpenAIProvider(instance, **kwargs)

    if provider != "gemini":
        log.warning(f"Unknown AI provider {app_config.ai_provider!r}; using Gemini")
    else:
        log.info("Using Gemini provider")
    return GeminiProvider(app_config.gemini, **kwargs)
