from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple

from errorbook import config

from .errors import AIConfigError
from .types import Difficulty, Language, ParsedQuestion, ReanswerResult


@dataclass(frozen=True)
class OpenAIInstance:
    """One named credential/endpoint/model combination."""

    id: str
    name: str = ""
    api_key: str = ""
    base_url: str = ""
    model: str = config.OPENAI_MODEL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OpenAIInstance":
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            api_key=data.get("apiKey") or "",
            base_url=data.get("baseUrl") or "",
            model=data.get("model") or config.OPENAI_MODEL,
        )


@dataclass(frozen=True)
class OpenAIConfig:
    """Multi-instance OpenAI-compatible settings.

    Several instances coexist; `active_instance_id` selects the one in use.
    Nothing is checked until the instance is resolved, so a snapshot whose
    provider is Gemini loads even with a stale OpenAI section. An empty
    collection or a dangling pointer is then rejected, never defaulted.
    """

    instances: Tuple[OpenAIInstance, ...]
    active_instance_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "instances", tuple(self.instances))

    def active_instance(self) -> OpenAIInstance:
        if not self.instances:
            raise AIConfigError("OpenAI configuration has no instances")
        for inst in self.instances:
            if inst.id == self.active_instance_id:
                return inst
        raise AIConfigError(
            f"Active OpenAI instance {self.active_instance_id!r} not found "
            f"(known: {[i.id for i in self.instances]})"
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OpenAIConfig":
        instances = tuple(
            OpenAIInstance.from_dict(d) for d in (data.get("instances") or [])
        )
        return cls(
            instances=instances, active_instance_id=data.get("activeInstanceId")
        )


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str = ""
    model: str = config.GEMINI_MODEL
    base_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeminiConfig":
        return cls(
            api_key=data.get("apiKey") or "",
            model=data.get("model") or config.GEMINI_MODEL,
            base_url=data.get("baseUrl") or "",
        )


@dataclass(frozen=True)
class PromptOverrides:
    """Custom prompt templates; empty means use the built-in template."""

    analyze: str = ""
    similar: str = ""
    reanswer: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptOverrides":
        return cls(
            analyze=data.get("analyze") or "",
            similar=data.get("similar") or "",
            reanswer=data.get("reanswer") or "",
        )


@dataclass(frozen=True)
class AppConfig:
    """Resolved configuration snapshot handed to the factory (read-only)."""

    ai_provider: str = "gemini"
    openai: Optional[OpenAIConfig] = None
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    prompts: PromptOverrides = field(default_factory=PromptOverrides)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        openai_data = data.get("openai")
        return cls(
            ai_provider=str(data.get("aiProvider") or "gemini"),
            openai=OpenAIConfig.from_dict(openai_data) if openai_data else None,
            gemini=GeminiConfig.from_dict(data.get("gemini") or {}),
            prompts=PromptOverrides.from_dict(data.get("prompts") or {}),
        )


class AIService(Protocol):
    """Capabilities shared by every provider family."""

    def analyze_image(
        self,
        image_base64: str,
        mime_type: str = "image/jpeg",
        language: Language = "zh",
        grade: Optional[int] = None,
        subject: Optional[str] = None,
        knowledge_tags: Optional[Sequence[str]] = None,
    ) -> ParsedQuestion:
        raise NotImplementedError

    def generate_similar_question(
        self,
        original_question: str,
        knowledge_points: Sequence[str],
        language: Language = "zh",
        difficulty: Optional[Difficulty] = "medium",
    ) -> ParsedQuestion:
        raise NotImplementedError

    def reanswer_question(
        self,
        question_text: str,
        language: Language = "zh",
        subject: Optional[str] = None,
        image_base64: Optional[str] = None,
    ) -> ReanswerResult:
        raise NotImplementedError


_DATA_URL_RE = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,")


def strip_data_url(image_base64: str) -> str:
    """Drop a `data:image/png;base64,` style prefix if the caller left one."""
    return _DATA_URL_RE.sub("", (image_base64 or "").strip(), count=1)
