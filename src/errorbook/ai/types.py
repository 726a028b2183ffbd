from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional, Tuple

from errorbook.config import DEFAULT_SUBJECT

Language = Literal["zh", "en"]
Difficulty = Literal["easy", "medium", "hard", "harder"]


@dataclass(frozen=True)
class ParsedQuestion:
    """Provider-neutral result of analyzing or generating a question."""

    question_text: str
    answer_text: str = ""
    analysis: str = ""
    subject: str = DEFAULT_SUBJECT
    knowledge_points: Tuple[str, ...] = ()
    requires_image: bool = False

    # Image-generation hints (only set when the model asks for a diagram)
    question_image_required: bool = False
    question_image_prompt: Optional[str] = None
    answer_image_required: bool = False
    answer_image_prompt: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "knowledge_points", tuple(self.knowledge_points))

    def to_dict(self) -> dict[str, Any]:
        """camelCase shape used on the wire."""
        return {
            "questionText": self.question_text,
            "answerText": self.answer_text,
            "analysis": self.analysis,
            "subject": self.subject,
            "knowledgePoints": list(self.knowledge_points),
            "requiresImage": self.requires_image,
            "questionImageRequired": self.question_image_required,
            "questionImagePrompt": self.question_image_prompt,
            "answerImageRequired": self.answer_image_required,
            "answerImagePrompt": self.answer_image_prompt,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParsedQuestion":
        return cls(
            question_text=data.get("questionText") or "",
            answer_text=data.get("answerText") or "",
            analysis=data.get("analysis") or "",
            subject=data.get("subject") or DEFAULT_SUBJECT,
            knowledge_points=tuple(data.get("knowledgePoints") or ()),
            requires_image=bool(data.get("requiresImage", False)),
            question_image_required=bool(data.get("questionImageRequired", False)),
            question_image_prompt=data.get("questionImagePrompt"),
            answer_image_required=bool(data.get("answerImageRequired", False)),
            answer_image_prompt=data.get("answerImagePrompt"),
        )


@dataclass(frozen=True)
class ReanswerResult:
    answer_text: str
    analysis: str = ""
    knowledge_points: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "knowledge_points", tuple(self.knowledge_points))

    def to_dict(self) -> dict[str, Any]:
        return {
            "answerText": self.answer_text,
            "analysis": self.analysis,
            "knowledgePoints": list(self.knowledge_points),
        }
