from __future__ import annotations

from typing import Any, Mapping, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from errorbook.config import SUBJECTS

from ._tags import parse_reply
from .errors import AIResponseError, AIValidationError
from .types import ParsedQuestion

_NON_BLANK = {"type": "string", "pattern": r"\S"}
_OPTIONAL_PROMPT = {"type": ["string", "null"]}

PARSED_QUESTION_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["questionText", "subject", "knowledgePoints"],
    "properties": {
        "questionText": _NON_BLANK,
        "answerText": {"type": "string"},
        "analysis": {"type": "string"},
        "subject": {"type": "string", "enum": SUBJECTS},
        "knowledgePoints": {"type": "array", "items": _NON_BLANK},
        "requiresImage": {"type": "boolean"},
        "questionImageRequired": {"type": "boolean"},
        "questionImagePrompt": _OPTIONAL_PROMPT,
        "answerImageRequired": {"type": "boolean"},
        "answerImagePrompt": _OPTIONAL_PROMPT,
    },
}

_validator = Draft202012Validator(PARSED_QUESTION_SCHEMA)

_REASONS = {
    "pattern": "must not be empty",
    "enum": "must be one of " + ", ".join(SUBJECTS),
}


def _field_name(error) -> str:
    if error.validator == "required":
        missing = [k for k in error.validator_value if k not in error.instance]
        return missing[0] if missing else "<root>"
    path = ".".join(str(p) for p in error.absolute_path)
    return path or "<root>"


def validate_parsed_question(
    candidate: Union[ParsedQuestion, Mapping[str, Any]],
) -> ParsedQuestion:
    """Authoritative gate for results leaving the provider layer.

    Accepts a ParsedQuestion or its camelCase mapping form. Raises
    AIValidationError naming the offending field.
    """

    instance = (
        candidate.to_dict()
        if isinstance(candidate, ParsedQuestion)
        else dict(candidate)
    )

    error = best_match(_validator.iter_errors(instance))
    if error is not None:
        reason = _REASONS.get(error.validator, error.message)
        raise AIValidationError(_field_name(error), reason)

    if isinstance(candidate, ParsedQuestion):
        return candidate
    return ParsedQuestion.from_dict(instance)


def normalize_reply(text: str) -> ParsedQuestion:
    """Raw reply text -> validated ParsedQuestion."""
    if not (text or "").strip():
        raise AIResponseError("Empty response from AI")
    return validate_parsed_question(parse_reply(text))
