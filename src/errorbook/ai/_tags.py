"""Parse the tagged-section replies the prompts ask models to produce.

    <question_text>...</question_text>
    <answer_text>...</answer_text>
    <analysis>...</analysis>
    <subject>...</subject>
    <knowledge_points>a, b, c</knowledge_points>

The format is a prompt convention, not a protocol we control, so parsing is
lenient: sections may come in any order, markers may contain stray
whitespace, and when a marker is repeated the first section wins.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from errorbook import logger as logger_mod
from errorbook.config import DEFAULT_SUBJECT, SUBJECTS

from ._json import extract_json_object
from .errors import AIParseError
from .types import ParsedQuestion, ReanswerResult

log = logger_mod.get_logger()

_KNOWLEDGE_POINT_SEP = re.compile(r"[,，\n]")


def extract_tag(text: str, tag: str) -> Optional[str]:
    """Return the trimmed content of the first `<tag>...</tag>` section."""
    pattern = re.compile(
        rf"<\s*{re.escape(tag)}\s*>(.*?)<\s*/\s*{re.escape(tag)}\s*>", re.DOTALL
    )
    m = pattern.search(text or "")
    if not m:
        return None
    return m.group(1).strip()


def split_knowledge_points(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [k.strip() for k in _KNOWLEDGE_POINT_SEP.split(raw) if k.strip()]


def normalize_subject(raw: Optional[Any]) -> str:
    # exact, case-sensitive match against SUBJECTS
    if isinstance(raw, str) and raw.strip() in SUBJECTS:
        return raw.strip()
    return DEFAULT_SUBJECT


def _flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() == "true"


def _from_json(text: str) -> Optional[ParsedQuestion]:
    data = extract_json_object(text)
    if not data or not isinstance(data.get("questionText"), str):
        return None

    log.warning("Reply carried JSON instead of tagged sections; using it")
    kps = data.get("knowledgePoints")
    if isinstance(kps, str):
        kps = split_knowledge_points(kps)
    elif isinstance(kps, list):
        kps = [str(k).strip() for k in kps if str(k).strip()]
    else:
        kps = []

    return ParsedQuestion(
        question_text=data["questionText"].strip(),
        answer_text=str(data.get("answerText") or "").strip(),
        analysis=str(data.get("analysis") or "").strip(),
        subject=normalize_subject(data.get("subject")),
        knowledge_points=kps,
        requires_image=data.get("requiresImage") is True,
    )


def parse_reply(text: str) -> ParsedQuestion:
    """Turn a raw model reply into a ParsedQuestion (not yet validated)."""

    log.debug(f"Parsing AI reply ({len(text or '')} chars)")

    question_text = extract_tag(text, "question_text")
    if question_text is None:
        recovered = _from_json(text)
        if recovered is not None:
            return recovered
        log.error(f"Missing <question_text> in AI reply: {(text or '')[:500]!r}")
        raise AIParseError("Invalid AI response: missing <question_text> section")

    question_image_required = _flag(extract_tag(text, "question_image_required"))
    answer_image_required = _flag(extract_tag(text, "answer_image_required"))

    return ParsedQuestion(
        question_text=question_text,
        answer_text=extract_tag(text, "answer_text") or "",
        analysis=extract_tag(text, "analysis") or "",
        subject=normalize_subject(extract_tag(text, "subject")),
        knowledge_points=split_knowledge_points(extract_tag(text, "knowledge_points")),
        requires_image=_flag(extract_tag(text, "requires_image")),
        question_image_required=question_image_required,
        question_image_prompt=(
            extract_tag(text, "question_image_prompt") or None
            if question_image_required
            else None
        ),
        answer_image_required=answer_image_required,
        answer_image_prompt=(
            extract_tag(text, "answer_image_prompt") or None
            if answer_image_required
            else None
        ),
    )


def parse_reanswer_reply(text: str) -> ReanswerResult:
    answer_text = extract_tag(text, "answer_text")
    if not answer_text:
        log.error(f"Missing <answer_text> in AI reply: {(text or '')[:500]!r}")
        raise AIParseError("Invalid AI response: missing <answer_text> section")

    return ReanswerResult(
        answer_text=answer_text,
        analysis=extract_tag(text, "analysis") or "",
        knowledge_points=split_knowledge_points(extract_tag(text, "knowledge_points")),
    )
