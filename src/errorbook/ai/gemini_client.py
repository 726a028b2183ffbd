from __future__ import annotations

import base64
import binascii
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from errorbook import config
from errorbook import logger as logger_mod

from ._retry import RetryConfig, deadline_after, execute_with_retry, remaining_time
from ._tags import parse_reanswer_reply
from .base import AIService, GeminiConfig, PromptOverrides, strip_data_url
from .errors import AIAuthError, AIResponseError
from .prompts import (
    generate_analyze_prompt,
    generate_reanswer_prompt,
    generate_similar_question_prompt,
)
from .schema import normalize_reply
from .types import Difficulty, Language, ParsedQuestion, ReanswerResult

log = logger_mod.get_logger()

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"


def _decode_image(image_base64: str) -> bytes:
    try:
        return base64.b64decode(strip_data_url(image_base64), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e


class GeminiProvider(AIService):
    """Gemini provider on the google-genai SDK."""

    def __init__(
        self,
        gemini: Optional[GeminiConfig],
        *,
        prompts: Optional[PromptOverrides] = None,
        retry: Optional[RetryConfig] = None,
        timeout_s: Optional[float] = config.AI_REQUEST_TIMEOUT_S,
        client: Any = None,
    ):
        api_key = (getattr(gemini, "api_key", "") or "").strip()
        if not api_key:
            raise AIAuthError(
                "AI_AUTH_ERROR: GOOGLE_API_KEY is required for the Gemini provider"
            )

        self._model = gemini.model or config.GEMINI_MODEL
        self._base_url = gemini.base_url or DEFAULT_BASE_URL
        self._prompts = prompts or PromptOverrides()
        self._retry = retry
        self._timeout_s = timeout_s

        if client is None:
            http_options = (
                types.HttpOptions(base_url=gemini.base_url) if gemini.base_url else None
            )
            client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = client

        log.info(
            f"Gemini provider ready: model={self._model} base_url={self._base_url}"
        )
        log.debug(f"Gemini api key prefix: {api_key[:8]}...")

    @property
    def model(self) -> str:
        return self._model

    def _generate(self, contents: Any, *, context: str) -> str:
        deadline = deadline_after(self._timeout_s)

        def call() -> str:
            request_config = None
            remaining = remaining_time(deadline)
            if remaining is not None:
                # HttpOptions.timeout is in milliseconds
                request_config = types.GenerateContentConfig(
                    http_options=types.HttpOptions(timeout=max(1, int(remaining * 1000)))
                )
            resp = self._client.models.generate_content(
                model=self._model, contents=contents, config=request_config
            )
            return (getattr(resp, "text", None) or "").strip()

        log.info(
            f"Gemini request while {context}: "
            f"{self._base_url}/v1beta/models/{self._model}:generateContent"
        )
        text = execute_with_retry(
            call, context=context, retry=self._retry, deadline=deadline
        )
        log.debug(f"Gemini raw reply ({context}): {text}")
        if not text:
            raise AIResponseError("Empty response from AI")
        return text

    def analyze_image(
        self,
        image_base64: str,
        mime_type: str = "image/jpeg",
        language: Language = "zh",
        grade: Optional[int] = None,
        subject: Optional[str] = None,
        knowledge_tags: Optional[Sequence[str]] = None,
    ) -> ParsedQuestion:
        prompt = generate_analyze_prompt(
            language,
            grade,
            subject,
            custom_template=self._prompts.analyze,
            knowledge_tags=knowledge_tags,
        )
        image = _decode_image(image_base64)
        log.info(
            f"🔍 Gemini analyze_image: bytes={len(image)} mime={mime_type} "
            f"language={language} grade={grade or 'all'}"
        )

        text = self._generate(
            [prompt, types.Part.from_bytes(data=image, mime_type=mime_type)],
            context="analyzing image",
        )
        return normalize_reply(text)

    def generate_similar_question(
        self,
        original_question: str,
        knowledge_points: Sequence[str],
        language: Language = "zh",
        difficulty: Optional[Difficulty] = "medium",
    ) -> ParsedQuestion:
        difficulty = difficulty or config.DEFAULT_DIFFICULTY
        prompt = generate_similar_question_prompt(
            language,
            original_question,
            knowledge_points,
            difficulty,
            custom_template=self._prompts.similar,
        )
        log.info(
            f"🎯 Gemini generate_similar_question: difficulty={difficulty} "
            f"language={language} knowledge_points={', '.join(knowledge_points)}"
        )

        text = self._generate(prompt, context="generating similar question")
        return normalize_reply(text)

    def reanswer_question(
        self,
        question_text: str,
        language: Language = "zh",
        subject: Optional[str] = None,
        image_base64: Optional[str] = None,
    ) -> ReanswerResult:
        prompt = generate_reanswer_prompt(
            language, question_text, subject, custom_template=self._prompts.reanswer
        )
        contents: Any = prompt
        if image_base64:
            contents = [
                prompt,
                types.Part.from_bytes(
                    data=_decode_image(image_base64), mime_type="image/jpeg"
                ),
            ]

        text = self._generate(contents, context="re-answering question")
        return parse_reanswer_reply(text)
