from __future__ import annotations

from typing import Any, Optional, Sequence

from openai import OpenAI

from errorbook import config
from errorbook import logger as logger_mod

from ._retry import RetryConfig, deadline_after, execute_with_retry, remaining_time
from ._tags import parse_reanswer_reply
from .base import AIService, OpenAIInstance, PromptOverrides, strip_data_url
from .errors import AIAuthError, AIResponseError
from .prompts import (
    generate_analyze_prompt,
    generate_reanswer_prompt,
    generate_similar_question_prompt,
)
from .schema import normalize_reply
from .types import Difficulty, Language, ParsedQuestion, ReanswerResult

log = logger_mod.get_logger()

_PROVIDER_HINTS = "Reply with the tagged sections only. Do not wrap them in JSON or a code block."


class OpenAIProvider(AIService):
    """OpenAI-compatible chat-completions provider bound to one instance.

    Works against api.openai.com and any gateway speaking the same protocol
    (`base_url`). The SDK's own retries are disabled; retries go through
    execute_with_retry so every provider shares one policy.
    """

    def __init__(
        self,
        instance: Optional[OpenAIInstance],
        *,
        prompts: Optional[PromptOverrides] = None,
        retry: Optional[RetryConfig] = None,
        timeout_s: Optional[float] = config.AI_REQUEST_TIMEOUT_S,
        client: Any = None,
    ):
        api_key = (getattr(instance, "api_key", "") or "").strip()
        if not api_key:
            raise AIAuthError(
                "AI_AUTH_ERROR: an API key is required for the OpenAI provider"
            )

        self._instance = instance
        self._model = instance.model or config.OPENAI_MODEL
        self._prompts = prompts or PromptOverrides()
        self._retry = retry
        self._timeout_s = timeout_s
        self._client = client or OpenAI(
            api_key=api_key, base_url=instance.base_url or None, max_retries=0
        )

        log.info(
            f"OpenAI provider ready: instance={instance.name or instance.id} "
            f"model={self._model} base_url={instance.base_url or 'default'}"
        )
        log.debug(f"OpenAI api key prefix: {api_key[:8]}...")

    @property
    def model(self) -> str:
        return self._model

    def _extract_output_text(self, resp: Any) -> str:
        choices = getattr(resp, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return (getattr(message, "content", None) or "").strip()

    def _complete(self, messages: list[dict[str, Any]], *, context: str) -> str:
        deadline = deadline_after(self._timeout_s)

        def call() -> str:
            kwargs: dict[str, Any] = {}
            if deadline is not None:
                kwargs["timeout"] = remaining_time(deadline)
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=config.AI_MAX_TOKENS,
                **kwargs,
            )
            return self._extract_output_text(resp)

        text = execute_with_retry(
            call, context=context, retry=self._retry, deadline=deadline
        )
        log.debug(f"OpenAI raw reply ({context}): {text}")
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
        system_prompt = generate_analyze_prompt(
            language,
            grade,
            subject,
            custom_template=self._prompts.analyze,
            knowledge_tags=knowledge_tags,
            provider_hints=_PROVIDER_HINTS,
        )
        data = strip_data_url(image_base64)
        log.info(
            f"🔍 OpenAI analyze_image: model={self._model} bytes={len(data)} "
            f"mime={mime_type} language={language} grade={grade or 'all'}"
        )

        text = self._complete(
            [
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{data}"},
                        }
                    ],
                },
            ],
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
        system_prompt = generate_similar_question_prompt(
            language,
            original_question,
            knowledge_points,
            difficulty,
            custom_template=self._prompts.similar,
            provider_hints=_PROVIDER_HINTS,
        )
        user_prompt = (
            f'Original Question: "{original_question}"\n'
            f"Knowledge Points: {', '.join(knowledge_points)}"
        )
        log.info(
            f"🎯 OpenAI generate_similar_question: model={self._model} "
            f"difficulty={difficulty} language={language}"
        )

        text = self._complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            context="generating similar question",
        )
        return normalize_reply(text)

    def reanswer_question(
        self,
        question_text: str,
        language: Language = "zh",
        subject: Optional[str] = None,
        image_base64: Optional[str] = None,
    ) -> ReanswerResult:
        prompt = generate_reanswer_prompt(
            language,
            question_text,
            subject,
            custom_template=self._prompts.reanswer,
            provider_hints=_PROVIDER_HINTS,
        )
        content: Any = prompt
        if image_base64:
            content = [
                {"type": "text", "text": prompt},
                {
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:image/jpeg;base64,{strip_data_url(image_base64)}"
                    },
                },
            ]
        log.info(
            f"OpenAI reanswer_question: model={self._model} "
            f"subject={subject or 'auto'} has_image={bool(image_base64)}"
        )

        text = self._complete(
            [{"role": "user", "content": content}], context="re-answering question"
        )
        return parse_reanswer_reply(text)
