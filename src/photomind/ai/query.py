"""Translate natural-language photo queries into structured filter conditions."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from photomind.ai.client import (
    ChatCompletionClient,
    ModelError,
    ModelResponseError,
    ModelTransientError,
)
from photomind.ai.content import ChatMessage, TextContent


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant. You are Qwen developed by Alibaba."
NO_TAGS_STATEMENT = "No tags are currently available."
TAG_SEPARATOR = "、"

_FENCED_JSON_RE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCED_RE = re.compile(r"```\s*(.*?)```", re.DOTALL)


class QueryCondition(BaseModel):
    """Structured filter produced from a natural-language query."""

    tags: List[str] = Field(default_factory=list)
    month: str = ""
    camera: str = ""
    keywords: List[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("tags", "keywords", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("must be a list of strings")
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @field_validator("month", "camera", "reasoning", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()


def build_query_prompt(query: str, vocabulary: Sequence[str]) -> str:
    """Build the instruction prompt for translating one query."""
    if vocabulary:
        tags_text = TAG_SEPARATOR.join(vocabulary)
    else:
        tags_text = NO_TAGS_STATEMENT

    return f"""You translate a user's photo search request into a JSON filter.

User query: {query}

Tags available in the user's library: {tags_text}

Rules:
1. "tags": choose only tags from the available list above that match the query.
   Copy them exactly as written. Never invent tags. Use [] if none match.
2. "month": if the query mentions a specific month, give it as "YYYY-MM"; otherwise "".
3. "camera": if the query mentions a camera brand, give the brand name (for example "Canon", "Sony"); otherwise "".
4. "keywords": other meaningful search words from the query that are not covered by the tags.
5. "reasoning": one short sentence explaining the filter.

Respond with JSON only, no other text:
{{"tags": [], "month": "", "camera": "", "keywords": [], "reasoning": ""}}"""


def extract_json_block(content: str) -> str:
    """Strip markdown code fences from model output and return the JSON text."""
    text = (content or "").strip()

    match = _FENCED_JSON_RE.search(text)
    if match:
        text = match.group(1).strip()
    else:
        match = _FENCED_RE.search(text)
        if match:
            text = match.group(1).strip()
            if text[:4].lower() == "json":
                text = text[4:].strip()

    return text.replace("```", "").strip()


def parse_condition(json_text: str) -> QueryCondition:
    """Parse the model's JSON payload into a QueryCondition."""
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ModelResponseError(
            "failed to parse model response as JSON",
            details=f"{exc}; content: {json_text}",
        ) from exc

    if not isinstance(payload, dict):
        raise ModelResponseError(
            "model response is not a JSON object",
            details=f"content: {json_text}",
        )

    try:
        return QueryCondition.model_validate(payload)
    except ValidationError as exc:
        raise ModelResponseError("model response has invalid fields", details=str(exc)) from exc


def validate_condition(condition: QueryCondition, vocabulary: Sequence[str]) -> QueryCondition:
    """Restrict condition tags to the caller's vocabulary.

    An empty vocabulary means no tags can match, so tags are cleared.
    """
    if not vocabulary:
        if condition.tags:
            logger.info(f"No tags in vocabulary; dropping suggested tags {condition.tags}")
        return condition.model_copy(update={"tags": []})

    known = set(vocabulary)
    kept: List[str] = []
    for tag in condition.tags:
        if tag in known:
            if tag not in kept:
                kept.append(tag)
        else:
            logger.warning(f"Model suggested tag {tag!r} which is not in the user's tags; dropping")
    return condition.model_copy(update={"tags": kept})


class QueryTranslator:
    """Query-to-condition translation with fallback models on transient failures."""

    def __init__(
        self,
        client: ChatCompletionClient,
        model: str,
        fallback_models: Optional[Sequence[str]] = None,
    ):
        self.client = client
        self.model = model
        self.fallback_models = [name for name in (fallback_models or []) if name and name != model]

    @classmethod
    def from_settings(cls, app_settings, client: Optional[ChatCompletionClient] = None) -> "QueryTranslator":
        return cls(
            client or ChatCompletionClient.from_settings(app_settings),
            model=app_settings.query_model,
            fallback_models=app_settings.fallback_models,
        )

    def build_messages(self, query: str, vocabulary: Sequence[str]) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=TextContent(SYSTEM_PROMPT)),
            ChatMessage(role="user", content=TextContent(build_query_prompt(query, vocabulary))),
        ]

    def _complete_with_fallback(self, messages: Sequence[ChatMessage]) -> str:
        try:
            return self.client.complete(self.model, messages)
        except ModelTransientError as primary_error:
            if not self.fallback_models:
                raise
            logger.warning(f"Model {self.model} failed ({primary_error.message}); trying fallback models")
            for fallback in self.fallback_models:
                try:
                    content = self.client.complete(fallback, messages)
                except ModelError as exc:
                    logger.warning(f"Fallback model {fallback} failed: {exc.message}")
                    continue
                logger.info(f"Fallback model {fallback} succeeded")
                return content
            raise primary_error

    def translate(self, query: str, vocabulary: Sequence[str]) -> QueryCondition:
        """Translate a natural-language query into a validated QueryCondition."""
        text = (query or "").strip()
        if not text:
            raise ValueError("query cannot be empty")

        content = self._complete_with_fallback(self.build_messages(text, vocabulary))
        logger.debug(f"Raw model output: {content}")

        condition = parse_condition(extract_json_block(content))
        return validate_condition(condition, vocabulary)
