"""Model-backed features: vision tagging and natural-language query translation."""

from photomind.ai.analysis import ImageAnalyzer, ImageTooLargeError, parse_tags
from photomind.ai.client import (
    ChatCompletionClient,
    ModelConfigError,
    ModelError,
    ModelPermanentError,
    ModelResponseError,
    ModelTransientError,
)
from photomind.ai.content import ChatMessage, ContentPart, PartsContent, TextContent
from photomind.ai.query import QueryCondition, QueryTranslator

__all__ = [
    "ChatCompletionClient",
    "ChatMessage",
    "ContentPart",
    "ImageAnalyzer",
    "ImageTooLargeError",
    "ModelConfigError",
    "ModelError",
    "ModelPermanentError",
    "ModelResponseError",
    "ModelTransientError",
    "PartsContent",
    "QueryCondition",
    "QueryTranslator",
    "TextContent",
    "parse_tags",
]
