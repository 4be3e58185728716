"""Vision tagging: ask a multimodal model for descriptive tags of an image."""

from __future__ import annotations

import base64
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from photomind.ai.client import ChatCompletionClient, ModelError
from photomind.ai.content import ChatMessage, ContentPart, PartsContent, TextContent


logger = logging.getLogger(__name__)

VISION_SYSTEM_PROMPT = (
    "You are a helpful assistant. You are Qwen developed by Alibaba. You should think step-by-step."
)
VISION_PROMPT = (
    "Please analyze this image and generate 5 to 10 short, accurate descriptive tags. "
    "Cover the main subject, the scene, colours and mood. "
    "Return only the tags separated by commas, for example: beach, sunset, ocean, travel"
)

MAX_PARSED_TAG_LENGTH = 50
_TAG_SPLIT_RE = re.compile(r"[,，;；\n]")
_TRIM_CHARS = " \t\r\n，。、；：！？.;:!?\"'“”"


class ImageTooLargeError(ModelError):
    """The image exceeds the configured analysis size limit."""


def detect_mime_type(data: bytes) -> str:
    """Sniff an image MIME type from magic bytes, defaulting to JPEG."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data.startswith(b"BM"):
        return "image/bmp"
    return "image/jpeg"


def to_data_uri(data: bytes, mime_type: Optional[str] = None) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or detect_mime_type(data)};base64,{encoded}"


def _strip_numbering(tag: str) -> str:
    # "1. beach" / "10.beach"
    dot = tag.find(".")
    if 0 < dot < 3 and tag[:dot].isdigit():
        return tag[dot + 1:].strip()
    return tag


def parse_tags(content: str) -> List[str]:
    """Split model output into clean, de-duplicated tag names.

    Accepts ASCII and full-width separators, drops list numbering and
    parenthetical notes, and skips tags longer than 50 characters.
    """
    tags: List[str] = []
    text = (content or "").strip().strip(_TRIM_CHARS)
    for raw in _TAG_SPLIT_RE.split(text):
        tag = raw.strip().strip(_TRIM_CHARS)
        tag = _strip_numbering(tag)
        for marker in ("（", "("):
            index = tag.find(marker)
            if index > 0:
                tag = tag[:index]
        tag = tag.strip().strip(_TRIM_CHARS)
        if not tag or len(tag) > MAX_PARSED_TAG_LENGTH:
            continue
        if tag not in tags:
            tags.append(tag)
    return tags


class ImageAnalyzer:
    """Produce tag names for an image using a vision model."""

    def __init__(self, client: ChatCompletionClient, model: str, max_bytes: int = 20 * 1024 * 1024):
        self.client = client
        self.model = model
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, app_settings, client: Optional[ChatCompletionClient] = None) -> "ImageAnalyzer":
        return cls(
            client or ChatCompletionClient.from_settings(app_settings),
            model=app_settings.modelscope_model,
            max_bytes=app_settings.max_analyze_bytes,
        )

    def build_messages(self, data: bytes) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=TextContent(VISION_SYSTEM_PROMPT)),
            ChatMessage(
                role="user",
                content=PartsContent([
                    ContentPart.of_image_url(to_data_uri(data)),
                    ContentPart.of_text(VISION_PROMPT),
                ]),
            ),
        ]

    def analyze_bytes(self, data: bytes) -> List[str]:
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise ImageTooLargeError(
                f"image too large for analysis ({len(data)} bytes, limit {limit_mb:g}MB)"
            )
        content = self.client.complete(self.model, self.build_messages(data))
        tags = parse_tags(content)
        logger.info(f"Model {self.model} proposed {len(tags)} tags")
        return tags

    def analyze_path(self, path: Union[str, Path]) -> List[str]:
        """Read an image from disk and return proposed tag names."""
        return self.analyze_bytes(Path(path).read_bytes())
