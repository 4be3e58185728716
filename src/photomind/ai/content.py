"""Chat message content: either plain text or an ordered list of typed parts.

Requests always serialise content as a parts array. Responses may carry
either a JSON string or a parts array; ``content_from_json`` maps both onto
the two variants explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


PART_TEXT = "text"
PART_IMAGE_URL = "image_url"


class ContentFormatError(ValueError):
    """Raised when message content is neither a string nor a parts array."""


@dataclass(frozen=True)
class ContentPart:
    """One typed content item ('text' or 'image_url')."""

    type: str
    text: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def of_text(cls, text: str) -> "ContentPart":
        return cls(type=PART_TEXT, text=text)

    @classmethod
    def of_image_url(cls, url: str) -> "ContentPart":
        return cls(type=PART_IMAGE_URL, image_url=url)

    def to_json(self) -> Dict[str, Any]:
        if self.type == PART_IMAGE_URL:
            return {"type": PART_IMAGE_URL, "image_url": {"url": self.image_url or ""}}
        payload: Dict[str, Any] = {"type": self.type}
        if self.text is not None:
            payload["text"] = self.text
        return payload

    @classmethod
    def from_json(cls, value: Any) -> "ContentPart":
        if not isinstance(value, dict):
            raise ContentFormatError("content part must be an object")
        part_type = str(value.get("type") or "")
        if part_type == PART_IMAGE_URL:
            image_url = value.get("image_url")
            url = image_url.get("url") if isinstance(image_url, dict) else image_url
            return cls(type=PART_IMAGE_URL, image_url=str(url) if url is not None else None)
        text = value.get("text")
        return cls(type=part_type, text=str(text) if text is not None else None)


@dataclass(frozen=True)
class TextContent:
    """Content given as a single string."""

    value: str

    @property
    def text(self) -> str:
        return self.value

    def to_json(self) -> List[Dict[str, Any]]:
        if not self.value:
            return []
        return [ContentPart.of_text(self.value).to_json()]


@dataclass(frozen=True)
class PartsContent:
    """Content given as an ordered list of typed parts."""

    parts: List[ContentPart] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Concatenation of all text parts, in order."""
        return "".join(part.text or "" for part in self.parts if part.type == PART_TEXT)

    def to_json(self) -> List[Dict[str, Any]]:
        return [part.to_json() for part in self.parts]


MessageContent = Union[TextContent, PartsContent]


def content_from_json(value: Any) -> MessageContent:
    """Decode message content from a response payload."""
    if isinstance(value, str):
        return TextContent(value)
    if isinstance(value, list):
        return PartsContent([ContentPart.from_json(item) for item in value])
    if value is None:
        return TextContent("")
    raise ContentFormatError("content must be either a string or an array")


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: MessageContent

    def to_json(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content.to_json()}

    @classmethod
    def from_json(cls, value: Dict[str, Any]) -> "ChatMessage":
        return cls(role=str(value.get("role") or ""), content=content_from_json(value.get("content")))
