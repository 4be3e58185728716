"""Chat-completions client for OpenAI-compatible model APIs (ModelScope by default)."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from photomind.ai.content import ChatMessage, ContentFormatError, content_from_json
from photomind.settings import Settings


logger = logging.getLogger(__name__)


class ModelError(Exception):
    """Base class for failures talking to the model API."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or message


class ModelConfigError(ModelError):
    """The client cannot be used as configured (e.g. missing access token)."""


class ModelTransientError(ModelError):
    """Timeouts and network failures; another model may succeed."""


class ModelPermanentError(ModelError):
    """The API rejected the request (auth, bad request, unknown model)."""

    def __init__(self, message: str, status_code: int, details: Optional[str] = None):
        super().__init__(message, details)
        self.status_code = status_code


class ModelResponseError(ModelError):
    """The API answered but the payload was unusable."""


_STATUS_HINTS = {
    401: "authentication failed; check that MODELSCOPE_ACCESS_TOKEN is correct",
    403: "access denied; the token may lack permission for this model",
    400: "bad request; the model name or request format may be wrong",
    404: "model not found; check that the model name is correct",
}


def describe_status_error(status_code: int, model: str, body: str) -> str:
    """Return a diagnostic message for a non-200 model API response."""
    hint = _STATUS_HINTS.get(status_code)
    if hint:
        return f"model API error ({status_code}) for {model}: {hint}; response: {body}"
    return f"model API error ({status_code}) for {model}: {body}"


def classify_transport_error(exc: httpx.TransportError, timeout: float) -> ModelTransientError:
    """Map an httpx transport failure onto a transient model error."""
    if isinstance(exc, httpx.TimeoutException):
        message = f"model request timed out after {timeout:g}s"
    elif isinstance(exc, httpx.RemoteProtocolError):
        message = "connection closed unexpectedly by the model API (EOF)"
    elif isinstance(exc, httpx.ConnectError):
        message = "could not connect to the model API"
    elif isinstance(exc, httpx.NetworkError):
        message = "network error while calling the model API"
    else:
        message = "transport error while calling the model API"
    return ModelTransientError(message, details=f"{message}: {exc}")


class ChatCompletionClient:
    """Synchronous client for ``POST {base_url}/chat/completions``."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 60.0,
        proxy: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.proxy = proxy
        self.transport = transport

    @classmethod
    def from_settings(cls, app_settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        return cls(
            api_key=app_settings.modelscope_access_token,
            base_url=app_settings.modelscope_base_url,
            timeout=app_settings.modelscope_timeout,
            proxy=app_settings.proxy_url,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _build_http_client(self) -> httpx.Client:
        kwargs: Dict[str, Any] = {"timeout": self.timeout}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.Client(**kwargs)

    def complete(self, model: str, messages: Sequence[ChatMessage]) -> str:
        """Send one chat-completions request and return the first choice's text.

        Raises:
            ModelConfigError: no access token configured
            ModelTransientError: timeout or network failure
            ModelPermanentError: non-200 response
            ModelResponseError: undecodable or empty response
        """
        if not self.api_key:
            raise ModelConfigError("MODELSCOPE_ACCESS_TOKEN is not configured")

        payload = {
            "model": model,
            "messages": [message.to_json() for message in messages],
            "stream": False,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        logger.info(f"Calling model {model} (timeout {self.timeout:g}s)")
        started = time.monotonic()
        try:
            with self._build_http_client() as client:
                response = client.post(self.endpoint, headers=headers, json=payload)
        except httpx.TransportError as exc:
            elapsed = time.monotonic() - started
            logger.warning(f"Model {model} request failed after {elapsed:.1f}s: {exc}")
            raise classify_transport_error(exc, self.timeout) from exc

        elapsed = time.monotonic() - started
        logger.info(f"Model {model} responded {response.status_code} in {elapsed:.1f}s")

        if response.status_code != 200:
            message = describe_status_error(response.status_code, model, response.text)
            raise ModelPermanentError(message, status_code=response.status_code)

        return self._extract_text(response, model)

    def _extract_text(self, response: httpx.Response, model: str) -> str:
        try:
            data = response.json()
        except ValueError as exc:
            raise ModelResponseError(
                f"model {model} returned invalid JSON",
                details=f"failed to decode response: {exc}",
            ) from exc

        choices: List[Any] = (data.get("choices") or []) if isinstance(data, dict) else []
        if not choices:
            raise ModelResponseError(f"model {model} returned no choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise ModelResponseError(f"model {model} response is missing a message")

        try:
            content = content_from_json(message.get("content"))
        except ContentFormatError as exc:
            raise ModelResponseError(f"model {model} returned malformed content", details=str(exc)) from exc

        text = content.text.strip()
        if not text:
            raise ModelResponseError(f"model {model} returned empty content")
        return text
