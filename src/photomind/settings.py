"""Application settings and environment configuration."""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"

DEFAULT_FALLBACK_MODELS = (
    "Qwen/Qwen2.5-7B-Instruct,"
    "Qwen/Qwen2.5-Coder-32B-Instruct,"
    "Qwen/Qwen2.5-14B-Instruct"
)

DEFAULT_MODEL_TIMEOUT = 60.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

logger = logging.getLogger(__name__)


def parse_duration_seconds(value) -> float:
    """Parse a timeout given as seconds (60, "60") or a duration ("60s", "1m30s", "500ms")."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    if not text or _DURATION_PART.sub("", text):
        raise ValueError(f"Invalid duration: {value!r}")
    return sum(float(amount) * _DURATION_UNITS[unit] for amount, unit in _DURATION_PART.findall(text))


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )

    # Application
    app_name: str = "photomind"
    debug: bool = False
    environment: str = "dev"  # 'dev' or 'prod'
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./photomind.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800
    db_pool_pre_ping: bool = True

    # Auth
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Uploads
    upload_root: str = "uploads"
    thumbnail_width: int = 400
    auto_tag_on_upload: bool = False

    # Model API (OpenAI-compatible chat completions, ModelScope by default)
    modelscope_access_token: Optional[str] = None
    modelscope_base_url: str = "https://api-inference.modelscope.cn/v1"
    # Vision model used for image tagging.
    modelscope_model: str = "Qwen/QVQ-72B-Preview"
    # Text model used for query translation; falls back to modelscope_model.
    modelscope_text_model: Optional[str] = None
    modelscope_timeout: float = Field(
        default=DEFAULT_MODEL_TIMEOUT,
        validation_alias=AliasChoices("modelscope_timeout", "model_timeout"),
    )
    model_fallbacks: str = DEFAULT_FALLBACK_MODELS
    model_proxy_url: Optional[str] = None
    # Largest image (bytes, before base64) sent for analysis.
    max_analyze_bytes: int = 20 * 1024 * 1024

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: str = "http://localhost:5173"

    @field_validator("modelscope_timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value):
        if value is None or value == "":
            return DEFAULT_MODEL_TIMEOUT
        try:
            return parse_duration_seconds(value)
        except ValueError:
            logger.warning(f"Ignoring invalid model timeout {value!r}; using {DEFAULT_MODEL_TIMEOUT}s")
            return DEFAULT_MODEL_TIMEOUT

    @property
    def images_dir(self) -> Path:
        """Directory holding uploaded originals."""
        return Path(self.upload_root) / "images"

    @property
    def thumbnails_dir(self) -> Path:
        """Directory holding generated thumbnails."""
        return Path(self.upload_root) / "thumbnails"

    @property
    def query_model(self) -> str:
        """Model used for natural-language query translation."""
        return (self.modelscope_text_model or self.modelscope_model).strip()

    @property
    def fallback_models(self) -> List[str]:
        """Ordered fallback model identifiers."""
        return [name.strip() for name in self.model_fallbacks.split(",") if name.strip()]

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def proxy_url(self) -> Optional[str]:
        """Explicit proxy for model calls, else the conventional proxy env vars."""
        if self.model_proxy_url:
            return self.model_proxy_url
        for key in ("HTTPS_PROXY", "HTTP_PROXY", "https_proxy", "http_proxy"):
            value = os.getenv(key)
            if value:
                return value
        return None

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "dev"


settings = Settings()
