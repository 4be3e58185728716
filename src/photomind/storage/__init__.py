"""Local filesystem storage for originals and thumbnails."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Union

from photomind.settings import Settings


logger = logging.getLogger(__name__)


class LocalStorage:
    """Filesystem layout: originals under images_dir, thumbnails under thumbnails_dir.

    Filenames are keyed by owner, a nanosecond timestamp and the original
    extension: ``{user_id}-{time_ns}{ext}``.
    """

    def __init__(self, images_dir: Union[str, Path], thumbnails_dir: Union[str, Path]):
        self.images_dir = Path(images_dir)
        self.thumbnails_dir = Path(thumbnails_dir)
        self._lock = threading.Lock()
        self._last_ns = 0

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "LocalStorage":
        return cls(app_settings.images_dir, app_settings.thumbnails_dir)

    def ensure_dirs(self) -> None:
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.thumbnails_dir.mkdir(parents=True, exist_ok=True)

    def _next_timestamp(self) -> int:
        # Monotonic within the process so two uploads in the same tick differ.
        with self._lock:
            now = time.time_ns()
            if now <= self._last_ns:
                now = self._last_ns + 1
            self._last_ns = now
            return now

    def build_filename(self, user_id: int, original_name: Optional[str]) -> str:
        """Return a collision-resistant stored filename for an upload."""
        extension = Path(original_name or "").suffix.lower()
        return f"{user_id}-{self._next_timestamp()}{extension}"

    def save_original(self, filename: str, data: bytes) -> Path:
        """Write raw upload bytes and return the stored path."""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        path = self.images_dir / filename
        path.write_bytes(data)
        return path

    def remove_file(self, path: Optional[Union[str, Path]]) -> bool:
        """Remove a stored file; failures are logged, never raised."""
        if not path:
            return False
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            logger.warning(f"File already missing during delete: {path}")
        except OSError as exc:
            logger.warning(f"Failed to delete file {path}: {exc}")
        return False

    def remove_image_files(self, file_path: Optional[str], thumbnail_path: Optional[str]) -> None:
        """Remove an image's original and (distinct) thumbnail."""
        self.remove_file(file_path)
        if thumbnail_path and thumbnail_path != file_path:
            self.remove_file(thumbnail_path)
