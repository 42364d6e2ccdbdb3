"""File storage helpers."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from modules.generation.models import GeneratedImage

logger = logging.getLogger(__name__)

_KNOWN_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
_DATA_URL = re.compile(r"^data:image/(?P<kind>[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def download_filename(image: GeneratedImage) -> str:
    """Return ``image-<id><ext>`` with the extension taken from the URL."""
    safe_id = re.sub(r"[^A-Za-z0-9_-]+", "_", image.id).strip("_") or "image"
    match = _DATA_URL.match(image.url)
    if match:
        kind = match.group("kind").lower()
        extension = ".jpg" if kind == "jpeg" else f".{kind}"
    else:
        extension = Path(urlparse(image.url).path).suffix.lower()
    if extension not in _KNOWN_EXTENSIONS:
        extension = ".png"
    return f"image-{safe_id}{extension}"


class StorageService:
    """Handle saving generated assets."""

    def __init__(
        self,
        output_dir: Path,
        client_factory: Callable[..., httpx.Client] = httpx.Client,
        timeout: float = 30.0,
    ) -> None:
        self.output_dir = Path(output_dir)
        self._client_factory = client_factory
        self.timeout = timeout

    def save_image(self, image: GeneratedImage) -> Optional[Path]:
        """Persist an image and return the file path, or None when it could not be fetched."""
        target = self.output_dir / download_filename(image)
        try:
            content = self._fetch(image.url)
            self.output_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except (httpx.HTTPError, OSError, ValueError) as exc:
            logger.warning("Download of %s failed: %s", image.id, exc)
            return None
        logger.info("Saved %s to %s", image.id, target)
        return target

    def cleanup(self, max_items: int = 100) -> None:
        """Limit the number of stored artifacts."""
        if not self.output_dir.exists():
            return
        files = sorted(
            (path for path in self.output_dir.iterdir() if path.is_file()),
            key=lambda path: path.stat().st_mtime,
            reverse=True,
        )
        for stale in files[max_items:]:
            stale.unlink(missing_ok=True)

    def _fetch(self, url: str) -> bytes:
        match = _DATA_URL.match(url)
        if match:
            try:
                return base64.b64decode(match.group("data"), validate=True)
            except binascii.Error as exc:
                raise ValueError(f"invalid data URL: {exc}") from exc

        with self._client_factory(timeout=self.timeout, follow_redirects=True) as http:
            response = http.get(url)
            response.raise_for_status()
            return response.content
