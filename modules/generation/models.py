"""Request and result types exchanged with the generation backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List

from modules.generation.errors import MALFORMED_RESPONSE_MESSAGE, MalformedResponseError
from modules.generation.options import (
    DEFAULT_COUNT,
    DEFAULT_SIZE,
    DEFAULT_STYLE,
    normalize_count,
    normalize_size,
    normalize_style,
)


@dataclass(slots=True)
class GenerationRequest:
    """Parameters sent to ``/api/generate``."""

    prompt: str
    style: str = DEFAULT_STYLE.value
    size: str = DEFAULT_SIZE.value
    count: int = DEFAULT_COUNT

    @classmethod
    def from_inputs(cls, prompt: str, style: Any, size: Any, count: Any) -> "GenerationRequest":
        """Build a request from raw form values."""
        return cls(
            prompt=(prompt or "").strip(),
            style=normalize_style(style),
            size=normalize_size(size),
            count=normalize_count(count),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body expected by the backend."""
        return {
            "prompt": self.prompt,
            "style": self.style,
            "size": self.size,
            "num": self.count,
        }


@dataclass(frozen=True, slots=True)
class GeneratedImage:
    """One image returned by the backend."""

    id: str
    url: str
    prompt: str
    style: str
    size: str
    created_at: str

    @property
    def caption(self) -> str:
        return f"{self.style} · {self.size}\n{self.prompt}"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. ``2024-05-01T08:00:00.000Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    stamp = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _describe_malformed(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return MALFORMED_RESPONSE_MESSAGE


def parse_generated_images(
    payload: Any,
    request: GenerationRequest,
    created_at: datetime,
) -> List[GeneratedImage]:
    """Normalize a ``{"images": [...]}`` payload into GeneratedImage records.

    Entries may be bare URL strings or objects carrying ``url`` and an
    optional ``id``. Every record shares the single ``created_at`` capture;
    missing ids are synthesized as ``<capture-ms>-<index>``.
    """
    entries = payload.get("images") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise MalformedResponseError(_describe_malformed(payload))

    stamp = format_timestamp(created_at)
    base_id = int(created_at.timestamp() * 1000)
    images: List[GeneratedImage] = []
    for index, entry in enumerate(entries):
        image_id: Any = None
        if isinstance(entry, str):
            url = entry
        elif isinstance(entry, dict):
            url = entry.get("url")
            image_id = entry.get("id")
        else:
            raise MalformedResponseError(f"服务器响应格式无效：第 {index + 1} 项不是图像。")

        if not isinstance(url, str) or not url.strip():
            raise MalformedResponseError(f"服务器响应格式无效：第 {index + 1} 项缺少 url。")

        images.append(
            GeneratedImage(
                id=str(image_id) if image_id not in (None, "") else f"{base_id}-{index}",
                url=url.strip(),
                prompt=request.prompt,
                style=request.style,
                size=request.size,
                created_at=stamp,
            )
        )
    return images
