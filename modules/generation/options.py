"""Fixed generation options offered by the panel."""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence


class ImageStyle(str, Enum):
    """Supported rendering styles."""

    REALISTIC = "Realistic"
    ANIME = "Anime"
    DIGITAL_ART = "Digital Art"
    OIL_PAINTING = "Oil Painting"
    WATERCOLOR = "Watercolor"
    CYBERPUNK = "Cyberpunk"


class ImageSize(str, Enum):
    """Supported output resolutions."""

    SQUARE_512 = "512x512"
    SQUARE_768 = "768x768"
    SQUARE_1024 = "1024x1024"
    LANDSCAPE_1024 = "1024x768"


DEFAULT_STYLE = ImageStyle.REALISTIC
DEFAULT_SIZE = ImageSize.SQUARE_1024
MIN_COUNT = 1
MAX_COUNT = 10
DEFAULT_COUNT = 1


def style_choices() -> Sequence[str]:
    return [style.value for style in ImageStyle]


def size_choices() -> Sequence[str]:
    return [size.value for size in ImageSize]


def normalize_style(value: Any) -> str:
    """Return a known style label, falling back to the default."""
    try:
        return ImageStyle(value).value
    except ValueError:
        return DEFAULT_STYLE.value


def normalize_size(value: Any) -> str:
    """Return a known size label, falling back to the default."""
    try:
        return ImageSize(value).value
    except ValueError:
        return DEFAULT_SIZE.value


def normalize_count(value: Any, default: int = DEFAULT_COUNT) -> int:
    """Clamp the requested image count to the supported range."""
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        return default
    return max(MIN_COUNT, min(numeric, MAX_COUNT))
