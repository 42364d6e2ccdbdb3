"""Generation history tracking."""

from __future__ import annotations

from typing import Iterable, List, Optional

from modules.generation.models import GeneratedImage

DEFAULT_CAPACITY = 100


class ResultHistory:
    """Bounded in-memory list of generated images, newest first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: List[GeneratedImage] = []

    def __len__(self) -> int:
        return len(self._items)

    def prepend(self, images: Iterable[GeneratedImage]) -> None:
        """Insert a batch ahead of existing entries; drop the oldest beyond capacity."""
        self._items = (list(images) + self._items)[: self.capacity]

    def delete(self, image_id: str) -> bool:
        """Remove the entry with ``image_id``. Returns True when something was removed."""
        remaining = [item for item in self._items if item.id != image_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        return removed

    def clear(self) -> None:
        self._items = []

    def get(self, image_id: str) -> Optional[GeneratedImage]:
        for item in self._items:
            if item.id == image_id:
                return item
        return None

    def list(self, limit: Optional[int] = None) -> List[GeneratedImage]:
        """Return the most recent records."""
        if limit is None:
            return list(self._items)
        return self._items[:limit]
