"""ResultHistory tests."""

from __future__ import annotations

import pytest

from modules.generation.models import GeneratedImage
from modules.services.history_service import ResultHistory


def make_image(image_id: str) -> GeneratedImage:
    return GeneratedImage(
        id=image_id,
        url=f"http://img/{image_id}.png",
        prompt="p",
        style="Realistic",
        size="512x512",
        created_at="2024-05-01T00:00:00.000Z",
    )


def test_prepend_keeps_newest_first_and_truncates():
    history = ResultHistory(capacity=4)
    history.prepend([make_image("a"), make_image("b")])
    history.prepend([make_image("c"), make_image("d"), make_image("e")])

    assert [item.id for item in history.list()] == ["c", "d", "e", "a"]
    assert len(history) == 4
    assert [item.id for item in history.list(limit=2)] == ["c", "d"]


def test_delete_preserves_order():
    history = ResultHistory()
    history.prepend([make_image(name) for name in "abcd"])

    assert history.delete("b") is True
    assert [item.id for item in history.list()] == ["a", "c", "d"]
    assert history.get("c") is not None
    assert history.get("b") is None


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        ResultHistory(capacity=0)
