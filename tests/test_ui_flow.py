"""Gradio UI callback tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

from config.settings import AppConfig
from modules.generation.errors import CANCELLED_MESSAGE, ServerError
from modules.generation.models import GeneratedImage, GenerationRequest
from modules.ui import callbacks
from modules.ui.panel import EMPTY_PROMPT_MESSAGE, GENERATING_MESSAGE, ImageGenerationPanel


class DummyClient:
    """Stub generation backend capturing requests."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.requests: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> Any:
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else {"images": []}
        if isinstance(reply, Exception):
            raise reply
        return reply


class DummyStorage:
    """Stub storage recording saved images."""

    def __init__(self, tmp_path: Path, fail: bool = False) -> None:
        self.tmp_path = tmp_path
        self.fail = fail
        self.saved: list[GeneratedImage] = []
        self.cleaned: list[int] = []

    def save_image(self, image: GeneratedImage) -> Optional[Path]:
        if self.fail:
            return None
        self.saved.append(image)
        return self.tmp_path / f"image-{image.id}.png"

    def cleanup(self, max_items: int = 100) -> None:
        self.cleaned.append(max_items)


def build_callbacks(client: DummyClient, storage: DummyStorage | None = None, config: AppConfig | None = None):
    config = config or AppConfig()
    return callbacks.build_callbacks(config, client=client, storage=storage)


def generate(cb_map, panel, prompt, style="Realistic", size="1024x1024", count=1):
    async def collect():
        return [step async for step in cb_map["on_generate"](panel, prompt, style, size, count)]

    return asyncio.run(collect())


def test_on_generate_yields_loading_then_gallery():
    client = DummyClient({"images": ["http://img/a.png", "http://img/b.png"]})
    cb_map = build_callbacks(client)
    panel = cb_map["new_panel"]()

    steps = generate(cb_map, panel, "a harbor at dawn", "Oil Painting", "768x768", 2)

    assert steps[0] == (panel, [], GENERATING_MESSAGE)
    _, gallery, message = steps[-1]
    assert [url for url, _ in gallery] == ["http://img/a.png", "http://img/b.png"]
    assert "Oil Painting" in gallery[0][1]
    assert "2" in message
    assert client.requests[0].count == 2


def test_on_generate_blank_prompt_skips_backend():
    client = DummyClient()
    cb_map = build_callbacks(client)
    panel = cb_map["new_panel"]()

    steps = generate(cb_map, panel, "   ")

    assert steps == [(panel, [], EMPTY_PROMPT_MESSAGE)]
    assert client.requests == []


def test_on_generate_reports_server_error():
    cb_map = build_callbacks(DummyClient(ServerError(500, "internal")))
    panel = cb_map["new_panel"]()

    _, _, message = generate(cb_map, panel, "a city")[-1]

    assert "500" in message
    assert "internal" in message


def test_panels_are_independent_per_session():
    cb_map = build_callbacks(DummyClient({"images": ["http://img/a.png"]}))
    first = cb_map["new_panel"]()
    second = cb_map["new_panel"]()

    generate(cb_map, first, "one")

    assert len(first.results) == 1
    assert second.results == []


def test_panel_uses_configured_cap():
    config = AppConfig(max_results=3)
    batch = {"images": ["http://img/1.png", "http://img/2.png"]}
    cb_map = build_callbacks(DummyClient(batch, batch), config=config)
    panel = cb_map["new_panel"]()

    generate(cb_map, panel, "one")
    generate(cb_map, panel, "two")

    assert len(panel.results) == 3


def test_select_delete_and_clear():
    cb_map = build_callbacks(DummyClient({"images": ["http://img/a.png", "http://img/b.png", "http://img/c.png"]}))
    panel = cb_map["new_panel"]()
    generate(cb_map, panel, "three")

    selected_id, link = cb_map["on_select"](panel, 1)
    assert link == "http://img/b.png"

    gallery, message, selection, link_text = cb_map["on_delete"](panel, selected_id)
    assert [url for url, _ in gallery] == ["http://img/a.png", "http://img/c.png"]
    assert "已删除" in message
    assert selection is None
    assert link_text == ""

    gallery, message, _, _ = cb_map["on_clear"](panel)
    assert gallery == []
    assert panel.results == []


def test_select_out_of_range_clears_selection():
    cb_map = build_callbacks(DummyClient())
    panel = cb_map["new_panel"]()

    assert cb_map["on_select"](panel, 4) == (None, "")
    assert cb_map["on_delete"](panel, None)[2] is None


def test_on_reset_returns_defaults():
    cb_map = build_callbacks(DummyClient({"images": ["http://img/a.png"]}))
    panel = cb_map["new_panel"]()
    generate(cb_map, panel, "keep me", "Anime", "512x512", 5)

    assert cb_map["on_reset"](panel) == ("", "Realistic", "1024x1024", 1)
    assert len(panel.results) == 1


def test_on_cancel_without_request():
    cb_map = build_callbacks(DummyClient())
    panel = cb_map["new_panel"]()

    assert cb_map["on_cancel"](panel) != CANCELLED_MESSAGE


def test_on_download_saves_selected_image(tmp_path):
    storage = DummyStorage(tmp_path)
    cb_map = build_callbacks(DummyClient({"images": [{"id": "srv-1", "url": "http://img/a.png"}]}), storage)
    panel = cb_map["new_panel"]()
    generate(cb_map, panel, "one")

    path = cb_map["on_download"](panel, "srv-1")

    assert path == str(tmp_path / "image-srv-1.png")
    assert [image.id for image in storage.saved] == ["srv-1"]
    assert storage.cleaned == [100]


def test_on_download_is_best_effort(tmp_path):
    storage = DummyStorage(tmp_path, fail=True)
    cb_map = build_callbacks(DummyClient({"images": ["http://img/a.png"]}), storage)
    panel = cb_map["new_panel"]()
    generate(cb_map, panel, "one")

    assert cb_map["on_download"](panel, panel.results[0].id) is None
    assert cb_map["on_download"](panel, "unknown") is None


def test_api_call_without_page_state_creates_panel():
    client = DummyClient({"images": ["http://img/a.png"]})
    cb_map = build_callbacks(client)
    factory_state = cb_map["new_panel"]

    steps = generate(cb_map, factory_state, "a quiet street")

    panel, gallery, message = steps[-1]
    assert isinstance(panel, ImageGenerationPanel)
    assert [url for url, _ in gallery] == ["http://img/a.png"]
    assert "1" in message
    assert cb_map["on_select"](factory_state, 0) == (None, "")
    assert cb_map["on_cancel"](factory_state) != CANCELLED_MESSAGE
    assert cb_map["on_reset"](factory_state) == ("", "Realistic", "1024x1024", 1)


def test_on_cancel_during_generation_reports_cancelled():
    class SlowClient:
        def __init__(self) -> None:
            self.started = asyncio.Event()

        async def generate(self, request: GenerationRequest) -> Any:
            self.started.set()
            await asyncio.sleep(10)
            return {"images": ["http://img/late.png"]}

    async def scenario():
        client = SlowClient()
        cb_map = build_callbacks(client)
        panel = cb_map["new_panel"]()
        steps = cb_map["on_generate"](panel, "slow", "Realistic", "1024x1024", 1)
        first = await steps.__anext__()
        pending = asyncio.ensure_future(steps.__anext__())
        await asyncio.wait_for(client.started.wait(), timeout=5)
        cancel_message = cb_map["on_cancel"](panel)
        last = await asyncio.wait_for(pending, timeout=2)
        return panel, first, cancel_message, last

    panel, first, cancel_message, last = asyncio.run(scenario())

    assert first[2] == GENERATING_MESSAGE
    assert cancel_message == CANCELLED_MESSAGE
    assert last[1:] == ([], CANCELLED_MESSAGE)
    assert panel.loading is False
