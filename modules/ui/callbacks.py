"""Callback implementations for the Gradio interface."""

from __future__ import annotations

from typing import Any, AsyncIterator, List, Optional, Tuple

from config.settings import AppConfig
from modules.generation.client import GenerationClient
from modules.generation.errors import CANCELLED_MESSAGE
from modules.services.storage_service import StorageService
from modules.ui.panel import (
    GENERATING_MESSAGE,
    GenerationBackend,
    ImageGenerationPanel,
)

GalleryItems = List[Tuple[str, str]]


def build_callbacks(
    config: AppConfig,
    client: Optional[GenerationBackend] = None,
    storage: Optional[StorageService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    backend = client or GenerationClient(config)
    store = storage or StorageService(config.download_dir)

    def new_panel() -> ImageGenerationPanel:
        return ImageGenerationPanel(backend, max_results=config.max_results)

    def _panel(state: Any) -> ImageGenerationPanel:
        # API calls skip the page load that fills gr.State, so the state may still be the factory
        if isinstance(state, ImageGenerationPanel):
            return state
        return new_panel()

    def _gallery(panel: ImageGenerationPanel) -> GalleryItems:
        return [(image.url, image.caption) for image in panel.results]

    async def on_generate(
        state: Any,
        prompt: str,
        style: str,
        size: str,
        count: Any,
    ) -> AsyncIterator[tuple[ImageGenerationPanel, GalleryItems, str]]:
        panel = _panel(state)
        if not (prompt or "").strip():
            outcome = await panel.submit(prompt, style, size, count)
            yield panel, _gallery(panel), outcome.message
            return

        yield panel, _gallery(panel), GENERATING_MESSAGE
        outcome = await panel.submit(prompt, style, size, count)
        if outcome.superseded:
            # 新请求仍在进行时保留其状态
            status = panel.status
            if panel.loading:
                status = f"{CANCELLED_MESSAGE}{GENERATING_MESSAGE}"
            yield panel, _gallery(panel), status
            return
        yield panel, _gallery(panel), outcome.message

    def on_cancel(state: Any) -> str:
        if not _panel(state).cancel():
            return "当前没有进行中的请求。"
        return CANCELLED_MESSAGE

    def on_select(state: Any, index: Optional[int]) -> tuple[Optional[str], str]:
        panel = _panel(state)
        results = panel.results
        if index is None or not 0 <= index < len(results):
            return None, ""
        image = results[index]
        return image.id, panel.copy_link(image.id) or ""

    def on_delete(state: Any, selected_id: Optional[str]) -> tuple[GalleryItems, str, Optional[str], str]:
        panel = _panel(state)
        if not selected_id:
            return _gallery(panel), "请先在结果中选择一张图像。", None, ""
        if panel.delete_result(selected_id):
            message = "已删除所选图像。"
        else:
            message = "所选图像已不存在。"
        return _gallery(panel), message, None, ""

    def on_clear(state: Any) -> tuple[GalleryItems, str, Optional[str], str]:
        panel = _panel(state)
        panel.clear_results()
        return _gallery(panel), "已清空全部结果。", None, ""

    def on_reset(state: Any) -> tuple[str, str, str, int]:
        inputs = _panel(state).reset_inputs()
        return inputs.prompt, inputs.style, inputs.size, inputs.count

    def on_download(state: Any, selected_id: Optional[str]) -> Optional[str]:
        image = _panel(state).find(selected_id)
        if image is None:
            return None
        path = store.save_image(image)
        if path is None:
            return None
        store.cleanup(config.max_results)
        return str(path)

    return {
        "new_panel": new_panel,
        "on_generate": on_generate,
        "on_cancel": on_cancel,
        "on_select": on_select,
        "on_delete": on_delete,
        "on_clear": on_clear,
        "on_reset": on_reset,
        "on_download": on_download,
    }
