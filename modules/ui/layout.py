"""Gradio layout composition for the image generation panel."""

from __future__ import annotations

from typing import Any, Optional

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.generation.options import (
    DEFAULT_COUNT,
    DEFAULT_SIZE,
    DEFAULT_STYLE,
    MAX_COUNT,
    MIN_COUNT,
    size_choices,
    style_choices,
)
from modules.ui.callbacks import build_callbacks
from modules.ui.panel import READY_MESSAGE

_COPY_LINK_JS = """
(url) => {
    if (url && navigator.clipboard) {
        navigator.clipboard.writeText(url);
    }
}
"""


def build_app(config: AppConfig, callbacks_map: Optional[dict[str, Any]] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio 未安装，请先执行依赖安装。")

    callbacks_map = callbacks_map or build_callbacks(config)

    def _on_gallery_select(panel: Any, evt: gr.SelectData) -> tuple[Optional[str], str]:
        return callbacks_map["on_select"](panel, evt.index)

    with gr.Blocks(title="AI Image Generation Panel") as demo:
        gr.Markdown("## AI 图像生成")

        panel_state = gr.State(callbacks_map["new_panel"])
        selected_id = gr.State(None)

        with gr.Row():
            with gr.Column(scale=1):
                prompt = gr.Textbox(
                    label="提示词",
                    lines=4,
                    placeholder="描述你想要生成的图像",
                )
                with gr.Row():
                    style_select = gr.Dropdown(
                        label="风格",
                        choices=list(style_choices()),
                        value=DEFAULT_STYLE.value,
                    )
                    size_select = gr.Dropdown(
                        label="尺寸",
                        choices=list(size_choices()),
                        value=DEFAULT_SIZE.value,
                    )
                count = gr.Slider(
                    label="生成数量",
                    minimum=MIN_COUNT,
                    maximum=MAX_COUNT,
                    step=1,
                    value=DEFAULT_COUNT,
                )
                with gr.Row():
                    generate_btn = gr.Button("生成图像", variant="primary")
                    cancel_btn = gr.Button("停止")
                    reset_btn = gr.Button("重置输入")
                status = gr.Markdown(READY_MESSAGE)

            with gr.Column(scale=2):
                gallery = gr.Gallery(
                    label="生成结果",
                    columns=4,
                    allow_preview=True,
                    show_label=True,
                )
                link_box = gr.Textbox(
                    label="图像链接",
                    interactive=False,
                    show_copy_button=True,
                )
                with gr.Row():
                    download_btn = gr.Button("下载")
                    copy_btn = gr.Button("复制链接")
                    delete_btn = gr.Button("删除", variant="stop")
                    clear_btn = gr.Button("清空结果")
                download_file = gr.File(label="下载文件", interactive=False)

        generate_inputs = [panel_state, prompt, style_select, size_select, count]
        generate_btn.click(
            fn=callbacks_map["on_generate"],
            inputs=generate_inputs,
            outputs=[panel_state, gallery, status],
            concurrency_limit=None,
            trigger_mode="multiple",
        )
        prompt.submit(
            fn=callbacks_map["on_generate"],
            inputs=generate_inputs,
            outputs=[panel_state, gallery, status],
            concurrency_limit=None,
            trigger_mode="multiple",
        )

        cancel_btn.click(
            fn=callbacks_map["on_cancel"],
            inputs=[panel_state],
            outputs=[status],
            concurrency_limit=None,
        )

        reset_btn.click(
            fn=callbacks_map["on_reset"],
            inputs=[panel_state],
            outputs=[prompt, style_select, size_select, count],
        )

        gallery.select(
            fn=_on_gallery_select,
            inputs=[panel_state],
            outputs=[selected_id, link_box],
        )

        delete_btn.click(
            fn=callbacks_map["on_delete"],
            inputs=[panel_state, selected_id],
            outputs=[gallery, status, selected_id, link_box],
        )

        clear_btn.click(
            fn=callbacks_map["on_clear"],
            inputs=[panel_state],
            outputs=[gallery, status, selected_id, link_box],
        )

        download_btn.click(
            fn=callbacks_map["on_download"],
            inputs=[panel_state, selected_id],
            outputs=[download_file],
        )

        copy_btn.click(fn=None, inputs=[link_box], outputs=None, js=_COPY_LINK_JS)

    return demo
