"""
Gradio web UI for everybanana.

Single-page UI: write a prompt, optionally upload an image, pick a style and
aspect ratio, generate, then download, start over, or try a different aspect
ratio for text-only results. Each browser session owns one GenerationController;
the handlers only translate its UIState into component updates.
"""

import argparse
import asyncio
import atexit
import contextlib
import html
import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any, cast

import gradio as gr

from everybanana import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    SELECTABLE_ASPECT_RATIOS,
    Config,
    ConfigurationError,
    EverybananaError,
    GenerationController,
    ImageProcessingError,
    ServiceError,
    Status,
    Style,
    ValidationError,
    __version__,
    load_reference_image,
    save_image,
)
from everybanana.logging_config import configure_logging, get_logger, get_verbosity_from_env
from everybanana.utils.exceptions import error_message

logger = get_logger(__name__)

# Default server port; overridable via EVERYBANANA_UI_PORT
DEFAULT_UI_PORT = 7860
DEFAULT_UI_HOST = "127.0.0.1"

PAGE_TITLE = "EveryBanana"

# Temp paths we create (result JPGs); cleaned on process exit
_temp_paths: set[str] = set()


def _register_temp_path(path: str) -> None:
    _temp_paths.add(path)


def _cleanup_temp_paths() -> None:
    for path in _temp_paths:
        with contextlib.suppress(OSError):
            Path(path).unlink(missing_ok=True)


atexit.register(_cleanup_temp_paths)


def _new_controller() -> GenerationController:
    return GenerationController(config=Config.from_env())


# Shown when an exception carries no message of its own
_FALLBACK_MESSAGES: tuple[tuple[type[BaseException], str], ...] = (
    (ValidationError, "Validation failed."),
    (ConfigurationError, "Invalid configuration."),
    (ImageProcessingError, "Image processing failed."),
    (ServiceError, "Service or network error."),
    (EverybananaError, "An error occurred."),
)


def _exception_to_message(exc: BaseException) -> str:
    """Short user-facing message for an exception; no field suffix, unlike the CLI."""
    for exc_type, fallback in _FALLBACK_MESSAGES:
        if isinstance(exc, exc_type):
            return error_message(exc, default=fallback)
    return error_message(exc, default="An unexpected error occurred.")


def _format_status(message: str, status_type: str = "info") -> str:
    """
    Format a status message as an HTML card.

    Args:
        message: The status message text.
        status_type: One of "info", "success", "error", "warning", "idle".
    """
    if status_type == "error":
        title = "Generation Failed"
        color = "#dc2626"  # red-600
    elif status_type == "warning":
        title = ""
        color = "#d97706"  # amber-600
    elif status_type == "info":
        title = ""
        color = "#000000"
    else:  # idle
        return ""

    heading = f'<p style="font-weight: 700; font-size: 1.1em; margin: 0;">{title}</p>' if title else ""
    return f"""<div style="text-align: center; color: {color}; background: #fff; border: 2px solid #000; border-radius: 16px; padding: 16px; box-shadow: 6px 6px 0 0 #000;">
    {heading}
    <p style="font-size: 0.9em; margin: 8px 0 0 0;">{html.escape(message)}</p>
</div>"""


def _can_generate(prompt: str | None, image_value: Any) -> bool:
    """Generate is enabled when there is a prompt or an uploaded image."""
    return bool((prompt and prompt.strip()) or image_value)


def _view(
    controller: GenerationController,
    image_path: str | None = None,
    can_generate: bool = True,
) -> tuple[Any, ...]:
    """
    Translate the controller's state into updates for the result area.

    Order matches _RESULT_OUTPUTS in _build_blocks:
    (status, output image, try again, retry group, retry radio, actions row,
     download button, generate button, controller).
    """
    state = controller.state
    loading = state.is_loading
    success = state.status is Status.SUCCESS
    failed = state.status is Status.FAILED

    if loading:
        status = _format_status("Generating…", "info")
    elif failed:
        status = _format_status(state.error or "An unknown error occurred.", "error")
    else:
        status = ""

    show_image = success and image_path is not None
    return (
        status,
        gr.update(value=image_path if show_image else None, visible=show_image),
        gr.update(visible=failed),
        gr.update(visible=success and controller.can_retry_aspect_ratio),
        gr.update(value=controller.aspect_ratio.value),
        gr.update(visible=show_image),
        gr.update(value=image_path if show_image else None),
        gr.update(
            interactive=(not loading) and can_generate,
            value="Generating..." if loading else "Generate",
        ),
        controller,
    )


def _save_result(controller: GenerationController) -> str | None:
    """Save a successful result to a temp JPG for display and download."""
    if controller.state.status is not Status.SUCCESS or not controller.state.image_url:
        return None
    path = save_image(controller.state.image_url, directory=tempfile.gettempdir())
    _register_temp_path(str(path))
    return str(path)


async def _generate_click_handler(
    prompt: str,
    image_value: Any,
    style: str,
    aspect_ratio: str,
    controller: GenerationController | None,
) -> AsyncGenerator[tuple[Any, ...], None]:
    """Generate button: load the upload, submit, yield the loading view then the outcome."""
    ctrl = controller or _new_controller()
    can_generate = _can_generate(prompt, image_value)
    if ctrl.state.is_loading:
        yield _view(ctrl, can_generate=can_generate)
        return

    reference = None
    if image_value:
        try:
            reference = load_reference_image(str(image_value))
        except (ValidationError, ImageProcessingError, FileNotFoundError) as e:
            view = list(_view(ctrl, can_generate=can_generate))
            view[0] = _format_status(_exception_to_message(e), "error")
            yield tuple(view)
            return

    logger.info("Generate requested")
    task = asyncio.create_task(
        ctrl.submit(
            prompt or "",
            style or DEFAULT_STYLE,
            aspect_ratio or DEFAULT_ASPECT_RATIO,
            reference,
        )
    )
    # Let submit reach its await so the view shows LOADING (or the validation failure)
    await asyncio.sleep(0)
    yield _view(ctrl, can_generate=can_generate)
    try:
        await task
    except ValidationError as e:
        logger.info("Generate rejected: %s", _exception_to_message(e))
    yield _view(ctrl, image_path=_result_path(ctrl), can_generate=can_generate)


def _retry_view(
    controller: GenerationController,
    image_path: str | None = None,
    can_generate: bool = True,
) -> tuple[Any, ...]:
    """_view plus the form's aspect-ratio radio, so the next Generate uses the retried ratio."""
    return (*_view(controller, image_path, can_generate), gr.update(value=controller.aspect_ratio.value))


async def _retry_aspect_ratio_handler(
    aspect_ratio: str,
    prompt: str,
    image_value: Any,
    controller: GenerationController | None,
) -> AsyncGenerator[tuple[Any, ...], None]:
    """Aspect-ratio selector under a text-only result: generate again with the new ratio."""
    ctrl = controller or _new_controller()
    can_generate = _can_generate(prompt, image_value)
    if not ctrl.can_retry_aspect_ratio or aspect_ratio == ctrl.aspect_ratio.value:
        yield _retry_view(ctrl, image_path=_result_path(ctrl), can_generate=can_generate)
        return
    logger.info("Retry requested aspect_ratio=%s", aspect_ratio)
    task = asyncio.create_task(ctrl.retry_with_aspect_ratio(aspect_ratio))
    await asyncio.sleep(0)
    yield _retry_view(ctrl, can_generate=can_generate)
    await task
    yield _retry_view(ctrl, image_path=_result_path(ctrl), can_generate=can_generate)


def _reset_click_handler(
    prompt: str, image_value: Any, controller: GenerationController | None
) -> tuple[Any, ...]:
    """Create New: clear the result; prompt and upload stay in their fields."""
    ctrl = controller or _new_controller()
    ctrl.reset()
    return _view(ctrl, can_generate=_can_generate(prompt, image_value))


def _try_again_click_handler(
    prompt: str, image_value: Any, controller: GenerationController | None
) -> tuple[Any, ...]:
    """Try Again on the error card: dismiss the error."""
    ctrl = controller or _new_controller()
    ctrl.clear_error()
    return _view(ctrl, can_generate=_can_generate(prompt, image_value))


def _inputs_change_handler(prompt: str, image_value: Any) -> Any:
    """Prompt or upload change: enable Generate when either is present."""
    return gr.update(interactive=_can_generate(prompt, image_value))


def _result_path(ctrl: GenerationController) -> str | None:
    try:
        return _save_result(ctrl)
    except EverybananaError as e:
        logger.warning("Could not save generated image: %s", _exception_to_message(e))
        return None


def _build_blocks() -> gr.Blocks:
    """Build the Gradio Blocks UI."""
    with gr.Blocks(title=PAGE_TITLE) as app:
        gr.HTML('<h1 style="font-size: 2em; font-weight: 800; margin: 8px 0 0 0;">EveryBanana 🍌</h1>')
        gr.Markdown("Create slide illustrations from a text prompt.")

        with gr.Group():
            gr.Markdown("### 1. Write Prompt")
            prompt_tb = gr.Textbox(
                show_label=False,
                placeholder="e.g., A cat wearing a space helmet",
                lines=4,
            )
        with gr.Group():
            gr.Markdown("### 2. Upload Image (Optional)")
            upload = gr.Image(
                show_label=False,
                type="filepath",
                sources=["upload", "clipboard"],
            )
        with gr.Group():
            gr.Markdown("### 3. Select Style")
            style_radio = gr.Radio(
                choices=[s.value for s in Style],
                value=DEFAULT_STYLE.value,
                show_label=False,
            )
            aspect_radio = gr.Radio(
                label="Aspect ratio",
                choices=[r.value for r in SELECTABLE_ASPECT_RATIOS],
                value=DEFAULT_ASPECT_RATIO.value,
            )

        generate_btn = gr.Button("Generate", variant="primary", interactive=False)

        status_html = gr.HTML(value="")
        try_again_btn = gr.Button("Try Again", visible=False)
        out_image = gr.Image(
            label="AI generated image",
            type="filepath",
            interactive=False,
            visible=False,
        )
        with gr.Column(visible=False) as retry_group:
            gr.Markdown("### Try a different aspect ratio")
            retry_radio = gr.Radio(
                choices=[r.value for r in SELECTABLE_ASPECT_RATIOS],
                value=DEFAULT_ASPECT_RATIO.value,
                show_label=False,
            )
        with gr.Row(visible=False) as actions_row:
            download_btn = gr.DownloadButton("Download")
            reset_btn = gr.Button("Create New", variant="primary")

        controller_state = gr.State(value=None)

        # Shared queue so generate/retry/reset run serially per app
        _UI_CONCURRENCY_ID = "everybanana_ui"
        _result_outputs = [
            status_html,
            out_image,
            try_again_btn,
            retry_group,
            retry_radio,
            actions_row,
            download_btn,
            generate_btn,
            controller_state,
        ]

        generate_btn.click(
            fn=_generate_click_handler,
            inputs=[prompt_tb, upload, style_radio, aspect_radio, controller_state],
            outputs=_result_outputs,
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        retry_radio.input(
            fn=_retry_aspect_ratio_handler,
            inputs=[retry_radio, prompt_tb, upload, controller_state],
            outputs=[*_result_outputs, aspect_radio],
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        reset_btn.click(
            fn=_reset_click_handler,
            inputs=[prompt_tb, upload, controller_state],
            outputs=_result_outputs,
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        try_again_btn.click(
            fn=_try_again_click_handler,
            inputs=[prompt_tb, upload, controller_state],
            outputs=_result_outputs,
            concurrency_id=_UI_CONCURRENCY_ID,
        )
        for component in (prompt_tb, upload):
            component.change(
                fn=_inputs_change_handler,
                inputs=[prompt_tb, upload],
                outputs=[generate_btn],
            )

        gr.HTML(
            f'<p style="text-align: center; font-size: 0.9em; color: #9ca3af; margin-top: 40px;">'
            f"everybanana v{__version__}</p>"
        )

    return cast(gr.Blocks, app)


def launch(
    server_name: str | None = None,
    server_port: int | None = None,
    share: bool = False,
) -> None:
    """
    Build the Gradio app and launch the server.

    Args:
        server_name: Host to bind (default: EVERYBANANA_UI_HOST or 127.0.0.1).
        server_port: Port (default: EVERYBANANA_UI_PORT or 7860).
        share: If True, create a public share link (e.g. gradio.live).
    """
    host = server_name or os.getenv("EVERYBANANA_UI_HOST", DEFAULT_UI_HOST)
    port = server_port
    if port is None:
        try:
            port = int(os.getenv("EVERYBANANA_UI_PORT", str(DEFAULT_UI_PORT)))
        except ValueError:
            port = DEFAULT_UI_PORT
    try:
        Config.from_env().validate()
    except ConfigurationError as e:
        logger.warning("%s Generation will fail until this is fixed.", _exception_to_message(e))
    print(f"everybanana ui is starting (v{__version__}) on http://{host}:{port}...")
    app = _build_blocks()
    app.launch(server_name=host, server_port=port, share=share, inbrowser=True)


def main() -> None:
    """Entry point for the everybanana-ui console script. Parses --port, --host, --share."""
    parser = argparse.ArgumentParser(
        description="Launch the everybanana Gradio web UI.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help=f"Port to bind (default: EVERYBANANA_UI_PORT or {DEFAULT_UI_PORT}).",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        metavar="HOST",
        help=f"Host to bind (default: EVERYBANANA_UI_HOST or {DEFAULT_UI_HOST}). Use 0.0.0.0 for LAN.",
    )
    parser.add_argument(
        "--share",
        action="store_true",
        default=None,
        help="Create a public share link (e.g. gradio.live). Overrides EVERYBANANA_UI_SHARE.",
    )
    args = parser.parse_args()
    share_val = args.share
    if share_val is None:
        env_share = os.environ.get("EVERYBANANA_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    configure_logging(verbose_level=get_verbosity_from_env())
    launch(
        server_name=args.host,
        server_port=args.port,
        share=share_val,
    )
