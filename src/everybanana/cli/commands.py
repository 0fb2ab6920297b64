"""
Click command definitions for the everybanana CLI.

This module contains the Click command group and the generate and ui commands.
"""

import asyncio
import os
import time
from pathlib import Path

import click

from everybanana import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_STYLE,
    AspectRatio,
    Config,
    GenerationController,
    ServiceError,
    Status,
    Style,
    __version__,
    compose_prompt,
    load_reference_image,
    save_image,
)
from everybanana.cli import progress
from everybanana.cli.handlers import run_with_error_handling
from everybanana.logging_config import configure_logging, get_verbosity_from_env


@click.group(
    help=f"""Generate styled images from a prompt and an optional image (Gemini API).

\b
Version: {__version__}
"""
)
@click.version_option(version=__version__, package_name="everybanana")
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@click.option("--prompt", "-p", default="", help="Text description of the image to generate.")
@click.option(
    "--image",
    "-i",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image to generate from (PNG, JPEG or WEBP).",
)
@click.option(
    "--style",
    "-s",
    type=click.Choice([s.value for s in Style], case_sensitive=False),
    default=DEFAULT_STYLE.value,
    show_default=True,
    help="Visual style appended to the prompt.",
)
@click.option(
    "--aspect-ratio",
    "-a",
    type=click.Choice([r.value for r in AspectRatio]),
    default=DEFAULT_ASPECT_RATIO.value,
    show_default=True,
    help="Aspect ratio (text-only prompts).",
)
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Output JPEG path.")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Minimize progress messages; only print result path or errors.",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv).")
def generate(
    prompt: str,
    image: Path | None,
    style: str,
    aspect_ratio: str,
    out: Path | None,
    quiet: bool,
    verbose: int,
) -> None:
    """Generate an image from a prompt and/or an uploaded image."""
    configure_logging(verbose_level=verbose or get_verbosity_from_env(), quiet=quiet)

    def do_generate() -> None:
        config = Config.from_env()
        config.validate()

        reference = load_reference_image(image, config=config) if image is not None else None
        controller = GenerationController(config=config)

        start_time = time.time()
        if quiet:
            state = asyncio.run(controller.submit(prompt, style, aspect_ratio, reference))
        else:
            with progress.generation_progress(
                style=style, aspect_ratio=aspect_ratio, image_used=reference is not None
            ):
                state = asyncio.run(controller.submit(prompt, style, aspect_ratio, reference))
        elapsed = time.time() - start_time

        if state.status is Status.FAILED or not state.image_url:
            raise ServiceError(state.error or "An unknown error occurred.")

        if out is None:
            out_path = save_image(state.image_url, config=config)
        else:
            out_path = save_image(
                state.image_url, directory=out.parent, filename=out.name, config=config
            )

        if not quiet:
            progress.print_success_result(
                output_path=out_path,
                generation_time=elapsed,
                prompt_used=compose_prompt(prompt, controller.style),
                aspect_ratio=controller.aspect_ratio.value,
                had_image=reference is not None,
            )
        # Path on stdout for scriptability
        click.echo(str(out_path))

    run_with_error_handling(do_generate, quiet=quiet)


@cli.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    envvar="EVERYBANANA_UI_PORT",
    help="Port for the Gradio server (default: 7860 or EVERYBANANA_UI_PORT).",
)
@click.option(
    "--host",
    "host",
    type=str,
    default=None,
    envvar="EVERYBANANA_UI_HOST",
    help="Host to bind (default: 127.0.0.1 or EVERYBANANA_UI_HOST). Use 0.0.0.0 for LAN.",
)
@click.option(
    "--share",
    is_flag=True,
    default=None,
    help="Create a public share link (e.g. gradio.live).",
)
def ui(port: int | None, host: str | None, share: bool | None) -> None:
    """Launch the Gradio web UI."""
    from everybanana.ui.gradio_app import launch as launch_ui

    configure_logging(verbose_level=get_verbosity_from_env())
    share_val = share
    if share_val is None:
        env_share = os.environ.get("EVERYBANANA_UI_SHARE", "").lower()
        share_val = env_share in ("1", "true", "yes")
    launch_ui(server_name=host, server_port=port, share=share_val)
