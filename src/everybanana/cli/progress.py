"""
Rich output for the CLI.

Everything here writes to stderr; stdout carries only the saved file path.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

console = Console(stderr=True)


def _describe_request(style: str, aspect_ratio: str, image_used: bool) -> str:
    """Spinner text, e.g. "Generating image (Retro, 3:4) with uploaded image"."""
    text = f"Generating image [dim]({escape(style)}, {escape(aspect_ratio)})[/dim]"
    if image_used:
        text += " [dim cyan]with uploaded image[/dim cyan]"
    return text


@contextmanager
def generation_progress(
    style: str,
    aspect_ratio: str,
    image_used: bool = False,
) -> Iterator[None]:
    """Show a transient spinner with elapsed time while the request runs."""
    spinner = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("[green]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with spinner:
        spinner.add_task(_describe_request(style, aspect_ratio, image_used), total=None)
        yield


def _result_table(rows: list[tuple[str, str]]) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")
    for label, value in rows:
        table.add_row(label, value)
    return table


def print_success_result(
    output_path: Path,
    generation_time: float,
    prompt_used: str,
    aspect_ratio: str,
    had_image: bool,
) -> None:
    """Print the saved path, timing and the prompt that was sent."""
    rows = [
        ("Saved to", f"[bold green]{escape(str(output_path))}[/bold green]"),
        ("Time", f"{generation_time:.1f}s"),
        ("Input", "prompt + uploaded image" if had_image else "prompt only"),
    ]
    # The edit endpoint keeps the uploaded image's shape
    if not had_image:
        rows.append(("Aspect ratio", aspect_ratio))
    rows.append(("Prompt", f"[dim]{escape(prompt_used)}[/dim]"))

    console.print()
    console.print(
        Panel(
            _result_table(rows),
            title="[bold green]✓ Image Generated[/bold green]",
            border_style="green",
            padding=(1, 2),
        )
    )


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}")
