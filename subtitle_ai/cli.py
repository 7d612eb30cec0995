"""CLI interface for the subtitle generator."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
)

from . import __version__
from .backends.registry import DEFAULT_MODEL, list_models
from .backends.whisper_cpp import is_whisper_cpp_available
from .cancellation import CancellationToken
from .config import load_settings
from .exceptions import DependencyError, OperationCancelled, SubtitleAIError
from .logging import configure_logging
from .pipeline import SubtitleGenerator
from .types import DownloadProgress, Segment

logger = logging.getLogger(__name__)

EXIT_CANCELLED = 130

app = typer.Typer(
    name="subtitle-ai",
    help="Generate SRT subtitles for a video or audio file with whisper.cpp.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"subtitle-ai {__version__}")
        raise typer.Exit()


def list_models_callback(value: bool) -> None:
    """Print curated models and exit."""
    if value:
        console.print("[bold]Available Models:[/bold]\n")
        for model in list_models():
            default = " [green](default)[/green]" if model.model_id == DEFAULT_MODEL else ""
            console.print(f"  [cyan]{model.model_id}[/cyan]{default}")
            console.print(f"    File: {model.filename}")
            if model.aliases:
                console.print(f"    Aliases: {', '.join(model.aliases)}")
            console.print(f"    {model.description}")
            console.print()
        raise typer.Exit()


class _ProgressReporter:
    """Renders download and recognition progress on a Rich progress display."""

    def __init__(self, progress: Progress):
        self.progress = progress
        self.generator: SubtitleGenerator | None = None
        self._downloads: dict[str, TaskID] = {}
        self._recognition: TaskID | None = None

    def on_download(self, event: DownloadProgress) -> None:
        task = self._downloads.get(event.name)
        if task is None:
            task = self.progress.add_task(f"Downloading {event.name}", total=event.total)
            self._downloads[event.name] = task
        self.progress.update(task, completed=event.downloaded)
        if event.percent is not None:
            logger.debug("Downloading %s: %.2f%%", event.name, event.percent)

    def on_segment(self, segment: Segment) -> None:
        if self._recognition is None:
            total = self.generator.media_duration if self.generator else None
            self._recognition = self.progress.add_task("Recognizing speech", total=total)
        self.progress.update(self._recognition, completed=segment.end)


def _check_recognizer_available() -> None:
    """Fail before any download if the whisper.cpp bindings are missing.

    Raises:
        DependencyError: If pywhispercpp cannot be imported.
    """
    if not is_whisper_cpp_available():
        raise DependencyError(
            "pywhispercpp",
            "whisper.cpp bindings are not installed",
            install_hint="pip install pywhispercpp",
        )


def _report_error(message: str, error: SubtitleAIError | OSError) -> None:
    logger.error("%s: %s", message, error)
    if isinstance(error, DependencyError) and error.install_hint:
        err_console.print(f"[yellow]Install with: {error.install_hint}[/yellow]")


def _install_interrupt_handler(token: CancellationToken):
    """First Ctrl+C requests cancellation, a second one aborts immediately."""

    def handler(signum, frame):
        if token.cancelled:
            raise KeyboardInterrupt
        logger.warning("Cancelling... press Ctrl+C again to abort immediately")
        token.cancel()

    return signal.signal(signal.SIGINT, handler)


@app.command()
def main(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Video or audio file to generate subtitles for",
            exists=True,
            dir_okay=False,
        ),
    ],
    model: Annotated[
        str | None,
        typer.Option(
            "--model", "-m",
            help=f"GGML model variant or alias (default: {DEFAULT_MODEL}, see --list-models)",
        ),
    ] = None,
    cache_dir: Annotated[
        Path | None,
        typer.Option(
            "--cache-dir",
            help="Working cache directory (default: .subtitle-ai-cache)",
        ),
    ] = None,
    keep_temp_files: Annotated[
        bool | None,
        typer.Option(
            "--keep-temp-files/--delete-temp-files",
            help="Keep the input file and decoded audio after transcription",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config", "-c",
            help="YAML config file",
        ),
    ] = None,
    list_models_flag: Annotated[
        bool | None,
        typer.Option(
            "--list-models",
            callback=list_models_callback,
            is_eager=True,
            help="List supported models and exit",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Show debug logging",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Generate an .srt subtitle file beside INPUT_FILE."""
    configure_logging(verbose, console=err_console)

    try:
        settings = load_settings(
            config,
            model=model,
            cache_dir=cache_dir,
            keep_temp_files=keep_temp_files,
        )
    except SubtitleAIError as e:
        logger.error("%s", e)
        raise typer.Exit(1)

    try:
        _check_recognizer_available()
    except DependencyError as e:
        _report_error("Cannot transcribe", e)
        raise typer.Exit(1)

    token = CancellationToken()
    previous_handler = _install_interrupt_handler(token)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=err_console,
            transient=True,
        ) as progress:
            reporter = _ProgressReporter(progress)
            generator = SubtitleGenerator(
                input_file,
                settings,
                on_download=reporter.on_download,
                on_segment=reporter.on_segment,
            )
            reporter.generator = generator
            subtitle_file = generator.generate_subtitles(token)
    except OperationCancelled as e:
        logger.warning("Cancelled after %d segment(s); no subtitle file written", len(e.segments))
        raise typer.Exit(EXIT_CANCELLED)
    except (SubtitleAIError, OSError) as e:
        _report_error("Subtitle generation failed", e)
        logger.debug("Traceback:", exc_info=True)
        raise typer.Exit(1)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    console.print(f"Subtitles written to [green]{subtitle_file}[/green]")


if __name__ == "__main__":
    app()
