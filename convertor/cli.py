"""
convertor.cli
~~~~~~~~~~~~~
Headless front end: queue files, convert them, print a summary.

    convertor ~/Music/album --format alac --jobs 4
"""

from __future__ import annotations

import logging
import signal
import sys
from enum import Enum
from pathlib import Path

import typer
from PySide6.QtCore import QCoreApplication, QTimer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from convertor.models import AudioQuality, ConversionJob, JobStatus, OutputFormat
from convertor.notifier import LoggingNotifier
from convertor.scheduler import ConversionScheduler
from convertor.settings import MAX_CONCURRENT_TASKS, MIN_CONCURRENT_TASKS, load_settings, save_settings

log = logging.getLogger("convertor")
console = Console()

app = typer.Typer(
    name="convertor",
    help="Convert FLAC files to AAC or Apple Lossless with a bundled ffmpeg.",
    add_completion=False,
)


class FormatChoice(str, Enum):
    aac = "aac"
    alac = "alac"


class QualityChoice(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    very_high = "very-high"
    lossless = "lossless"


_STATUS_STYLE = {
    JobStatus.COMPLETED:  "green",
    JobStatus.FAILED:     "red",
    JobStatus.CANCELLED:  "yellow",
    JobStatus.PENDING:    "dim",
    JobStatus.CONVERTING: "cyan",
}


def _configure_logging(verbose: int) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("convertor").setLevel(logging.DEBUG if verbose > 0 else logging.INFO)


def _summary_table(jobs: list[ConversionJob]) -> Table:
    table = Table(title="Conversion summary")
    table.add_column("File")
    table.add_column("Status")
    table.add_column("Output / error", overflow="fold")
    for job in jobs:
        style = _STATUS_STYLE.get(job.status, "")
        if job.status is JobStatus.COMPLETED:
            detail = str(job.output_path)
        else:
            # ffmpeg's last diagnostic line is usually the one that matters
            lines = (job.error_detail or "").strip().splitlines()
            detail = lines[-1] if lines else ""
        status = f"[{style}]{job.status.value}[/{style}]" if style else job.status.value
        table.add_row(job.name, status, detail)
    return table


@app.command()
def convert(
    paths: list[Path] = typer.Argument(  # noqa: B008
        ..., help="FLAC files or folders containing FLAC files."
    ),
    output_format: FormatChoice | None = typer.Option(
        None, "--format", "-f", help="Output codec (default from settings)."
    ),
    quality: QualityChoice | None = typer.Option(
        None, "--quality", "-q", help="AAC quality tier (default from settings)."
    ),
    jobs: int | None = typer.Option(
        None, "--jobs", "-j", min=MIN_CONCURRENT_TASKS, max=MAX_CONCURRENT_TASKS,
        help="How many conversions run at once.",
    ),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o", file_okay=False, help="Where converted files go."
    ),
    ffmpeg: Path | None = typer.Option(
        None, "--ffmpeg", help="Path to the ffmpeg executable."
    ),
    store: bool = typer.Option(
        False, "--save-settings", help="Remember these options as the new defaults."
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Show debug logging."
    ),
):
    """Convert every given file, at most --jobs at a time."""
    _configure_logging(verbose)

    settings = load_settings()
    if output_format is not None:
        settings.default_output_format = OutputFormat(output_format.value)
    if quality is not None:
        settings.audio_quality = AudioQuality(quality.value)
    if jobs is not None:
        settings.max_concurrent_tasks = jobs
    if output_dir is not None:
        settings.output_directory = output_dir.expanduser().absolute()
    if ffmpeg is not None:
        settings.ffmpeg_path = ffmpeg.expanduser().absolute()
    if store:
        save_settings(settings)

    qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    notifier = LoggingNotifier()
    scheduler = ConversionScheduler(settings, notifier=notifier)

    added = scheduler.submit_many(paths)
    if not added:
        console.print("[yellow]No convertible FLAC files were given.[/yellow]")
        raise typer.Exit(code=1)

    scheduler.running_changed.connect(lambda running: running or qt_app.quit())

    def _interrupt(*_):
        log.warning("Interrupted — cancelling conversions")
        scheduler.cancel_all()

    previous_handler = signal.signal(signal.SIGINT, _interrupt)
    # Give the Python interpreter a chance to run signal handlers.
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(200)

    QTimer.singleShot(0, scheduler.convert_all)
    qt_app.exec()

    heartbeat.stop()
    signal.signal(signal.SIGINT, previous_handler)
    scheduler.shutdown()
    QCoreApplication.sendPostedEvents()

    console.print(_summary_table(scheduler.jobs()))
    if notifier.failed or notifier.cancelled:
        raise typer.Exit(code=1)
