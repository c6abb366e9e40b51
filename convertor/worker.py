"""
convertor.worker
~~~~~~~~~~~~~~~~
QThread that carries one job through its whole execution episode —
validation, probes, the ffmpeg run and the final verdict — and reports
back only through signals.

Signals
-------
progress_changed(str, float)   job id, 0.0 – 1.0 as ffmpeg advances
outcome_ready(str, object)     job id, ConversionOutcome; emitted exactly once,
                               as the last thing run() does
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from convertor.command_builder import build_conversion_command, command_as_string
from convertor.errors import (
    CannotCreateOutputDirectory,
    ConversionError,
    FFmpegProcessFailed,
    InputFileDoesNotExist,
    InputFileNotReadable,
    OutputDirectoryNotAccessible,
)
from convertor.models import AudioQuality, ConversionJob, ConversionOutcome, JobStatus, OutputFormat
from convertor.paths import resolve_ffmpeg
from convertor.probe import has_attached_picture, probe_duration
from convertor.progress import ProgressTracker
from convertor.runner import ProcessRunner
from convertor.scanner import build_output_path

log = logging.getLogger(__name__)


class ConversionWorker(QThread):

    progress_changed = Signal(str, float)
    outcome_ready    = Signal(str, object)

    def __init__(
        self,
        job: ConversionJob,
        output_directory: Path,
        ffmpeg_path: Path | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.job_id = job.id
        self._source: Path = job.source_path
        self._format: OutputFormat = job.output_format
        self._quality: AudioQuality = job.quality
        self._output_directory = output_directory
        self._ffmpeg_path = ffmpeg_path

        self._lock = threading.Lock()
        self._cancelled = False
        self._runner: ProcessRunner | None = None

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        log.info("[WORKER] Thread started for '%s'", self._source.name)
        try:
            outcome = self._execute()
        except ConversionError as exc:
            log.warning("[WORKER] '%s' failed: %s", self._source.name, exc)
            outcome = ConversionOutcome(JobStatus.FAILED, error_detail=str(exc))
        except Exception as exc:
            log.exception("[WORKER] Unexpected error converting '%s'", self._source.name)
            outcome = ConversionOutcome(JobStatus.FAILED, error_detail=str(exc) or repr(exc))

        if self._cancelled and outcome.status is not JobStatus.COMPLETED:
            outcome = ConversionOutcome(JobStatus.CANCELLED)

        log.info("[WORKER] '%s' → %s", self._source.name, outcome.status.value)
        self.outcome_ready.emit(self.job_id, outcome)

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self):
        """Safe from any thread; the outcome still arrives through outcome_ready."""
        log.info("[WORKER] cancel() called for '%s'", self._source.name)
        with self._lock:
            self._cancelled = True
            runner = self._runner
        if runner is not None:
            runner.cancel()

    # ── Internal ──────────────────────────────────────────────────────────────

    def _execute(self) -> ConversionOutcome:
        ffmpeg = resolve_ffmpeg(self._ffmpeg_path)
        self._check_input()

        output_file = build_output_path(self._source, self._output_directory, self._format)
        log.debug("[WORKER] Output file: %s", output_file)
        _ensure_output_directory(self._output_directory)

        if self._cancelled:
            return ConversionOutcome(JobStatus.CANCELLED)

        duration = probe_duration(ffmpeg, self._source)
        picture = has_attached_picture(ffmpeg, self._source)

        cmd = build_conversion_command(
            ffmpeg, self._source, output_file, self._format, self._quality, picture
        )
        log.info("[WORKER] Command: %s", command_as_string(cmd))

        tracker = ProgressTracker(duration)

        def _on_chunk(chunk: bytes):
            fraction = tracker.feed(chunk)
            if fraction is not None:
                self.progress_changed.emit(self.job_id, fraction)

        runner = ProcessRunner(cmd, on_chunk=_on_chunk)
        with self._lock:
            if self._cancelled:
                return ConversionOutcome(JobStatus.CANCELLED)
            self._runner = runner
        runner.start()
        result = runner.wait()

        if result.cancelled:
            return ConversionOutcome(JobStatus.CANCELLED)

        if result.exit_code != 0:
            raise FFmpegProcessFailed(result.exit_code, result.diagnostics)

        # ffmpeg can exit 0 without writing anything; trust the disk, not the code.
        if not output_file.is_file():
            log.error("[WORKER] ffmpeg reported success but '%s' is missing", output_file)
            raise FFmpegProcessFailed(0, "Output file not created")

        log.info("[WORKER] Wrote '%s' (%d bytes)", output_file, output_file.stat().st_size)
        return ConversionOutcome(JobStatus.COMPLETED, output_path=output_file)

    def _check_input(self):
        if not self._source.is_file():
            raise InputFileDoesNotExist()
        if not os.access(self._source, os.R_OK):
            raise InputFileNotReadable()


def _ensure_output_directory(directory: Path) -> None:
    """
    An existing directory must be writable; a missing one is created with
    its parents.
    """
    if directory.is_dir():
        if not os.access(directory, os.W_OK | os.X_OK):
            log.error("[WORKER] Output directory not writable: %s", directory)
            raise OutputDirectoryNotAccessible()
        return
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CannotCreateOutputDirectory(exc) from exc
