"""
convertor.scheduler
~~~~~~~~~~~~~~~~~~~
ConversionScheduler owns the job list and decides when each job runs.

All bookkeeping happens on the thread the scheduler lives on. Workers run
on their own threads and talk back only through queued signals, so two
jobs finishing at once are handled one after the other and can never both
claim the same free slot.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Qt, Signal, Slot

from convertor.models import AudioQuality, ConversionJob, ConversionOutcome, JobStatus, OutputFormat
from convertor.paths import default_output_directory
from convertor.scanner import expand_inputs, is_supported_input
from convertor.settings import MAX_CONCURRENT_TASKS, MIN_CONCURRENT_TASKS, Settings
from convertor.worker import ConversionWorker

log = logging.getLogger(__name__)

# (job, output_directory, ffmpeg_path, parent) → worker
WorkerFactory = Callable[..., ConversionWorker]


class ConversionScheduler(QObject):

    job_added       = Signal(object)        # ConversionJob snapshot
    job_removed     = Signal(str)           # job id
    job_updated     = Signal(object)        # snapshot after update_job
    job_started     = Signal(object)        # snapshot, status CONVERTING
    job_progress    = Signal(str, float)    # job id, 0.0 – 1.0
    job_finished    = Signal(object)        # snapshot in its terminal state
    running_changed = Signal(bool)

    def __init__(
        self,
        settings: Settings | None = None,
        notifier=None,
        worker_factory: WorkerFactory = ConversionWorker,
        parent=None,
    ):
        super().__init__(parent)
        self.settings = settings or Settings()
        self._worker_factory = worker_factory

        self._jobs: dict[str, ConversionJob] = {}          # insertion order = submission order
        self._workers: dict[str, ConversionWorker] = {}    # cancel handles, one per live episode
        self._busy_paths: dict[str, Path] = {}             # source of every live episode, by job id
        self._running = False

        if notifier is not None:
            self.attach_notifier(notifier)

    # ── Observers ─────────────────────────────────────────────────────────────

    def attach_notifier(self, notifier) -> None:
        self.job_started.connect(notifier.job_started)
        self.job_progress.connect(notifier.job_progress)
        self.job_finished.connect(notifier.job_finished)

    # ── Queries ───────────────────────────────────────────────────────────────

    def jobs(self) -> list[ConversionJob]:
        return [replace(job) for job in self._jobs.values()]

    def job(self, job_id: str) -> ConversionJob | None:
        job = self._jobs.get(job_id)
        return replace(job) if job else None

    @property
    def active_count(self) -> int:
        return len(self._workers)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def max_concurrent_tasks(self) -> int:
        return self.settings.max_concurrent_tasks

    # ── Job list mutations ────────────────────────────────────────────────────

    def submit(
        self,
        source_path: Path | str,
        output_format: OutputFormat | None = None,
        quality: AudioQuality | None = None,
    ) -> ConversionJob | None:
        """
        Queue *source_path* as a new pending job.

        Returns a snapshot of the job, or None if the file is not a
        supported input, is already in the list, or a removed job for the
        same file is still winding down.
        """
        path = Path(source_path).expanduser().absolute()

        if not is_supported_input(path):
            log.info("[SCHEDULER] Ignoring unsupported file '%s'", path.name)
            return None
        if any(job.source_path == path for job in self._jobs.values()):
            log.debug("[SCHEDULER] '%s' is already queued — skipping", path)
            return None
        if path in self._busy_paths.values():
            log.info("[SCHEDULER] '%s' is still being cancelled — skipping", path.name)
            return None

        job = ConversionJob(
            source_path=path,
            output_format=output_format or self.settings.default_output_format,
            quality=quality or self.settings.audio_quality,
        )
        self._jobs[job.id] = job
        log.info("[SCHEDULER] submit: '%s' as %s/%s (id=%s)",
                 path.name, job.output_format.value, job.quality.value, job.id)
        self.job_added.emit(replace(job))
        return replace(job)

    def submit_many(self, paths: list[Path | str]) -> list[ConversionJob]:
        """Submit files and the supported files inside folders, in order."""
        added = []
        for path in expand_inputs([Path(p).expanduser() for p in paths]):
            job = self.submit(path)
            if job is not None:
                added.append(job)
        return added

    def update_job(
        self,
        job_id: str,
        output_format: OutputFormat | None = None,
        quality: AudioQuality | None = None,
    ) -> bool:
        """Change the requested format/quality of a job that has not started."""
        job = self._jobs.get(job_id)
        if job is None or job.status is not JobStatus.PENDING:
            return False
        if output_format is not None:
            job.output_format = output_format
        if quality is not None:
            job.quality = quality
        self.job_updated.emit(replace(job))
        return True

    def remove(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        log.info("[SCHEDULER] remove: '%s'", job.name)
        if job.status is JobStatus.CONVERTING:
            self.cancel(job_id)
        del self._jobs[job_id]
        self.job_removed.emit(job_id)
        self._check_idle()

    def remove_all(self) -> None:
        log.info("[SCHEDULER] remove_all: %d job(s)", len(self._jobs))
        self.cancel_all()
        for job_id in list(self._jobs):
            del self._jobs[job_id]
            self.job_removed.emit(job_id)

    def clear_finished(self) -> None:
        for job_id in [j.id for j in self._jobs.values() if j.status.is_terminal]:
            del self._jobs[job_id]
            self.job_removed.emit(job_id)

    # ── Running ───────────────────────────────────────────────────────────────

    def convert_all(self) -> None:
        if self._running:
            log.debug("[SCHEDULER] convert_all: already running — skipping")
            return
        log.info("[SCHEDULER] convert_all: up to %d at a time", self.max_concurrent_tasks)
        self._set_running(True)
        for _ in range(self.max_concurrent_tasks):
            self._admit_next()
        self._check_idle()

    def cancel(self, job_id: str) -> None:
        """
        Stop a converting job. It becomes CANCELLED once its worker reports
        back. Pending and finished jobs are left as they are.
        """
        worker = self._workers.get(job_id)
        if worker is None:
            log.debug("[SCHEDULER] cancel: job %s is not converting — ignoring", job_id)
            return
        worker.cancel()

    def cancel_all(self) -> None:
        """
        Cancel every converting job and stop admitting new ones right away.

        The slots stay occupied until each cancelled worker has actually
        exited, so a convert_all() issued meanwhile cannot overshoot the
        concurrency limit.
        """
        log.info("[SCHEDULER] cancel_all: %d converting job(s)", len(self._workers))
        for worker in list(self._workers.values()):
            worker.cancel()
        self._set_running(False)

    def set_max_concurrent_tasks(self, value: int) -> None:
        if not MIN_CONCURRENT_TASKS <= value <= MAX_CONCURRENT_TASKS:
            raise ValueError(
                f"max_concurrent_tasks must be between {MIN_CONCURRENT_TASKS} "
                f"and {MAX_CONCURRENT_TASKS}, got {value}"
            )
        self.settings.max_concurrent_tasks = value
        while self._running and self.active_count < value and self._admit_next():
            pass

    def shutdown(self, timeout_ms: int = 10000) -> None:
        """Cancel everything and block until the worker threads have exited."""
        self.cancel_all()
        for worker in list(self._workers.values()):
            worker.wait(timeout_ms)

    # ── Admission ─────────────────────────────────────────────────────────────

    def _admit_next(self) -> bool:
        """Start the oldest pending job if a slot is free. Returns True if one started."""
        if not self._running or self.active_count >= self.max_concurrent_tasks:
            return False

        job = next((j for j in self._jobs.values() if j.status is JobStatus.PENDING), None)
        if job is None:
            return False

        worker = self._worker_factory(
            job,
            self.settings.output_directory or default_output_directory(),
            self.settings.ffmpeg_path,
            parent=self,
        )
        worker.progress_changed.connect(self._on_worker_progress, Qt.ConnectionType.QueuedConnection)
        worker.outcome_ready.connect(self._on_worker_outcome, Qt.ConnectionType.QueuedConnection)
        worker.finished.connect(worker.deleteLater)

        self._workers[job.id] = worker
        self._busy_paths[job.id] = job.source_path
        job.status = JobStatus.CONVERTING
        job.progress = 0.0
        job.error_detail = None
        log.info("[SCHEDULER] Admitting '%s' (%d/%d active)",
                 job.name, self.active_count, self.max_concurrent_tasks)
        self.job_started.emit(replace(job))
        worker.start()
        return True

    # ── Worker callbacks (always on the scheduler's thread) ───────────────────

    @Slot(str, float)
    def _on_worker_progress(self, job_id: str, fraction: float) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status is not JobStatus.CONVERTING:
            return
        if fraction <= job.progress:
            return
        job.progress = min(fraction, 1.0)
        self.job_progress.emit(job_id, job.progress)

    @Slot(str, object)
    def _on_worker_outcome(self, job_id: str, outcome: ConversionOutcome) -> None:
        worker = self._workers.pop(job_id, None)
        self._busy_paths.pop(job_id, None)
        if worker is None:
            log.warning("[SCHEDULER] Outcome for unknown episode %s — ignoring", job_id)
            return

        job = self._jobs.get(job_id)
        if job is None:
            log.info("[SCHEDULER] Worker for removed job %s finished", job_id)
        elif job.status is JobStatus.CONVERTING:
            self._finish_job(job, outcome)

        self._admit_next()
        self._check_idle()

    def _finish_job(self, job: ConversionJob, outcome: ConversionOutcome) -> None:
        job.status = outcome.status
        job.progress = 0.0
        job.output_path = outcome.output_path
        job.error_detail = outcome.error_detail if outcome.status is JobStatus.FAILED else None
        log.info("[SCHEDULER] '%s' → %s", job.name, job.status.value)
        self.job_finished.emit(replace(job))

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _check_idle(self) -> None:
        if not self._running or self._workers:
            return
        if any(j.status is JobStatus.PENDING for j in self._jobs.values()):
            return
        log.info("[SCHEDULER] Queue drained")
        self._set_running(False)

    def _set_running(self, running: bool) -> None:
        if running == self._running:
            return
        self._running = running
        self.running_changed.emit(running)
