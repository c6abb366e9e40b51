"""
convertor.notifier
~~~~~~~~~~~~~~~~~~
The hook the presentation layer implements to follow the queue.

The scheduler calls `job_started` on every pending → converting
transition, `job_progress` on every progress step, and `job_finished`
exactly once per execution episode, when the job reaches its terminal
state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from convertor.models import ConversionJob, JobStatus

log = logging.getLogger(__name__)


class Notifier(Protocol):

    def job_started(self, job: ConversionJob) -> None: ...

    def job_progress(self, job_id: str, fraction: float) -> None: ...

    def job_finished(self, job: ConversionJob) -> None: ...


class LoggingNotifier:
    """Headless notifier: completion notices and failures go to the log."""

    def __init__(self):
        self.completed: list[ConversionJob] = []
        self.failed: list[ConversionJob] = []
        self.cancelled: list[ConversionJob] = []

    def job_started(self, job: ConversionJob) -> None:
        log.info("Converting %s → %s (%s)", job.name, job.output_format.display_name,
                 job.quality.display_name)

    def job_progress(self, job_id: str, fraction: float) -> None:
        log.debug("Job %s at %.0f%%", job_id, fraction * 100)

    def job_finished(self, job: ConversionJob) -> None:
        if job.status is JobStatus.COMPLETED:
            self.completed.append(job)
            log.info("Conversion Completed: %s has been converted successfully.", job.name)
        elif job.status is JobStatus.FAILED:
            self.failed.append(job)
            log.error("Conversion of %s failed: %s", job.name, job.error_detail)
        else:
            self.cancelled.append(job)
            log.warning("Conversion of %s was cancelled.", job.name)
