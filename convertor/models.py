"""
convertor.models
~~~~~~~~~~~~~~~~
Pure dataclasses and enums — no Qt, no I/O.
These travel freely between the scheduler, its workers and observers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


# ── Enums ─────────────────────────────────────────────────────────────────────

class JobStatus(Enum):
    PENDING    = "pending"     # submitted, waiting for a free slot
    CONVERTING = "converting"  # owns a worker thread and a subprocess
    COMPLETED  = "completed"
    FAILED     = "failed"
    CANCELLED  = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


class OutputFormat(Enum):
    AAC  = "aac"
    ALAC = "alac"

    @property
    def display_name(self) -> str:
        return "AAC" if self is OutputFormat.AAC else "Apple Lossless"

    @property
    def codec(self) -> str:
        return self.value

    @property
    def container_extension(self) -> str:
        # Both codecs are carried in the MPEG-4 audio container.
        return ".m4a"


class AudioQuality(Enum):
    """Ordered quality tiers, lowest → lossless."""
    LOW       = "low"
    MEDIUM    = "medium"
    HIGH      = "high"
    VERY_HIGH = "very-high"
    LOSSLESS  = "lossless"

    @property
    def bitrate_kbps(self) -> int:
        """Target bitrate in kbit/s; 0 means no bitrate cap."""
        return _BITRATES[self]

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()


_BITRATES: dict[AudioQuality, int] = {
    AudioQuality.LOW:       96,
    AudioQuality.MEDIUM:    128,
    AudioQuality.HIGH:      192,
    AudioQuality.VERY_HIGH: 256,
    AudioQuality.LOSSLESS:  0,
}


# ── Conversion job ────────────────────────────────────────────────────────────

def _new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ConversionJob:
    """
    One requested file conversion and its tracked lifecycle.

    The scheduler owns the live instances; everything handed to observers
    is a copy, so mutating a received job has no effect on the queue.

    `progress` is only meaningful while CONVERTING (0.0 – 1.0) and
    `error_detail` is only set while FAILED.
    """
    source_path: Path
    output_format: OutputFormat
    quality: AudioQuality
    id: str = field(default_factory=_new_job_id)

    # Runtime state — managed by the scheduler
    status: JobStatus = field(default=JobStatus.PENDING, compare=False)
    progress: float = field(default=0.0, compare=False)
    error_detail: str | None = field(default=None, compare=False)
    output_path: Path | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.source_path.name


# ── Worker result ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConversionOutcome:
    """What a worker reports once its execution episode is over."""
    status: JobStatus              # COMPLETED, FAILED or CANCELLED
    output_path: Path | None = None
    error_detail: str | None = None
