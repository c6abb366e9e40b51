from .models import ConversionJob, ConversionOutcome, JobStatus, OutputFormat, AudioQuality
from .errors import ConversionError
from .settings import Settings, load_settings, save_settings
from .progress import parse_duration, parse_progress, ProgressTracker
from .runner import ProcessRunner, RunResult
from .worker import ConversionWorker
from .scheduler import ConversionScheduler
from .notifier import Notifier, LoggingNotifier

__all__ = [
    "ConversionJob", "ConversionOutcome", "JobStatus", "OutputFormat", "AudioQuality",
    "ConversionError",
    "Settings", "load_settings", "save_settings",
    "parse_duration", "parse_progress", "ProgressTracker",
    "ProcessRunner", "RunResult",
    "ConversionWorker",
    "ConversionScheduler",
    "Notifier", "LoggingNotifier",
]
