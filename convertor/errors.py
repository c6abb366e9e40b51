"""
convertor.errors
~~~~~~~~~~~~~~~~
Job-scoped errors. Every one of them is terminal for the job that raised
it; `str(err)` is what ends up in the job's error_detail.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base exception for everything that can fail a single conversion."""

    message = "Conversion failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class FFmpegNotFound(ConversionError):
    message = "FFmpeg executable not found."


class FFmpegNotExecutable(ConversionError):
    message = "FFmpeg executable is not executable."


class InputFileDoesNotExist(ConversionError):
    message = "Input file does not exist."


class InputFileNotReadable(ConversionError):
    message = "Input file is not readable."


class CannotCreateOutputDirectory(ConversionError):
    """Wraps the OSError raised while creating the output directory."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Cannot create output directory: {cause}")


class OutputDirectoryNotAccessible(ConversionError):
    message = (
        "Output directory is not accessible. "
        "Please select a different directory in settings."
    )


class FFmpegProcessFailed(ConversionError):
    """Non-zero exit, or a zero exit that produced no output file."""

    def __init__(self, exit_code: int, diagnostics: str):
        self.exit_code = exit_code
        self.diagnostics = diagnostics
        super().__init__(
            f"FFmpeg process failed with exit code {exit_code}: \n{diagnostics}"
        )


class FFmpegProcessStartFailed(ConversionError):
    """Wraps the OSError raised by the process launch itself."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Failed to start FFmpeg process: {cause}")


class DurationParsingFailed(ConversionError):
    message = "Could not parse media duration."
