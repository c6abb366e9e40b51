"""
convertor.runner
~~~~~~~~~~~~~~~~
ProcessRunner owns exactly one external ffmpeg invocation.

    runner = ProcessRunner(cmd, on_chunk=tracker.feed)
    runner.start()          # returns as soon as the process is launched
    result = runner.wait()  # drains stderr, then reaps the process

`cancel()` may be called from any thread at any time; `wait()` still
returns (with ``cancelled=True``) once the process has gone.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable

from convertor.errors import FFmpegProcessStartFailed

log = logging.getLogger(__name__)

CHUNK_SIZE = 4096
KILL_GRACE_SECONDS = 5.0


@dataclass(frozen=True)
class RunResult:
    exit_code: int
    diagnostics: str
    cancelled: bool = False


class ProcessRunner:

    def __init__(self, command: list[str], on_chunk: Callable[[bytes], object] | None = None):
        self.command = command
        self._on_chunk = on_chunk
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._cancelled = False
        self._result: RunResult | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """
        Launch the process.

        Raises:
            FFmpegProcessStartFailed – the OS refused to start it
        """
        with self._lock:
            if self._cancelled:
                log.info("[RUNNER] Cancelled before launch — not starting")
                return
            try:
                self._process = subprocess.Popen(
                    self.command,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as exc:
                raise FFmpegProcessStartFailed(exc) from exc
        log.debug("[RUNNER] PID = %s", self._process.pid)

    def wait(self) -> RunResult:
        """
        Read the diagnostic stream until EOF, then wait for the exit code.
        Returns the same RunResult on every call.
        """
        if self._result is not None:
            return self._result

        if self._process is None:
            self._result = RunResult(exit_code=-1, diagnostics="", cancelled=self._cancelled)
            return self._result

        chunks: list[bytes] = []
        stream = self._process.stderr
        while True:
            chunk = stream.read1(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            if self._on_chunk is not None:
                self._on_chunk(chunk)
        stream.close()

        exit_code = self._process.wait()
        diagnostics = b"".join(chunks).decode("utf-8", errors="replace")
        log.debug("[RUNNER] PID %s exited with code %s", self._process.pid, exit_code)

        self._result = RunResult(exit_code, diagnostics, cancelled=self._cancelled)
        return self._result

    def run(self) -> RunResult:
        self.start()
        return self.wait()

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self) -> None:
        """Ask the process to stop; escalate to kill if it ignores SIGTERM."""
        with self._lock:
            self._cancelled = True
            process = self._process
            if process is None or process.poll() is not None:
                log.debug("[RUNNER] cancel() — no running process to terminate")
                return
            process.terminate()
        log.info("[RUNNER] Sent terminate to PID %s", process.pid)

        timer = threading.Timer(KILL_GRACE_SECONDS, self._kill_if_alive, args=(process,))
        timer.daemon = True
        timer.start()

    @staticmethod
    def _kill_if_alive(process: subprocess.Popen) -> None:
        if process.poll() is None:
            log.warning("[RUNNER] PID %s ignored terminate — killing", process.pid)
            process.kill()
