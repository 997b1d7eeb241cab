"""Background shell jobs and interactive terminal commands.

A job runs on its own daemon thread; its completion is delivered to the main
loop as a ``JobResult`` so the callback runs under the mutation lock. An
interactive command borrows the real terminal instead, and its end is
announced on the terminal-close channel.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .runtime.channels import Channel
from .util import STREAM_ENCODING

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobResult:
    output: str
    args: list[str]
    callback: Callable[[str, list[str]], None]


class SuspendableScreen(Protocol):
    def temp_fini(self) -> None: ...

    def temp_start(self) -> None: ...


def decode_output(data: bytes) -> str:
    return data.decode(STREAM_ENCODING, errors="replace")


class JobRunner:
    """Start background commands and feed their results to the jobs channel."""

    def __init__(self, jobs: Channel, close_terms: Channel) -> None:
        self.jobs = jobs
        self.close_terms = close_terms
        self._next_id = 1
        self._lock = threading.Lock()

    def _run(self, command: list[str], args: list[str], callback: Callable[[str, list[str]], None]) -> None:
        output = f"{command[0]}: job failed"
        try:
            proc = subprocess.run(command, capture_output=True, check=False)
            output = decode_output(proc.stdout + proc.stderr)
        except OSError as exc:
            output = f"{command[0]}: {exc.strerror or exc}"
        finally:
            log.debug("job %s finished", command)
            self.jobs.put(JobResult(output=output, args=args, callback=callback))

    def run_background(
        self,
        command: list[str],
        args: list[str],
        callback: Callable[[str, list[str]], None],
    ) -> int:
        """Run ``command`` off-thread; returns the job id."""
        with self._lock:
            job_id = self._next_id
            self._next_id += 1
        worker = threading.Thread(
            target=self._run,
            args=(list(command), list(args), callback),
            name=f"termedit-job-{job_id}",
            daemon=True,
        )
        worker.start()
        return job_id

    def run_interactive(self, screen: SuspendableScreen, command: list[str]) -> int:
        """Hand the terminal to ``command`` until it exits; returns its exit status.

        The screen is restored and the terminal-close notification posted even
        when the command cannot be started; that ``OSError`` propagates.
        """
        screen.temp_fini()
        try:
            return subprocess.run(list(command), check=False).returncode
        finally:
            try:
                screen.temp_start()
            finally:
                self.notify_terminal_closed()

    def notify_terminal_closed(self) -> None:
        """Signal that a borrowed terminal was released; the loop just re-renders."""
        self.close_terms.offer(True)


__all__ = ["JobResult", "JobRunner", "SuspendableScreen", "decode_output"]
