"""Run the generated entrypoint script attached to the operator's terminal."""

import contextlib
import signal
import subprocess
import threading
from collections.abc import Generator

from stepgen.config import ENTRYPOINT_KEY
from stepgen.utils import check_command, log

_POLL_INTERVAL_SECONDS = 0.1


class CancellationToken:
    """A one-shot flag the operator sets to stop a running entrypoint."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


@contextlib.contextmanager
def sigint_cancels(token: CancellationToken) -> Generator[None, None, None]:
    """Route Ctrl+C to *token* instead of KeyboardInterrupt while active.

    Only installs a handler when running in the main thread; the previous
    handler is restored on exit.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame) -> None:
        log()
        log("Stopping execution.", style="yellow")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def build_entrypoint_command() -> list[str]:
    """Return the argv used to run the workspace's entrypoint script."""
    shell = "bash" if check_command("bash") else "sh"
    return [shell, ENTRYPOINT_KEY]


def run_entrypoint(working_dir: str, token: CancellationToken) -> int | None:
    """Run the entrypoint in *working_dir* until it exits or *token* is cancelled.

    The child inherits stdin, stdout and stderr, so its output streams live
    to the terminal. Returns the exit code, or None when cancelled. The
    child is always reaped before returning.
    """
    proc = subprocess.Popen(build_entrypoint_command(), cwd=working_dir)
    try:
        while proc.poll() is None:
            if token.wait(_POLL_INTERVAL_SECONDS):
                proc.terminate()
                proc.wait()
                log("Execution stopped.", style="yellow")
                return None
        return proc.returncode
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
