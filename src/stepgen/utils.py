"""Core utility functions: console logging, operator input, command lookup."""

import os
import shutil
from datetime import datetime

from rich.console import Console

console = Console()
err_console = Console(stderr=True)

_state = {"verbose": False, "log_file": ""}


def configure_logging(verbose: bool = False, log_file: str = "") -> None:
    """Set the verbosity and the optional run log file for this process.

    When *log_file* is set, every message passed to log() is also appended
    to it, with a timestamped header written once per configuration.
    """
    _state["verbose"] = verbose
    _state["log_file"] = log_file
    if log_file:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        _write_log_entry(f"\n========== [{timestamp}] stepgen ==========\n")


def logging_level() -> str:
    return "DEBUG" if _state["verbose"] else "INFO"


def _write_log_entry(text: str) -> None:
    """Append text to the run log file. Never raises."""
    log_file = _state["log_file"]
    if not log_file:
        return
    try:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(text)
    except OSError:
        pass  # Never break the pipeline over logging


def log(message: str = "", style: str = "") -> None:
    """Write a message to both the console (with optional style) and the run log."""
    if style:
        console.print(message, style=style, markup=False, highlight=False)
    else:
        console.print(message, markup=False, highlight=False)
    _write_log_entry(message + "\n")


def warn(message: str) -> None:
    log(message, style="yellow")


def debug(message: str) -> None:
    """Log a message only when verbose output is enabled."""
    if _state["verbose"]:
        log(message, style="dim")


def error(message: str) -> None:
    """Print a fatal error to stderr and record it in the run log."""
    err_console.print(message, style="bold red", markup=False, highlight=False)
    _write_log_entry(f"ERROR: {message}\n")


def get_input(prompt: str = "") -> str:
    """Read one line of text from the operator."""
    if prompt:
        console.print(prompt, markup=False, highlight=False)
    return console.input()


def check_command(name: str) -> bool:
    """Check if a command is available on PATH."""
    return shutil.which(name) is not None
