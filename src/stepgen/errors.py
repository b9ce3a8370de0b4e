"""Exception types raised by the pipeline.

None of these are caught inside the engine. They propagate up through the
step and the runner to the CLI, which prints them and exits non-zero.
"""


class StepgenError(Exception):
    """Base class for every fatal pipeline error."""


class NotFoundError(StepgenError, KeyError):
    """A required store key is missing (input prompt, replayed transcript, ...)."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class InvalidConfigurationError(StepgenError, ValueError):
    """The requested step configuration does not exist."""


class TransportError(StepgenError):
    """The chat-completion request failed (connection error, non-2xx status)."""


class MalformedResponseError(StepgenError):
    """The chat-completion response did not have the expected shape."""
