"""Exceptions raised by pymon."""


class PymonError(Exception):
    """Base class for all pymon errors."""


class StatePoisonedError(PymonError):
    """
    The shared monitor state can no longer be trusted.

    Raised by every access to a MonitorState after a failure escaped one of
    its locked sections. There is no recovery; the process should stop
    reporting statistics.
    """

    def __init__(self, cause: BaseException | None = None) -> None:
        self.cause = cause
        message = "monitor state is poisoned"
        if cause is not None:
            message = f"{message}: {type(cause).__name__}: {cause}"
        super().__init__(message)


class ConfigError(PymonError, ValueError):
    """Invalid configuration value."""
