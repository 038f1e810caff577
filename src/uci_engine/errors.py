"""Exception hierarchy for the UCI engine host.

Every error raised by :mod:`uci_engine` derives from :class:`EngineError`.
Where a builtin exception describes the same failure (a missing file, a bad
value) it is mixed in, so callers can keep catching ``FileNotFoundError`` or
``ValueError`` as they would for any other library.
"""

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for all engine host errors."""


class ConfigError(EngineError, ValueError):
    """The engine path is empty or otherwise unusable."""


class EngineNotFoundError(EngineError, FileNotFoundError):
    """The engine path does not exist."""


class NotAFileError(EngineError, IsADirectoryError):
    """The engine path names a directory."""


class AccessDeniedError(EngineError, PermissionError):
    """The engine path cannot be inspected."""


class PipeCreateError(EngineError, OSError):
    """One of the three standard stream pipes could not be created."""


class SpawnError(EngineError):
    """The child process could not be launched."""


class WriteError(EngineError):
    """Writing to the engine's stdin failed or the handle is closed."""


class OptionError(EngineError, ValueError):
    """Unknown option, wrong value kind, or value out of range."""


class ReadError(EngineError):
    """Unexpected failure reading the engine's stdout."""


class ShutdownError(EngineError):
    """The engine did not shut down cleanly."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class ForceKilledError(ShutdownError):
    """The engine ignored ``quit`` and had to be killed."""
