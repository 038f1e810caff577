"""Host-side driver for UCI chess engines running as child processes."""

from .channel import ChannelClosed, LineChannel
from .driver import EngineDriver
from .errors import (
    AccessDeniedError,
    ConfigError,
    EngineError,
    EngineNotFoundError,
    ForceKilledError,
    NotAFileError,
    OptionError,
    PipeCreateError,
    ReadError,
    ShutdownError,
    SpawnError,
    WriteError,
)
from .options import EngineOptions
from .process import QUIT_TIMEOUT, EngineProcess

__all__ = [
    "AccessDeniedError",
    "ChannelClosed",
    "ConfigError",
    "EngineDriver",
    "EngineError",
    "EngineNotFoundError",
    "EngineOptions",
    "EngineProcess",
    "ForceKilledError",
    "LineChannel",
    "NotAFileError",
    "OptionError",
    "PipeCreateError",
    "QUIT_TIMEOUT",
    "ReadError",
    "ShutdownError",
    "SpawnError",
    "WriteError",
]
