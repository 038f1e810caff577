"""Pydantic models describing the PipeFish configuration file.

These mirror ``configs/engine.yaml``. The ``engine`` section is required so
that a config without an engine fails loudly; everything inside it carries a
default.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from uci_engine.options import EngineOptions


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field("stockfish", min_length=1)
    options: EngineOptions = EngineOptions()


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"


class ConfigModel(BaseModel):
    """Complete configuration model."""

    model_config = ConfigDict(extra="forbid")

    engine: EngineConfig
    logging: LoggingConfig = LoggingConfig()
