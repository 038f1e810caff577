import os
from typing import Optional

import yaml
from pydantic import ValidationError

from .config_schema import ConfigModel

DEFAULT_CONFIG_PATH = "configs/engine.yaml"


def load_config(
    config_path: Optional[str] = DEFAULT_CONFIG_PATH,
    engine_path: Optional[str] = None,
) -> dict:
    """Load and validate the engine configuration.

    Args:
        config_path: YAML file to read. ``None`` skips the file and starts
            from the built-in defaults; only allowed with ``engine_path``.
        engine_path: Overrides ``engine.path`` before validation, so an
            empty override is rejected like an empty path in the file.

    Returns:
        dict: The validated configuration with defaults applied.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If the configuration fails schema validation, or neither
            a file nor an engine path was given.
    """
    if config_path is None:
        if engine_path is None:
            raise ValueError("Either a configuration file or an engine path is required")
        raw_config: dict = {"engine": {}}
    else:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found at: {config_path}")
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}
        if not isinstance(raw_config, dict):
            raise ValueError(
                f"Invalid configuration: {config_path} must contain a mapping, "
                f"got {type(raw_config).__name__}"
            )

    if engine_path is not None:
        engine_section = raw_config.get("engine")
        if not isinstance(engine_section, dict):
            engine_section = {}
        raw_config = {**raw_config, "engine": {**engine_section, "path": engine_path}}

    try:
        validated = ConfigModel(**raw_config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    return validated.model_dump()


def default_config() -> dict:
    """Configuration used when no file is given."""
    return ConfigModel(engine={}).model_dump()
