"""Root logger configuration for entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; the CLI
calls :func:`setup_logging` once at start-up.
"""

import logging
from typing import Optional


def setup_logging(config: Optional[dict] = None, verbose: bool = False) -> None:
    """Configure the root logger from the ``logging`` config section."""
    section = (config or {}).get("logging", {})
    level = "DEBUG" if verbose else section.get("level", "INFO")
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown logging level: {level}")

    logging.basicConfig(
        level=numeric,
        format=section.get("format", "%(asctime)s - %(levelname)s - %(message)s"),
        force=True,
    )
