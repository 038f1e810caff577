"""Engine options recognised by :class:`uci_engine.driver.EngineDriver`."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .errors import OptionError

MULTIPV_MIN = 1
MULTIPV_MAX = 256


class EngineOptions(BaseModel):
    """Validated option record.

    ``depth`` is a per-search parameter kept for higher layers (``go depth``);
    it is never sent as a UCI option and has no bounds. ``multipv`` maps to
    the engine's ``MultiPV`` option.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    depth: StrictInt = 20
    multipv: StrictInt = Field(1, ge=MULTIPV_MIN, le=MULTIPV_MAX)

    def with_option(self, name: str, value: Any) -> "EngineOptions":
        """Return a copy with *name* set to *value*.

        Raises:
            OptionError: unknown *name*, non-integer *value* or out-of-range
                ``multipv``. ``self`` is never modified.
        """
        if name not in type(self).model_fields:
            raise OptionError(f"invalid option '{name}'")

        try:
            return type(self).model_validate({**self.model_dump(), name: value})
        except ValidationError as err:
            raise OptionError(_describe(name, value, err)) from err


def _describe(name: str, value: Any, err: ValidationError) -> str:
    for detail in err.errors():
        if detail["type"] == "int_type":
            return (
                f"option '{name}' requires integer value, "
                f"got {type(value).__name__}"
            )
        if detail["type"] in ("greater_than_equal", "less_than_equal"):
            return (
                f"{name} value must be between {MULTIPV_MIN} and "
                f"{MULTIPV_MAX} (got {value})"
            )
    return f"invalid value {value!r} for option '{name}': {err.errors()[0]['msg']}"
