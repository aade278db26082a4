"""
Numeric coercion shared by the orchestrator and the upstream parsers.

`coerce_int` is strict and raises for caller-supplied arguments; `to_int` and
`to_number` are lenient readers for upstream payload fields.
"""

import math
from typing import Optional, Union

from data_pipeline.common.errors import ConfigurationError


def coerce_int(name: str, value, allow_none: bool = False) -> Optional[int]:
    """
    Accept an int, an integral float, or a numeric string.

    Raises:
        ConfigurationError: For booleans, non-integral or non-finite numbers, and anything else
    """
    if value is None and allow_none:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise ConfigurationError(f"{name} must be a whole number, got {value!r}")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigurationError(f"{name} must be numeric, got {value!r}")


def to_int(value) -> Optional[int]:
    """Same rules as coerce_int, but None instead of an error."""
    try:
        return coerce_int('value', value, allow_none=True)
    except ConfigurationError:
        return None


def to_number(value) -> Optional[Union[int, float]]:
    """The value itself if it is an int or float (not a bool), else None."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None
