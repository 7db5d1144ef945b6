from __future__ import annotations

from typing import Any

from .paths import Index, parse_path
from .schema_utils import is_date_key


def _step(current: Any, segment: str, default: Any) -> Any:
    if isinstance(current, dict) and segment in current:
        return current[segment]

    if not (segment.isascii() and segment.isdigit()):
        return default

    position = int(segment)
    if isinstance(current, list):
        return current[position] if position < len(current) else default

    if isinstance(current, dict) and current:
        # Date-keyed objects are addressed positionally, like arrays.
        keys = list(current)
        if is_date_key(keys[0]) and position < len(keys):
            return current[keys[position]]
    return default


def get_value_by_path(data: Any, path: str, default: Any = None) -> Any:
    """Retrieve a value from nested data using a `~>` path.

    Numeric segments (including `[N]` markers) resolve as a literal dict key
    first, then as a list index, then as the Nth key of a date-keyed object.
    Returns `default` instead of raising when any step fails.
    """
    if not isinstance(data, (dict, list)):
        return default

    tokens = parse_path(path)
    if not tokens:
        return default

    current = data
    for token in tokens:
        if not isinstance(current, (dict, list)):
            return default
        segment = str(token.position) if isinstance(token, Index) else token.name
        current = _step(current, segment, default)
        if current is default:
            return default
    return current
