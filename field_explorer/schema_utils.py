from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Tuple

from .paths import join_path, mark_sample

DEFAULT_SCALAR_KEY = 'value'
DEFAULT_CONTAINER_KEY = 'data'

DATE_KEY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}')


class Kind(Enum):
    NULL = 'null'
    SCALAR = 'scalar'
    OBJECT = 'object'
    ARRAY = 'array'
    TIMESERIES = 'timeseries'


def is_date_key(key: Any) -> bool:
    return isinstance(key, str) and DATE_KEY_RE.match(key) is not None


def is_time_series(obj: Any) -> bool:
    """True for dicts with at least two keys that all start with YYYY-MM-DD."""
    if not isinstance(obj, dict) or len(obj) < 2:
        return False
    return all(is_date_key(k) for k in obj)


def classify(value: Any) -> Kind:
    # Order matters: the time-series check runs before generic object handling.
    if value is None:
        return Kind.NULL
    if isinstance(value, list):
        return Kind.ARRAY
    if isinstance(value, dict):
        return Kind.TIMESERIES if is_time_series(value) else Kind.OBJECT
    return Kind.SCALAR


def json_type(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, list):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    return type(value).__name__


def _entry(value: Any, type_name: str) -> Dict[str, Any]:
    return {'value': value, 'type': type_name}


def _add_sample_columns(index: Dict[str, Dict[str, Any]], sample: Dict[str, Any], path: str) -> None:
    for key, val in sample.items():
        index[join_path(mark_sample(path), key)] = _entry(val, json_type(val))


def _flatten_array(index: Dict[str, Dict[str, Any]], arr: list, path: str) -> None:
    index[path or DEFAULT_CONTAINER_KEY] = _entry(arr, 'array')
    if arr and isinstance(arr[0], dict):
        _add_sample_columns(index, arr[0], path)


def _flatten_time_series(index: Dict[str, Dict[str, Any]], obj: Dict[str, Any], path: str) -> None:
    index[path or DEFAULT_CONTAINER_KEY] = _entry(obj, 'timeseries')
    first_date = next(iter(obj))
    sample = obj[first_date]
    if isinstance(sample, dict):
        index[join_path(mark_sample(path), 'date')] = _entry(first_date, 'string')
        _add_sample_columns(index, sample, path)


def _flatten_into(index: Dict[str, Dict[str, Any]], data: Any, path: str) -> None:
    kind = classify(data)

    if kind is Kind.NULL or kind is Kind.SCALAR:
        index[path or DEFAULT_SCALAR_KEY] = _entry(data, json_type(data))
    elif kind is Kind.ARRAY:
        _flatten_array(index, data, path)
    elif kind is Kind.TIMESERIES:
        _flatten_time_series(index, data, path)
    else:
        # Plain objects are inlined: only their leaves get entries.
        for key, value in data.items():
            _flatten_into(index, value, join_path(path, key))


def flatten(data: Any) -> Dict[str, Dict[str, Any]]:
    """Flatten a JSON document into {path: {'value': ..., 'type': ...}}.

    Arrays of objects and date-keyed objects are sampled from their first
    element, whose keys appear under `<path>[0]~><key>`.
    """
    index: Dict[str, Dict[str, Any]] = {}
    _flatten_into(index, data, '')
    return index


def filter_index(index: Dict[str, Dict[str, Any]], search: str = '', arrays_only: bool = False) -> List[Tuple[str, Dict[str, Any]]]:
    """Search the flattened index by path substring, sorted by path."""
    needle = (search or '').lower()
    matches = []
    for path, entry in index.items():
        if needle and needle not in path.lower():
            continue
        if arrays_only and entry['type'] not in ('array', 'timeseries'):
            continue
        matches.append((path, entry))
    return sorted(matches, key=lambda item: item[0].lower())
