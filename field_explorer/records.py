from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .accessors import get_value_by_path
from .models import Field
from .paths import SAMPLE_INDEX, Key, format_path, has_marker, parse_path, split_at_marker
from .schema_utils import is_date_key, is_time_series

_MISSING = object()


def time_series_to_rows(obj: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Turn a date-keyed object into `[{'date': key, **value}, ...]` in key order."""
    rows: List[Dict[str, Any]] = []
    for date_key, value in obj.items():
        row: Dict[str, Any] = {'date': date_key}
        if isinstance(value, dict):
            row.update(value)
        rows.append(row)
    return rows


def resolve_items_by_root(data: Any, root_path: str) -> Optional[List[Any]]:
    target = get_value_by_path(data, root_path) if root_path else data
    if is_time_series(target):
        return time_series_to_rows(target)
    if isinstance(target, list):
        return target
    return None


def element_path(field_path: str) -> str:
    """Path of a field relative to one element of its repeating container."""
    if not has_marker(field_path):
        return field_path
    tokens = parse_path(field_path)
    rel = tokens[tokens.index(SAMPLE_INDEX) + 1:]
    if len(rel) > 1 and isinstance(rel[0], Key) and is_date_key(rel[0].name):
        # A path pinned to one sample date applies to every date row.
        rel = rel[1:]
    return format_path(rel)


def resolve_field_value(item: Any, field_path: str) -> Any:
    rel_path = element_path(field_path)
    if not rel_path:
        return item
    return get_value_by_path(item, rel_path)


def _rows_from_items(items: Sequence[Any], fields: Sequence[Field], relative: bool) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for index, item in enumerate(items):
        row: Dict[str, Any] = {'_index': index}
        for field in fields:
            if relative:
                row[field.label] = resolve_field_value(item, field.path)
            else:
                row[field.label] = get_value_by_path(item, field.path)
        rows.append(row)
    return rows


def extract_array_rows(data: Any, fields: Sequence[Field]) -> List[Dict[str, Any]]:
    """Build one row per element of the repeating container the fields address.

    The first field whose path carries a `[0]` marker decides the container;
    a date-keyed object is converted to date rows first. Without such a field
    a list document is iterated directly.
    """
    if data is None or not fields:
        return []

    array_field = next((f for f in fields if has_marker(f.path)), None)
    if array_field is not None:
        root_path, _ = split_at_marker(array_field.path)
        items = resolve_items_by_root(data, root_path)
        if items is not None:
            return _rows_from_items(items, fields, relative=True)

    if isinstance(data, list):
        return _rows_from_items(data, fields, relative=False)

    return []


def extract_object_as_rows(data: Any, fields: Sequence[Field]) -> List[Dict[str, Any]]:
    """One `{Field, Value}` row per selected field that resolves."""
    if data is None or not fields:
        return []

    rows: List[Dict[str, Any]] = []
    for index, field in enumerate(fields):
        value = get_value_by_path(data, field.path, default=_MISSING)
        if value is _MISSING:
            continue
        rows.append({'_index': index, 'Field': field.label, 'Value': value})
    return rows


def extract_rows_with_mode(data: Any, fields: Sequence[Field]) -> Tuple[List[Dict[str, Any]], bool]:
    """Array rows when there are any, else object rows; the flag marks object rows."""
    rows = extract_array_rows(data, fields)
    if rows:
        return rows, False
    return extract_object_as_rows(data, fields), True


def extract_rows(data: Any, fields: Sequence[Field]) -> List[Dict[str, Any]]:
    rows, _ = extract_rows_with_mode(data, fields)
    return rows
