"""Helpers that shape extracted rows for card, table and chart renderers.

Renderers stay dumb: they receive plain label-keyed rows or formatted text
from here and never walk the document themselves.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .accessors import get_value_by_path
from .formatting import format_value, to_number
from .models import Field
from .records import extract_array_rows

TABLE_PAGE_SIZE = 10
CHART_MAX_POINTS = 50


def card_values(data: Any, fields: Sequence[Field]) -> List[Tuple[Field, str]]:
    """(field, formatted text) pairs for a card view, in selection order."""
    return [(field, format_value(get_value_by_path(data, field.path), field.format)) for field in fields]


def table_columns(fields: Sequence[Field], object_mode: bool) -> List[str]:
    if object_mode:
        return ['Field', 'Value']
    return [field.label for field in fields]


def _sort_key(value: Any):
    # Numbers order numerically, everything else by string form.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, '')
    return (1, 0, str(value))


def sort_rows(rows: Sequence[Dict[str, Any]], column: Optional[str], descending: bool = False) -> List[Dict[str, Any]]:
    """Return rows sorted by one column; missing values always sort last."""
    if not column:
        return list(rows)
    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    present.sort(key=lambda r: _sort_key(r[column]), reverse=descending)
    return present + missing


def page_rows(rows: Sequence[Dict[str, Any]], page: int, page_size: int = TABLE_PAGE_SIZE) -> List[Dict[str, Any]]:
    start = max(0, page) * page_size
    return list(rows[start:start + page_size])


def page_count(rows: Sequence[Any], page_size: int = TABLE_PAGE_SIZE) -> int:
    return -(-len(rows) // page_size)


def chart_points(data: Any, fields: Sequence[Field], limit: int = CHART_MAX_POINTS) -> List[Dict[str, Any]]:
    """Points for a chart view.

    Repeating data yields up to `limit` rows; a single object yields one
    "Current" point whose non-numeric values are charted as 0.
    """
    rows = extract_array_rows(data, fields)
    if rows:
        return rows[:limit]

    if fields and data is not None:
        point: Dict[str, Any] = {'name': 'Current'}
        for field in fields:
            number = to_number(get_value_by_path(data, field.path))
            point[field.label] = float(number) if number is not None else 0
        return [point]

    return []


def numeric_fields(points: Sequence[Dict[str, Any]], fields: Sequence[Field]) -> List[Field]:
    """Fields whose value in the first point can be plotted."""
    if not points:
        return []
    first = points[0]
    return [field for field in fields if to_number(first.get(field.label)) is not None]


def chart_x_key(points: Sequence[Dict[str, Any]]) -> str:
    if not points:
        return '_index'
    first = points[0]
    if '_index' in first:
        return '_index'
    return next((k for k, v in first.items() if isinstance(v, str)), '_index')
