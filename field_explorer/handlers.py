from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr
import pandas as pd

from .display import (
    card_values,
    chart_points,
    chart_x_key,
    numeric_fields,
    page_count,
    page_rows,
    sort_rows,
    table_columns,
)
from .formatting import default_label, format_value, preview_value
from .gateway import Gateway
from .models import FIELD_FORMATS, Field, fields_to_dicts, parse_fields
from .records import extract_rows_with_mode
from .schema_utils import filter_index, flatten

FIELD_TABLE_HEADERS = ["Path", "Type", "Sample"]
MAPPING_HEADERS = ["Path", "Label", "Format"]


def _table_records(table) -> List[List[Any]]:
    """Rows of a gr.Dataframe value, whether it arrives as a DataFrame or a list."""
    if table is None:
        return []
    try:
        return table.astype(object).where(table.notna(), None).values.tolist()
    except AttributeError:
        return [list(row) for row in table]


def parse_header_rows(headers_table) -> List[Dict[str, str]]:
    headers = []
    for row in _table_records(headers_table):
        if len(row) < 2:
            continue
        key = "" if row[0] is None else str(row[0]).strip()
        value = "" if row[1] is None else str(row[1]).strip()
        if key and value:
            headers.append({"key": key, "value": value})
    return headers


def build_field_table(data: Any, search: str = "", arrays_only: bool = False) -> List[List[str]]:
    if data is None:
        return []
    return [
        [path, entry["type"], preview_value(entry["value"])]
        for path, entry in filter_index(flatten(data), search, arrays_only)
    ]


def fetch_api_handler(gateway: Gateway, url: str, headers_table):
    """Fetch a sample response and reset the field browser for it."""
    result = gateway.test((url or "").strip(), parse_header_rows(headers_table))
    if not result.success:
        return None, f"Error: {result.error}", [], gr.update(choices=[], value=[]), [], None

    data = result.data
    paths = sorted(flatten(data).keys(), key=str.lower)
    message = f"Successfully loaded. Found {result.field_count} selectable fields."
    return data, message, build_field_table(data), gr.update(choices=paths, value=[]), [], data


def filter_fields_handler(data: Any, search: str, arrays_only: bool):
    return build_field_table(data, search, arrays_only)


def update_mapping_table(selected_paths: Optional[List[str]], mapping_table) -> List[List[str]]:
    """One mapping row per selected path, keeping labels/formats already edited."""
    if not selected_paths:
        return []

    existing = {}
    for row in _table_records(mapping_table):
        if row and row[0]:
            existing[row[0]] = row

    table = []
    for path in selected_paths:
        row = existing.get(path)
        if row is not None and len(row) >= 3:
            label = row[1] or default_label(path)
            fmt = row[2] if row[2] in FIELD_FORMATS else "text"
        else:
            label, fmt = default_label(path), "text"
        table.append([path, label, fmt])
    return table


def mapping_to_fields(mapping_table, data: Any = None) -> List[Field]:
    index = flatten(data) if data is not None else {}
    fields = []
    for row in _table_records(mapping_table):
        if not row or not row[0]:
            continue
        path = str(row[0])
        label = str(row[1]) if len(row) > 1 and row[1] else default_label(path)
        fmt = row[2] if len(row) > 2 and row[2] in FIELD_FORMATS else None
        entry = index.get(path)
        fields.append(Field(path=path, label=label, format=fmt, type=entry["type"] if entry else None))
    return fields


def render_cards(data: Any, fields: List[Field]) -> str:
    if not fields:
        return "No fields selected."
    return "\n".join(f"- **{field.label}**: {text}" for field, text in card_values(data, fields))


def render_table(
    data: Any,
    fields: List[Field],
    sort_column: Optional[str] = None,
    descending: bool = False,
    page: int = 1,
) -> Tuple[pd.DataFrame, str]:
    """One page of formatted table rows plus a "Page x of y" caption."""
    rows, object_mode = extract_rows_with_mode(data, fields)
    columns = table_columns(fields, object_mode)
    rows = sort_rows(rows, sort_column if sort_column in columns else None, descending)

    pages = max(1, page_count(rows))
    page = min(max(1, int(page or 1)), pages)
    rows = page_rows(rows, page - 1)

    formats = {f.label: f.format for f in fields}
    out = []
    for row in rows:
        if object_mode:
            out.append([row["Field"], format_value(row["Value"], formats.get(row["Field"]))])
        else:
            out.append([format_value(row.get(col), formats.get(col)) for col in columns])
    caption = f"Page {page} of {pages} ({len(out)} rows shown)"
    return pd.DataFrame(out, columns=columns), caption


def render_chart(data: Any, fields: List[Field]) -> pd.DataFrame:
    """Long-format frame (x, series, value) for gr.LinePlot."""
    points = chart_points(data, fields)
    plotted = numeric_fields(points, fields)
    x_key = chart_x_key(points)

    records = []
    for point in points:
        for field in plotted:
            value = point.get(field.label)
            try:
                number = float(value)
            except (TypeError, ValueError):
                continue
            records.append({"x": point.get(x_key), "series": field.label, "value": number})
    return pd.DataFrame(records, columns=["x", "series", "value"])


def preview_handler(data: Any, mapping_table, sort_column: str = "", descending: bool = False, page: int = 1):
    if data is None:
        return "No data loaded.", pd.DataFrame(), "", pd.DataFrame(columns=["x", "series", "value"])

    fields = mapping_to_fields(mapping_table, data)
    table, caption = render_table(data, fields, sort_column or None, descending, page)
    return render_cards(data, fields), table, caption, render_chart(data, fields)


def export_fields_handler(mapping_table) -> str:
    """Field selection as JSON, ready to store in a widget's configuration."""
    return json.dumps(fields_to_dicts(mapping_to_fields(mapping_table)), indent=2)


def import_fields_handler(text: str):
    """Load a stored field selection back into the selector and mapping table."""
    if not text or not text.strip():
        return gr.update(), [], "Nothing to import."
    try:
        fields = parse_fields(json.loads(text))
    except (ValueError, TypeError) as e:
        return gr.update(), [], f"Error parsing fields: {str(e)}"

    table = [[f.path, f.label, f.format or "text"] for f in fields]
    return gr.update(value=[f.path for f in fields]), table, f"Imported {len(fields)} fields."
