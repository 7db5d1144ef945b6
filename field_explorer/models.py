"""Field selection model shared by the extraction engine, display helpers and UI."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel

from .formatting import default_label

FieldFormat = Literal["text", "currency", "percentage", "number"]
FIELD_FORMATS = ("text", "currency", "percentage", "number")


class Field(BaseModel):
    """A user's selection of one location inside an API response.

    `path` is the durable identifier; it must keep resolving against later
    responses from the same endpoint. `label` names the column/card.
    """

    path: str
    label: str
    type: Optional[str] = None
    format: Optional[FieldFormat] = None

    @classmethod
    def from_path(cls, path: str, type: Optional[str] = None) -> "Field":
        return cls(path=path, label=default_label(path), type=type)


def parse_fields(raw: Iterable[Any]) -> List[Field]:
    """Coerce dicts (e.g. from stored widget config) into Field objects."""
    fields: List[Field] = []
    for item in raw or []:
        if isinstance(item, Field):
            fields.append(item)
        elif isinstance(item, dict):
            fields.append(Field.model_validate(item))
        else:
            fields.append(Field.from_path(str(item)))
    return fields


def fields_to_dicts(fields: Iterable[Field]) -> List[Dict[str, Any]]:
    return [f.model_dump(exclude_none=True) for f in fields]
