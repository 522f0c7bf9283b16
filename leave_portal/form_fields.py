"""
Typed form field definitions for the leave request form.

Each field kind carries its own configuration, and every consumer
dispatches on the kind with an exhaustive ``match`` so adding a kind
fails loudly everywhere it is not handled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from leave_portal.date_range import to_date
from leave_portal.errors import DraftValidationError


@dataclass(frozen=True)
class TextField:
    name: str
    label: str
    required: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class MultilineField:
    name: str
    label: str
    rows: int = 4
    required: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class SelectField:
    name: str
    label: str
    options: list[tuple[Any, str]] = field(default_factory=list)
    required: bool = False


@dataclass(frozen=True)
class CheckboxField:
    name: str
    label: str


@dataclass(frozen=True)
class DateField:
    name: str
    label: str
    min_date: date | None = None
    required: bool = False


FormField = Union[TextField, MultilineField, SelectField, CheckboxField, DateField]


def describe_field(form_field: FormField, value: Any = None) -> dict[str, Any]:
    """JSON description of a field and its current value, for the form renderer."""
    base = {"name": form_field.name, "label": form_field.label}

    match form_field:
        case TextField(required=required, max_length=max_length):
            return base | {
                "kind": "text",
                "required": required,
                "max_length": max_length,
                "value": value or "",
            }
        case MultilineField(rows=rows, required=required, max_length=max_length):
            return base | {
                "kind": "multiline",
                "rows": rows,
                "required": required,
                "max_length": max_length,
                "value": value or "",
                "length": len(value or ""),
            }
        case SelectField(options=options, required=required):
            return base | {
                "kind": "select",
                "required": required,
                "options": [{"value": v, "label": label} for v, label in options],
                "value": value,
            }
        case CheckboxField():
            return base | {"kind": "checkbox", "value": bool(value)}
        case DateField(min_date=min_date, required=required):
            return base | {
                "kind": "date",
                "required": required,
                "min": min_date.isoformat() if min_date else None,
                "value": value.isoformat() if isinstance(value, date) else value,
            }
        case _:
            raise TypeError(f"Unsupported form field: {form_field!r}")


def parse_field_value(form_field: FormField, raw: Any) -> Any:
    """
    Convert raw user input for ``form_field`` into its typed value.

    Raises ``DraftValidationError`` keyed by the field name on bad input.
    """
    match form_field:
        case TextField(max_length=max_length) | MultilineField(max_length=max_length):
            text = "" if raw is None else str(raw)
            if max_length is not None and len(text) > max_length:
                raise DraftValidationError(
                    {form_field.name: f"{form_field.label} cannot exceed {max_length} characters"}
                )
            return text
        case SelectField(options=options):
            allowed = {v for v, _ in options}
            if raw not in allowed:
                raise DraftValidationError(
                    {form_field.name: f"Please select a valid {form_field.label.lower()}"}
                )
            return raw
        case CheckboxField():
            if isinstance(raw, str):
                return raw.strip().lower() in ("1", "true", "yes", "on")
            return bool(raw)
        case DateField():
            return to_date(raw, form_field.name)
        case _:
            raise TypeError(f"Unsupported form field: {form_field!r}")
