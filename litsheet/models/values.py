"""Cell value conversion rules.

All conversions between raw input (AI output, edit buffers, stored JSON)
and typed cell values live here so every write path shares one set of
rules:

- ``conform_value`` is the type-checked setter used before any write.
- ``read_value`` is the lenient reader: a stored value that no longer fits
  its column type reads as null.
- ``coerce_ai_value`` turns the raw ``value`` field of an AI payload into
  the column's type.
- ``parse_edit_buffer`` / ``format_edit_buffer`` convert between typed
  values and the text shown in a cell editor.
"""

import math
import re
from typing import Any, List, Optional, Union

from litsheet.core.exceptions import CellValueError
from litsheet.models.enums import ColumnType

CellValue = Union[None, str, float, bool, List[str]]

_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_WORD = re.compile(r"^\s*([A-Za-z]+)")

_TRUTHY_EDIT_TEXT = ("yes", "true", "1")


def parse_leading_float(text: str) -> Optional[float]:
    """Parse the numeric prefix of a string.

    Mirrors ``parseFloat`` in browsers: leading whitespace is skipped and
    trailing text ignored ("12 participants" -> 12.0, "1,234" -> 1.0).
    Non-finite results are rejected.

    Returns:
        Finite float, or None when the text has no numeric prefix
    """
    match = _LEADING_FLOAT.match(text)
    if not match:
        return None
    number = float(match.group(1))
    return number if math.isfinite(number) else None


def _split_options(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        parts = [str(item) for item in value if item is not None]
    else:
        parts = str(value).split(",")
    return [part.strip() for part in parts if part.strip()]


def conform_value(value: Any, column_type: ColumnType) -> CellValue:
    """Validate a value against a column type.

    Args:
        value: Candidate cell value
        column_type: Owning column's type

    Returns:
        The value in canonical form (numbers as float, lists as list)

    Raises:
        CellValueError: If the value's shape does not match the type
    """
    if value is None:
        return None

    if column_type in (ColumnType.TEXT, ColumnType.SELECT):
        if isinstance(value, str):
            return value
    elif column_type == ColumnType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if math.isfinite(value):
                return float(value)
    elif column_type == ColumnType.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif column_type == ColumnType.MULTISELECT:
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return list(value)

    raise CellValueError(
        f"Value {value!r} does not match column type '{column_type.value}'"
    )


def is_valid_value(value: Any, column_type: ColumnType) -> bool:
    try:
        conform_value(value, column_type)
    except CellValueError:
        return False
    return True


def read_value(value: Any, column_type: ColumnType) -> CellValue:
    """Read a stored value, treating a type mismatch as null."""
    try:
        return conform_value(value, column_type)
    except CellValueError:
        return None


def coerce_ai_value(raw: Any, column_type: ColumnType) -> CellValue:
    """Convert the raw ``value`` of an AI payload into the column type.

    - number: numeric prefix of the text, null if none or non-finite
    - boolean: true iff the leading word is "yes" (any case)
    - multiselect: comma split, trimmed, empties dropped
    - text/select: strings unchanged, other scalars stringified
    """
    if column_type == ColumnType.NUMBER:
        if isinstance(raw, bool) or raw is None:
            return None
        if isinstance(raw, (int, float)):
            return float(raw) if math.isfinite(raw) else None
        return parse_leading_float(str(raw))

    if column_type == ColumnType.BOOLEAN:
        if isinstance(raw, bool):
            return raw
        if not isinstance(raw, str):
            return False
        match = _LEADING_WORD.match(raw)
        return bool(match) and match.group(1).lower() == "yes"

    if column_type == ColumnType.MULTISELECT:
        if raw is None:
            return None
        return _split_options(raw)

    if raw is None or isinstance(raw, str):
        return raw
    if isinstance(raw, (list, tuple)):
        return ", ".join(str(item) for item in raw)
    return str(raw)


def parse_edit_buffer(text: str, column_type: ColumnType) -> CellValue:
    """Convert editor text into a typed value for a manual edit."""
    if column_type == ColumnType.NUMBER:
        return parse_leading_float(text)
    if column_type == ColumnType.BOOLEAN:
        return text.strip().lower() in _TRUTHY_EDIT_TEXT
    if column_type == ColumnType.MULTISELECT:
        return _split_options(text)
    if column_type == ColumnType.SELECT:
        return text if text else None
    return text


def format_edit_buffer(value: CellValue) -> str:
    """Render a typed value as editor text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ", ".join(value)
    return str(value)
