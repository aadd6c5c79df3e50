"""
Value conversion table between field kinds and their XML text form.

Formatting is locale independent and parsing is strict: text that does not
match the kind's textual grammar raises MalformedValueError rather than being
coerced or defaulted. A field whose kind has no rule raises
UnsupportedFieldTypeError.

    kind      text form               Python value
    string    as-is                   str
    integer   [+-]digits (32-bit)     int
    long      [+-]digits (64-bit)     int
    float     decimal / exponent      float
    boolean   true | false            bool
    date      yyyy-MM-dd              datetime.date
"""

import datetime
import math

from typing import Any

from ..exceptions import MalformedValueError, UnsupportedFieldTypeError
from ..models import FieldDescriptor, FieldKind, TypeDescriptor
from ..utils import StringUtils


INTEGER_RANGE = (-2 ** 31, 2 ** 31 - 1)
LONG_RANGE = (-2 ** 63, 2 ** 63 - 1)


_SPECIAL_FLOATS = {
    'nan': math.nan,
    'NaN': math.nan,
    'inf': math.inf,
    '+inf': math.inf,
    '-inf': -math.inf,
    'Infinity': math.inf,
    '+Infinity': math.inf,
    '-Infinity': -math.inf,
}


def _malformed(field: FieldDescriptor, value: Any, reason: str) -> MalformedValueError:
    return MalformedValueError(
        f"Malformed value for field '{field.name}' ({field.kind.value}): {reason}",
        field_name=field.name,
        source_value=value if isinstance(value, str) else repr(value),
        target_type=field.kind.value
    )


def _require_supported(field: FieldDescriptor, record_type: type = None) -> FieldKind:
    if field.kind is None:
        raise UnsupportedFieldTypeError(field.name, field.python_type, record_type)
    return field.kind


def _check_range(field: FieldDescriptor, value: int, source: Any) -> int:
    low, high = INTEGER_RANGE if field.kind is FieldKind.INTEGER else LONG_RANGE
    if not low <= value <= high:
        raise _malformed(field, source, f"{value} is outside the {field.kind.value} range")
    return value


def format_value(field: FieldDescriptor, value: Any, record_type: type = None) -> str:
    """
    Format a non-None field value as XML element text.

    Args:
        field: Descriptor of the field being written
        value: Current attribute value (never None)
        record_type: Owning class, used in error messages

    Returns:
        Text form of the value

    Raises:
        UnsupportedFieldTypeError: If the field kind has no conversion rule
        MalformedValueError: If the value's Python type does not fit the kind
    """
    kind = _require_supported(field, record_type)

    if kind is FieldKind.STRING:
        if not isinstance(value, str):
            raise _malformed(field, value, f"expected str, got {type(value).__name__}")
        return value

    if kind in (FieldKind.INTEGER, FieldKind.LONG):
        if isinstance(value, bool) or not isinstance(value, int):
            raise _malformed(field, value, f"expected int, got {type(value).__name__}")
        return str(_check_range(field, value, value))

    if kind is FieldKind.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _malformed(field, value, f"expected float, got {type(value).__name__}")
        return repr(float(value))

    if kind is FieldKind.BOOLEAN:
        if not isinstance(value, bool):
            raise _malformed(field, value, f"expected bool, got {type(value).__name__}")
        return "true" if value else "false"

    if kind is FieldKind.DATE:
        # datetime is a date subclass but carries a time part the wire format cannot hold
        if isinstance(value, datetime.datetime) or not isinstance(value, datetime.date):
            raise _malformed(field, value, f"expected date, got {type(value).__name__}")
        return value.isoformat()

    raise UnsupportedFieldTypeError(field.name, field.python_type, record_type)


def parse_value(field: FieldDescriptor, text: str, record_type: type = None) -> Any:
    """
    Parse XML element text into the field's Python value.

    Args:
        field: Descriptor of the field being read
        text: Element text content
        record_type: Owning class, used in error messages

    Returns:
        Converted value

    Raises:
        UnsupportedFieldTypeError: If the field kind has no conversion rule
        MalformedValueError: If the text does not match the kind's grammar
    """
    kind = _require_supported(field, record_type)

    if kind is FieldKind.STRING:
        return text

    if kind in (FieldKind.INTEGER, FieldKind.LONG):
        if not StringUtils.is_integer_literal(text):
            raise _malformed(field, text, "not a base-10 integer")
        return _check_range(field, int(text), text)

    if kind is FieldKind.FLOAT:
        if text in _SPECIAL_FLOATS:
            return _SPECIAL_FLOATS[text]
        if not StringUtils.is_decimal_literal(text):
            raise _malformed(field, text, "not a decimal number")
        return float(text)

    if kind is FieldKind.BOOLEAN:
        if text == "true":
            return True
        if text == "false":
            return False
        raise _malformed(field, text, "expected 'true' or 'false'")

    if kind is FieldKind.DATE:
        if not StringUtils.is_iso_date(text):
            raise _malformed(field, text, "expected yyyy-MM-dd")
        try:
            return datetime.date(int(text[0:4]), int(text[5:7]), int(text[8:10]))
        except ValueError as e:
            raise _malformed(field, text, str(e)) from e

    raise UnsupportedFieldTypeError(field.name, field.python_type, record_type)


def ensure_supported(descriptor: TypeDescriptor) -> None:
    """
    Reject a type that declares any field without a conversion rule.

    Raises:
        UnsupportedFieldTypeError: For the first such field in declaration order
    """
    for field in descriptor.fields:
        _require_supported(field, descriptor.record_type)
