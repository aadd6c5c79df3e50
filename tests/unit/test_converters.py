"""
Tests for the value conversion table.
"""

import math

from datetime import date, datetime

import pytest

from xml_binder.exceptions import MalformedValueError, UnsupportedFieldTypeError
from xml_binder.mapping.converters import format_value, parse_value, ensure_supported
from xml_binder.models import FieldDescriptor, FieldKind, TypeDescriptor


def descriptor(kind, name="value"):
    return FieldDescriptor(name=name, kind=kind)


class TestFormatValue:

    def test_string_passes_through(self):
        assert format_value(descriptor(FieldKind.STRING), "Orwell & Co") == "Orwell & Co"

    def test_integer(self):
        assert format_value(descriptor(FieldKind.INTEGER), -42) == "-42"

    def test_integer_out_of_range(self):
        with pytest.raises(MalformedValueError):
            format_value(descriptor(FieldKind.INTEGER), 2 ** 31)

    def test_long_accepts_64_bit(self):
        assert format_value(descriptor(FieldKind.LONG), 2 ** 40) == str(2 ** 40)

    def test_long_out_of_range(self):
        with pytest.raises(MalformedValueError):
            format_value(descriptor(FieldKind.LONG), 2 ** 63)

    def test_bool_is_not_an_integer(self):
        with pytest.raises(MalformedValueError):
            format_value(descriptor(FieldKind.INTEGER), True)

    def test_float_uses_shortest_repr(self):
        assert format_value(descriptor(FieldKind.FLOAT), 0.1) == "0.1"
        assert format_value(descriptor(FieldKind.FLOAT), 3) == "3.0"

    def test_boolean(self):
        assert format_value(descriptor(FieldKind.BOOLEAN), True) == "true"
        assert format_value(descriptor(FieldKind.BOOLEAN), False) == "false"

    def test_boolean_rejects_int(self):
        with pytest.raises(MalformedValueError):
            format_value(descriptor(FieldKind.BOOLEAN), 1)

    def test_date(self):
        assert format_value(descriptor(FieldKind.DATE), date(1949, 6, 8)) == "1949-06-08"

    def test_date_pads_year(self):
        assert format_value(descriptor(FieldKind.DATE), date(33, 1, 2)) == "0033-01-02"

    def test_datetime_rejected_for_date(self):
        with pytest.raises(MalformedValueError):
            format_value(descriptor(FieldKind.DATE), datetime(1949, 6, 8, 12, 0))

    def test_wrong_python_type(self):
        with pytest.raises(MalformedValueError) as exc_info:
            format_value(descriptor(FieldKind.STRING, "title"), 1984)
        assert exc_info.value.field_name == "title"
        assert exc_info.value.target_type == "string"

    def test_unsupported_kind(self):
        with pytest.raises(UnsupportedFieldTypeError):
            format_value(FieldDescriptor(name="tags", kind=None, python_type=list), ["a"])


class TestParseValue:

    def test_string_kept_verbatim(self):
        assert parse_value(descriptor(FieldKind.STRING), "  spaced  ") == "  spaced  "

    @pytest.mark.parametrize("text,expected", [("1949", 1949), ("-7", -7), ("+12", 12), ("007", 7)])
    def test_integer(self, text, expected):
        assert parse_value(descriptor(FieldKind.INTEGER), text) == expected

    @pytest.mark.parametrize("text", ["", "12.5", "1e3", " 12", "12 ", "twelve", "1_000", "0x1F"])
    def test_integer_rejects(self, text):
        with pytest.raises(MalformedValueError) as exc_info:
            parse_value(descriptor(FieldKind.INTEGER, "year"), text)
        assert exc_info.value.source_value == text
        assert exc_info.value.field_name == "year"

    def test_integer_range(self):
        assert parse_value(descriptor(FieldKind.INTEGER), "2147483647") == 2 ** 31 - 1
        with pytest.raises(MalformedValueError):
            parse_value(descriptor(FieldKind.INTEGER), "2147483648")

    def test_long(self):
        assert parse_value(descriptor(FieldKind.LONG), "9223372036854775807") == 2 ** 63 - 1
        with pytest.raises(MalformedValueError):
            parse_value(descriptor(FieldKind.LONG), "9223372036854775808")

    @pytest.mark.parametrize("text,expected", [("4.5", 4.5), ("-0.25", -0.25), ("1e3", 1000.0), (".5", 0.5), ("3", 3.0)])
    def test_float(self, text, expected):
        assert parse_value(descriptor(FieldKind.FLOAT), text) == expected

    def test_float_special_values(self):
        assert math.isnan(parse_value(descriptor(FieldKind.FLOAT), "NaN"))
        assert parse_value(descriptor(FieldKind.FLOAT), "-Infinity") == -math.inf
        assert parse_value(descriptor(FieldKind.FLOAT), "inf") == math.inf

    @pytest.mark.parametrize("text", ["", "abc", "1.2.3", "4,5"])
    def test_float_rejects(self, text):
        with pytest.raises(MalformedValueError):
            parse_value(descriptor(FieldKind.FLOAT), text)

    def test_boolean(self):
        assert parse_value(descriptor(FieldKind.BOOLEAN), "true") is True
        assert parse_value(descriptor(FieldKind.BOOLEAN), "false") is False

    @pytest.mark.parametrize("text", ["True", "FALSE", "1", "yes", ""])
    def test_boolean_is_case_sensitive(self, text):
        with pytest.raises(MalformedValueError):
            parse_value(descriptor(FieldKind.BOOLEAN), text)

    def test_date(self):
        assert parse_value(descriptor(FieldKind.DATE), "1949-06-08") == date(1949, 6, 8)

    @pytest.mark.parametrize("text", ["1949-6-8", "08/06/1949", "1949-02-30", "1949-06-08T00:00:00", ""])
    def test_date_rejects(self, text):
        with pytest.raises(MalformedValueError):
            parse_value(descriptor(FieldKind.DATE), text)

    def test_unsupported_kind(self):
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            parse_value(FieldDescriptor(name="tags", kind=None, python_type=list), "a")
        assert exc_info.value.field_name == "tags"


class TestEnsureSupported:

    def test_all_supported(self):
        ensure_supported(TypeDescriptor(object, "thing", "things", (descriptor(FieldKind.STRING, "a"),)))

    def test_reports_first_unsupported_field(self):
        fields = (
            descriptor(FieldKind.STRING, "title"),
            FieldDescriptor(name="tags", kind=None, python_type=list),
            FieldDescriptor(name="meta", kind=None, python_type=dict),
        )
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            ensure_supported(TypeDescriptor(object, "thing", "things", fields))
        assert exc_info.value.field_name == "tags"
