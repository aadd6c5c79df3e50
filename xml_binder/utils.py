"""
Utility functions for common patterns across the XML binder system.
"""

import re
from typing import Any


class StringUtils:
    """Utility methods for string validation and processing."""

    # Cached regex patterns for performance
    _regex_cache = {
        'integer': re.compile(r'[+-]?[0-9]+'),
        'decimal': re.compile(r'[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?'),
        'iso_date': re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}'),
        'xml_name': re.compile(r'[A-Za-z_][A-Za-z0-9_.\-]*'),
        'whitespace': re.compile(r'\s+'),
        'xml_declaration': re.compile(r'<\?xml\s[^>]*\?>\s*')
    }

    @staticmethod
    def safe_string_check(value: Any) -> bool:
        """
        Standardized string validation.

        Args:
            value: Value to check

        Returns:
            True if value is a non-empty string after stripping whitespace
        """
        return value is not None and str(value).strip() != ''

    @staticmethod
    def is_integer_literal(text: str) -> bool:
        """Check for an optionally signed run of ASCII digits."""
        return bool(StringUtils._regex_cache['integer'].fullmatch(text))

    @staticmethod
    def is_decimal_literal(text: str) -> bool:
        """Check for a plain decimal or exponent literal (no underscores, no spaces)."""
        return bool(StringUtils._regex_cache['decimal'].fullmatch(text))

    @staticmethod
    def is_iso_date(text: str) -> bool:
        """Check for the fixed yyyy-MM-dd layout."""
        return bool(StringUtils._regex_cache['iso_date'].fullmatch(text))

    @staticmethod
    def is_xml_name(value: Any) -> bool:
        """
        Check whether value can be used as an unprefixed XML element name.

        Args:
            value: Candidate tag

        Returns:
            True if value is a valid element name without namespace prefix
        """
        if not isinstance(value, str):
            return False
        return bool(StringUtils._regex_cache['xml_name'].fullmatch(value))

    @staticmethod
    def split_whitespace(value: str) -> list:
        """Split on runs of whitespace, ignoring leading and trailing blanks."""
        stripped = value.strip()
        if not stripped:
            return []
        return StringUtils._regex_cache['whitespace'].split(stripped)

    @staticmethod
    def strip_xml_declaration(text: str) -> str:
        """Remove a leading <?xml ...?> declaration; text without one is returned unchanged."""
        match = StringUtils._regex_cache['xml_declaration'].match(text)
        return text[match.end():] if match else text


class TagUtils:
    """Naming conventions for XML tags derived from record types."""

    COLLECTION_SUFFIX = "s"

    @staticmethod
    def entity_tag_for(record_type: type) -> str:
        """
        Infer the element name of one record.

        Examples:
            Essay -> 'essay'
            BookReview -> 'bookreview'
        """
        return record_type.__name__.lower()

    @staticmethod
    def collection_tag_for(entity_tag: str) -> str:
        """Pluralize an entity tag by appending a literal 's' (book -> books)."""
        return entity_tag + TagUtils.COLLECTION_SUFFIX
