"""
XML parsing engine for record payloads and store result fragments.

This module wraps lxml with a hardened, non-recovering parser configuration
and the content cleanup the store's payloads need (byte order marks, stray
control characters, mixed line endings) before parsing.
"""

import logging

from typing import Dict, Any, Iterator, Optional, Union

from lxml import etree

from ..interfaces import XMLParserInterface
from ..exceptions import XMLParsingError
from ..utils import StringUtils


class XMLParser(XMLParserInterface):
    """
    Strict XML parser used by the deserializer and the query executor.

    Unlike a recovering parser, malformed input is never repaired: a payload
    that is not well formed raises XMLParsingError so callers can decide
    whether to propagate it (direct deserialization) or isolate it (one
    fragment of a query result).

    Features:
    - lxml parsing with entity resolution and network access disabled
    - BOM and hidden-character cleanup before parsing
    - Namespace-agnostic tag lookup (matches <book> and <x:book> alike)
    - Parse / validation counters for diagnostics
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        # Performance tracking
        self.parse_count = 0
        self.validation_count = 0

    def _build_parser(self) -> etree.XMLParser:
        return etree.XMLParser(
            recover=False,  # Malformed input must fail, not be repaired
            strip_cdata=False,  # Preserve CDATA sections
            resolve_entities=False,  # Security: don't resolve external entities
            no_network=True,  # Security: disable network access
            remove_blank_text=False
        )

    def parse_xml_stream(self, xml_content: Union[str, bytes],
                         source_record_id: Optional[str] = None) -> etree._Element:
        """
        Parse XML content into an element tree.

        Text is already decoded, so any XML declaration on it is dropped and
        the content is parsed as UTF-8. Bytes are handed to lxml as they are
        and decoded according to their own declaration.

        Args:
            xml_content: Raw XML content as string or encoded bytes
            source_record_id: Optional identifier used in error messages

        Returns:
            Parsed XML element tree root

        Raises:
            XMLParsingError: If XML is empty, malformed or cannot be parsed
        """
        if xml_content is None or not xml_content.strip():
            raise XMLParsingError("XML content is empty or None", source_record_id=source_record_id)

        self.parse_count += 1
        source_record_id = source_record_id or f"parse_{self.parse_count}"

        if isinstance(xml_content, bytes):
            payload = xml_content.strip()
            error_content = xml_content.decode('utf-8', errors='replace')
        else:
            payload = self._clean_xml_content(xml_content).encode('utf-8')
            error_content = xml_content

        try:
            return etree.fromstring(payload, self._build_parser())
        except etree.XMLSyntaxError as e:
            error_msg = f"XML syntax error: {e}"
            self.logger.debug(f"{error_msg} (Record ID: {source_record_id})")
            raise XMLParsingError(error_msg, error_content, source_record_id) from e
        except ValueError as e:
            # Raised by lxml for input it refuses outright (e.g. an unknown encoding declaration)
            error_msg = f"Failed to parse XML: {e}"
            self.logger.debug(f"{error_msg} (Record ID: {source_record_id})")
            raise XMLParsingError(error_msg, error_content, source_record_id) from e

    def _clean_xml_content(self, xml_content: str) -> str:
        """
        Clean and normalize XML content for parsing.

        Args:
            xml_content: Raw XML content

        Returns:
            Cleaned XML content
        """
        # Remove BOM if present
        if xml_content.startswith('\ufeff'):
            xml_content = xml_content[1:]
            self.logger.debug("Removed UTF-8 BOM from XML content")

        # Handle BOM that might appear as visible characters (like ï»¿)
        if xml_content.startswith('ï»¿'):
            xml_content = xml_content[3:]
            self.logger.debug("Removed visible UTF-8 BOM characters from XML content")

        # Remove other common hidden characters at the beginning
        while xml_content and ord(xml_content[0]) < 32 and xml_content[0] not in '\t\n\r':
            xml_content = xml_content[1:]
            self.logger.debug("Removed hidden leading character")

        # Normalize line endings
        xml_content = xml_content.replace('\r\n', '\n').replace('\r', '\n').strip()

        # Decoded text: a declared encoding no longer describes it
        without_declaration = StringUtils.strip_xml_declaration(xml_content)
        if without_declaration is not xml_content:
            self.logger.debug("Removed XML declaration from decoded content")

        return without_declaration

    def validate_xml_structure(self, xml_content: str) -> bool:
        """
        Validate XML structure before processing.

        Args:
            xml_content: Raw XML content to validate

        Returns:
            True if XML is well formed, False otherwise
        """
        if xml_content is None or not str(xml_content).strip():
            self.logger.warning("XML content is empty")
            return False

        self.validation_count += 1

        cleaned_xml = self._clean_xml_content(xml_content)
        if not (cleaned_xml.startswith('<') and cleaned_xml.endswith('>')):
            self.logger.warning("XML doesn't start with < or end with >")
            return False

        try:
            etree.fromstring(cleaned_xml.encode('utf-8'), self._build_parser())
        except (etree.XMLSyntaxError, ValueError) as e:
            self.logger.warning(f"XML well-formedness validation failed: {e}")
            return False

        self.logger.debug(f"XML validation passed (validation #{self.validation_count})")
        return True

    @staticmethod
    def iter_elements(root: etree._Element, tag: str) -> Iterator[etree._Element]:
        """
        Yield every element named tag in document order, root included.

        Args:
            root: Tree to search
            tag: Local element name, matched in any namespace
        """
        return root.iter('{*}' + tag)

    @staticmethod
    def first_descendant(element: etree._Element, tag: str) -> Optional[etree._Element]:
        """
        Get the first descendant named tag, excluding element itself.

        Args:
            element: Element to search under
            tag: Local element name, matched in any namespace

        Returns:
            First match in document order, or None
        """
        return next(element.iterdescendants('{*}' + tag), None)

    @staticmethod
    def text_content(element: etree._Element) -> str:
        """Concatenated text of element and all its descendants."""
        return ''.join(element.itertext())

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Get parser statistics.

        Returns:
            Dictionary containing parse and validation counters
        """
        return {
            'parse_count': self.parse_count,
            'validation_count': self.validation_count,
        }

    def reset_stats(self) -> None:
        """Reset statistics."""
        self.parse_count = 0
        self.validation_count = 0
