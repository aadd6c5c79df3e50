"""
Abstract interfaces and base classes for the XML Binder system.

This module defines the contracts that the system components implement so
the query executor can be wired to any store client and tested without a
running database.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Any, Union

from lxml import etree

from .models import CollectionHandle, RawFragment, ResultMode


class XMLParserInterface(ABC):
    """Abstract interface for XML parsing components."""

    @abstractmethod
    def parse_xml_stream(self, xml_content: Union[str, bytes]) -> etree._Element:
        """
        Parse XML content into an element tree.

        Args:
            xml_content: Raw XML content as string

        Returns:
            Parsed XML element tree root

        Raises:
            XMLParsingError: If XML is malformed or cannot be parsed
        """
        pass

    @abstractmethod
    def validate_xml_structure(self, xml_content: str) -> bool:
        """
        Validate XML structure before processing.

        Args:
            xml_content: Raw XML content to validate

        Returns:
            True if XML is well formed, False otherwise
        """
        pass


class SerializerInterface(ABC):
    """Abstract interface for record-to-XML serializers."""

    @abstractmethod
    def to_xml(self, records: Sequence[Any], root_tag: Optional[str] = None) -> etree._Element:
        """
        Convert a sequence of records of one registered type into an XML tree.

        Args:
            records: Non-empty sequence of records of the same type
            root_tag: Optional root element name; defaults to the type's collection tag

        Returns:
            Root element of the generated document
        """
        pass


class DeserializerInterface(ABC):
    """Abstract interface for XML-to-record deserializers."""

    @abstractmethod
    def from_xml(self, payload: Union[str, bytes], record_type: type,
                 result_mode: ResultMode = ResultMode.ENTITY) -> List[Any]:
        """
        Convert a raw XML payload into records of a registered type.

        Args:
            payload: Raw XML text
            record_type: Registered record class
            result_mode: Whether the payload holds entities or projection wrappers

        Returns:
            Records in document order of the matched elements
        """
        pass


class StoreClientInterface(ABC):
    """Abstract interface for the XML store the query executor talks to."""

    @abstractmethod
    def resolve_collection(self, collection_path: str) -> CollectionHandle:
        """
        Resolve a collection path in the store.

        Args:
            collection_path: Collection path (e.g., '/db/bookshop/novels')

        Returns:
            Handle for the collection

        Raises:
            CollectionNotFoundError: If the collection does not exist
        """
        pass

    @abstractmethod
    def submit_query(self, handle: CollectionHandle, query_text: str) -> List[RawFragment]:
        """
        Run a query against a resolved collection.

        Args:
            handle: Collection handle returned by resolve_collection
            query_text: XQuery text

        Returns:
            Result fragments in the order the store returned them

        Raises:
            StoreSubmissionError: If the store rejects or fails the query
        """
        pass
