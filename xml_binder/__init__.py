"""
XML Binder

Maps registered record classes to and from XML documents, builds XQuery
FLWOR expressions over eXist-db collections, and runs them with per-fragment
fault isolation.
"""

__version__ = "1.0.0"

# Import core models and entry points for easy access
from .models import (
    FieldKind,
    ResultMode,
    FieldDescriptor,
    TypeDescriptor,
    FilterClause,
    QueryResult,
    CollectionHandle,
    RawFragment
)

from .interfaces import (
    XMLParserInterface,
    SerializerInterface,
    DeserializerInterface,
    StoreClientInterface
)

from .exceptions import (
    XMLBinderError,
    NotSerializableError,
    XMLParsingError,
    MalformedValueError,
    UnsupportedFieldTypeError,
    StoreError,
    StoreConnectionError,
    CollectionNotFoundError,
    DocumentNotFoundError,
    StoreSubmissionError,
    ConfigurationError
)

from .mapping.registry import (
    xml_serializable,
    register_serializable,
    unregister_serializable,
    is_serializable,
    get_type_descriptor
)
from .mapping.serializer import XMLSerializer, to_xml, to_xml_string
from .mapping.deserializer import XMLDeserializer, from_xml
from .query.xquery_builder import XQueryBuilder, build_query, build_query_for, parse_filter
from .database.exist_client import ExistDBClient
from .database.query_executor import XQueryExecutor
from .files import write_records_to_file, read_records_from_file

__all__ = [
    # Core models
    "FieldKind",
    "ResultMode",
    "FieldDescriptor",
    "TypeDescriptor",
    "FilterClause",
    "QueryResult",
    "CollectionHandle",
    "RawFragment",

    # Interfaces
    "XMLParserInterface",
    "SerializerInterface",
    "DeserializerInterface",
    "StoreClientInterface",

    # Exceptions
    "XMLBinderError",
    "NotSerializableError",
    "XMLParsingError",
    "MalformedValueError",
    "UnsupportedFieldTypeError",
    "StoreError",
    "StoreConnectionError",
    "CollectionNotFoundError",
    "DocumentNotFoundError",
    "StoreSubmissionError",
    "ConfigurationError",

    # Registration
    "xml_serializable",
    "register_serializable",
    "unregister_serializable",
    "is_serializable",
    "get_type_descriptor",

    # Mapping, queries and store access
    "XMLSerializer",
    "XMLDeserializer",
    "XQueryBuilder",
    "XQueryExecutor",
    "ExistDBClient",
    "to_xml",
    "to_xml_string",
    "from_xml",
    "build_query",
    "build_query_for",
    "parse_filter",
    "write_records_to_file",
    "read_records_from_file"
]
