"""
Core data models for the XML Binder system.

This module defines the primary data structures used throughout the system
for type descriptors, query filters and query execution results.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Any
from enum import Enum


class FieldKind(Enum):
    """Supported field kinds for XML mapping."""
    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"


class ResultMode(Enum):
    """Shape of the fragments returned by a query."""
    ENTITY = "entity"
    PROJECTION = "projection"


# Element wrapping each row of a field-projection query
PROJECTION_TAG = "result"

# Operators accepted in filter clauses
FILTER_OPERATORS = ("=", "<", ">", "!=")


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Describes one mapped field of a record type.

    Attributes:
        name: Attribute name, also used as the XML element tag
        kind: Conversion kind, or None when the declared type has no conversion rule
        python_type: Declared type as found on the class
    """
    name: str
    kind: Optional[FieldKind]
    python_type: Any = None

    @property
    def is_supported(self) -> bool:
        return self.kind is not None


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Cached XML mapping metadata for a registered record type.

    Attributes:
        record_type: The registered class
        entity_tag: Element name of one record (class name lowercased)
        collection_tag: Default root element name (entity_tag + "s")
        fields: Mapped fields in declaration order
    """
    record_type: type
    entity_tag: str
    collection_tag: str
    fields: Tuple[FieldDescriptor, ...]

    def __post_init__(self):
        """Validate descriptor configuration."""
        if not self.entity_tag:
            raise ValueError("entity_tag cannot be empty")
        if not self.collection_tag:
            raise ValueError("collection_tag cannot be empty")

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        for field_descriptor in self.fields:
            if field_descriptor.name == name:
                return field_descriptor
        return None


@dataclass(frozen=True)
class FilterClause:
    """
    One condition of a query's where clause.

    Attributes:
        field: Element name under $item
        operator: One of =, <, >, !=
        value: Literal text interpolated into the query
        quote_value: Wrap the value in single quotes (equality shorthand)
    """
    field: str
    operator: str
    value: str
    quote_value: bool = False

    def __post_init__(self):
        """Validate filter clause configuration."""
        if not self.field:
            raise ValueError("field cannot be empty")
        if self.operator not in FILTER_OPERATORS:
            raise ValueError(f"operator must be one of {', '.join(FILTER_OPERATORS)}")

    def to_xquery(self, variable: str = "$item") -> str:
        value = f"'{self.value}'" if self.quote_value else self.value
        return f"{variable}/{self.field} {self.operator} {value}"


@dataclass
class QueryResult:
    """
    Results from a query execution.

    Attributes:
        records: Records mapped from every fragment that converted cleanly
        fragments_total: Number of fragments returned by the store
        fragments_failed: Number of fragments skipped because they failed to map
        errors: Error messages for the skipped fragments and store failures
    """
    records: List[Any] = field(default_factory=list)
    fragments_total: int = 0
    fragments_failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def fragments_successful(self) -> int:
        return self.fragments_total - self.fragments_failed

    @property
    def success_rate(self) -> float:
        """Calculate the fragment success rate as a percentage."""
        if self.fragments_total == 0:
            return 0.0
        return (self.fragments_successful / self.fragments_total) * 100.0


@dataclass(frozen=True)
class CollectionHandle:
    """
    Resolved reference to a collection in the store.

    Attributes:
        path: Collection path as given by the caller (e.g., '/db/bookshop/novels')
        url: Endpoint the store client uses for this collection
    """
    path: str
    url: Optional[str] = None


@dataclass(frozen=True)
class RawFragment:
    """
    One raw XML payload returned by the store for one matched item.

    Attributes:
        payload: Serialized XML text of the item
        source_id: Optional position or document name reported by the store
    """
    payload: str
    source_id: Optional[str] = None

    def content(self) -> str:
        return self.payload
