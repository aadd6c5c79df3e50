"""
Custom exceptions for the XML Binder system.

This module defines specific exception types for the error conditions that
can occur while mapping records to XML, reading them back, and querying the
eXist-db store.
"""


class XMLBinderError(Exception):
    """Base exception for all XML binding related errors."""

    def __init__(self, message: str, source_record_id: str = None):
        """
        Initialize XML binder error.

        Args:
            message: Error description
            source_record_id: Optional identifier of the fragment or document that caused the error
        """
        super().__init__(message)
        self.source_record_id = source_record_id


class NotSerializableError(XMLBinderError):
    """Exception raised when a type was never registered as XML serializable."""

    def __init__(self, record_type: type = None, message: str = None):
        """
        Initialize not-serializable error.

        Args:
            record_type: The offending type
            message: Optional override for the default message
        """
        type_name = getattr(record_type, '__name__', repr(record_type))
        super().__init__(message or f"Class is not serializable to XML: {type_name}")
        self.record_type = record_type


class XMLParsingError(XMLBinderError):
    """Exception raised when XML parsing fails."""

    def __init__(self, message: str, xml_content: str = None, source_record_id: str = None):
        """
        Initialize XML parsing error.

        Args:
            message: Error description
            xml_content: Optional XML content that failed to parse (truncated for logging)
            source_record_id: Optional identifier of the fragment
        """
        super().__init__(message, source_record_id)
        # Store truncated XML content for debugging (first 500 chars)
        self.xml_content = xml_content[:500] + "..." if xml_content and len(xml_content) > 500 else xml_content


class MalformedValueError(XMLBinderError):
    """Exception raised when a field value does not match its declared kind."""

    def __init__(self, message: str, field_name: str = None, source_value: str = None,
                 target_type: str = None, source_record_id: str = None):
        """
        Initialize malformed value error.

        Args:
            message: Error description
            field_name: Name of the field that failed conversion
            source_value: Original value that failed conversion
            target_type: Field kind the value was converted to or from
            source_record_id: Optional identifier of the fragment
        """
        super().__init__(message, source_record_id)
        self.field_name = field_name
        self.source_value = source_value
        self.target_type = target_type


class UnsupportedFieldTypeError(XMLBinderError):
    """Exception raised when a field's declared type has no conversion rule."""

    def __init__(self, field_name: str, field_type: object, record_type: type = None):
        type_label = getattr(field_type, '__name__', repr(field_type))
        owner = f"{record_type.__name__}." if record_type is not None else ""
        super().__init__(f"Unsupported field type for {owner}{field_name}: {type_label}")
        self.field_name = field_name
        self.field_type = field_type
        self.record_type = record_type


class StoreError(XMLBinderError):
    """Base exception for failures reported by the XML store."""
    pass


class StoreConnectionError(StoreError):
    """Exception raised when the store cannot be reached or rejects the credentials."""
    pass


class CollectionNotFoundError(StoreError):
    """Exception raised when a collection path does not resolve in the store."""

    def __init__(self, collection_path: str, message: str = None):
        super().__init__(message or f"Collection not found: {collection_path}")
        self.collection_path = collection_path


class StoreSubmissionError(StoreError):
    """Exception raised when the store fails to run a query or store a document."""

    def __init__(self, message: str, query_text: str = None, status_code: int = None):
        """
        Initialize store submission error.

        Args:
            message: Error description
            query_text: Optional query that was submitted
            status_code: Optional HTTP status returned by the store
        """
        super().__init__(message)
        self.query_text = query_text
        self.status_code = status_code


class ConfigurationError(XMLBinderError):
    """Exception raised when configuration is invalid or missing."""
    pass


class DocumentNotFoundError(StoreError):
    """Exception raised when a document is missing from an existing collection."""

    def __init__(self, collection_path: str, document_name: str):
        super().__init__(f"Document not found: {document_name} in {collection_path}")
        self.collection_path = collection_path
        self.document_name = document_name
