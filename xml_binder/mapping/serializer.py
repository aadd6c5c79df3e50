"""
Record-to-XML serializer.

Converts a sequence of records of one registered type into an XML tree:

    <books>                 root: explicit root tag or the collection tag
      <book>                one element per record (entity tag)
        <title>1984</title> one element per non-None field, declaration order
        <year>1949</year>
      </book>
    </books>

The conversion is all-or-nothing: the first unsupported field kind or
malformed value aborts the whole call and no partial tree is returned.
"""

import logging

from typing import Any, List, Optional, Sequence

from lxml import etree

from ..config.config_manager import SerializationParameters, get_config_manager
from ..exceptions import MalformedValueError
from ..interfaces import SerializerInterface
from ..models import TypeDescriptor
from ..utils import StringUtils
from .converters import ensure_supported, format_value
from .registry import SerializableRegistry, get_registry


TEXT_ENCODING = "UTF-8"


class XMLSerializer(SerializerInterface):
    """
    Serializer for registered record types.

    Stateless apart from its output settings, so one instance can be shared
    across threads.
    """

    def __init__(self, registry: Optional[SerializableRegistry] = None,
                 pretty_print: Optional[bool] = None, encoding: Optional[str] = None):
        """
        Initialize the serializer.

        Output settings left as None are taken from the configured
        serialization parameters each time a document is written.

        Args:
            registry: Capability registry to consult; defaults to the process-wide registry
            pretty_print: Indent textual output
            encoding: Encoding declared and used for encoded output
        """
        self.registry = registry or get_registry()
        self.pretty_print = pretty_print
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def to_xml(self, records: Sequence[Any], root_tag: Optional[str] = None) -> etree._Element:
        """
        Convert records into an XML tree.

        Args:
            records: Non-empty sequence of records of one registered type
            root_tag: Optional root element name; defaults to the collection tag

        Returns:
            Root element of the generated document

        Raises:
            ValueError: If records is empty, mixes types, or root_tag is not a valid element name
            NotSerializableError: If the record type was never registered
            UnsupportedFieldTypeError: If a populated field has no conversion rule
            MalformedValueError: If a field value does not fit its kind
        """
        records = self._as_list(records)
        record_type = type(records[0])
        descriptor = self.registry.require_serializable(record_type)
        ensure_supported(descriptor)

        for position, record in enumerate(records):
            if type(record) is not record_type:
                raise ValueError(
                    f"All records must be of type {record_type.__name__}; "
                    f"record {position} is {type(record).__name__}"
                )

        if root_tag is None:
            root_tag = descriptor.collection_tag
        elif not StringUtils.is_xml_name(root_tag):
            raise ValueError(f"Invalid root element name: {root_tag!r}")

        root = etree.Element(root_tag)
        for record in records:
            self._append_record(root, record, descriptor)

        self.logger.debug(f"Serialized {len(records)} {descriptor.entity_tag} record(s) under <{root_tag}>")
        return root

    def to_xml_bytes(self, records: Sequence[Any], root_tag: Optional[str] = None,
                     pretty_print: Optional[bool] = None) -> bytes:
        """
        Convert records into an encoded XML document with declaration.

        Args:
            records: Non-empty sequence of records of one registered type
            root_tag: Optional root element name
            pretty_print: Override the instance indentation setting

        Returns:
            Encoded document
        """
        root = self.to_xml(records, root_tag)
        return self.document_to_bytes(root, pretty_print)

    def to_xml_string(self, records: Sequence[Any], root_tag: Optional[str] = None,
                      pretty_print: Optional[bool] = None) -> str:
        """
        Same as to_xml_bytes, as text.

        Text output always declares UTF-8, whatever encoding is configured.
        """
        root = self.to_xml(records, root_tag)
        return self.document_to_bytes(root, pretty_print, encoding=TEXT_ENCODING).decode(TEXT_ENCODING)

    def document_to_bytes(self, root: etree._Element, pretty_print: Optional[bool] = None,
                          encoding: Optional[str] = None) -> bytes:
        settings = self._output_settings()
        if pretty_print is None:
            pretty_print = settings.pretty_print
        return etree.tostring(
            root,
            xml_declaration=True,
            encoding=encoding or settings.encoding,
            pretty_print=pretty_print
        )

    def _output_settings(self) -> SerializationParameters:
        if self.pretty_print is not None and self.encoding is not None:
            return SerializationParameters(self.pretty_print, self.encoding)
        configured = get_config_manager().get_serialization_parameters()
        return SerializationParameters(
            pretty_print=configured.pretty_print if self.pretty_print is None else self.pretty_print,
            encoding=configured.encoding if self.encoding is None else self.encoding
        )

    def _append_record(self, parent: etree._Element, record: Any, descriptor: TypeDescriptor) -> None:
        record_element = etree.SubElement(parent, descriptor.entity_tag)
        for field in descriptor.fields:
            value = getattr(record, field.name, None)
            if value is None:
                continue
            text = format_value(field, value, descriptor.record_type)
            child = etree.SubElement(record_element, field.name)
            try:
                child.text = text
            except ValueError as e:
                # Control characters and lone surrogates cannot appear in XML text
                raise MalformedValueError(
                    f"Value of field '{field.name}' cannot be written as XML text: {e}",
                    field_name=field.name,
                    source_value=text,
                    target_type=field.kind.value
                ) from e

    @staticmethod
    def _as_list(records: Sequence[Any]) -> List[Any]:
        if records is None:
            raise ValueError("records cannot be None")
        records = list(records)
        if not records:
            raise ValueError("records cannot be empty; the first record determines the type")
        return records


_default_serializer = XMLSerializer()


def to_xml(records: Sequence[Any], root_tag: Optional[str] = None) -> etree._Element:
    return _default_serializer.to_xml(records, root_tag)


def to_xml_string(records: Sequence[Any], root_tag: Optional[str] = None,
                  pretty_print: Optional[bool] = None) -> str:
    return _default_serializer.to_xml_string(records, root_tag, pretty_print)
