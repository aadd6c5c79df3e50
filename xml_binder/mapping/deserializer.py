"""
XML-to-record deserializer.

Locates every element named after the type's entity tag, at any depth and
including the document root, and builds one record per match. For each field
only the first descendant element with the field's name is read; later
duplicates are ignored. A missing element leaves the field at its zero value
(the declared default, otherwise None).

Errors are never swallowed here: malformed XML raises XMLParsingError and
text that does not fit a field's kind raises MalformedValueError. Fault
isolation between fragments is the query executor's job.
"""

import dataclasses
import logging

from typing import Any, Dict, List, Optional, Union

from lxml import etree

from ..exceptions import MalformedValueError
from ..interfaces import DeserializerInterface
from ..models import PROJECTION_TAG, ResultMode, TypeDescriptor
from ..parsing.xml_parser import XMLParser
from .converters import ensure_supported, parse_value
from .registry import SerializableRegistry, get_registry


class XMLDeserializer(DeserializerInterface):
    """
    Deserializer for registered record types.

    The only state is the parser's counters, so instances can be shared;
    create one per thread if exact counters matter.
    """

    def __init__(self, registry: Optional[SerializableRegistry] = None,
                 parser: Optional[XMLParser] = None):
        """
        Initialize the deserializer.

        Args:
            registry: Capability registry to consult; defaults to the process-wide registry
            parser: XML parser to use; a strict parser is created when omitted
        """
        self.registry = registry or get_registry()
        self.parser = parser or XMLParser()
        self.logger = logging.getLogger(__name__)

    def from_xml(self, payload: Union[str, bytes], record_type: type,
                 result_mode: ResultMode = ResultMode.ENTITY,
                 source_record_id: Optional[str] = None) -> List[Any]:
        """
        Convert a raw XML payload into records.

        Args:
            payload: Raw XML text, or encoded bytes honouring their XML declaration
            record_type: Registered record class
            result_mode: ENTITY to match the type's entity tag, PROJECTION to match <result> wrappers
            source_record_id: Optional identifier attached to raised errors

        Returns:
            Records in document order of the matched elements

        Raises:
            NotSerializableError: If the type was never registered
            UnsupportedFieldTypeError: If the type declares a field with no conversion rule
            XMLParsingError: If the payload is empty or not well formed
            MalformedValueError: If an element's text does not fit its field's kind
                or the record constructor rejects the values
        """
        descriptor = self.registry.require_serializable(record_type)
        ensure_supported(descriptor)

        root = self.parser.parse_xml_stream(payload, source_record_id)
        return self._map_tree(root, descriptor, result_mode, source_record_id)

    def from_element(self, root: etree._Element, record_type: type,
                     result_mode: ResultMode = ResultMode.ENTITY) -> List[Any]:
        """
        Convert an already parsed tree into records.

        Args:
            root: Parsed element tree
            record_type: Registered record class
            result_mode: ENTITY or PROJECTION

        Returns:
            Records in document order of the matched elements
        """
        descriptor = self.registry.require_serializable(record_type)
        ensure_supported(descriptor)
        return self._map_tree(root, descriptor, result_mode, None)

    def _map_tree(self, root: etree._Element, descriptor: TypeDescriptor,
                  result_mode: ResultMode, source_record_id: Optional[str]) -> List[Any]:
        tag = PROJECTION_TAG if result_mode is ResultMode.PROJECTION else descriptor.entity_tag

        records = []
        for element in self.parser.iter_elements(root, tag):
            try:
                records.append(self._build_record(element, descriptor))
            except MalformedValueError as e:
                if e.source_record_id is None:
                    e.source_record_id = source_record_id
                raise

        self.logger.debug(f"Mapped {len(records)} <{tag}> element(s) to {descriptor.record_type.__name__}")
        return records

    def _build_record(self, element: etree._Element, descriptor: TypeDescriptor) -> Any:
        values: Dict[str, Any] = {}
        for field in descriptor.fields:
            node = self.parser.first_descendant(element, field.name)
            if node is None:
                continue
            values[field.name] = parse_value(field, self.parser.text_content(node), descriptor.record_type)
        return self._instantiate(descriptor, values)

    @staticmethod
    def _instantiate(descriptor: TypeDescriptor, values: Dict[str, Any]) -> Any:
        """
        Build an instance from the converted values.

        Dataclasses go through their constructor so __post_init__ runs; any
        field without a value and without a declared default gets None.
        Other classes are created without calling __init__ and populated
        attribute by attribute. A TypeError or ValueError raised while
        constructing a dataclass is reported as MalformedValueError.
        """
        record_type = descriptor.record_type

        if dataclasses.is_dataclass(record_type):
            init_kwargs = {}
            post_init_values = {}
            for dc_field in dataclasses.fields(record_type):
                has_default = (dc_field.default is not dataclasses.MISSING
                               or dc_field.default_factory is not dataclasses.MISSING)
                if not dc_field.init:
                    if dc_field.name in values:
                        post_init_values[dc_field.name] = values[dc_field.name]
                elif dc_field.name in values:
                    init_kwargs[dc_field.name] = values[dc_field.name]
                elif not has_default:
                    init_kwargs[dc_field.name] = None

            try:
                instance = record_type(**init_kwargs)
            except (TypeError, ValueError) as e:
                # Raised by the record's own constructor or __post_init__
                raise MalformedValueError(
                    f"Cannot construct {record_type.__name__} from element values: {e}",
                    source_value=repr(init_kwargs),
                    target_type=record_type.__name__
                ) from e
            for name, value in post_init_values.items():
                # object.__setattr__ also works on frozen dataclasses
                object.__setattr__(instance, name, value)
            return instance

        instance = record_type.__new__(record_type)
        for field in descriptor.fields:
            if field.name in values:
                value = values[field.name]
            else:
                value = getattr(record_type, field.name, None)
            setattr(instance, field.name, value)
        return instance


_default_deserializer = XMLDeserializer()


def from_xml(payload: Union[str, bytes], record_type: type,
             result_mode: ResultMode = ResultMode.ENTITY) -> List[Any]:
    return _default_deserializer.from_xml(payload, record_type, result_mode)
