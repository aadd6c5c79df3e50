"""Record registration and record/XML conversion."""

from .registry import SerializableRegistry, get_registry, xml_serializable, register_serializable
from .serializer import XMLSerializer
from .deserializer import XMLDeserializer

__all__ = [
    'SerializableRegistry',
    'XMLSerializer',
    'XMLDeserializer',
    'get_registry',
    'xml_serializable',
    'register_serializable'
]
