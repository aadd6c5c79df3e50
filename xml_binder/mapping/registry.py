"""
Capability registry and type descriptors for XML-mappable record types.

A record type opts in to XML mapping by registration, either with the
``@xml_serializable`` decorator or an explicit ``register_serializable()``
call. Registration records the per-field kind overrides; the ordered field
list itself is derived lazily from the class annotations the first time a
descriptor is requested, then cached for every later serialize, deserialize
or query call.

Example:

    @xml_serializable
    @dataclass
    class Book:
        title: str = None
        author: str = None
        year: int = None

    get_type_descriptor(Book).entity_tag      # 'book'
    get_type_descriptor(Book).collection_tag  # 'books'
"""

import dataclasses
import datetime
import logging
import threading
import types
import typing

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..exceptions import NotSerializableError
from ..models import FieldDescriptor, FieldKind, TypeDescriptor
from ..utils import TagUtils


# Annotation -> kind. Lookups are by identity so bool never falls through to int.
_KIND_BY_TYPE = {
    str: FieldKind.STRING,
    int: FieldKind.INTEGER,
    float: FieldKind.FLOAT,
    bool: FieldKind.BOOLEAN,
    datetime.date: FieldKind.DATE,
}

# Fallback for string annotations that cannot be resolved with get_type_hints
_TYPE_BY_NAME = {
    'str': str,
    'int': int,
    'float': float,
    'bool': bool,
    'date': datetime.date,
    'datetime.date': datetime.date,
}

_UNION_TYPES = tuple(t for t in (Union, getattr(types, 'UnionType', None)) if t is not None)


def _unwrap_optional(hint: Any) -> Any:
    """Reduce Optional[X] (and X | None) to X; other unions are left alone."""
    if typing.get_origin(hint) in _UNION_TYPES:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _coerce_kind(kind: Union[FieldKind, str]) -> FieldKind:
    if isinstance(kind, FieldKind):
        return kind
    try:
        return FieldKind(str(kind).lower())
    except ValueError:
        valid = ', '.join(k.value for k in FieldKind)
        raise ValueError(f"Unknown field kind '{kind}' (expected one of: {valid})")


class SerializableRegistry:
    """
    Registry answering "is this type eligible for XML mapping?" and owning the
    descriptor cache.

    Membership is exact: a subclass of a registered type is not serializable
    until it is registered itself.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._overrides: Dict[type, Dict[str, FieldKind]] = {}
        self._descriptors: Dict[type, TypeDescriptor] = {}
        self._lock = threading.Lock()

    def register(self, record_type: type,
                 fields: Optional[Mapping[str, Union[FieldKind, str]]] = None) -> type:
        """
        Mark a type as XML serializable.

        Args:
            record_type: Class to register
            fields: Optional per-field kind overrides (e.g. {'isbn': FieldKind.LONG})

        Returns:
            The registered class, so the call can be used as a decorator
        """
        if not isinstance(record_type, type):
            raise TypeError(f"Only classes can be registered, got {record_type!r}")

        overrides = {name: _coerce_kind(kind) for name, kind in (fields or {}).items()}

        with self._lock:
            self._overrides[record_type] = overrides
            self._descriptors.pop(record_type, None)

        self.logger.debug(f"Registered {record_type.__name__} as XML serializable")
        return record_type

    def unregister(self, record_type: type) -> None:
        with self._lock:
            self._overrides.pop(record_type, None)
            self._descriptors.pop(record_type, None)

    def is_serializable(self, record_type: Any) -> bool:
        """
        Check whether a type carries the serializable capability.

        Args:
            record_type: Class to check

        Returns:
            True if the class was registered
        """
        return isinstance(record_type, type) and record_type in self._overrides

    def require_serializable(self, record_type: Any) -> TypeDescriptor:
        """
        Return the descriptor of a registered type.

        Raises:
            NotSerializableError: If the type was never registered
        """
        if not self.is_serializable(record_type):
            raise NotSerializableError(record_type)
        return self.get_type_descriptor(record_type)

    def get_type_descriptor(self, record_type: type) -> TypeDescriptor:
        """
        Get the cached descriptor for a registered type, building it on first use.

        Args:
            record_type: Registered class

        Returns:
            TypeDescriptor with tags and ordered fields

        Raises:
            NotSerializableError: If the type was never registered
        """
        descriptor = self._descriptors.get(record_type)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._descriptors.get(record_type)
            if descriptor is None:
                if record_type not in self._overrides:
                    raise NotSerializableError(record_type)
                descriptor = self._build_descriptor(record_type, self._overrides[record_type])
                self._descriptors[record_type] = descriptor
        return descriptor

    def registered_types(self) -> List[type]:
        return list(self._overrides)

    def clear(self) -> None:
        with self._lock:
            self._overrides.clear()
            self._descriptors.clear()

    def _build_descriptor(self, record_type: type,
                          overrides: Dict[str, FieldKind]) -> TypeDescriptor:
        declared = self._declared_fields(record_type)
        declared_names = {name for name, _ in declared}

        unknown = sorted(set(overrides) - declared_names)
        if unknown:
            raise ValueError(f"{record_type.__name__} has no field(s) named: {', '.join(unknown)}")

        field_descriptors = []
        for name, hint in declared:
            kind = overrides.get(name)
            if kind is None:
                kind = _KIND_BY_TYPE.get(_unwrap_optional(hint))
            if kind is None:
                # Kept in the descriptor; serialize and deserialize calls reject the type
                self.logger.debug(f"{record_type.__name__}.{name} has no conversion rule for {hint!r}")
            field_descriptors.append(FieldDescriptor(name=name, kind=kind, python_type=hint))

        entity_tag = TagUtils.entity_tag_for(record_type)
        descriptor = TypeDescriptor(
            record_type=record_type,
            entity_tag=entity_tag,
            collection_tag=TagUtils.collection_tag_for(entity_tag),
            fields=tuple(field_descriptors)
        )
        self.logger.debug(
            f"Built descriptor for {record_type.__name__}: <{descriptor.collection_tag}>/<{entity_tag}> "
            f"fields={descriptor.field_names}"
        )
        return descriptor

    def _declared_fields(self, record_type: type) -> List[Tuple[str, Any]]:
        """Ordered (name, annotation) pairs, base classes first."""
        try:
            hints = typing.get_type_hints(record_type)
        except (NameError, TypeError) as e:
            self.logger.debug(f"Could not resolve annotations of {record_type.__name__}: {e}")
            hints = {}

        if dataclasses.is_dataclass(record_type):
            return [
                (f.name, self._resolve_hint(hints.get(f.name, f.type)))
                for f in dataclasses.fields(record_type)
            ]

        declared = []
        seen = set()
        for klass in reversed(record_type.__mro__):
            for name, annotation in vars(klass).get('__annotations__', {}).items():
                if name.startswith('_') or name in seen:
                    continue
                hint = self._resolve_hint(hints.get(name, annotation))
                if typing.get_origin(hint) is typing.ClassVar:
                    continue
                seen.add(name)
                declared.append((name, hint))
        return declared

    @staticmethod
    def _resolve_hint(hint: Any) -> Any:
        if isinstance(hint, str):
            return _TYPE_BY_NAME.get(hint.strip(), hint)
        return hint


_default_registry = SerializableRegistry()


def get_registry() -> SerializableRegistry:
    """Get the process-wide registry used by the module-level helpers."""
    return _default_registry


def xml_serializable(cls: Optional[type] = None, *,
                     fields: Optional[Mapping[str, Union[FieldKind, str]]] = None):
    """
    Class decorator marking a type as XML serializable.

    Usable bare (``@xml_serializable``) or with per-field kind overrides
    (``@xml_serializable(fields={'isbn': FieldKind.LONG})``).
    """
    def wrap(record_type: type) -> type:
        return _default_registry.register(record_type, fields=fields)

    if cls is None:
        return wrap
    return wrap(cls)


def register_serializable(record_type: type,
                          fields: Optional[Mapping[str, Union[FieldKind, str]]] = None) -> type:
    return _default_registry.register(record_type, fields=fields)


def unregister_serializable(record_type: type) -> None:
    _default_registry.unregister(record_type)


def is_serializable(record_type: Any) -> bool:
    return _default_registry.is_serializable(record_type)


def require_serializable(record_type: Any) -> TypeDescriptor:
    return _default_registry.require_serializable(record_type)


def get_type_descriptor(record_type: type) -> TypeDescriptor:
    return _default_registry.get_type_descriptor(record_type)
