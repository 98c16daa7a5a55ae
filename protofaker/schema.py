"""
Schema introspection over the protobuf runtime.

FieldInfo flattens a protobuf FieldDescriptor into what the generator needs
to know about a field. SchemaIntrospector creates, fills and merges message
instances. TypeRegistry maps message descriptors to the classes that build
them, so nested message types are never looked up by name.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from google.protobuf import message_factory
from google.protobuf.descriptor import Descriptor, FieldDescriptor
from google.protobuf.message import Message

from .errors import ConstructionError, ResolutionError

logger = logging.getLogger(__name__)


class FieldKind(Enum):
    """Field kinds the generator knows how to fill."""
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    ENUM = "enum"
    MESSAGE = "message"


# Groups are deliberately absent; they resolve to no value.
_KIND_BY_TYPE = {
    FieldDescriptor.TYPE_DOUBLE: FieldKind.DOUBLE,
    FieldDescriptor.TYPE_FLOAT: FieldKind.FLOAT,
    FieldDescriptor.TYPE_INT32: FieldKind.INT32,
    FieldDescriptor.TYPE_UINT32: FieldKind.INT32,
    FieldDescriptor.TYPE_SINT32: FieldKind.INT32,
    FieldDescriptor.TYPE_FIXED32: FieldKind.INT32,
    FieldDescriptor.TYPE_SFIXED32: FieldKind.INT32,
    FieldDescriptor.TYPE_INT64: FieldKind.INT64,
    FieldDescriptor.TYPE_UINT64: FieldKind.INT64,
    FieldDescriptor.TYPE_SINT64: FieldKind.INT64,
    FieldDescriptor.TYPE_FIXED64: FieldKind.INT64,
    FieldDescriptor.TYPE_SFIXED64: FieldKind.INT64,
    FieldDescriptor.TYPE_BOOL: FieldKind.BOOL,
    FieldDescriptor.TYPE_STRING: FieldKind.STRING,
    FieldDescriptor.TYPE_BYTES: FieldKind.BYTES,
    FieldDescriptor.TYPE_ENUM: FieldKind.ENUM,
    FieldDescriptor.TYPE_MESSAGE: FieldKind.MESSAGE,
}

_TYPE_NAMES = {
    1: 'double', 2: 'float', 3: 'int64', 4: 'uint64',
    5: 'int32', 6: 'fixed64', 7: 'fixed32', 8: 'bool',
    9: 'string', 10: 'group', 11: 'message', 12: 'bytes',
    13: 'uint32', 14: 'enum', 15: 'sfixed32', 16: 'sfixed64',
    17: 'sint32', 18: 'sint64'
}


@dataclass(frozen=True)
class EnumValue:
    """One declared enum constant."""
    name: str
    number: int


class FieldInfo:
    """Information about a protobuf field."""

    def __init__(self, field_desc: FieldDescriptor):
        self.descriptor = field_desc
        self.name = field_desc.name
        self.number = field_desc.number
        self.type = field_desc.type
        self.kind: Optional[FieldKind] = _KIND_BY_TYPE.get(field_desc.type)
        self.repeated = field_desc.is_repeated
        self.message_type: Optional[Descriptor] = field_desc.message_type
        self.oneof: Optional[str] = (
            field_desc.containing_oneof.name if field_desc.containing_oneof is not None else None
        )

        self.enum_values: Tuple[EnumValue, ...] = ()
        if field_desc.enum_type is not None:
            self.enum_values = tuple(
                EnumValue(v.name, v.number) for v in field_desc.enum_type.values
            )

    @property
    def is_map(self) -> bool:
        """Check if field is a map (a repeated field of map entries)."""
        return (self.message_type is not None
                and self.message_type.GetOptions().map_entry)

    def map_entry_fields(self) -> Tuple['FieldInfo', 'FieldInfo']:
        """Return the key and value fields of a map entry."""
        fields = self.message_type.fields_by_name
        return FieldInfo(fields['key']), FieldInfo(fields['value'])

    def get_type_name(self) -> str:
        """Get human-readable type name."""
        return _TYPE_NAMES.get(self.type, 'unknown')

    def __repr__(self):
        label = 'repeated ' if self.repeated else ''
        return f"FieldInfo({label}{self.get_type_name()} {self.name} = {self.number})"


def check_message_class(message_cls: Any) -> None:
    """Raise ConstructionError unless message_cls is a protobuf message class."""
    if not (isinstance(message_cls, type)
            and issubclass(message_cls, Message)
            and isinstance(getattr(message_cls, 'DESCRIPTOR', None), Descriptor)):
        raise ConstructionError(f"{message_cls!r} is not a protobuf message class")


class TypeRegistry:
    """Maps message descriptors to message classes."""

    def __init__(self):
        self._classes: Dict[Descriptor, type] = {}

    def register(self, message_cls: type) -> type:
        """Register a message class under its own descriptor."""
        check_message_class(message_cls)
        self._classes[message_cls.DESCRIPTOR] = message_cls
        return message_cls

    def resolve(self, descriptor: Descriptor) -> type:
        """
        Return the class that builds messages of the given descriptor.

        Descriptors that were never registered are resolved through the
        protobuf message factory and remembered.

        Raises:
            ResolutionError: if no class can be found
        """
        if descriptor is None:
            raise ResolutionError("Field has no message type")

        message_cls = self._classes.get(descriptor)
        if message_cls is not None:
            return message_cls

        try:
            message_cls = message_factory.GetMessageClass(descriptor)
        except Exception as e:
            raise ResolutionError(
                f"Could not find message class for {descriptor.full_name}: {e}"
            ) from e

        logger.debug("Resolved %s through the message factory", descriptor.full_name)
        self._classes[descriptor] = message_cls
        return message_cls

    def __contains__(self, descriptor: Descriptor) -> bool:
        return descriptor in self._classes


class SchemaIntrospector:
    """Reads message schemas and assembles message instances."""

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry or TypeRegistry()

    def fields(self, message_cls: type) -> List[FieldInfo]:
        """Get the fields of a message class in declaration order."""
        check_message_class(message_cls)
        return [FieldInfo(fd) for fd in message_cls.DESCRIPTOR.fields]

    def message_class(self, field: FieldInfo) -> type:
        """Get the class of a message-typed field."""
        return self.registry.resolve(field.message_type)

    def new_builder(self, message_cls: type) -> Message:
        """Create an empty, mutable message."""
        check_message_class(message_cls)
        return message_cls()

    def build(self, builder: Message) -> Message:
        """Finalize a builder. Protobuf messages are their own builders."""
        return builder

    def to_builder(self, instance: Message) -> Message:
        """Copy an instance into a new builder."""
        builder = type(instance)()
        builder.CopyFrom(instance)
        return builder

    def set_field(self, builder: Message, field: FieldInfo, value: Any) -> None:
        """Set a singular field. Incompatible values raise protobuf's own errors."""
        if field.kind is FieldKind.MESSAGE:
            target = getattr(builder, field.name)
            target.SetInParent()
            target.CopyFrom(value)
        else:
            setattr(builder, field.name, _plain(value, field))

    def add_repeated_field(self, builder: Message, field: FieldInfo, value: Any) -> None:
        """Append one item to a repeated field."""
        container = getattr(builder, field.name)
        if field.kind is FieldKind.MESSAGE:
            container.add().CopyFrom(value)
        else:
            container.append(_plain(value, field))

    def put_map_entry(self, builder: Message, field: FieldInfo, key: Any, value: Any) -> None:
        """Insert or replace one entry of a map field."""
        container = getattr(builder, field.name)
        _, value_field = field.map_entry_fields()
        if value_field.kind is FieldKind.MESSAGE:
            container[key].CopyFrom(value)
        else:
            container[key] = _plain(value, value_field)

    def merge_from(self, builder: Message, instance: Message) -> None:
        """
        Merge an instance into a builder.

        Set singular fields replace, sub-messages merge recursively and
        repeated fields are appended.
        """
        if builder.DESCRIPTOR.full_name != instance.DESCRIPTOR.full_name:
            raise TypeError(
                f"Cannot merge {instance.DESCRIPTOR.full_name} into {builder.DESCRIPTOR.full_name}"
            )
        builder.MergeFrom(instance)


def _plain(value: Any, field: FieldInfo) -> Any:
    """Unwrap enum constants and enum names to the number protobuf expects."""
    if isinstance(value, EnumValue):
        return value.number
    if field.kind is FieldKind.ENUM and isinstance(value, str):
        for enum_value in field.enum_values:
            if enum_value.name == value:
                return enum_value.number
    return value
