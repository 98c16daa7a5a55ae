"""Fake data for protobuf messages."""

from .config import GeneratorConfig
from .data_generator import OutputFormat, ProtoFaker, format_output, select_enum_value
from .errors import (
    ConstructionError,
    MaxDepthExceeded,
    ProtoFakerError,
    ResolutionError,
    SchemaLoadError,
)
from .fake_source import FakeDataSource
from .schema import EnumValue, FieldInfo, FieldKind, SchemaIntrospector, TypeRegistry

__version__ = '0.1.0'

__all__ = [
    'ConstructionError',
    'EnumValue',
    'FakeDataSource',
    'FieldInfo',
    'FieldKind',
    'GeneratorConfig',
    'MaxDepthExceeded',
    'OutputFormat',
    'ProtoFaker',
    'ProtoFakerError',
    'ResolutionError',
    'SchemaIntrospector',
    'SchemaLoadError',
    'TypeRegistry',
    'format_output',
    'select_enum_value',
]
