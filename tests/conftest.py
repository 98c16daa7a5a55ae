"""
Pytest configuration and shared fixtures for protofaker tests.

The test schema is assembled in-process as a FileDescriptorProto and loaded
into a private descriptor pool, so the suite does not need protoc. It mirrors
this proto3 file:

    package protofaker.test;

    enum TestEnum { UNKNOWN_TEST_ENUM = 0; FIRST_TEST_ENUM = 1; SECOND_TEST_ENUM = 2; }
    enum OnlyUnknown { ONLY_UNKNOWN = 0; }

    message NestedMessage { string string_value = 1; }
    message Test { ...every scalar type, enum, bytes, nested and repeated fields... }
    message UserProfile { string email = 1; string first_name = 2; ... }
    message Node { string label = 1; Node child = 2; }
    message Sentinel { OnlyUnknown status = 1; }
    message Choice { string common_field = 1; oneof choice { ... } }
    message Labels { map<string, int32> counts = 1; map<int32, NestedMessage> nested_by_id = 2; }
    message Empty {}
"""

import shutil
from pathlib import Path
from types import SimpleNamespace

import pytest
from google.protobuf import descriptor_pb2

from protofaker.fake_source import FakeDataSource
from protofaker.schema_loader import build_pool, find_message_class


# =============================================================================
# Test Schema
# =============================================================================

PACKAGE = 'protofaker.test'
FDP = descriptor_pb2.FieldDescriptorProto

MESSAGE_NAMES = [
    'NestedMessage', 'Test', 'UserProfile', 'Node',
    'Sentinel', 'Choice', 'Labels', 'Empty',
]

USER_PROFILE_FIELDS = [
    'email', 'first_name', 'last_name', 'phone_number', 'street_address',
    'city', 'state', 'zip_code', 'country', 'company_name', 'job_title',
    'user_id', 'description', 'website_url', 'favorite_color', 'username',
]


def _field(name, number, field_type, type_name=None, repeated=False, oneof_index=None):
    field = FDP(
        name=name,
        number=number,
        type=field_type,
        label=FDP.LABEL_REPEATED if repeated else FDP.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = f'.{PACKAGE}.{type_name}'
    if oneof_index is not None:
        field.oneof_index = oneof_index
    return field


def _message(name, fields, nested=(), oneofs=()):
    msg = descriptor_pb2.DescriptorProto(name=name)
    msg.field.extend(fields)
    msg.nested_type.extend(nested)
    for oneof_name in oneofs:
        msg.oneof_decl.add(name=oneof_name)
    return msg


def _map_entry(name, key_type, value_type, value_type_name=None):
    entry = _message(name, [
        _field('key', 1, key_type),
        _field('value', 2, value_type, value_type_name),
    ])
    entry.options.map_entry = True
    return entry


def _enum(name, values):
    enum = descriptor_pb2.EnumDescriptorProto(name=name)
    for number, value_name in enumerate(values):
        enum.value.add(name=value_name, number=number)
    return enum


def build_test_file() -> descriptor_pb2.FileDescriptorProto:
    """Build the FileDescriptorProto of the test schema."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name='protofaker_test.proto',
        package=PACKAGE,
        syntax='proto3',
    )
    file_proto.enum_type.extend([
        _enum('TestEnum', ['UNKNOWN_TEST_ENUM', 'FIRST_TEST_ENUM', 'SECOND_TEST_ENUM']),
        _enum('OnlyUnknown', ['ONLY_UNKNOWN']),
    ])

    file_proto.message_type.extend([
        _message('NestedMessage', [_field('string_value', 1, FDP.TYPE_STRING)]),
        _message('Test', [
            _field('string_value', 1, FDP.TYPE_STRING),
            _field('double_value', 2, FDP.TYPE_DOUBLE),
            _field('float_value', 3, FDP.TYPE_FLOAT),
            _field('int32_value', 4, FDP.TYPE_INT32),
            _field('int64_value', 5, FDP.TYPE_INT64),
            _field('bool_value', 6, FDP.TYPE_BOOL),
            _field('enum_value', 7, FDP.TYPE_ENUM, 'TestEnum'),
            _field('uint32_value', 8, FDP.TYPE_UINT32),
            _field('uint64_value', 9, FDP.TYPE_UINT64),
            _field('sint32_value', 10, FDP.TYPE_SINT32),
            _field('sint64_value', 11, FDP.TYPE_SINT64),
            _field('fixed32_value', 12, FDP.TYPE_FIXED32),
            _field('fixed64_value', 13, FDP.TYPE_FIXED64),
            _field('sfixed32_value', 14, FDP.TYPE_SFIXED32),
            _field('sfixed64_value', 15, FDP.TYPE_SFIXED64),
            _field('bytes_value', 16, FDP.TYPE_BYTES),
            _field('nested_message', 17, FDP.TYPE_MESSAGE, 'NestedMessage'),
            _field('repeated_string_value', 18, FDP.TYPE_STRING, repeated=True),
            _field('repeated_int32_value', 19, FDP.TYPE_INT32, repeated=True),
            _field('repeated_nested_message', 20, FDP.TYPE_MESSAGE, 'NestedMessage', repeated=True),
            _field('repeated_enum_value', 21, FDP.TYPE_ENUM, 'TestEnum', repeated=True),
        ]),
        _message('UserProfile', [
            _field(name, number, FDP.TYPE_STRING)
            for number, name in enumerate(USER_PROFILE_FIELDS, start=1)
        ]),
        _message('Node', [
            _field('label', 1, FDP.TYPE_STRING),
            _field('child', 2, FDP.TYPE_MESSAGE, 'Node'),
        ]),
        _message('Sentinel', [_field('status', 1, FDP.TYPE_ENUM, 'OnlyUnknown')]),
        _message('Choice', [
            _field('common_field', 1, FDP.TYPE_STRING),
            _field('str_option', 2, FDP.TYPE_STRING, oneof_index=0),
            _field('int_option', 3, FDP.TYPE_INT32, oneof_index=0),
            _field('float_option', 4, FDP.TYPE_DOUBLE, oneof_index=0),
        ], oneofs=['choice']),
        _message('Labels', [
            _field('counts', 1, FDP.TYPE_MESSAGE, 'Labels.CountsEntry', repeated=True),
            _field('nested_by_id', 2, FDP.TYPE_MESSAGE, 'Labels.NestedByIdEntry', repeated=True),
        ], nested=[
            _map_entry('CountsEntry', FDP.TYPE_STRING, FDP.TYPE_INT32),
            _map_entry('NestedByIdEntry', FDP.TYPE_INT32, FDP.TYPE_MESSAGE, 'NestedMessage'),
        ]),
        _message('Empty', []),
    ])
    return file_proto


def build_test_file_set() -> descriptor_pb2.FileDescriptorSet:
    file_set = descriptor_pb2.FileDescriptorSet()
    file_set.file.append(build_test_file())
    return file_set


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def test_file_set() -> descriptor_pb2.FileDescriptorSet:
    """Return the test schema as a FileDescriptorSet."""
    return build_test_file_set()


@pytest.fixture(scope="session")
def schema(test_file_set) -> SimpleNamespace:
    """Return the message classes of the test schema, by short name."""
    pool = build_pool(test_file_set)
    return SimpleNamespace(**{
        name: find_message_class(pool, test_file_set, name) for name in MESSAGE_NAMES
    })


@pytest.fixture(scope="session")
def descriptor_set_path(tmp_path_factory, test_file_set) -> Path:
    """Write the test schema to a descriptor set file, as protoc would."""
    path = tmp_path_factory.mktemp("schema") / "protofaker_test.pb"
    path.write_bytes(test_file_set.SerializeToString())
    return path


@pytest.fixture
def source() -> FakeDataSource:
    """A seeded fake data source."""
    return FakeDataSource(seed=1234)


@pytest.fixture(scope="session")
def protoc_available() -> bool:
    return shutil.which("protoc") is not None


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "statistical: marks tests that repeat generation many times"
    )
    config.addinivalue_line(
        "markers", "cli: marks tests of the command line tool"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that need an external protoc"
    )
