#!/usr/bin/env python3
# kate: replace-tabs on; indent-width 4;

"""
protofaker data generator.

This module fills protobuf messages with fake but plausible data. Values
are chosen from each field's type, and string values from the field's name:
an "email" field gets an email address, a "city" field a city name.

The generator can output:
- Protobuf message instances
- Binary protobuf data
- JSON, text format or Python dictionaries for inspection

Example usage:
    faker = ProtoFaker(user_pb2.UserProfile).with_field('email', 'me@example.com')
    profile = faker.fake()
    profiles = faker.with_repeated_count(2, 4).fakes(10)
"""

import argparse
import json
import logging
import sys
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from google.protobuf import json_format, text_format
from google.protobuf.message import Message

from . import strings
from .config import GeneratorConfig
from .errors import MaxDepthExceeded, ResolutionError
from .fake_source import FakeDataSource
from .schema import EnumValue, FieldInfo, FieldKind, SchemaIntrospector
from .schema_loader import load_message_class

logger = logging.getLogger(__name__)

# Value ranges, upper bound exclusive
FLOAT_RANGE = (0.0, 100.0)
INT_RANGE = (1, 10000)


class OutputFormat(Enum):
    """Output format for generated data."""
    BINARY = "binary"
    HEX_STRING = "hex"
    JSON = "json"
    TEXT = "text"
    PYTHON_DICT = "dict"


def select_enum_value(values: Sequence[EnumValue], source: FakeDataSource) -> EnumValue:
    """
    Pick one enum constant.

    The constant at index 0 is skipped when its name contains "UNKNOWN" and
    there is something else to pick. Both bounds of the pick are inclusive.
    """
    start = 1 if len(values) > 1 and 'UNKNOWN' in values[0].name else 0
    return values[source.random_index(start, len(values) - 1)]


class ProtoFaker:
    """Generates fake data for one protobuf message class."""

    def __init__(self, message_cls: type,
                 config: Optional[GeneratorConfig] = None,
                 source: Optional[FakeDataSource] = None,
                 introspector: Optional[SchemaIntrospector] = None,
                 depth: int = 0):
        """
        Initialize the generator.

        Args:
            message_cls: Generated protobuf message class
            config: Starting configuration, copied so later calls don't leak back
            source: Fake data source; a new one is created from config if None
            introspector: Schema introspector shared with nested generators
            depth: Nesting depth of this generator, 0 for the top level

        Raises:
            ConstructionError: if message_cls is not a protobuf message class
        """
        self.introspector = introspector or SchemaIntrospector()
        self.message_cls = self.introspector.registry.register(message_cls)
        self.config = config.snapshot() if config is not None else GeneratorConfig()
        self.source = source or FakeDataSource(locale=self.config.locale, seed=self.config.seed)
        self.depth = depth

    def __repr__(self):
        return f"ProtoFaker({self.message_cls.DESCRIPTOR.full_name})"

    # ----- Configuration -----
    def with_field(self, field_name: str, value: Any) -> 'ProtoFaker':
        """
        Override the value for a specific field.

        The value is used as is. For a repeated field it is added as a single
        item, for a map field it must be a mapping of entries.
        """
        self.config.field_overrides[field_name] = value
        return self

    def without_field(self, field_name: str) -> 'ProtoFaker':
        """Remove an override so the field is generated again."""
        self.config.field_overrides.pop(field_name, None)
        return self

    def with_repeated_count(self, min_count: int, max_count: int) -> 'ProtoFaker':
        """Set the item count range [min_count, max_count) for repeated fields."""
        self.config.min_repeated_count = min_count
        self.config.max_repeated_count = max_count
        return self

    # ----- Generation -----
    def fake(self, template: Optional[Message] = None) -> Message:
        """
        Create a new message with every field populated.

        Args:
            template: Message whose set fields take precedence. Singular
                fields replace the generated ones, repeated fields are
                appended after the generated items.

        Returns:
            The generated message
        """
        generated = self._generate(self.config.snapshot())
        if template is None:
            return generated

        builder = self.introspector.to_builder(generated)
        self.introspector.merge_from(builder, template)
        return self.introspector.build(builder)

    def fakes(self, count: int, template: Optional[Message] = None) -> List[Message]:
        """Create count messages, each generated independently."""
        return [self.fake(template) for _ in range(count)]

    def fakes_from(self, templates: Sequence[Message]) -> List[Message]:
        """Create one message per template, in the same order."""
        return [self.fake(template) for template in templates]

    def _generate(self, config: GeneratorConfig) -> Message:
        """Populate a fresh builder field by field."""
        builder = self.introspector.new_builder(self.message_cls)
        fields = self.introspector.fields(self.message_cls)
        overrides = config.field_overrides

        fields_to_skip = self._unselected_oneof_fields(fields, overrides)

        for field in fields:
            if field.name in fields_to_skip:
                continue

            try:
                if field.name in overrides:
                    self._apply_override(builder, field, overrides[field.name])
                elif field.is_map:
                    self._fill_map(builder, field, config)
                elif field.repeated:
                    self._fill_repeated(builder, field, config)
                else:
                    value = self._resolve_field(field, config)
                    if value is not None:
                        self.introspector.set_field(builder, field, value)
            except MaxDepthExceeded as e:
                logger.debug("Leaving %s.%s unset: %s",
                             self.message_cls.DESCRIPTOR.full_name, field.name, e)
            except ResolutionError as e:
                logger.warning("Leaving %s.%s unset: %s",
                               self.message_cls.DESCRIPTOR.full_name, field.name, e)

        return self.introspector.build(builder)

    def _unselected_oneof_fields(self, fields: List[FieldInfo], overrides: Dict[str, Any]) -> Set[str]:
        """Pick one member of every oneof and return the names of the others."""
        oneofs: Dict[str, List[str]] = {}
        for field in fields:
            if field.oneof is not None:
                oneofs.setdefault(field.oneof, []).append(field.name)

        fields_to_skip = set()
        for oneof_fields in oneofs.values():
            overridden = [name for name in oneof_fields if name in overrides]
            if overridden:
                selected_field = overridden[0]
            else:
                selected_field = oneof_fields[self.source.random_index(0, len(oneof_fields) - 1)]

            fields_to_skip.update(name for name in oneof_fields if name != selected_field)
        return fields_to_skip

    def _apply_override(self, builder: Message, field: FieldInfo, value: Any) -> None:
        if field.is_map:
            for key, item in value.items():
                self.introspector.put_map_entry(builder, field, key, item)
        elif field.repeated:
            # An override is one item, never several
            self.introspector.add_repeated_field(builder, field, value)
        else:
            self.introspector.set_field(builder, field, value)

    def _fill_repeated(self, builder: Message, field: FieldInfo, config: GeneratorConfig) -> None:
        """Append independently generated items to a repeated field."""
        count = self.source.random_int(config.min_repeated_count, config.max_repeated_count)
        for _ in range(count):
            item = self._resolve_field(field, config)
            if item is not None:
                self.introspector.add_repeated_field(builder, field, item)

    def _fill_map(self, builder: Message, field: FieldInfo, config: GeneratorConfig) -> None:
        """Insert generated entries into a map field. Duplicate keys collapse."""
        key_field, value_field = field.map_entry_fields()
        count = self.source.random_int(config.min_repeated_count, config.max_repeated_count)
        for _ in range(count):
            key = self._resolve_field(key_field, config)
            value = self._resolve_field(value_field, config)
            if key is not None and value is not None:
                self.introspector.put_map_entry(builder, field, key, value)

    def _resolve_field(self, field: FieldInfo, config: GeneratorConfig) -> Any:
        """
        Generate one value for a field, ignoring overrides.

        Returns:
            The value, or None for field kinds that are not generated

        Raises:
            ResolutionError: if a nested message cannot be generated
        """
        kind = field.kind

        if kind is FieldKind.DOUBLE or kind is FieldKind.FLOAT:
            # Float fields narrow the value on assignment
            return self.source.random_double(*FLOAT_RANGE)
        elif kind is FieldKind.INT32 or kind is FieldKind.INT64:
            return self.source.random_int(*INT_RANGE)
        elif kind is FieldKind.BOOL:
            return self.source.random_bool()
        elif kind is FieldKind.STRING:
            return strings.synthesize(field.name, self.source)
        elif kind is FieldKind.BYTES:
            return self.source.quote_bytes()
        elif kind is FieldKind.ENUM:
            return select_enum_value(field.enum_values, self.source)
        elif kind is FieldKind.MESSAGE:
            return self._generate_nested(field, config)
        else:
            logger.debug("No generator for %s field %s", field.get_type_name(), field.name)
            return None

    def _generate_nested(self, field: FieldInfo, config: GeneratorConfig) -> Message:
        """Generate a nested message with a fresh, unconfigured generator."""
        if self.depth >= config.max_depth:
            raise MaxDepthExceeded(f"maximum depth {config.max_depth} reached at {field.name}")

        nested_cls = self.introspector.message_class(field)
        nested_faker = ProtoFaker(
            nested_cls,
            config=GeneratorConfig(max_depth=config.max_depth),
            source=self.source,
            introspector=self.introspector,
            depth=self.depth + 1,
        )
        return nested_faker.fake()


# ----- Output -----
def encode_varint(value: int) -> bytes:
    """Encode an integer as a varint."""
    if value < 0:
        value += (1 << 64)

    result = bytearray()
    while value > 0x7f:
        result.append((value & 0x7f) | 0x80)
        value >>= 7
    result.append(value & 0x7f)
    return bytes(result)


def encode_delimited(messages: Sequence[Message]) -> bytes:
    """Serialize messages as a stream of varint length-prefixed records."""
    output = bytearray()
    for message in messages:
        data = message.SerializeToString()
        output.extend(encode_varint(len(data)))
        output.extend(data)
    return bytes(output)


def format_output(messages: Sequence[Message],
                  format_type: OutputFormat = OutputFormat.JSON) -> Any:
    """
    Format generated messages for output.

    Args:
        messages: Generated messages
        format_type: Desired output format

    Returns:
        bytes for OutputFormat.BINARY, str otherwise. A single binary
        message is written raw, several are length-delimited.
    """
    if format_type == OutputFormat.BINARY:
        if len(messages) == 1:
            return messages[0].SerializeToString()
        return encode_delimited(messages)

    elif format_type == OutputFormat.HEX_STRING:
        return '\n'.join(m.SerializeToString().hex() for m in messages)

    elif format_type == OutputFormat.TEXT:
        return '\n'.join(text_format.MessageToString(m) for m in messages)

    dicts = [json_format.MessageToDict(m, preserving_proto_field_name=True) for m in messages]
    data = dicts[0] if len(dicts) == 1 else dicts

    if format_type == OutputFormat.JSON:
        return json.dumps(data, indent=2)
    return str(data)


# ----- Command line -----
def parse_field_assignment(assignment: str) -> Tuple[str, Any]:
    """Split NAME=VALUE. VALUE is read as JSON, or kept as a plain string."""
    name, sep, raw_value = assignment.partition('=')
    if not sep or not name:
        raise ValueError(f"Expected NAME=VALUE, got {assignment!r}")
    try:
        value = json.loads(raw_value)
    except ValueError:
        value = raw_value
    return name.strip(), value


def coerce_override(faker: ProtoFaker, field_name: str, value: Any) -> Any:
    """
    Fit a parsed command line value to the field it overrides.

    A JSON object given for a message field becomes a message, and a number
    or boolean given for a string field (e.g. zip_code=12345) becomes text.
    """
    fields = {f.name: f for f in faker.introspector.fields(faker.message_cls)}
    field = fields.get(field_name)
    if field is None:
        return value
    if field.kind is FieldKind.MESSAGE and not field.is_map and isinstance(value, dict):
        return json_format.ParseDict(value, faker.introspector.message_class(field)())
    if field.kind is FieldKind.STRING and not isinstance(value, str):
        return json.dumps(value)
    return value


def main(argv: Optional[List[str]] = None) -> int:
    """Generate fake messages from the command line."""
    parser = argparse.ArgumentParser(
        description='Generate fake data for protobuf messages'
    )
    parser.add_argument('message', help='Message name to generate data for')
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--module', help='Python module with generated classes, e.g. pkg.user_pb2')
    source.add_argument('--descriptor-set',
                        help='FileDescriptorSet from protoc --descriptor_set_out --include_imports')
    source.add_argument('--proto', help='Path to .proto file (requires protoc)')
    parser.add_argument('-I', '--include', action='append', default=[],
                        help='Include path for proto files')
    parser.add_argument('--count', '-n', type=int, default=1,
                        help='Number of messages to generate')
    # Allow multiple --field entries
    parser.add_argument(
        '--field', dest='fields', action='append', default=[], metavar='NAME=VALUE',
        help='Field override, VALUE is parsed as JSON when possible (can be given multiple times)'
    )
    parser.add_argument('--repeated-count', nargs=2, type=int, metavar=('MIN', 'MAX'),
                        help='Item count range for repeated fields, MAX exclusive')
    parser.add_argument('--max-depth', type=int, help='Maximum nesting depth')
    parser.add_argument('--template', help='JSON file with a template message')
    parser.add_argument('--format', choices=[f.value for f in OutputFormat],
                        default='json', help='Output format')
    parser.add_argument('--output', '-o', help='Output file (default: stdout)')
    parser.add_argument('--seed', type=int, help='Random seed for reproducibility')
    parser.add_argument('--locale', help='Faker locale, e.g. de_DE')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log debug output')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    # Load schema
    try:
        message_cls = load_message_class(
            args.message,
            module=args.module,
            descriptor_set=args.descriptor_set,
            proto_file=args.proto,
            include_paths=args.include,
        )
    except Exception as e:
        print(f"Error loading schema: {e}", file=sys.stderr)
        return 1

    config = GeneratorConfig.from_env()
    if args.repeated_count:
        config.min_repeated_count, config.max_repeated_count = args.repeated_count
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.seed is not None:
        config.seed = args.seed
    if args.locale:
        config.locale = args.locale

    # Generate data
    try:
        faker = ProtoFaker(message_cls, config=config)
        for assignment in args.fields:
            name, value = parse_field_assignment(assignment)
            faker.with_field(name, coerce_override(faker, name, value))

        template = None
        if args.template:
            with open(args.template) as f:
                template = json_format.Parse(f.read(), message_cls())

        messages = faker.fakes(args.count, template)
        output = format_output(messages, OutputFormat(args.format))

        # Write output
        if args.output:
            if args.format == 'binary':
                with open(args.output, 'wb') as f:
                    f.write(output)
            else:
                with open(args.output, 'w') as f:
                    f.write(output)
                    f.write('\n')
        else:
            if args.format == 'binary':
                sys.stdout.buffer.write(output)
            else:
                print(output)

    except Exception as e:
        print(f"Error generating data: {e}", file=sys.stderr)
        logger.debug("Generation failed", exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
