"""
Load message classes for the command line tool.

Three schema sources are supported:
- a generated Python module (e.g. ``pkg.user_pb2``)
- a FileDescriptorSet written by ``protoc --descriptor_set_out --include_imports``
- a ``.proto`` file, compiled to a descriptor set with an external protoc
"""

import importlib
import logging
import os
import shutil
import subprocess
import tempfile
from typing import List, Optional

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError

from .errors import SchemaLoadError
from .schema import check_message_class

logger = logging.getLogger(__name__)


def find_protoc() -> str:
    """Find the protoc compiler, preferring $PROTOC over the search path."""
    protoc = os.getenv('PROTOC') or shutil.which('protoc')
    if not protoc:
        raise SchemaLoadError("Could not find protoc compiler (set PROTOC or add it to PATH)")
    return protoc


def compile_descriptor_set(proto_file: str, include_paths: Optional[List[str]] = None) -> bytes:
    """
    Compile a .proto file into a serialized FileDescriptorSet.

    Args:
        proto_file: Path to .proto file
        include_paths: Additional include paths for protoc

    Returns:
        Serialized FileDescriptorSet including all imports
    """
    proto_abs_path = os.path.abspath(proto_file)
    if not os.path.isfile(proto_abs_path):
        raise SchemaLoadError(f"Proto file not found: {proto_file}")

    search_paths = [os.path.dirname(proto_abs_path)]
    search_paths += [os.path.abspath(p) for p in include_paths or []]

    with tempfile.TemporaryDirectory(prefix='protofaker-') as tmpdir:
        desc_file = os.path.join(tmpdir, 'descriptor.pb')

        cmd = [
            find_protoc(),
            '--descriptor_set_out=' + desc_file,
            '--include_imports',
        ]
        for path in search_paths:
            if os.path.exists(path):
                cmd.append('-I' + path)
        cmd.append(proto_abs_path)

        logger.debug("Running %s", ' '.join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise SchemaLoadError(
                f"protoc failed with status {result.returncode}: {result.stderr.strip()}"
            )

        with open(desc_file, 'rb') as f:
            return f.read()


def parse_descriptor_set(data: bytes) -> descriptor_pb2.FileDescriptorSet:
    """Parse serialized FileDescriptorSet bytes."""
    file_set = descriptor_pb2.FileDescriptorSet()
    try:
        file_set.ParseFromString(data)
    except DecodeError as e:
        raise SchemaLoadError(f"Invalid descriptor set: {e}") from e
    if not file_set.file:
        raise SchemaLoadError("Descriptor set contains no files")
    return file_set


def build_pool(file_set: descriptor_pb2.FileDescriptorSet) -> descriptor_pool.DescriptorPool:
    """Add every file of a descriptor set to a fresh pool, in dependency order."""
    pool = descriptor_pool.DescriptorPool()
    for file_proto in file_set.file:
        try:
            pool.AddSerializedFile(file_proto.SerializeToString())
        except Exception as e:
            raise SchemaLoadError(f"Could not load {file_proto.name}: {e}") from e
    return pool


def message_names(file_set: descriptor_pb2.FileDescriptorSet) -> List[str]:
    """List the full names of all messages in a descriptor set, map entries excluded."""
    names = []

    def collect(prefix, message_types):
        for msg_desc in message_types:
            if msg_desc.options.map_entry:
                continue
            full_name = f"{prefix}.{msg_desc.name}" if prefix else msg_desc.name
            names.append(full_name)
            collect(full_name, msg_desc.nested_type)

    for fdesc in file_set.file:
        collect(fdesc.package, fdesc.message_type)
    return names


def find_message_class(pool: descriptor_pool.DescriptorPool,
                       file_set: descriptor_pb2.FileDescriptorSet,
                       message_name: str) -> type:
    """
    Get a message class from a pool by full or short name.

    A short name must be unique across the descriptor set.
    """
    names = message_names(file_set)
    if message_name in names:
        full_name = message_name
    else:
        candidates = [n for n in names if n.split('.')[-1] == message_name]
        if not candidates:
            raise SchemaLoadError(f"Message {message_name} not found")
        if len(candidates) > 1:
            raise SchemaLoadError(
                f"Message name {message_name} is ambiguous (candidates: {', '.join(candidates)})"
            )
        full_name = candidates[0]

    return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))


def import_message_class(module_name: str, message_name: str) -> type:
    """Import a generated module and return one of its message classes."""
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise SchemaLoadError(f"Could not import {module_name}: {e}") from e

    message_cls = module
    for part in message_name.split('.'):
        try:
            message_cls = getattr(message_cls, part)
        except AttributeError:
            raise SchemaLoadError(f"Message {message_name} not found in {module_name}") from None

    check_message_class(message_cls)
    return message_cls


def load_message_class(message_name: str,
                       module: Optional[str] = None,
                       descriptor_set: Optional[str] = None,
                       proto_file: Optional[str] = None,
                       include_paths: Optional[List[str]] = None) -> type:
    """Load a message class from whichever schema source was given."""
    if module:
        return import_message_class(module, message_name)

    if descriptor_set:
        with open(descriptor_set, 'rb') as f:
            data = f.read()
    elif proto_file:
        data = compile_descriptor_set(proto_file, include_paths)
    else:
        raise SchemaLoadError("No schema source given")

    file_set = parse_descriptor_set(data)
    return find_message_class(build_pool(file_set), file_set, message_name)
