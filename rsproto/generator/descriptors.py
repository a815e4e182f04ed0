"""Conversion of protobuf descriptors into the generator's schema model."""

import json
import logging
from pathlib import Path

from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from .types import (
    Cardinality,
    EnumSchema,
    EnumValueSchema,
    FieldSchema,
    FileSchema,
    MessageSchema,
    ScalarKind,
    SchemaError,
    Syntax,
)
from .wire import is_packable

_LOG = logging.getLogger(__name__)

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

KIND_MAP = {
    FieldDescriptorProto.TYPE_DOUBLE: ScalarKind.DOUBLE,
    FieldDescriptorProto.TYPE_FLOAT: ScalarKind.FLOAT,
    FieldDescriptorProto.TYPE_INT64: ScalarKind.INT64,
    FieldDescriptorProto.TYPE_UINT64: ScalarKind.UINT64,
    FieldDescriptorProto.TYPE_INT32: ScalarKind.INT32,
    FieldDescriptorProto.TYPE_FIXED64: ScalarKind.FIXED64,
    FieldDescriptorProto.TYPE_FIXED32: ScalarKind.FIXED32,
    FieldDescriptorProto.TYPE_BOOL: ScalarKind.BOOL,
    FieldDescriptorProto.TYPE_STRING: ScalarKind.STRING,
    FieldDescriptorProto.TYPE_GROUP: ScalarKind.GROUP,
    FieldDescriptorProto.TYPE_MESSAGE: ScalarKind.MESSAGE,
    FieldDescriptorProto.TYPE_BYTES: ScalarKind.BYTES,
    FieldDescriptorProto.TYPE_UINT32: ScalarKind.UINT32,
    FieldDescriptorProto.TYPE_ENUM: ScalarKind.ENUM,
    FieldDescriptorProto.TYPE_SFIXED32: ScalarKind.SFIXED32,
    FieldDescriptorProto.TYPE_SFIXED64: ScalarKind.SFIXED64,
    FieldDescriptorProto.TYPE_SINT32: ScalarKind.SINT32,
    FieldDescriptorProto.TYPE_SINT64: ScalarKind.SINT64,
}


def _syntax(proto: descriptor_pb2.FileDescriptorProto) -> Syntax:
    # Files without a syntax statement are proto2
    if proto.syntax == "proto3":
        return Syntax.PROTO3
    return Syntax.PROTO2


def _convert_field(
    proto: descriptor_pb2.FieldDescriptorProto,
    syntax: Syntax,
    map_entries: set[str],
) -> FieldSchema:
    if proto.type not in KIND_MAP:
        raise SchemaError(f"Field {proto.name} has unsupported type {proto.type}")
    kind = KIND_MAP[proto.type]

    cardinality = Cardinality.SINGULAR
    if proto.label == FieldDescriptorProto.LABEL_REPEATED:
        if proto.type_name in map_entries:
            cardinality = Cardinality.MAP
        else:
            cardinality = Cardinality.REPEATED

    packed = False
    if cardinality == Cardinality.REPEATED and is_packable(kind):
        if proto.options.HasField("packed"):
            packed = proto.options.packed
        else:
            packed = syntax == Syntax.PROTO3

    return FieldSchema(
        name=proto.name,
        number=proto.number,
        kind=kind,
        cardinality=cardinality,
        packed=packed,
        required=proto.label == FieldDescriptorProto.LABEL_REQUIRED,
        type_name=proto.type_name or None,
        default_value=proto.default_value if proto.HasField("default_value") else None,
        extendee=proto.extendee or None,
        oneof_index=proto.oneof_index if proto.HasField("oneof_index") else None,
        proto3_optional=proto.proto3_optional,
    )


def _convert_enum(proto: descriptor_pb2.EnumDescriptorProto) -> EnumSchema:
    return EnumSchema(
        name=proto.name,
        values=[EnumValueSchema(name=v.name, number=v.number) for v in proto.value],
    )


def _convert_message(
    proto: descriptor_pb2.DescriptorProto, scope: str, syntax: Syntax
) -> MessageSchema:
    full_name = f"{scope}.{proto.name}"
    map_entries = {
        f"{full_name}.{nested.name}" for nested in proto.nested_type if nested.options.map_entry
    }

    return MessageSchema(
        name=proto.name,
        fields=[_convert_field(f, syntax, map_entries) for f in proto.field],
        nested_types=[_convert_message(m, full_name, syntax) for m in proto.nested_type],
        enum_types=[_convert_enum(e) for e in proto.enum_type],
        extensions=[_convert_field(f, syntax, set()) for f in proto.extension],
        has_extension_ranges=len(proto.extension_range) > 0,
        map_entry=proto.options.map_entry,
        oneofs=[o.name for o in proto.oneof_decl],
    )


def convert_file(proto: descriptor_pb2.FileDescriptorProto) -> FileSchema:
    """Convert a FileDescriptorProto into a FileSchema."""
    syntax = _syntax(proto)
    scope = f".{proto.package}" if proto.package else ""

    _LOG.debug("Converting %s (%s)", proto.name, syntax)
    return FileSchema(
        name=proto.name,
        package=proto.package,
        syntax=syntax,
        messages=[_convert_message(m, scope, syntax) for m in proto.message_type],
        enums=[_convert_enum(e) for e in proto.enum_type],
        extensions=[_convert_field(f, syntax, set()) for f in proto.extension],
        dependencies=list(proto.dependency),
    )


def load_descriptor_set(data: bytes) -> list[FileSchema]:
    """Load every file of a serialized FileDescriptorSet."""
    try:
        descriptor_set = descriptor_pb2.FileDescriptorSet.FromString(data)
    except DecodeError as e:
        raise SchemaError(f"Invalid descriptor set: {e}") from e
    return [convert_file(f) for f in descriptor_set.file]


def load_json(text: str) -> list[FileSchema]:
    """Load a JSON list of FileSchema objects."""
    try:
        data = json.loads(text)
        if not isinstance(data, list):
            raise SchemaError("A JSON schema must be a list of files")
        for item in data:
            if not isinstance(item, dict):
                raise SchemaError(f"Expected a file object in the JSON schema, got {item!r}")
        return [FileSchema.from_dict(item) for item in data]
    except (ValueError, KeyError, TypeError) as e:
        raise SchemaError(f"Invalid JSON schema: {e}") from e


def load_schema(path: str | Path) -> list[FileSchema]:
    """Load schema files from a descriptor set or a ``.json`` schema graph."""
    path = Path(path)
    if path.suffix == ".json":
        return load_json(path.read_text(encoding="utf-8"))
    return load_descriptor_set(path.read_bytes())
