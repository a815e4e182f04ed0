"""Rust type mapping for schema fields."""

import math
import re
from dataclasses import dataclass

from .names import SymbolTable, enum_value_name
from .options import GeneratorOptions
from .types import EnumSchema, FieldSchema, FileSchema, ScalarKind, SchemaError, Syntax

PRELUDE = "__prelude"

# Codec types in the runtime's `pr` module, one per scalar kind
CODEC_TYPE_MAP = {
    ScalarKind.BOOL: "Bool",
    ScalarKind.DOUBLE: "Double",
    ScalarKind.FLOAT: "Float",
    ScalarKind.INT32: "Int32",
    ScalarKind.INT64: "Int64",
    ScalarKind.UINT32: "Uint32",
    ScalarKind.UINT64: "Uint64",
    ScalarKind.SINT32: "Sint32",
    ScalarKind.SINT64: "Sint64",
    ScalarKind.FIXED32: "Fixed32",
    ScalarKind.FIXED64: "Fixed64",
    ScalarKind.SFIXED32: "Sfixed32",
    ScalarKind.SFIXED64: "Sfixed64",
    ScalarKind.STRING: "String",
}

# Codec types generic over the stored Rust type
GENERIC_CODEC_TYPE_MAP = {
    ScalarKind.BYTES: "Bytes",
    ScalarKind.ENUM: "Enum",
    ScalarKind.MESSAGE: "Message",
    ScalarKind.GROUP: "Group",
}

PRIMITIVE_TYPE_MAP = {
    ScalarKind.BOOL: "bool",
    ScalarKind.BYTES: "ByteVec",
    ScalarKind.DOUBLE: "f64",
    ScalarKind.FLOAT: "f32",
    ScalarKind.INT32: "i32",
    ScalarKind.SINT32: "i32",
    ScalarKind.SFIXED32: "i32",
    ScalarKind.INT64: "i64",
    ScalarKind.SINT64: "i64",
    ScalarKind.SFIXED64: "i64",
    ScalarKind.UINT32: "u32",
    ScalarKind.FIXED32: "u32",
    ScalarKind.UINT64: "u64",
    ScalarKind.FIXED64: "u64",
    ScalarKind.STRING: "String",
}

FLOAT_KINDS = frozenset([ScalarKind.FLOAT, ScalarKind.DOUBLE])

_C_ESCAPE_RE = re.compile(r"\\(?:([0-7]{1,3})|x([0-9a-fA-F]{1,2})|(.))", re.DOTALL)
_C_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


@dataclass(frozen=True)
class GenContext:
    """Everything a generator needs besides the schema element itself."""

    file: FileSchema
    symbols: SymbolTable
    options: GeneratorOptions

    @property
    def syntax(self) -> Syntax:
        return self.file.syntax

    def rust_path(self, type_name: str | None) -> str:
        if type_name is None:
            raise SchemaError("Type reference is missing a type name")
        return self.symbols.rust_path(self.file.name, type_name)


def prelude(name: str) -> str:
    return f"{PRELUDE}::{name}"


def is_copyable(f: FieldSchema) -> bool:
    """Check if values of a field are cheap Copy types in Rust."""
    return f.kind not in (ScalarKind.STRING, ScalarKind.BYTES, ScalarKind.MESSAGE, ScalarKind.GROUP)


def rust_type(f: FieldSchema, ctx: GenContext) -> str:
    """Rust type holding one value of a field."""
    if f.kind in (ScalarKind.ENUM, ScalarKind.MESSAGE, ScalarKind.GROUP):
        return ctx.rust_path(f.type_name)
    if f.kind in PRIMITIVE_TYPE_MAP:
        return prelude(PRIMITIVE_TYPE_MAP[f.kind])
    raise SchemaError(f"Unsupported scalar kind: {f.kind}")


def codec_type(f: FieldSchema, ctx: GenContext) -> str:
    """Runtime codec type used to read and write one value of a field."""
    if f.kind in CODEC_TYPE_MAP:
        return prelude(f"pr::{CODEC_TYPE_MAP[f.kind]}")
    if f.kind in GENERIC_CODEC_TYPE_MAP:
        return prelude(f"pr::{GENERIC_CODEC_TYPE_MAP[f.kind]}<{rust_type(f, ctx)}>")
    raise SchemaError(f"Unsupported scalar kind: {f.kind}")


def default_type(f: FieldSchema, ctx: GenContext) -> str:
    """Type of the field's default constant."""
    if f.kind == ScalarKind.BYTES:
        return f"&'static [{prelude('u8')}]"
    if f.kind == ScalarKind.STRING:
        return f"&'static {prelude('str')}"
    return rust_type(f, ctx)


def default_ref_type(f: FieldSchema, ctx: GenContext) -> str:
    """Type returned by the field's get-or-default accessor."""
    if f.kind == ScalarKind.BYTES:
        return f"&[{prelude('u8')}]"
    if f.kind == ScalarKind.STRING:
        return f"&{prelude('str')}"
    return rust_type(f, ctx)


def default_value(f: FieldSchema, ctx: GenContext) -> str:
    """Rust expression for the field's default value."""
    text = f.default_value
    kind = f.kind

    if kind == ScalarKind.BOOL:
        return "true" if text == "true" else "false"

    if kind == ScalarKind.STRING:
        return rust_string_literal(text or "")

    if kind == ScalarKind.BYTES:
        return rust_bytes_literal(unescape_c_bytes(text or ""))

    if kind == ScalarKind.ENUM:
        enum = ctx.symbols.enum(f.type_name or "")
        path = ctx.rust_path(f.type_name)
        if text:
            return f"{path}::{_enum_value_name(enum, text)}"
        if enum.values:
            return f"{path}::{enum_value_name(enum.values[0])}"
        return f"{path}(0)"

    if kind in FLOAT_KINDS:
        return _float_literal(text or "0", PRIMITIVE_TYPE_MAP[kind])

    if kind in PRIMITIVE_TYPE_MAP:
        return str(int(text)) if text else "0"

    raise SchemaError(f"Field {f.name} of kind {kind} has no default value")


def _enum_value_name(enum: EnumSchema, name: str) -> str:
    for value in enum.values:
        if value.name == name:
            return enum_value_name(value)
    raise SchemaError(f"Enum {enum.name} has no value {name}")


def _float_literal(text: str, float_type: str) -> str:
    lowered = text.lower()
    if lowered in ("inf", "+inf", "infinity"):
        return prelude(f"{float_type}::INFINITY")
    if lowered in ("-inf", "-infinity"):
        return prelude(f"{float_type}::NEG_INFINITY")
    if lowered == "nan":
        return prelude(f"{float_type}::NAN")
    value = float(text)
    if math.isinf(value):
        return prelude(f"{float_type}::{'NEG_INFINITY' if value < 0 else 'INFINITY'}")
    literal = text.strip()
    if not any(c in literal for c in ".eE"):
        literal += ".0"
    return literal


def unescape_c_bytes(text: str) -> bytes:
    """Decode the C-escaped text protobuf uses for bytes defaults."""

    def _replace(m: re.Match) -> str:
        octal, hexa, other = m.groups()
        if octal is not None:
            return chr(int(octal, 8) & 0xFF)
        if hexa is not None:
            return chr(int(hexa, 16))
        return _C_SIMPLE_ESCAPES.get(other, other)

    return _C_ESCAPE_RE.sub(_replace, text).encode("latin-1")


def rust_string_literal(text: str) -> str:
    out = ['"']
    for c in text:
        if c in ('"', "\\"):
            out.append("\\" + c)
        elif c == "\n":
            out.append("\\n")
        elif c == "\r":
            out.append("\\r")
        elif c == "\t":
            out.append("\\t")
        elif c.isprintable():
            out.append(c)
        else:
            out.append(f"\\u{{{ord(c):x}}}")
    out.append('"')
    return "".join(out)


def rust_bytes_literal(data: bytes) -> str:
    out = ['b"']
    for b in data:
        if b in (0x22, 0x5C):
            out.append("\\" + chr(b))
        elif 0x20 <= b < 0x7F:
            out.append(chr(b))
        else:
            out.append(f"\\x{b:02x}")
    out.append('"')
    return "".join(out)
