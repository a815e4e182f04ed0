"""Schema model consumed by the code generator.

The model is a read-only view over a resolved schema graph. Type references
are stored as fully-qualified names (``.pkg.Outer.Inner``) and resolved through
:class:`rsproto.generator.names.SymbolTable`, which keeps the graph acyclic and
JSON-serialisable.
"""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class SchemaError(RuntimeError):
    """Raised when a schema violates a generator precondition."""


class ScalarKind(StrEnum):
    """Wire-level kind of a field."""

    DOUBLE = auto()
    FLOAT = auto()
    INT32 = auto()
    INT64 = auto()
    UINT32 = auto()
    UINT64 = auto()
    SINT32 = auto()
    SINT64 = auto()
    FIXED32 = auto()
    FIXED64 = auto()
    SFIXED32 = auto()
    SFIXED64 = auto()
    BOOL = auto()
    STRING = auto()
    BYTES = auto()
    ENUM = auto()
    MESSAGE = auto()
    GROUP = auto()


class Cardinality(StrEnum):
    SINGULAR = auto()
    REPEATED = auto()
    MAP = auto()


class Syntax(StrEnum):
    """Presence semantics of a file."""

    PROTO2 = auto()  # explicit presence for every singular field
    PROTO3 = auto()  # implicit presence unless optional or in a oneof


@dataclass
class FieldSchema(DataClassJsonMixin):
    """Represents a field of a message, or an extension field.

    ``type_name`` is set for enum, message and group fields, and for map
    fields, where it names the synthetic entry message.
    """

    name: str
    number: int
    kind: ScalarKind
    cardinality: Cardinality = Cardinality.SINGULAR
    packed: bool = False
    required: bool = False
    type_name: str | None = None
    default_value: str | None = None
    extendee: str | None = None
    oneof_index: int | None = None
    proto3_optional: bool = False

    @property
    def is_repeated(self) -> bool:
        return self.cardinality != Cardinality.SINGULAR

    @property
    def is_map(self) -> bool:
        return self.cardinality == Cardinality.MAP

    @property
    def is_message(self) -> bool:
        return self.kind in (ScalarKind.MESSAGE, ScalarKind.GROUP)

    def has_presence(self, syntax: Syntax) -> bool:
        """Check if a singular field tracks presence explicitly."""
        if self.is_repeated:
            return False
        if self.is_message or syntax == Syntax.PROTO2:
            return True
        return self.oneof_index is not None or self.proto3_optional


@dataclass
class EnumValueSchema(DataClassJsonMixin):
    """Represents a single enum constant."""

    name: str
    number: int


@dataclass
class EnumSchema(DataClassJsonMixin):
    """Represents an enum type definition."""

    name: str
    values: list[EnumValueSchema] = field(default_factory=list)


@dataclass
class MessageSchema(DataClassJsonMixin):
    """Represents a message type definition.

    Map fields point at a nested message with ``map_entry`` set, whose fields
    are the key (number 1) and the value (number 2).
    """

    name: str
    fields: list[FieldSchema] = field(default_factory=list)
    nested_types: list["MessageSchema"] = field(default_factory=list)
    enum_types: list[EnumSchema] = field(default_factory=list)
    extensions: list[FieldSchema] = field(default_factory=list)
    has_extension_ranges: bool = False
    map_entry: bool = False
    oneofs: list[str] = field(default_factory=list)

    def find_field(self, number: int) -> FieldSchema | None:
        for f in self.fields:
            if f.number == number:
                return f
        return None

    @property
    def has_inner_items(self) -> bool:
        """Check if the message needs a nested module."""
        if self.enum_types or self.extensions:
            return True
        return any(not nested.map_entry for nested in self.nested_types)


@dataclass
class FileSchema(DataClassJsonMixin):
    """Represents one schema file and its direct contents."""

    name: str
    package: str = ""
    syntax: Syntax = Syntax.PROTO2
    messages: list[MessageSchema] = field(default_factory=list)
    enums: list[EnumSchema] = field(default_factory=list)
    extensions: list[FieldSchema] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
