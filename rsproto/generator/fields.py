"""Per-field code generation strategies.

Every field of a message maps to exactly one :class:`FieldKind`, chosen once by
:func:`field_kind`. Each kind has a generator producing independent fragments
(struct member, merge branches, size and write statements, initialization
check, accessors) that the message generator concatenates in field order.
"""

import abc
from enum import StrEnum, auto

from .names import (
    extension_name,
    field_default_name,
    field_name,
    field_number_name,
)
from .typemap import (
    GenContext,
    codec_type,
    default_ref_type,
    default_type,
    default_value,
    is_copyable,
    prelude,
    rust_type,
)
from .types import FieldSchema, ScalarKind, SchemaError
from .wire import WireType, is_packable, make_tag, wire_type


class FieldKind(StrEnum):
    PRIMITIVE = auto()
    MESSAGE = auto()
    REPEATED = auto()
    MAP = auto()


def field_kind(f: FieldSchema) -> FieldKind:
    if f.is_map:
        return FieldKind.MAP
    if f.is_repeated:
        return FieldKind.REPEATED
    if f.is_message:
        return FieldKind.MESSAGE
    return FieldKind.PRIMITIVE


def _tag_literal(tag: int) -> str:
    return f"unsafe {{ {prelude('Tag')}::new_unchecked({tag}) }}"


class FieldGenerator(abc.ABC):
    """Base class for the code generated for one field."""

    def __init__(self, f: FieldSchema, ctx: GenContext):
        self._field = f
        self._ctx = ctx

    def name(self) -> str:
        """Escaped member name, e.g. ``r#type``."""
        return field_name(self._field)

    def raw_name(self) -> str:
        """Unescaped name used to build accessor names, e.g. ``has_type``."""
        return self._field.name

    def number_name(self) -> str:
        return field_number_name(self._field)

    def tag(self) -> int:
        return make_tag(self._field.number, wire_type(self._field.kind))

    def accepted_tags(self) -> list[int]:
        """Wire tags the generated reader dispatches to this field, in order."""
        return [self.tag()]

    def codec(self) -> str:
        return codec_type(self._field, self._ctx)

    def value_type(self) -> str:
        return rust_type(self._field, self._ctx)

    @abc.abstractmethod
    def field_type(self) -> str:
        """Rust type of the struct member holding the field."""

    def struct_member(self) -> str:
        return f"{self.name()}: {self.field_type()},"

    @abc.abstractmethod
    def merge_branches(self) -> list[str]:
        """Match arms keyed by wire tag for the message's merge loop."""

    @abc.abstractmethod
    def size_lines(self) -> list[str]:
        """Statements adding the field's encoded size to ``builder``."""

    @abc.abstractmethod
    def write_lines(self) -> list[str]:
        """Statements writing the field to ``output``."""

    def init_check_lines(self) -> list[str]:
        """Statements returning false when the field is not initialized."""
        if self._field.required:
            return [
                f"if self.{self.name()}.is_none() {{",
                "  return false;",
                "}",
            ]
        return []

    def number_const_lines(self) -> list[str]:
        return [
            f"pub const {self.number_name()}: {prelude('FieldNumber')} = "
            f"unsafe {{ {prelude('FieldNumber')}::new_unchecked({self._field.number}) }};"
        ]

    @abc.abstractmethod
    def accessor_lines(self) -> list[str]:
        """Public accessor API placed in the message's impl block."""

    def item_lines(self) -> list[str]:
        return self.number_const_lines() + self.accessor_lines()

    def extension_lines(self, extendee: str) -> list[str]:
        """Static extension identifier for an extension field."""
        f = self._field
        name = extension_name(f)
        tag = _tag_literal(self.tag())
        if not is_copyable(f):
            default_ty = "str" if f.kind == ScalarKind.STRING else "[u8]"
            return [
                f"pub static {name}: {prelude('Extension')}<{extendee}, {self.codec()}, "
                f"{prelude(default_ty)}> = "
                f"{prelude('Extension')}::with_static_default({tag}, "
                f"{default_value(f, self._ctx)});"
            ]
        return [
            f"pub static {name}: {prelude('Extension')}<{extendee}, {self.codec()}> = "
            f"{prelude('Extension')}::with_owned_default({tag}, {default_value(f, self._ctx)});"
        ]


class PrimitiveField(FieldGenerator):
    """Singular scalar, string, bytes or enum field."""

    def _has_presence(self) -> bool:
        return self._field.has_presence(self._ctx.syntax)

    def default_name(self) -> str:
        return field_default_name(self._field)

    def field_type(self) -> str:
        if self._has_presence():
            return f"{prelude('Option')}<{self.value_type()}>"
        return self.value_type()

    def merge_branches(self) -> list[str]:
        if self._has_presence():
            target = f"self.{self.name()}.get_or_insert_with({prelude('Default::default')})"
        else:
            target = f"&mut self.{self.name()}"
        return [
            f"{self.tag()} => field.merge_value::<{self.codec()}>(Self::{self.number_name()}, {target})?,"
        ]

    def _guarded(self, statement: str) -> list[str]:
        if self._has_presence():
            return [
                f"if let {prelude('Some')}(v) = &self.{self.name()} {{",
                f"  {statement.format(value='v')}",
                "}",
            ]
        if self._field.kind in (ScalarKind.FLOAT, ScalarKind.DOUBLE):
            # Bitwise so that -0.0 is still written
            condition = (
                f"self.{self.name()}.to_bits() != Self::{self.default_name()}.to_bits()"
            )
        else:
            condition = f"self.{self.name()} != Self::{self.default_name()}"
        return [
            f"if {condition} {{",
            f"  {statement.format(value=f'&self.{self.name()}')}",
            "}",
        ]

    def size_lines(self) -> list[str]:
        return self._guarded(
            f"builder = builder.add_value::<{self.codec()}>(Self::{self.number_name()}, {{value}})?;"
        )

    def write_lines(self) -> list[str]:
        return self._guarded(
            f"output.write_field::<{self.codec()}>(Self::{self.number_name()}, {{value}})?;"
        )

    def accessor_lines(self) -> list[str]:
        f = self._field
        name = self.name()
        raw = self.raw_name()
        value_type = self.value_type()
        default = self.default_name()
        default_decl = (
            f"pub const {default}: {default_type(f, self._ctx)} = {default_value(f, self._ctx)};"
        )

        if not self._has_presence():
            return [
                default_decl,
                f"pub fn {name}(&self) -> &{value_type} {{",
                f"  &self.{name}",
                "}",
                f"pub fn {raw}_mut(&mut self) -> &mut {value_type} {{",
                f"  &mut self.{name}",
                "}",
            ]

        if is_copyable(f):
            getter = f"  self.{name}.unwrap_or(Self::{default})"
        else:
            getter = f"  self.{name}.as_ref().map_or(Self::{default}, {prelude('AsRef::as_ref')})"

        return [
            default_decl,
            f"pub fn {name}(&self) -> {default_ref_type(f, self._ctx)} {{",
            getter,
            "}",
            f"pub fn {raw}_option(&self) -> {prelude('Option')}<&{value_type}> {{",
            f"  self.{name}.as_ref()",
            "}",
            f"pub fn {raw}_mut(&mut self) -> &mut {value_type} {{",
            f"  self.{name}.get_or_insert_with({prelude('Default::default')})",
            "}",
            f"pub fn has_{raw}(&self) -> bool {{",
            f"  self.{name}.is_some()",
            "}",
            f"pub fn set_{raw}(&mut self, value: {value_type}) {{",
            f"  self.{name} = {prelude('Some')}({prelude('From::from')}(value))",
            "}",
            f"pub fn take_{raw}(&mut self) -> {prelude('Option')}<{value_type}> {{",
            f"  self.{name}.take()",
            "}",
            f"pub fn clear_{raw}(&mut self) {{",
            f"  self.{name} = {prelude('None')}",
            "}",
        ]


class MessageField(FieldGenerator):
    """Singular embedded message or group, boxed to allow recursive types."""

    def field_type(self) -> str:
        return f"{prelude('Option')}<{prelude('Box')}<{self.value_type()}>>"

    def merge_branches(self) -> list[str]:
        num = f"Self::{self.number_name()}"
        codec = self.codec()
        return [
            f"{self.tag()} =>",
            f"  match &mut self.{self.name()} {{",
            f"    {prelude('Some')}(v) => field.merge_value::<{codec}>({num}, v)?,",
            f"    opt @ {prelude('None')} => *opt = {prelude('Some')}({prelude('Box')}::new("
            f"field.read_value::<{codec}>({num})?)),",
            "  },",
        ]

    def size_lines(self) -> list[str]:
        return [
            f"if let {prelude('Some')}(v) = &self.{self.name()} {{",
            f"  builder = builder.add_value::<{self.codec()}>(Self::{self.number_name()}, v)?;",
            "}",
        ]

    def write_lines(self) -> list[str]:
        return [
            f"if let {prelude('Some')}(v) = &self.{self.name()} {{",
            f"  output.write_field::<{self.codec()}>(Self::{self.number_name()}, v)?;",
            "}",
        ]

    def init_check_lines(self) -> list[str]:
        return super().init_check_lines() + [
            f"if let {prelude('Some')}(v) = &self.{self.name()} {{",
            f"  if !{prelude('p::is_initialized')}(&**v) {{",
            "    return false;",
            "  }",
            "}",
        ]

    def accessor_lines(self) -> list[str]:
        name = self.name()
        raw = self.raw_name()
        value_type = self.value_type()
        return [
            f"pub fn {raw}_option(&self) -> {prelude('Option')}<&{value_type}> {{",
            f"  self.{name}.as_deref()",
            "}",
            f"pub fn {raw}_mut(&mut self) -> &mut {value_type} {{",
            f"  self.{name}.get_or_insert_with({prelude('Default::default')})",
            "}",
            f"pub fn has_{raw}(&self) -> bool {{",
            f"  self.{name}.is_some()",
            "}",
            f"pub fn set_{raw}(&mut self, value: {value_type}) {{",
            f"  self.{name} = {prelude('Some')}({prelude('From::from')}(value))",
            "}",
            f"pub fn take_{raw}(&mut self) -> {prelude('Option')}<{value_type}> {{",
            f"  self.{name}.take().map(|v| *v)",
            "}",
            f"pub fn clear_{raw}(&mut self) {{",
            f"  self.{name} = {prelude('None')}",
            "}",
        ]

    def extension_lines(self, extendee: str) -> list[str]:
        name = extension_name(self._field)
        return [
            f"pub static {name}: {prelude('Extension')}<{extendee}, {self.codec()}> = "
            f"{prelude('Extension')}::with_no_default({_tag_literal(self.tag())});"
        ]


class RepeatedField(FieldGenerator):
    """Repeated field stored in an ordered sequence.

    Packable fields accept both the packed and the unpacked encoding when
    reading; the declared packing comes first and decides how values are
    sized and written.
    """

    def field_type(self) -> str:
        return f"{prelude('RepeatedField')}<{self.value_type()}>"

    def element_codec(self) -> str:
        return self.codec()

    def _is_packable(self) -> bool:
        return is_packable(self._field.kind)

    def _is_packed(self) -> bool:
        return self._field.packed and self._is_packable()

    def _packed_codec(self) -> str:
        return f"{prelude('pr::Packed')}<{self.element_codec()}>"

    def _declared_codec(self) -> str:
        return self._packed_codec() if self._is_packed() else self.element_codec()

    def packed_tag(self) -> int:
        return make_tag(self._field.number, WireType.LENGTH_DELIMITED)

    def accepted_tags(self) -> list[int]:
        if not self._is_packable():
            return [self.tag()]
        if self._is_packed():
            return [self.packed_tag(), self.tag()]
        return [self.tag(), self.packed_tag()]

    def merge_branches(self) -> list[str]:
        num = f"Self::{self.number_name()}"
        target = f"&mut self.{self.name()}"
        codecs = {self.tag(): self.element_codec()}
        if self._is_packable():
            codecs[self.packed_tag()] = self._packed_codec()
        return [
            f"{tag} => field.add_entries_to::<_, {codecs[tag]}>({num}, {target})?,"
            for tag in self.accepted_tags()
        ]

    def size_lines(self) -> list[str]:
        return [
            f"builder = builder.add_values::<_, {self._declared_codec()}>"
            f"(Self::{self.number_name()}, &self.{self.name()})?;"
        ]

    def write_lines(self) -> list[str]:
        return [
            f"output.write_values::<_, {self._declared_codec()}>"
            f"(Self::{self.number_name()}, &self.{self.name()})?;"
        ]

    def _holds_messages(self) -> bool:
        return self._field.is_message

    def init_check_lines(self) -> list[str]:
        if not self._holds_messages():
            return []
        return [
            f"if !{prelude('p::is_initialized')}(&self.{self.name()}) {{",
            "  return false;",
            "}",
        ]

    def accessor_lines(self) -> list[str]:
        name = self.name()
        raw = self.raw_name()
        field_type = self.field_type()
        return [
            f"pub fn {name}(&self) -> &{field_type} {{",
            f"  &self.{name}",
            "}",
            f"pub fn {raw}_mut(&mut self) -> &mut {field_type} {{",
            f"  &mut self.{name}",
            "}",
        ]

    def extension_lines(self, extendee: str) -> list[str]:
        # RepeatedExtension exposes no constructor, so no static can be declared
        raise SchemaError(f"Repeated field {self._field.name} cannot be an extension")


class MapField(RepeatedField):
    """Map field, read and written as repeated (key, value) entries."""

    def __init__(self, f: FieldSchema, ctx: GenContext):
        super().__init__(f, ctx)
        entry = ctx.symbols.message(f.type_name or "")
        key = entry.find_field(1)
        value = entry.find_field(2)
        if key is None or value is None:
            raise SchemaError(f"Map entry {entry.name} of {f.name} needs key and value fields")
        self._key = key
        self._value = value

    def tag(self) -> int:
        return make_tag(self._field.number, WireType.LENGTH_DELIMITED)

    def field_type(self) -> str:
        key_type = rust_type(self._key, self._ctx)
        value_type = rust_type(self._value, self._ctx)
        return f"{prelude('MapField')}<{key_type}, {value_type}>"

    def element_codec(self) -> str:
        key_codec = codec_type(self._key, self._ctx)
        value_codec = codec_type(self._value, self._ctx)
        return f"({key_codec}, {value_codec})"

    def _is_packable(self) -> bool:
        return False

    def _holds_messages(self) -> bool:
        return self._value.is_message

    def extension_lines(self, extendee: str) -> list[str]:
        raise SchemaError(f"Map field {self._field.name} cannot be an extension")


FIELD_GENERATORS: dict[FieldKind, type[FieldGenerator]] = {
    FieldKind.PRIMITIVE: PrimitiveField,
    FieldKind.MESSAGE: MessageField,
    FieldKind.REPEATED: RepeatedField,
    FieldKind.MAP: MapField,
}


def create_field_generator(f: FieldSchema, ctx: GenContext) -> FieldGenerator:
    """Select the generator for a field's kind."""
    return FIELD_GENERATORS[field_kind(f)](f, ctx)
