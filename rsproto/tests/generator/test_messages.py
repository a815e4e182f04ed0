"""Tests for message and enum generation."""

from rsproto.generator.messages import EnumGenerator, MessageGenerator
from rsproto.generator.names import SymbolTable
from rsproto.generator.options import GeneratorOptions
from rsproto.generator.typemap import GenContext
from rsproto.generator.types import (
    Cardinality,
    EnumSchema,
    EnumValueSchema,
    FieldSchema,
    FileSchema,
    MessageSchema,
    ScalarKind,
)


def _status():
    return EnumSchema(
        name="Status",
        values=[
            EnumValueSchema(name="UNKNOWN", number=0),
            EnumValueSchema(name="ACTIVE", number=1),
        ],
    )


def _context(*messages, options=None):
    file = FileSchema(name="test.proto", package="pkg", messages=list(messages))
    return GenContext(file, SymbolTable([file]), options or GeneratorOptions())


def _render(message, **kwargs):
    return MessageGenerator(message, _context(message, **kwargs), "pkg").render()


def describe_enum_generator():
    def wraps_a_signed_integer(expect):
        ctx = _context()
        output = EnumGenerator(_status(), ctx).render()

        expect(output).includes("pub struct Status(pub i32);")
        expect(output).includes("impl __prelude::From<i32> for Status {")
        expect(output).includes("impl __prelude::From<Status> for i32 {")

    def defaults_to_zero(expect):
        output = EnumGenerator(_status(), _context()).render()

        expect(output).includes("  fn default() -> Self {\n    Self(0)\n  }")

    def declares_named_constants(expect):
        output = EnumGenerator(_status(), _context()).render()

        expect(output).includes("  pub const UNKNOWN: Self = Self(0);\n")
        expect(output).includes("  pub const ACTIVE: Self = Self(1);\n")

    def formats_known_and_unknown_values(expect):
        output = EnumGenerator(_status(), _context()).render()

        expect(output).includes('      Self::UNKNOWN => f.write_str("UNKNOWN"),\n')
        expect(output).includes('      Self::ACTIVE => f.write_str("ACTIVE"),\n')
        expect(output).includes("      Self(x) => x.fmt(f),\n")

    def escapes_reserved_value_names(expect):
        enum = EnumSchema(name="Op", values=[EnumValueSchema(name="in", number=0)])
        output = EnumGenerator(enum, _context()).render()

        expect(output).includes("  pub const r#in: Self = Self(0);\n")
        expect(output).includes('      Self::r#in => f.write_str("in"),\n')


def describe_message_generator():
    def declares_members_in_field_order(expect):
        message = MessageSchema(
            name="Person",
            fields=[
                FieldSchema(name="name", number=1, kind=ScalarKind.STRING),
                FieldSchema(name="id", number=2, kind=ScalarKind.INT32),
            ],
        )
        output = _render(message)

        expect(output).includes(
            "pub struct Person {\n"
            "  name: __prelude::Option<__prelude::String>,\n"
            "  id: __prelude::Option<__prelude::i32>,\n"
            "  __unknown_fields: __prelude::UnknownFieldSet,\n"
            "}\n"
        )

    def dispatches_every_branch_before_unknown_fields(expect):
        message = MessageSchema(
            name="Person",
            fields=[
                FieldSchema(name="name", number=1, kind=ScalarKind.STRING),
                FieldSchema(name="id", number=2, kind=ScalarKind.INT32),
            ],
        )
        output = _render(message)

        name_branch = output.index("        10 => field.merge_value::<__prelude::pr::String>")
        id_branch = output.index("        16 => field.merge_value::<__prelude::pr::Int32>")
        fallback = output.index(".check_and_try_add_field_to(&mut self.__unknown_fields)?")
        expect(name_branch < id_branch < fallback) == True

    def sizes_and_writes_unknown_fields_last(expect):
        message = MessageSchema(
            name="Person", fields=[FieldSchema(name="id", number=2, kind=ScalarKind.INT32)]
        )
        output = _render(message)

        expect(output).includes(
            "    builder = builder.add_fields(&self.__unknown_fields)?;\n"
            "    __prelude::Some(builder.build())\n"
        )
        expect(output).includes(
            "    output.write_fields(&self.__unknown_fields)?;\n    __prelude::Ok(())\n"
        )

    def registers_the_debug_name(expect):
        output = _render(MessageSchema(name="Person"))

        expect(output).includes(
            '__prelude::prefl::dbg_msg!(self::Person '
            '{ full_name: "pkg.Person", name: "Person" });'
        )

    def collects_extensions_when_extendable(expect):
        message = MessageSchema(name="Options", has_extension_ranges=True)
        output = _render(message)

        expect(output).includes("  __extensions: __prelude::ExtensionSet<Self>,\n")
        expect(output).includes(
            "            .check_and_try_add_field_to(&mut self.__extensions)?\n"
            "            .or_try(&mut self.__unknown_fields)?\n"
        )
        expect(output).includes("impl __prelude::ExtendableMessage for self::Options {")

    def omits_extension_support_otherwise(expect):
        output = _render(MessageSchema(name="Plain"))

        expect(output).excludes("__extensions")
        expect(output).excludes("ExtendableMessage")

    def short_circuits_the_initialization_check(expect):
        message = MessageSchema(
            name="Node",
            fields=[
                FieldSchema(name="id", number=1, kind=ScalarKind.INT32, required=True),
                FieldSchema(
                    name="children",
                    number=2,
                    kind=ScalarKind.MESSAGE,
                    cardinality=Cardinality.REPEATED,
                    type_name=".pkg.Node",
                ),
            ],
        )
        output = _render(message)

        expect(output).includes(
            "  fn is_initialized(&self) -> bool {\n"
            "    if self.id.is_none() {\n"
            "      return false;\n"
            "    }\n"
            "    if !__prelude::p::is_initialized(&self.children) {\n"
            "      return false;\n"
            "    }\n"
            "    true\n"
        )

    def boxes_recursive_references(expect):
        message = MessageSchema(
            name="Node",
            fields=[
                FieldSchema(name="next", number=1, kind=ScalarKind.MESSAGE, type_name=".pkg.Node")
            ],
        )
        output = _render(message)

        expect(output).includes("  next: __prelude::Option<__prelude::Box<__file::Node>>,\n")

    def skips_the_nested_module_without_inner_items(expect):
        output = _render(MessageSchema(name="Flat"))

        expect(output).excludes("pub mod flat")

    def emits_nested_types_in_a_module(expect):
        inner = MessageSchema(
            name="InnerType",
            fields=[
                FieldSchema(
                    name="state", number=1, kind=ScalarKind.ENUM, type_name=".pkg.Outer.Status"
                )
            ],
        )
        outer = MessageSchema(name="Outer", nested_types=[inner], enum_types=[_status()])
        output = _render(outer)

        expect(output).includes(
            "pub mod outer {\n"
            "  pub(self) use super::__file;\n"
            "  pub(self) use ::protrust::gen_prelude as __prelude;\n"
            "\n"
            "  #[derive(Clone, Debug, PartialEq, Default)]\n"
            "  pub struct InnerType {\n"
        )
        expect(output).includes("    state: __prelude::Option<__file::outer::Status>,\n")
        expect(output).includes("  pub struct Status(pub i32);\n")
        expect(output).includes("  }\n\n  #[derive(Clone, Copy, PartialEq, Eq, Hash, PartialOrd, Ord)]\n")
        expect(output).includes('{ full_name: "pkg.Outer.InnerType", name: "InnerType" }')
        expect(output.endswith("}\n")) == True

    def uses_the_configured_runtime_crate(expect):
        outer = MessageSchema(name="Outer", enum_types=[_status()])
        options = GeneratorOptions(runtime_crate="my_runtime")
        output = _render(outer, options=options)

        expect(output).includes("  pub(self) use ::my_runtime::gen_prelude as __prelude;\n")

    def skips_map_entries(expect):
        entry = MessageSchema(
            name="TagsEntry",
            map_entry=True,
            fields=[
                FieldSchema(name="key", number=1, kind=ScalarKind.STRING),
                FieldSchema(name="value", number=2, kind=ScalarKind.INT32),
            ],
        )
        message = MessageSchema(
            name="Tagged",
            nested_types=[entry],
            fields=[
                FieldSchema(
                    name="tags",
                    number=1,
                    kind=ScalarKind.MESSAGE,
                    cardinality=Cardinality.MAP,
                    type_name=".pkg.Tagged.TagsEntry",
                )
            ],
        )
        output = _render(message)

        expect(output).excludes("TagsEntry")
        expect(output).excludes("pub mod tagged")
        expect(output).includes("  tags: __prelude::MapField<__prelude::String, __prelude::i32>,\n")

    def declares_nested_extensions(expect):
        base = MessageSchema(name="Base", has_extension_ranges=True)
        holder = MessageSchema(
            name="Holder",
            extensions=[
                FieldSchema(name="flag", number=100, kind=ScalarKind.BOOL, extendee=".pkg.Base")
            ],
        )
        ctx = _context(base, holder)
        output = MessageGenerator(holder, ctx, "pkg").render()

        expect(output).includes(
            "pub mod holder {\n"
            "  pub(self) use super::__file;\n"
            "  pub(self) use ::protrust::gen_prelude as __prelude;\n"
            "\n"
            "  pub static FLAG: __prelude::Extension<__file::Base, __prelude::pr::Bool> = "
            "__prelude::Extension::with_owned_default("
            "unsafe { __prelude::Tag::new_unchecked(800) }, false);\n"
            "}\n"
        )
