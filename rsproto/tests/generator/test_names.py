"""Tests for name escaping and symbol resolution."""

import pytest

from rsproto.generator.names import (
    SymbolKind,
    SymbolTable,
    escape,
    field_default_name,
    field_name,
    field_number_name,
    file_alias,
    is_escaped,
    to_mod_name,
)
from rsproto.generator.types import (
    EnumSchema,
    FieldSchema,
    FileSchema,
    MessageSchema,
    ScalarKind,
    SchemaError,
)


def _files():
    inner = MessageSchema(name="InnerType")
    status = EnumSchema(name="Status")
    outer = MessageSchema(name="Outer", nested_types=[inner], enum_types=[status])
    common = FileSchema(name="common/types.proto", package="pkg", messages=[outer])
    user = FileSchema(
        name="user.proto",
        package="pkg",
        messages=[MessageSchema(name="User")],
        dependencies=["common/types.proto"],
    )
    return [common, user]


def describe_escape():
    def leaves_safe_identifiers_alone(expect):
        expect(escape("name")) == "name"
        expect(escape(escape("name"))) == "name"

    def escapes_reserved_words(expect):
        expect(escape("type")) == "r#type"
        expect(escape("match")) == "r#match"
        expect(escape("async")) == "r#async"

    def marks_escaped_names(expect):
        expect(is_escaped(escape("type"))) == True
        expect(is_escaped(escape("value"))) == False


def describe_to_mod_name():
    def converts_capitalized_words(expect):
        expect(to_mod_name("Outer")) == "outer"
        expect(to_mod_name("InnerType")) == "inner_type"
        expect(to_mod_name("FileDescriptorProto")) == "file_descriptor_proto"

    def keeps_uppercase_runs_together(expect):
        expect(to_mod_name("HTTPServer")) == "httpserver"
        expect(to_mod_name("MyHTTP")) == "my_http"

    def leaves_lowercase_names_alone(expect):
        expect(to_mod_name("lower_case")) == "lower_case"


def describe_file_alias():
    def replaces_non_alphanumerics(expect):
        expect(file_alias("google/protobuf/descriptor.proto")) == "google_protobuf_descriptor_proto"
        expect(file_alias("my-api/v1.proto")) == "my_api_v1_proto"

    def prefixes_leading_digits(expect):
        expect(file_alias("3d/mesh.proto")) == "_3d_mesh_proto"


def describe_field_names():
    def derives_constant_names(expect):
        f = FieldSchema(name="source_code_info", number=9, kind=ScalarKind.MESSAGE)
        expect(field_name(f)) == "source_code_info"
        expect(field_number_name(f)) == "SOURCE_CODE_INFO_NUMBER"
        expect(field_default_name(f)) == "SOURCE_CODE_INFO_DEFAULT"

    def escapes_field_accessors_but_not_constants(expect):
        f = FieldSchema(name="type", number=5, kind=ScalarKind.ENUM)
        expect(field_name(f)) == "r#type"
        expect(field_number_name(f)) == "TYPE_NUMBER"


def describe_symbol_table():
    def indexes_nested_types(expect):
        symbols = SymbolTable(_files())
        expect(len(symbols)) == 4
        expect(symbols.lookup(".pkg.Outer.InnerType").name) == "InnerType"
        expect(symbols.lookup("pkg.Outer.Status").kind) == SymbolKind.ENUM

    def looks_up_by_file_and_path(expect):
        symbols = SymbolTable(_files())
        symbol = symbols.lookup_in("common/types.proto", "Outer.InnerType")
        expect(symbol.full_name) == ".pkg.Outer.InnerType"
        expect(symbol.module_path()) == ["outer", "InnerType"]

    def resolves_local_paths(expect):
        symbols = SymbolTable(_files())
        path = symbols.rust_path("common/types.proto", ".pkg.Outer.InnerType")
        expect(path) == "__file::outer::InnerType"

    def resolves_imported_paths_through_the_file_alias(expect):
        symbols = SymbolTable(_files())
        path = symbols.rust_path("user.proto", ".pkg.Outer.Status")
        expect(path) == "__file::__imports::common_types_proto::outer::Status"

    def escapes_reserved_module_names(expect):
        nested = MessageSchema(name="Item")
        parent = MessageSchema(name="Type", nested_types=[nested])
        symbols = SymbolTable([FileSchema(name="a.proto", messages=[parent])])
        expect(symbols.rust_path("a.proto", ".Type.Item")) == "__file::r#type::Item"

    def rejects_unresolved_references(expect):
        symbols = SymbolTable(_files())
        with pytest.raises(SchemaError) as exinfo:
            symbols.lookup(".pkg.Missing")
        expect(str(exinfo.value)).includes(".pkg.Missing")

    def rejects_duplicate_symbols(expect):
        files = [
            FileSchema(name="a.proto", package="p", messages=[MessageSchema(name="M")]),
            FileSchema(name="b.proto", package="p", messages=[MessageSchema(name="M")]),
        ]
        with pytest.raises(SchemaError):
            SymbolTable(files)

    def checks_the_symbol_kind(expect):
        symbols = SymbolTable(_files())
        with pytest.raises(SchemaError):
            symbols.enum(".pkg.Outer")
        expect(symbols.message(".pkg.Outer").name) == "Outer"
