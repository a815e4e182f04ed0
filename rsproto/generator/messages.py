"""Message and enum code generators."""

import logging
import textwrap

from jinja2 import Environment, PackageLoader

from .fields import FieldGenerator, create_field_generator
from .names import enum_name, enum_value_name, message_mod_name, message_name
from .typemap import GenContext
from .types import EnumSchema, FieldSchema, MessageSchema

_LOG = logging.getLogger(__name__)

INDENT = "  "

env = Environment(
    loader=PackageLoader("rsproto.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

message_template = env.get_template("message.rs.j2")
enum_template = env.get_template("enum.rs.j2")


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def render_extensions(extensions: list[FieldSchema], ctx: GenContext) -> list[str]:
    """Render the static identifiers of a list of extension fields."""
    lines: list[str] = []
    for ext in extensions:
        extendee = ctx.rust_path(ext.extendee)
        lines += create_field_generator(ext, ctx).extension_lines(extendee)
    return lines


class EnumGenerator:
    """Generates an open enum type."""

    def __init__(self, enum: EnumSchema, ctx: GenContext):
        self._enum = enum
        self._ctx = ctx

    def render(self) -> str:
        values = [
            {"name": enum_value_name(v), "label": v.name, "number": v.number}
            for v in self._enum.values
        ]
        return enum_template.render(name=enum_name(self._enum), values=values)


class MessageGenerator:
    """Generates a message type, its trait impls and its nested module.

    Args:
        message: Message to generate.
        ctx: Generation context of the file declaring the message.
        scope: Fully-qualified name of the enclosing package or message,
            without a leading dot.
    """

    def __init__(self, message: MessageSchema, ctx: GenContext, scope: str = ""):
        self._message = message
        self._ctx = ctx
        self._full_name = _qualify(scope, message.name)
        self._fields: list[FieldGenerator] = [
            create_field_generator(f, ctx) for f in message.fields
        ]

    @property
    def full_name(self) -> str:
        return self._full_name

    def _collect(self, fragment: str) -> list[str]:
        lines: list[str] = []
        for gen in self._fields:
            lines += getattr(gen, fragment)()
        return lines

    def render_inner(self) -> str:
        """Render the contents of the nested module, or "" when it has none."""
        message = self._message
        if not message.has_inner_items:
            return ""

        parts: list[str] = []
        for nested in message.nested_types:
            if nested.map_entry:
                continue
            parts.append(MessageGenerator(nested, self._ctx, self._full_name).render())
        for enum in message.enum_types:
            parts.append(EnumGenerator(enum, self._ctx).render())

        extensions = render_extensions(message.extensions, self._ctx)
        if extensions:
            parts.append("\n".join(extensions) + "\n")

        return textwrap.indent("\n".join(parts), INDENT).rstrip("\n")

    def render(self) -> str:
        message = self._message
        _LOG.debug("Generating message %s", self._full_name)

        return message_template.render(
            name=message_name(message),
            raw_name=message.name,
            full_name=self._full_name,
            mod_name=message_mod_name(message),
            runtime_crate=self._ctx.options.runtime_crate,
            extendable=message.has_extension_ranges,
            members=[gen.struct_member() for gen in self._fields],
            merge_lines=self._collect("merge_branches"),
            size_lines=self._collect("size_lines"),
            write_lines=self._collect("write_lines"),
            init_lines=self._collect("init_check_lines"),
            item_lines=self._collect("item_lines"),
            inner=self.render_inner(),
        )
