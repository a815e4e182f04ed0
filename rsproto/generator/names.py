"""Identifier and path resolution for generated Rust modules."""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum, auto

from .types import EnumSchema, EnumValueSchema, FieldSchema, FileSchema, MessageSchema, SchemaError

_LOG = logging.getLogger(__name__)

RAW_PREFIX = "r#"

RESERVED_WORDS = frozenset(
    [
        "as",
        "break",
        "const",
        "continue",
        "else",
        "enum",
        "false",
        "fn",
        "for",
        "if",
        "impl",
        "in",
        "let",
        "loop",
        "match",
        "mod",
        "move",
        "mut",
        "pub",
        "ref",
        "return",
        "static",
        "struct",
        "trait",
        "true",
        "type",
        "unsafe",
        "use",
        "where",
        "while",
        "dyn",
        "abstract",
        "become",
        "box",
        "do",
        "final",
        "macro",
        "override",
        "priv",
        "typeof",
        "unsized",
        "virtual",
        "yield",
        "async",
        "await",
        "try",
    ]
)

FILE_ALIAS_RE = re.compile(r"[^A-Za-z0-9]")

FILE_FIELD = "__file"
IMPORTS_MODULE = "__imports"


def escape(name: str) -> str:
    """Escape an identifier that collides with a reserved word."""
    if name in RESERVED_WORDS:
        return RAW_PREFIX + name
    return name


def is_escaped(name: str) -> bool:
    return name.startswith(RAW_PREFIX)


def to_mod_name(name: str) -> str:
    """Convert a CapitalizedWords type name to its lower_underscore module name.

    An underscore goes before each uppercase letter except the first character
    and letters continuing a run of uppercase letters, so ``InnerType`` becomes
    ``inner_type`` and ``HTTPServer`` becomes ``httpserver``.
    """
    result: list[str] = []
    last_capped = False
    for i, c in enumerate(name):
        if "A" <= c <= "Z":
            if i != 0 and not last_capped:
                result.append("_")
            result.append(c.lower())
            last_capped = True
        else:
            result.append(c)
            last_capped = False
    return "".join(result)


def file_alias(file_name: str) -> str:
    """Module alias for a schema file, e.g. ``foo/bar.proto`` -> ``foo_bar_proto``."""
    alias = FILE_ALIAS_RE.sub("_", file_name)
    if alias[:1].isdigit():
        alias = "_" + alias
    return alias


def message_name(message: MessageSchema) -> str:
    return escape(message.name)


def message_mod_name(message: MessageSchema) -> str:
    return escape(to_mod_name(message.name))


def enum_name(enum: EnumSchema) -> str:
    return escape(enum.name)


def enum_value_name(value: EnumValueSchema) -> str:
    return escape(value.name)


def field_name(f: FieldSchema) -> str:
    return escape(f.name)


def field_number_name(f: FieldSchema) -> str:
    return f.name.upper() + "_NUMBER"


def field_default_name(f: FieldSchema) -> str:
    return f.name.upper() + "_DEFAULT"


def extension_name(f: FieldSchema) -> str:
    return f.name.upper()


class SymbolKind(StrEnum):
    MESSAGE = auto()
    ENUM = auto()


@dataclass(frozen=True)
class Symbol:
    """A message or enum type reachable from the generated module tree."""

    kind: SymbolKind
    file: str
    full_name: str  # leading dot, e.g. ".pkg.Outer.Inner"
    parents: tuple[MessageSchema, ...]  # containing messages, outermost first
    schema: MessageSchema | EnumSchema

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def path(self) -> str:
        """Type path relative to the file's package, e.g. ``Outer.Inner``."""
        return ".".join([p.name for p in self.parents] + [self.schema.name])

    def module_path(self) -> list[str]:
        """Module path segments from the file root down to the type itself."""
        segments = [message_mod_name(p) for p in self.parents]
        if self.kind == SymbolKind.MESSAGE:
            segments.append(message_name(self.schema))  # type: ignore[arg-type]
        else:
            segments.append(enum_name(self.schema))  # type: ignore[arg-type]
        return segments


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else f".{name}"


class SymbolTable:
    """Lookup table for every type declared in a set of schema files.

    Symbols are keyed both by fully-qualified name and by
    (file identifier, package-relative type path).
    """

    def __init__(self, files: Iterable[FileSchema]):
        self._symbols: dict[str, Symbol] = {}
        self._by_file: dict[tuple[str, str], Symbol] = {}
        self._files: dict[str, FileSchema] = {}

        for file in files:
            self._files[file.name] = file
            scope = f".{file.package}" if file.package else ""
            self._add_all(file, scope, (), file.messages, file.enums)

        _LOG.debug("Symbol table holds %d types from %d files", len(self._symbols), len(self._files))

    def _add_all(
        self,
        file: FileSchema,
        scope: str,
        parents: tuple[MessageSchema, ...],
        messages: list[MessageSchema],
        enums: list[EnumSchema],
    ) -> None:
        for enum in enums:
            self._add(Symbol(SymbolKind.ENUM, file.name, _qualify(scope, enum.name), parents, enum))
        for message in messages:
            full_name = _qualify(scope, message.name)
            self._add(Symbol(SymbolKind.MESSAGE, file.name, full_name, parents, message))
            self._add_all(
                file,
                full_name,
                parents + (message,),
                message.nested_types,
                message.enum_types,
            )

    def _add(self, symbol: Symbol) -> None:
        if symbol.full_name in self._symbols:
            raise SchemaError(f"Duplicate symbol {symbol.full_name} in {symbol.file}")
        self._symbols[symbol.full_name] = symbol
        self._by_file[(symbol.file, symbol.path)] = symbol

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def file(self, name: str) -> FileSchema:
        if name not in self._files:
            raise SchemaError(f"Unknown file {name}")
        return self._files[name]

    def lookup(self, type_name: str) -> Symbol:
        """Find a type by its fully-qualified name."""
        if not type_name.startswith("."):
            type_name = "." + type_name
        symbol = self._symbols.get(type_name)
        if symbol is None:
            raise SchemaError(f"Unresolved type reference {type_name}")
        return symbol

    def lookup_in(self, file_name: str, path: str) -> Symbol:
        """Find a type by file and package-relative path."""
        symbol = self._by_file.get((file_name, path))
        if symbol is None:
            raise SchemaError(f"No type {path} in {file_name}")
        return symbol

    def message(self, type_name: str) -> MessageSchema:
        symbol = self.lookup(type_name)
        if symbol.kind != SymbolKind.MESSAGE:
            raise SchemaError(f"{type_name} is not a message")
        return symbol.schema  # type: ignore[return-value]

    def enum(self, type_name: str) -> EnumSchema:
        symbol = self.lookup(type_name)
        if symbol.kind != SymbolKind.ENUM:
            raise SchemaError(f"{type_name} is not an enum")
        return symbol.schema  # type: ignore[return-value]

    def rust_path(self, from_file: str, type_name: str) -> str:
        """Path of a type as seen from code generated for ``from_file``.

        Types from other files are reached through the importing file's
        ``__imports`` module under the imported file's alias.
        """
        symbol = self.lookup(type_name)
        segments = [FILE_FIELD]
        if symbol.file != from_file:
            segments += [IMPORTS_MODULE, file_alias(symbol.file)]
        segments += symbol.module_path()
        return "::".join(segments)
