"""Generator configuration and its parameter-string parser."""

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from typing import Any

from lark import Lark, Token
from lark.exceptions import LarkError
from lark.visitors import Transformer

_g_parser: Lark | None = None


class OptionsError(ValueError):
    """Raised when generator options are malformed or unrecognized."""


@dataclass(frozen=True)
class GeneratorOptions:
    """Options recognized by the generator.

    Attributes:
        output_file_extension: Extension of every generated source unit.
        additional_module_imports: Module names spliced into the root module of
            every generated file, each loaded from ``<name><extension>``.
        runtime_crate: Crate providing ``gen_prelude`` to generated code.
    """

    output_file_extension: str = ".rs"
    additional_module_imports: tuple[str, ...] = field(default_factory=tuple)
    runtime_crate: str = "protrust"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GeneratorOptions":
        """Build options from a key/value mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise OptionsError(f"Unrecognized option: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            if key == "additional_module_imports":
                kwargs[key] = _as_list(key, value)
            else:
                kwargs[key] = _as_single(key, value)
        return cls(**kwargs)

    @classmethod
    def from_parameter(cls, parameter: str) -> "GeneratorOptions":
        """Build options from a plugin parameter string."""
        return cls.from_mapping(parse_parameter(parameter))


def _as_single(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence) and len(value) == 1:
        return str(value[0])
    raise OptionsError(f"Option {key} takes exactly one value")


def _as_list(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [v for v in value.split(":") if v]
    if not isinstance(value, Sequence):
        raise OptionsError(f"Option {key} takes a list of values")
    return tuple(str(v) for v in value)


class OptionTransformer(Transformer):
    """Transform a parameter parse tree into (key, values) pairs."""

    def start(self, args: list[Any]) -> list[tuple[str, list[str]]]:
        return list(args)

    def option(self, args: list[Any]) -> tuple[str, list[str]]:
        values = args[1] if len(args) > 1 else []
        return (str(args[0]), values)

    def value(self, args: list[Any]) -> list[str]:
        return [_token_text(arg) for arg in args]


def _token_text(token: Token) -> str:
    if token.type == "ESCAPED_STRING":
        return str(token)[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return str(token)


def parse_parameter(parameter: str) -> dict[str, list[str]]:
    """Parse a ``key=value,key=a:b`` parameter string."""
    global _g_parser

    if not parameter.strip():
        return {}

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/options.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar)

    try:
        tree = _g_parser.parse(parameter)
    except LarkError as e:
        raise OptionsError(f"Malformed generator parameter {parameter!r}: {e}") from e

    result: dict[str, list[str]] = {}
    for key, values in OptionTransformer().transform(tree):
        if key in result:
            raise OptionsError(f"Option {key} given more than once")
        result[key] = values
    return result
