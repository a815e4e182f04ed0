"""Per-file and manifest generation."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .messages import EnumGenerator, MessageGenerator, env, render_extensions
from .names import SymbolTable, file_alias
from .options import GeneratorOptions
from .typemap import GenContext
from .types import FileSchema

_LOG = logging.getLogger(__name__)

DISCLAIMER = "// DO NOT EDIT! This file was generated by protoc-gen-rsproto"

UNIT_NAME = "generated"
MANIFEST_NAME = "mod"

file_template = env.get_template("file.rs.j2")
manifest_template = env.get_template("mod.rs.j2")


@dataclass
class GeneratedFile:
    """A generated source unit and its path relative to the output root."""

    name: str
    content: str


def unit_path(file: FileSchema, options: GeneratorOptions) -> str:
    """Output path of the source unit generated for a schema file."""
    return f"{file.name}/{UNIT_NAME}{options.output_file_extension}"


class FileGenerator:
    """Generates the source unit for one schema file."""

    def __init__(self, file: FileSchema, symbols: SymbolTable, options: GeneratorOptions):
        self._file = file
        self._ctx = GenContext(file, symbols, options)

    def render(self) -> str:
        file = self._file
        items: list[str] = []
        for message in file.messages:
            if message.map_entry:
                continue
            items.append(MessageGenerator(message, self._ctx, file.package).render().rstrip("\n"))
        for enum in file.enums:
            items.append(EnumGenerator(enum, self._ctx).render().rstrip("\n"))
        extensions = render_extensions(file.extensions, self._ctx)
        if extensions:
            items.append("\n".join(extensions))

        return file_template.render(
            disclaimer=DISCLAIMER,
            runtime_crate=self._ctx.options.runtime_crate,
            imports=[file_alias(dep) for dep in file.dependencies],
            items=items,
        )

    def generate(self) -> GeneratedFile:
        _LOG.debug("Generating %s", self._file.name)
        return GeneratedFile(unit_path(self._file, self._ctx.options), self.render())


class ManifestGenerator:
    """Generates the manifest exposing every generated file as a module."""

    def __init__(self, files: Iterable[FileSchema], options: GeneratorOptions):
        self._files = list(files)
        self._options = options

    def render(self) -> str:
        modules = [{"path": file.name, "alias": file_alias(file.name)} for file in self._files]
        return manifest_template.render(
            disclaimer=DISCLAIMER,
            modules=modules,
            extension=self._options.output_file_extension,
            additional_imports=self._options.additional_module_imports,
        )

    def generate(self) -> GeneratedFile:
        return GeneratedFile(f"{MANIFEST_NAME}{self._options.output_file_extension}", self.render())


def generate(
    files: list[FileSchema],
    options: GeneratorOptions | None = None,
    to_generate: Iterable[str] | None = None,
) -> list[GeneratedFile]:
    """Generate source units for a set of schema files.

    Args:
        files: Every schema file of the run, including imported ones.
        options: Generator options, defaults when omitted.
        to_generate: Names of the files to emit code for. All files when omitted.

    Returns:
        One unit per generated file followed by the manifest.
    """
    if options is None:
        options = GeneratorOptions()

    symbols = SymbolTable(files)
    if to_generate is None:
        targets = list(files)
    else:
        targets = [symbols.file(name) for name in to_generate]

    outputs = [FileGenerator(file, symbols, options).generate() for file in targets]
    outputs.append(ManifestGenerator(targets, options).generate())

    _LOG.info("Generated %d files (%d types)", len(targets), len(symbols))
    return outputs
