"""Command-line interface for rsproto code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from rsproto.generator.descriptors import load_schema
from rsproto.generator.fields import create_field_generator
from rsproto.generator.files import generate
from rsproto.generator.names import SymbolTable
from rsproto.generator.options import GeneratorOptions, OptionsError
from rsproto.generator.typemap import GenContext
from rsproto.generator.types import MessageSchema, SchemaError

_LOG = logging.getLogger(__name__)


def _parse_option(value: str) -> tuple[str, str]:
    key, sep, item = value.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"Expected key=value, got {value!r}")
    return key.strip(), item.strip()


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """rsproto protobuf to Rust code generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Descriptor set or .json schema",
)
@click.option("--output", "-o", "output_dir", required=True, help="Output directory")
@click.option(
    "--option",
    "-O",
    "raw_options",
    multiple=True,
    help="Generator option as key=value, list values separated by ':'",
)
@click.option(
    "--file",
    "-f",
    "to_generate",
    multiple=True,
    help="Only generate code for this schema file (repeatable)",
)
def gen(
    input_file: str, output_dir: str, raw_options: tuple[str, ...], to_generate: tuple[str, ...]
) -> None:
    """Generate Rust code from a schema."""
    try:
        options = GeneratorOptions.from_mapping(dict(_parse_option(o) for o in raw_options))
        files = load_schema(input_file)
        outputs = generate(files, options, to_generate or None)
    except (OptionsError, SchemaError) as e:
        _LOG.error("%s", e)
        sys.exit(1)

    root = Path(output_dir)
    for output in outputs:
        path = root / output.name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output.content, encoding="utf-8")
        _LOG.debug("Wrote %s", path)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Descriptor set or .json schema",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display messages, fields and the wire tags they accept."""
    try:
        files = load_schema(input_file)
        symbols = SymbolTable(files)
        data = _describe(symbols)
    except SchemaError as e:
        _LOG.error("%s", e)
        sys.exit(1)

    if output_json:
        print(json.dumps(data, indent=2))
    else:
        _output_plain(data)


def _describe_message(message: MessageSchema, ctx: GenContext) -> list[dict]:
    fields = []
    for f in message.fields:
        gen = create_field_generator(f, ctx)
        fields.append(
            {
                "name": f.name,
                "number": f.number,
                "kind": f.kind.value,
                "cardinality": f.cardinality.value,
                "packed": f.packed,
                "tags": gen.accepted_tags(),
            }
        )
    return fields


def _describe(symbols: SymbolTable) -> dict:
    """Collect field and tag information for every non map-entry message."""
    options = GeneratorOptions()
    data: dict = {}
    for symbol in symbols:
        if not isinstance(symbol.schema, MessageSchema) or symbol.schema.map_entry:
            continue
        ctx = GenContext(symbols.file(symbol.file), symbols, options)
        data[symbol.full_name.lstrip(".")] = {
            "file": symbol.file,
            "fields": _describe_message(symbol.schema, ctx),
        }
    return data


def _output_plain(data: dict) -> None:
    """Output message info using rich text formatting."""
    console = Console()

    for name, message in data.items():
        console.print(f"[bold cyan]{name}[/bold cyan] [dim]({message['file']})[/dim]")

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        table.add_column("Field", style="white")
        table.add_column("Number", style="yellow", justify="right")
        table.add_column("Kind", style="dim")
        table.add_column("Cardinality", style="dim")
        table.add_column("Tags", style="green", justify="right")

        for f in message["fields"]:
            cardinality = f["cardinality"]
            if f["packed"]:
                cardinality += " (packed)"
            tags = ", ".join(str(t) for t in f["tags"])
            table.add_row(f["name"], str(f["number"]), f["kind"], cardinality, tags)

        console.print(table)
        console.print()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
