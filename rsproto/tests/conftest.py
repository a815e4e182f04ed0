"""Shared fixtures for the rsproto test suite."""

import json

import pytest
from click.testing import CliRunner

from rsproto.generator.types import (
    Cardinality,
    FieldSchema,
    FileSchema,
    MessageSchema,
    ScalarKind,
)


def pytest_configure(config):
    """Hide file paths in the terminal report."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def schema_path(tmp_path):
    """A JSON schema with one message holding a string and a packed double list."""
    file = FileSchema(
        name="metrics.proto",
        package="metrics",
        messages=[
            MessageSchema(
                name="Sample",
                fields=[
                    FieldSchema(name="name", number=1, kind=ScalarKind.STRING),
                    FieldSchema(
                        name="values",
                        number=2,
                        kind=ScalarKind.DOUBLE,
                        cardinality=Cardinality.REPEATED,
                        packed=True,
                    ),
                ],
            )
        ],
    )
    path = tmp_path / "schema.json"
    path.write_text(json.dumps([file.to_dict(encode_json=True)]))
    return str(path)
