"""rsproto - Protobuf to Rust code generator."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rsproto")
except PackageNotFoundError:
    __version__ = "(local)"
