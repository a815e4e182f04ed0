"""protoc plugin entry point.

Reads a CodeGeneratorRequest from stdin and writes a CodeGeneratorResponse
to stdout. Install as ``protoc-gen-rsproto`` and run with ``--rsproto_out``.
"""

import logging
import sys

from google.protobuf.compiler import plugin_pb2

from .descriptors import convert_file
from .files import generate
from .options import GeneratorOptions, OptionsError
from .types import SchemaError

_LOG = logging.getLogger(__name__)


def process_request(
    req: plugin_pb2.CodeGeneratorRequest, res: plugin_pb2.CodeGeneratorResponse
) -> bool:
    """Handles a protoc CodeGeneratorRequest message.

    Generated files are added to ``res``. Configuration and schema errors are
    reported through ``res.error`` so protoc can print them.

    Returns:
        True on success.
    """
    try:
        options = GeneratorOptions.from_parameter(req.parameter)
        files = [convert_file(proto) for proto in req.proto_file]
        outputs = generate(files, options, req.file_to_generate)
    except (OptionsError, SchemaError) as e:
        res.error = str(e)
        return False

    for output in outputs:
        fd = res.file.add()
        fd.name = output.name
        fd.content = output.content
    return True


def main() -> int:
    """Protobuf compiler plugin entrypoint."""
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    data = sys.stdin.buffer.read()
    request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    response = plugin_pb2.CodeGeneratorResponse()

    response.supported_features |= response.FEATURE_PROTO3_OPTIONAL

    if not process_request(request, response):
        _LOG.error("rsproto failed to generate code: %s", response.error)

    sys.stdout.buffer.write(response.SerializeToString())
    return 0


if __name__ == "__main__":
    sys.exit(main())
