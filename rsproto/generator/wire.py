"""Wire format calculations for generated readers and writers."""

from enum import IntEnum

from .types import ScalarKind, SchemaError

MIN_FIELD_NUMBER = 1
MAX_FIELD_NUMBER = (1 << 29) - 1

# Reserved for the protobuf implementation itself
FIRST_RESERVED_NUMBER = 19000
LAST_RESERVED_NUMBER = 19999

TAG_TYPE_BITS = 3
TAG_TYPE_MASK = (1 << TAG_TYPE_BITS) - 1


class WireType(IntEnum):
    """The 3-bit encoding shape carried in every tag."""

    VARINT = 0
    BIT64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    BIT32 = 5


WIRE_TYPES: dict[ScalarKind, WireType] = {
    ScalarKind.DOUBLE: WireType.BIT64,
    ScalarKind.FIXED64: WireType.BIT64,
    ScalarKind.SFIXED64: WireType.BIT64,
    ScalarKind.FLOAT: WireType.BIT32,
    ScalarKind.FIXED32: WireType.BIT32,
    ScalarKind.SFIXED32: WireType.BIT32,
    ScalarKind.INT32: WireType.VARINT,
    ScalarKind.INT64: WireType.VARINT,
    ScalarKind.UINT32: WireType.VARINT,
    ScalarKind.UINT64: WireType.VARINT,
    ScalarKind.SINT32: WireType.VARINT,
    ScalarKind.SINT64: WireType.VARINT,
    ScalarKind.BOOL: WireType.VARINT,
    ScalarKind.ENUM: WireType.VARINT,
    ScalarKind.STRING: WireType.LENGTH_DELIMITED,
    ScalarKind.BYTES: WireType.LENGTH_DELIMITED,
    ScalarKind.MESSAGE: WireType.LENGTH_DELIMITED,
    ScalarKind.GROUP: WireType.START_GROUP,
}

PACKABLE_WIRE_TYPES = frozenset([WireType.VARINT, WireType.BIT32, WireType.BIT64])


def wire_type(kind: ScalarKind | str) -> WireType:
    """Get the wire type used to encode a single value of a scalar kind."""
    wt = WIRE_TYPES.get(kind)
    if wt is None:
        raise SchemaError(f"Unsupported scalar kind: {kind}")
    return wt


def is_packable(kind: ScalarKind | str) -> bool:
    """Check if repeated values of a kind may use packed encoding."""
    return wire_type(kind) in PACKABLE_WIRE_TYPES


def is_valid_field_number(number: int) -> bool:
    if number < MIN_FIELD_NUMBER or number > MAX_FIELD_NUMBER:
        return False
    return not FIRST_RESERVED_NUMBER <= number <= LAST_RESERVED_NUMBER


def make_tag(number: int, wt: WireType) -> int:
    """Combine a field number and wire type into an unsigned 32-bit tag."""
    return ((number << TAG_TYPE_BITS) | int(wt)) & 0xFFFFFFFF


def split_tag(tag: int) -> tuple[int, WireType]:
    """Recover the (field number, wire type) pair from a tag."""
    return tag >> TAG_TYPE_BITS, WireType(tag & TAG_TYPE_MASK)
