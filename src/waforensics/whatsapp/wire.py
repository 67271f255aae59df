"""Generic protobuf field scanner.

Scans a length-delimited payload into a ``FieldMap`` without a schema. The
caller decides whether a ``Bytes`` value is a nested message, a string or
packed scalars. Repeated field numbers accumulate in wire order.
"""

from .cursor import ByteCursor
from .errors import UnknownWireTypeError
from .models import Bytes, FieldMap, FieldValue, Fixed32, Fixed64, Varint

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_FIXED32 = 5


def scan_fields(data: bytes) -> FieldMap:
    """Scan every field of one protobuf message.

    Raises:
        UnknownWireTypeError: On wire types 3, 4, 6 or 7. There is no safe
            way to skip a field whose framing is unknown.
        BufferUnderrunError: If a field runs past the end of ``data``.
    """
    cursor = ByteCursor(data)
    fields: FieldMap = {}

    while not cursor.at_end():
        tag = cursor.read_varint()
        field_number = tag >> 3
        wire_type = tag & 0x07

        value: FieldValue
        if wire_type == WIRE_VARINT:
            value = Varint(cursor.read_varint())
        elif wire_type == WIRE_FIXED64:
            value = Fixed64(cursor.read_fixed64())
        elif wire_type == WIRE_LENGTH_DELIMITED:
            value = Bytes(cursor.read_bytes(cursor.read_varint()))
        elif wire_type == WIRE_FIXED32:
            value = Fixed32(cursor.read_fixed32())
        else:
            raise UnknownWireTypeError(
                f"unknown wire type {wire_type} for field {field_number} "
                f"at offset {cursor.offset}"
            )

        fields.setdefault(field_number, []).append(value)

    return fields


def all_values(fields: FieldMap, number: int) -> list[FieldValue]:
    return fields.get(number, [])


def last_value(fields: FieldMap, number: int) -> FieldValue | None:
    """Scalar view of a field: the last occurrence wins."""
    values = fields.get(number)
    return values[-1] if values else None


def get_bytes(fields: FieldMap, number: int) -> bytes | None:
    value = last_value(fields, number)
    return value.data if isinstance(value, Bytes) else None


def get_string(fields: FieldMap, number: int) -> str | None:
    data = get_bytes(fields, number)
    return data.decode("utf-8", errors="replace") if data is not None else None


def get_strings(fields: FieldMap, number: int) -> list[str]:
    """Every length-delimited occurrence of a repeated string field."""
    return [
        v.data.decode("utf-8", errors="replace")
        for v in all_values(fields, number)
        if isinstance(v, Bytes)
    ]


def get_int(fields: FieldMap, number: int) -> int | None:
    value = last_value(fields, number)
    if isinstance(value, (Varint, Fixed64, Fixed32)):
        return value.value
    return None


def get_bool(fields: FieldMap, number: int) -> bool | None:
    """Boolean coercion: non-zero scalars and non-empty bytes are true."""
    value = last_value(fields, number)
    if value is None:
        return None
    if isinstance(value, Bytes):
        return bool(value.data)
    return value.value != 0
