import re
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from eth_utils import (
    is_0x_prefixed,
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex_address,
    is_hexstr,
    to_bytes,
    to_checksum_address,
)

from .errors import ArrayNotImplementedError, ValueShapeError
from .registry import FieldKind, ResolvedField, TypeRegistry
from .rpctypes import JsonDict, JsonValue

_DECIMAL = re.compile(r"^-?[0-9]+$")

ADDRESS_LENGTH = 20


def is_0x_hex(value: Any) -> bool:
    return isinstance(value, str) and is_0x_prefixed(value) and is_hexstr(value)


def _shape_error(field: ResolvedField, value: Any, expected: str) -> ValueShapeError:
    return ValueShapeError(
        f"Field '{field.name}' ({field.type}) expects {expected}, got {value!r}",
    )


def check_fields(
    type_name: str,
    fields: tuple[ResolvedField, ...],
    value: Any,
) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        msg = f"Value of '{type_name}' must be a mapping, got {type(value).__name__}"
        raise ValueShapeError(msg)

    declared = [field.name for field in fields]
    missing = [name for name in declared if name not in value]
    extra = sorted(set(value) - set(declared))

    if missing or extra:
        msg = f"Value of '{type_name}' does not match its fields:"

        if missing:
            msg += f" missing {missing}"

        if extra:
            msg += f" unexpected {extra}"

        raise ValueShapeError(msg)

    return value


def normalize_address(field: ResolvedField, value: Any) -> str:
    if isinstance(value, bytes) and len(value) == ADDRESS_LENGTH:
        return to_checksum_address("0x" + value.hex())

    if isinstance(value, str) and is_hex_address(value):
        if is_checksum_formatted_address(value) and not is_checksum_address(value):
            raise _shape_error(field, value, "a valid EIP-55 checksum")

        return to_checksum_address(value)

    raise _shape_error(field, value, "a 20-byte address")


def normalize_integer(field: ResolvedField, value: Any) -> int:
    if isinstance(value, bool):
        raise _shape_error(field, value, "an integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, Decimal) and value == value.to_integral_value():
        number = int(value)
    elif is_0x_hex(value) and len(value) > 2:  # noqa: PLR2004
        number = int(value, 16)
    elif isinstance(value, str) and _DECIMAL.match(value):
        number = int(value, 10)
    else:
        raise _shape_error(field, value, "an integer")

    bits = field.size or 256

    if field.kind is FieldKind.UINT:
        low, high = 0, 2**bits - 1
    else:
        low, high = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1

    if not low <= number <= high:
        raise _shape_error(field, value, f"a value in [{low}, {high}]")

    return number


def normalize_bool(field: ResolvedField, value: Any) -> bool:
    if not isinstance(value, bool):
        raise _shape_error(field, value, "a boolean")

    return value


def normalize_bytes(field: ResolvedField, value: Any) -> bytes:
    if isinstance(value, bytes):
        data = value
    elif is_0x_hex(value):
        data = to_bytes(hexstr=value)
    else:
        raise _shape_error(field, value, "0x-prefixed hex or bytes")

    if field.kind is FieldKind.FIXED_BYTES and len(data) > (field.size or 0):
        raise _shape_error(field, value, f"at most {field.size} bytes")

    return bytes(data)


def normalize_string(field: ResolvedField, value: Any) -> str:
    if not isinstance(value, str):
        raise _shape_error(field, value, "a string")

    return value


ATOMIC_NORMALIZERS: dict[FieldKind, Callable[[ResolvedField, Any], Any]] = {
    FieldKind.ADDRESS: normalize_address,
    FieldKind.UINT: normalize_integer,
    FieldKind.INT: normalize_integer,
    FieldKind.BOOL: normalize_bool,
    FieldKind.FIXED_BYTES: normalize_bytes,
    FieldKind.BYTES: normalize_bytes,
    FieldKind.STRING: normalize_string,
}


def to_json_message(
    type_name: str,
    value: Any,
    registry: TypeRegistry,
) -> JsonDict:
    """Render a struct value the way wallets expect it in ``eth_signTypedData``.

    Integers become decimal strings so that 256-bit values survive
    JavaScript number precision, byte strings become ``0x`` hex and
    addresses are checksummed.
    """
    fields = registry.fields(type_name)
    value = check_fields(type_name, fields, value)
    message: JsonDict = {}

    for field in fields:
        message[field.name] = _to_json_value(
            type_name,
            field,
            value[field.name],
            registry,
        )

    return message


def _to_json_value(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> JsonValue:
    if field.kind is FieldKind.STRUCT:
        return to_json_message(field.type, value, registry)

    if field.kind is FieldKind.ARRAY:
        raise ArrayNotImplementedError(type_name, field.name)

    normalized = ATOMIC_NORMALIZERS[field.kind](field, value)

    if isinstance(normalized, bytes):
        return "0x" + normalized.hex()

    if isinstance(normalized, int) and not isinstance(normalized, bool):
        return str(normalized)

    return normalized
