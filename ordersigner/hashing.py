from collections.abc import Callable, Mapping
from typing import Any

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from eth_utils import keccak
from hexbytes import HexBytes

from .encoding import type_hash
from .errors import ArrayNotImplementedError, ValueShapeError
from .evmtypes import EIP712_DOMAIN_TYPE, EIP712Domain, EIP712TypedData
from .registry import FieldKind, ResolvedField, TypeRegistry
from .values import ATOMIC_NORMALIZERS, check_fields, normalize_bytes, normalize_string

EIP712_PREFIX = b"\x19\x01"

FieldEncoder = Callable[[str, ResolvedField, Any, TypeRegistry], bytes]


def _encode_atomic(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> bytes:
    normalized = ATOMIC_NORMALIZERS[field.kind](field, value)

    try:
        return encode([field.abi_type], [normalized])
    except EncodingError as error:
        msg = f"Cannot encode {type_name}.{field.name} as {field.abi_type}: {error}"
        raise ValueShapeError(msg) from error


def _encode_string(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> bytes:
    return keccak(text=normalize_string(field, value))


def _encode_bytes(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> bytes:
    return keccak(normalize_bytes(field, value))


def _encode_struct(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> bytes:
    return hash_struct(field.type, value, registry)


def _encode_array(
    type_name: str,
    field: ResolvedField,
    value: Any,
    registry: TypeRegistry,
) -> bytes:
    raise ArrayNotImplementedError(type_name, field.name)


FIELD_ENCODERS: dict[FieldKind, FieldEncoder] = {
    FieldKind.ADDRESS: _encode_atomic,
    FieldKind.BOOL: _encode_atomic,
    FieldKind.UINT: _encode_atomic,
    FieldKind.INT: _encode_atomic,
    FieldKind.FIXED_BYTES: _encode_atomic,
    FieldKind.BYTES: _encode_bytes,
    FieldKind.STRING: _encode_string,
    FieldKind.STRUCT: _encode_struct,
    FieldKind.ARRAY: _encode_array,
}


def encode_data(type_name: str, value: Any, registry: TypeRegistry) -> bytes:
    """Type hash followed by one 32-byte slot per field, in declaration order."""
    fields = registry.fields(type_name)
    value = check_fields(type_name, fields, value)
    slots = [type_hash(type_name, registry)]

    for field in fields:
        encoder = FIELD_ENCODERS[field.kind]
        slots.append(encoder(type_name, field, value[field.name], registry))

    return b"".join(slots)


def hash_struct(type_name: str, value: Any, registry: TypeRegistry) -> bytes:
    return keccak(encode_data(type_name, value, registry))


def domain_values(domain: EIP712Domain | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(domain, EIP712Domain):
        return domain.model_dump(by_alias=True)

    return domain


def hash_domain(
    domain: EIP712Domain | Mapping[str, Any],
    registry: TypeRegistry,
) -> bytes:
    return hash_struct(EIP712_DOMAIN_TYPE, domain_values(domain), registry)


def build_digest(
    domain: EIP712Domain | Mapping[str, Any],
    primary_type: str,
    message: Any,
    registry: TypeRegistry,
) -> HexBytes:
    """Final EIP-712 digest: ``keccak(0x1901 ‖ domainSeparator ‖ hashStruct)``.

    This is the value wallets sign and the verifying contract recomputes,
    so any change in field order, field values or domain produces a
    signature that no longer recovers to the intended signer.
    """
    return HexBytes(
        keccak(
            EIP712_PREFIX
            + hash_domain(domain, registry)
            + hash_struct(primary_type, message, registry),
        ),
    )


def hash_typed_data(typed_data: EIP712TypedData) -> HexBytes:
    registry = TypeRegistry.from_typed_data(typed_data)
    return build_digest(
        typed_data.domain,
        typed_data.primary_type,
        typed_data.message,
        registry,
    )
