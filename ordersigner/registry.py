import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from .errors import SchemaError
from .evmtypes import (
    DOMAIN_TYPE_FIELDS,
    EIP712_DOMAIN_TYPE,
    EIP712TypedData,
    TypeField,
)

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_INTEGER_TYPE = re.compile(r"^(?P<unsigned>u?)int(?P<bits>\d*)$")
_FIXED_BYTES_TYPE = re.compile(r"^bytes(?P<size>\d+)$")
_ARRAY_TYPE = re.compile(r"^(?P<element>.+)\[(?P<size>\d*)\]$")

MAX_INTEGER_BITS = 256
MAX_FIXED_BYTES = 32


class FieldKind(Enum):
    ADDRESS = "address"
    BOOL = "bool"
    UINT = "uint"
    INT = "int"
    FIXED_BYTES = "fixed_bytes"
    BYTES = "bytes"
    STRING = "string"
    STRUCT = "struct"
    ARRAY = "array"


# Kinds whose encoded slot is a keccak-256 hash rather than an ABI value.
HASHED_KINDS = frozenset({FieldKind.BYTES, FieldKind.STRING, FieldKind.STRUCT})


@dataclass(frozen=True)
class ResolvedField:
    name: str
    type: str
    kind: FieldKind
    size: int | None = None  # bits for (u)int, length for bytesN
    struct: str | None = None  # referenced struct, also for array elements

    @property
    def abi_type(self) -> str:
        if self.kind in HASHED_KINDS:
            return "bytes32"

        if self.kind is FieldKind.UINT:
            return f"uint{self.size}"

        if self.kind is FieldKind.INT:
            return f"int{self.size}"

        if self.kind is FieldKind.FIXED_BYTES:
            return f"bytes{self.size}"

        return self.kind.value


def _as_type_field(field: TypeField | Mapping[str, str]) -> TypeField:
    if isinstance(field, TypeField):
        return field

    return TypeField.model_validate(field)


class TypeRegistry(Mapping[str, tuple[ResolvedField, ...]]):
    """Named struct definitions with every field type resolved up front.

    The reserved ``EIP712Domain`` type is added with its standard
    ``name, version, chainId, verifyingContract`` layout when the caller
    does not declare it. Any reference to a type that is neither an atomic
    EIP-712 type nor declared here raises ``SchemaError``.
    """

    def __init__(
        self,
        types: Mapping[str, Sequence[TypeField | Mapping[str, str]]],
    ) -> None:
        declared = {
            name: tuple(_as_type_field(field) for field in fields)
            for name, fields in types.items()
        }

        if EIP712_DOMAIN_TYPE not in declared:
            declared = {EIP712_DOMAIN_TYPE: DOMAIN_TYPE_FIELDS, **declared}

        self._declared = MappingProxyType(declared)
        self._types = MappingProxyType(
            {
                name: self._resolve_type(name, fields)
                for name, fields in declared.items()
            },
        )

    @classmethod
    def from_typed_data(cls, typed_data: EIP712TypedData) -> "TypeRegistry":
        return cls(typed_data.types)

    def __getitem__(self, type_name: str) -> tuple[ResolvedField, ...]:
        return self._types[type_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry({list(self._types)})"

    def fields(self, type_name: str) -> tuple[ResolvedField, ...]:
        try:
            return self._types[type_name]
        except KeyError:
            msg = f"Type '{type_name}' is not defined"
            raise SchemaError(msg) from None

    def as_types(self) -> dict[str, list[TypeField]]:
        return {name: list(fields) for name, fields in self._declared.items()}

    def _resolve_type(
        self,
        type_name: str,
        fields: tuple[TypeField, ...],
    ) -> tuple[ResolvedField, ...]:
        if not _IDENTIFIER.match(type_name):
            msg = f"Invalid type name: '{type_name}'"
            raise SchemaError(msg)

        if not fields:
            msg = f"Type '{type_name}' declares no fields"
            raise SchemaError(msg)

        names = [field.name for field in fields]
        duplicates = sorted({name for name in names if names.count(name) > 1})

        if duplicates:
            msg = f"Type '{type_name}' declares duplicate fields: {duplicates}"
            raise SchemaError(msg)

        return tuple(self._resolve_field(type_name, field) for field in fields)

    def _resolve_field(self, type_name: str, field: TypeField) -> ResolvedField:
        declared_type = field.type

        if "[" in declared_type or declared_type.endswith("]"):
            match = _ARRAY_TYPE.match(declared_type)

            if match is None:
                msg = (
                    f"Invalid array type '{declared_type}' of field "
                    f"'{type_name}.{field.name}'"
                )
                raise SchemaError(msg)

            element_type = match["element"]
            element = self._resolve_field(
                type_name,
                TypeField(name=field.name, type=element_type),
            )
            return ResolvedField(
                name=field.name,
                type=declared_type,
                kind=FieldKind.ARRAY,
                struct=element.struct,
            )

        if declared_type in self._declared:
            return ResolvedField(
                name=field.name,
                type=declared_type,
                kind=FieldKind.STRUCT,
                struct=declared_type,
            )

        kind, size = _resolve_atomic(declared_type)

        if kind is None:
            msg = (
                f"Type '{declared_type}' of field '{type_name}.{field.name}' "
                "is not defined"
            )
            raise SchemaError(msg)

        return ResolvedField(name=field.name, type=declared_type, kind=kind, size=size)


def _resolve_atomic(declared_type: str) -> tuple[FieldKind | None, int | None]:
    simple = {
        "address": FieldKind.ADDRESS,
        "bool": FieldKind.BOOL,
        "string": FieldKind.STRING,
        "bytes": FieldKind.BYTES,
    }

    if declared_type in simple:
        return simple[declared_type], None

    match = _INTEGER_TYPE.match(declared_type)

    if match:
        bits = int(match["bits"] or MAX_INTEGER_BITS)

        if bits % 8 or not 8 <= bits <= MAX_INTEGER_BITS:  # noqa: PLR2004
            msg = f"Invalid integer width: '{declared_type}'"
            raise SchemaError(msg)

        kind = FieldKind.UINT if match["unsigned"] else FieldKind.INT
        return kind, bits

    match = _FIXED_BYTES_TYPE.match(declared_type)

    if match:
        size = int(match["size"])

        if not 1 <= size <= MAX_FIXED_BYTES:
            msg = f"Invalid fixed bytes length: '{declared_type}'"
            raise SchemaError(msg)

        return FieldKind.FIXED_BYTES, size

    return None, None
