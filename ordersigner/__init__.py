from .encoding import dependencies_of, encode_type, type_hash
from .errors import (
    AllMethodsExhaustedError,
    ArrayNotImplementedError,
    MalformedSignatureError,
    NoSignatureProducedError,
    OrderSignerError,
    SchemaError,
    SignerError,
    SigningMethodUnsupportedError,
    UserRejectedError,
    ValueShapeError,
)
from .evmtypes import EIP712Domain, EIP712TypedData, RecoverableSignature, TypeField
from .hashing import build_digest, encode_data, hash_domain, hash_struct
from .registry import FieldKind, TypeRegistry
from .signatures import (
    SignatureType,
    pack_signature,
    parse_signature,
    recover_signer,
    unpack_signature,
)
from .signers import JsonRpcSigner, LocalAccountSigner, Signer
from .signing import OrderSigner, SigningMethod, SigningResult

__all__ = [
    "AllMethodsExhaustedError",
    "ArrayNotImplementedError",
    "EIP712Domain",
    "EIP712TypedData",
    "FieldKind",
    "JsonRpcSigner",
    "LocalAccountSigner",
    "MalformedSignatureError",
    "NoSignatureProducedError",
    "OrderSigner",
    "OrderSignerError",
    "RecoverableSignature",
    "SchemaError",
    "SignatureType",
    "Signer",
    "SignerError",
    "SigningMethod",
    "SigningMethodUnsupportedError",
    "SigningResult",
    "TypeField",
    "TypeRegistry",
    "UserRejectedError",
    "ValueShapeError",
    "build_digest",
    "dependencies_of",
    "encode_data",
    "encode_type",
    "hash_domain",
    "hash_struct",
    "pack_signature",
    "parse_signature",
    "recover_signer",
    "type_hash",
    "unpack_signature",
]
