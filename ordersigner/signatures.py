from enum import IntEnum

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct
from eth_utils import keccak, to_bytes
from hexbytes import HexBytes

from .errors import MalformedSignatureError
from .evmtypes import RecoverableSignature
from .hashing import EIP712_PREFIX
from .values import is_0x_hex

SIGNATURE_LENGTH = 65  # r (32) + s (32) + v (1)
PACKED_SIGNATURE_LENGTH = SIGNATURE_LENGTH + 1
WORD_LENGTH = 32


class SignatureType(IntEnum):
    """Trailing byte the exchange uses to pick a verification path."""

    ILLEGAL = 0
    INVALID = 1
    EIP712 = 2
    ETH_SIGN = 3
    WALLET = 4
    VALIDATOR = 5
    PRE_SIGNED = 6
    EIP1271_WALLET = 7


def _decode_hex(value: object, expected_length: int) -> bytes:
    if not is_0x_hex(value):
        msg = f"Signature must be a 0x-prefixed hex string, got {value!r}"
        raise MalformedSignatureError(msg)

    raw = to_bytes(hexstr=value)

    if len(raw) != expected_length:
        msg = f"Signature must be {expected_length} bytes, got {len(raw)}"
        raise MalformedSignatureError(msg)

    return raw


def _normalize_v(v: int) -> int:
    # Some signers return the bare recovery id instead of 27/28.
    if v in {0, 1}:
        v += 27

    if v not in {27, 28}:
        msg = f"Invalid signature recovery id: {v}"
        raise MalformedSignatureError(msg)

    return v


def parse_signature(signature_hex: object) -> RecoverableSignature:
    """Split a 65-byte ``r‖s‖v`` RPC signature, with ``v`` as 27 or 28."""
    raw = _decode_hex(signature_hex, SIGNATURE_LENGTH)
    return RecoverableSignature(
        r=int.from_bytes(raw[0:32], byteorder="big"),
        s=int.from_bytes(raw[32:64], byteorder="big"),
        v=_normalize_v(raw[64]),
    )


def encode_signature(
    signature: RecoverableSignature,
    signature_type: SignatureType,
) -> str:
    packed = (
        bytes([signature.v])
        + signature.r.to_bytes(WORD_LENGTH, byteorder="big")
        + signature.s.to_bytes(WORD_LENGTH, byteorder="big")
        + bytes([signature_type])
    )
    return f"0x{packed.hex()}"


def pack_signature(signature_hex: object, signature_type: SignatureType) -> str:
    """Convert an RPC signature into the exchange's ``v‖r‖s‖type`` layout."""
    return encode_signature(parse_signature(signature_hex), signature_type)


def unpack_signature(packed: str) -> tuple[RecoverableSignature, SignatureType]:
    raw = _decode_hex(packed, PACKED_SIGNATURE_LENGTH)

    try:
        signature_type = SignatureType(raw[-1])
    except ValueError:
        msg = f"Unknown signature type: {raw[-1]}"
        raise MalformedSignatureError(msg) from None

    signature = RecoverableSignature(
        r=int.from_bytes(raw[1:33], byteorder="big"),
        s=int.from_bytes(raw[33:65], byteorder="big"),
        v=_normalize_v(raw[0]),
    )
    return signature, signature_type


def recover_signer(
    packed: str,
    domain_separator: bytes,
    message_hash: bytes,
) -> str:
    """Address that produced ``packed``, as the exchange would recover it."""
    signature, signature_type = unpack_signature(packed)

    if signature_type is SignatureType.EIP712:
        signable = SignableMessage(
            version=b"\x01",
            header=HexBytes(domain_separator),
            body=HexBytes(message_hash),
        )
    elif signature_type is SignatureType.ETH_SIGN:
        digest = keccak(EIP712_PREFIX + domain_separator + message_hash)
        signable = encode_defunct(primitive=digest)
    else:
        msg = f"Cannot recover signer for {signature_type.name} signatures"
        raise MalformedSignatureError(msg)

    return Account.recover_message(
        signable,
        vrs=(signature.v, signature.r, signature.s),
    )
