import json
import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any, NamedTuple

from hexbytes import HexBytes

from .errors import (
    AllMethodsExhaustedError,
    NoSignatureProducedError,
    SignerError,
    UserRejectedError,
)
from .evmtypes import EIP712Domain, EIP712TypedData, TypeField
from .hashing import build_digest
from .registry import TypeRegistry
from .rpctypes import JsonDict, JsonValue
from .schemas import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    ORDER_PRIMARY_TYPE,
    ORDER_TYPES,
)
from .signatures import SignatureType, pack_signature, parse_signature
from .signers import REJECTION_MESSAGES, USER_REJECTED_CODE, Signer
from .values import to_json_message

logger = logging.getLogger(__name__)


class SigningMethod(StrEnum):
    TYPED_DATA_V4 = "eth_signTypedData_v4"
    TYPED_DATA_V3 = "eth_signTypedData_v3"
    TYPED_DATA = "eth_signTypedData"
    ETH_SIGN = "eth_sign"


DEFAULT_SIGNING_METHODS = (
    SigningMethod.TYPED_DATA_V4,
    SigningMethod.TYPED_DATA_V3,
    SigningMethod.TYPED_DATA,
)


class SigningResult(NamedTuple):
    signature: str
    method: SigningMethod
    signature_type: SignatureType

    @property
    def packed(self) -> str:
        return pack_signature(self.signature, self.signature_type)


def is_user_rejection(error: Exception) -> bool:
    if isinstance(error, UserRejectedError):
        return True

    if getattr(error, "code", None) == USER_REJECTED_CODE:
        return True

    message = str(error).lower()
    return any(text in message for text in REJECTION_MESSAGES)


class OrderSigner:
    """Signs structured orders through an external wallet.

    Structured signing methods are tried one at a time in the configured
    order. A declined prompt stops immediately and the signer's error is
    re-raised as is. Any other signer failure moves on to the next method.
    When every structured method has failed, the EIP-712 digest is computed
    locally and signed through ``eth_sign`` instead, which the exchange
    verifies under a different signature type.
    """

    def __init__(  # noqa: PLR0913
        self,
        signer: Signer,
        types: Mapping[str, Sequence[TypeField | Mapping[str, str]]] = ORDER_TYPES,
        primary_type: str = ORDER_PRIMARY_TYPE,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        domain_version: str = DEFAULT_DOMAIN_VERSION,
        methods: Sequence[SigningMethod] = DEFAULT_SIGNING_METHODS,
    ) -> None:
        if SigningMethod.ETH_SIGN in methods:
            msg = f"{SigningMethod.ETH_SIGN} is reserved for the fallback"
            raise ValueError(msg)

        self._signer = signer
        self.registry = TypeRegistry(types)
        self.registry.fields(primary_type)
        self.primary_type = primary_type
        self.domain_name = domain_name
        self.domain_version = domain_version
        self.methods = tuple(methods)

    def build_domain(self, chain_id: int, verifying_contract: str) -> EIP712Domain:
        return EIP712Domain(
            name=self.domain_name,
            version=self.domain_version,
            chain_id=chain_id,
            verifying_contract=verifying_contract,
        )

    def build_typed_data(
        self,
        message: Mapping[str, Any],
        chain_id: int,
        verifying_contract: str,
    ) -> EIP712TypedData:
        return EIP712TypedData(
            types=self.registry.as_types(),
            domain=self.build_domain(chain_id, verifying_contract),
            primary_type=self.primary_type,
            message=to_json_message(self.primary_type, message, self.registry),
        )

    def sign_order(
        self,
        order: Mapping[str, Any],
        signer_address: str,
        chain_id: int,
        verifying_contract: str,
    ) -> dict[str, Any]:
        typed_data = self.build_typed_data(order, chain_id, verifying_contract)
        result = self.sign_typed_data(signer_address, typed_data)
        return {**order, "signature": result.packed}

    def sign_typed_data(
        self,
        signer_address: str,
        typed_data: EIP712TypedData,
    ) -> SigningResult:
        registry = TypeRegistry.from_typed_data(typed_data)
        digest = build_digest(
            typed_data.domain,
            typed_data.primary_type,
            typed_data.message,
            registry,
        )
        attempts: list[tuple[str, Exception]] = []

        for method in self.methods:
            logger.info("Requesting %s signature from %s", method, signer_address)

            try:
                signature = self._request(
                    method,
                    [signer_address, self._typed_data_param(method, typed_data)],
                )
            except SignerError as error:
                if is_user_rejection(error):
                    logger.info("Signature request declined: %s", error)
                    raise

                logger.warning("Signing method %s failed: %s", method, error)
                attempts.append((method, error))
                continue

            return SigningResult(signature, method, SignatureType.EIP712)

        return self._sign_digest(signer_address, digest, attempts)

    def _sign_digest(
        self,
        signer_address: str,
        digest: HexBytes,
        attempts: list[tuple[str, Exception]],
    ) -> SigningResult:
        method = SigningMethod.ETH_SIGN
        digest_hex = f"0x{bytes(digest).hex()}"
        logger.info("Falling back to %s for digest %s", method, digest_hex)

        try:
            signature = self._request(
                method,
                [signer_address, digest_hex],
                allow_empty=True,
            )
        except SignerError as error:
            if is_user_rejection(error):
                raise

            attempts.append((method, error))
            raise AllMethodsExhaustedError(attempts) from error

        if not signature:
            raise NoSignatureProducedError(method)

        return SigningResult(signature, method, SignatureType.ETH_SIGN)

    def _request(
        self,
        method: SigningMethod,
        params: list[JsonValue],
        allow_empty: bool = False,  # noqa: FBT001 FBT002
    ) -> str:
        try:
            response = self._signer.request(str(method), params)
        except SignerError:
            raise
        except Exception as error:
            if is_user_rejection(error):
                raise

            raise SignerError(str(error), method=str(method)) from error

        if allow_empty and not response:
            return ""

        # Raises MalformedSignatureError for anything that cannot be packed.
        parse_signature(response)
        return str(response)

    @staticmethod
    def _typed_data_param(
        method: SigningMethod,
        typed_data: EIP712TypedData,
    ) -> JsonValue:
        payload: JsonDict = typed_data.model_dump(by_alias=True, mode="json")

        if method is SigningMethod.TYPED_DATA:
            return payload

        return json.dumps(payload)
