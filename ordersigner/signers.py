import itertools
import json
import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Protocol

import requests
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_checksum_address

from .errors import (
    OrderSignerError,
    SignerError,
    SigningMethodUnsupportedError,
    UserRejectedError,
)
from .evmtypes import EIP712TypedData
from .hashing import hash_typed_data
from .logs import request_repr
from .rpctypes import Headers, JsonValue, RpcError, RpcParams, RpcResponse

logger = logging.getLogger(__name__)

# EIP-1193 / JSON-RPC 2.0 error codes
USER_REJECTED_CODE = 4001
UNSUPPORTED_METHOD_CODE = 4200
METHOD_NOT_FOUND_CODE = -32601
INVALID_PARAMS_CODE = -32602

# Wallet messages for a declined prompt that come without an EIP-1193 code.
REJECTION_MESSAGES = ("user denied", "user rejected")
_UNSUPPORTED_MESSAGES = ("not handled", "does not exist", "not supported")


class Signer(Protocol):
    """JSON-RPC shaped signing capability provided by a wallet or node."""

    def request(self, method: str, params: RpcParams) -> JsonValue: ...


def rpc_error(method: str, error: RpcError) -> SignerError:
    code = error.get("code")
    message = str(error.get("message", ""))
    lowered = message.lower()

    if code == USER_REJECTED_CODE or any(
        text in lowered for text in REJECTION_MESSAGES
    ):
        return UserRejectedError(message, code=code, method=method)

    if code in {METHOD_NOT_FOUND_CODE, UNSUPPORTED_METHOD_CODE} or any(
        text in lowered for text in _UNSUPPORTED_MESSAGES
    ):
        return SigningMethodUnsupportedError(message, code=code, method=method)

    return SignerError(message, code=code, method=method)


class JsonRpcSigner:
    """Sends signing requests to a JSON-RPC endpoint over HTTP."""

    SENSITIVE_HEADERS = frozenset({"Authorization", "X-API-Key"})

    def __init__(
        self,
        url: str,
        headers: Headers | None = None,
        timeout: int = 30,
    ) -> None:
        self._url = url
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._ids = itertools.count(1)
        self.timeout = timeout

    def request(self, method: str, params: RpcParams) -> JsonValue:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.info(
            "Requested signer: %s",
            request_repr(
                url=self._url,
                method=method,
                params=params,
                headers=self._headers,
                sensitive_headers=set(self.SENSITIVE_HEADERS),
            ),
        )

        try:
            with requests.Session() as session:
                response = session.post(
                    self._url,
                    json=payload,
                    headers=self._headers,
                    timeout=self.timeout,
                )
        except requests.RequestException as error:
            raise SignerError(str(error), method=method) from error

        logger.info(
            "Signer responded: HTTP %s %s",
            response.status_code,
            response.content,
        )
        body = self._parse_body(method, response)

        if "error" in body:
            raise rpc_error(method, body["error"])

        if "result" not in body:
            msg = "JSON-RPC response has neither result nor error"
            raise SignerError(msg, method=method)

        return body["result"]

    @staticmethod
    def _parse_body(method: str, response: requests.Response) -> RpcResponse:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and "error" in body:
            return body

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            msg = f"HTTP {response.status_code} {response.content.decode()}"
            raise SignerError(msg, method=method)

        if not isinstance(body, dict):
            msg = f"Invalid JSON-RPC response: {response.content.decode()}"
            raise SignerError(msg, method=method)

        return body


class LocalAccountSigner:
    """In-process signer backed by an ``eth_account`` private key.

    Answers the same requests a browser wallet does: ``eth_signTypedData_v4``
    and ``eth_signTypedData_v3`` with a JSON-encoded payload, and ``eth_sign``
    with a 32-byte hash. The legacy ``eth_signTypedData`` format is reported
    as unsupported.
    """

    def __init__(self, private_key: str | bytes) -> None:
        self._account = Account.from_key(private_key)
        self._handlers: dict[str, Callable[[JsonValue], str]] = {
            "eth_signTypedData_v4": self._sign_typed_data,
            "eth_signTypedData_v3": self._sign_typed_data,
            "eth_sign": self._sign_hash,
        }

    @property
    def address(self) -> str:
        return self._account.address

    def request(self, method: str, params: RpcParams) -> JsonValue:
        handler = self._handlers.get(method)

        if handler is None:
            msg = f"Method {method} not supported"
            raise SigningMethodUnsupportedError(
                msg,
                code=METHOD_NOT_FOUND_CODE,
                method=method,
            )

        if len(params) != 2:  # noqa: PLR2004
            msg = f"Expected [address, payload] params, got {len(params)} values"
            raise SignerError(msg, code=INVALID_PARAMS_CODE, method=method)

        address, payload = params

        if not isinstance(address, str) or not is_address(address):
            msg = f"Invalid signer address: {address!r}"
            raise SignerError(msg, code=INVALID_PARAMS_CODE, method=method)

        if to_checksum_address(address) != self.address:
            msg = f"Unknown account: {address}"
            raise SignerError(msg, code=INVALID_PARAMS_CODE, method=method)

        try:
            return handler(payload)
        except SignerError:
            raise
        except (OrderSignerError, ValueError) as error:
            # Malformed payloads surface as JSON-RPC invalid params.
            raise SignerError(
                str(error),
                code=INVALID_PARAMS_CODE,
                method=method,
            ) from error

    def _sign_typed_data(self, payload: JsonValue) -> str:
        if isinstance(payload, str):
            payload = json.loads(payload)

        typed_data = EIP712TypedData.model_validate(payload)
        digest = hash_typed_data(typed_data)
        signed = self._account.unsafe_sign_hash(digest)
        return f"0x{bytes(signed.signature).hex()}"

    def _sign_hash(self, payload: JsonValue) -> str:
        if not isinstance(payload, str):
            msg = f"Expected a hex encoded hash, got {payload!r}"
            raise ValueError(msg)

        signed = self._account.sign_message(encode_defunct(hexstr=payload))
        return f"0x{bytes(signed.signature).hex()}"
