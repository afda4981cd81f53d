from typing import Any

import pytest
import pytest_httpserver
from eth_utils import keccak

from ordersigner.evmtypes import EIP712Domain, EIP712TypedData
from ordersigner.registry import TypeRegistry
from ordersigner.schemas import ORDER_TYPES
from ordersigner.signers import JsonRpcSigner, LocalAccountSigner
from tests import helpers

# Reference example from EIP-712
MAIL_TYPES = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "wallet", "type": "address"},
    ],
    "Mail": [
        {"name": "from", "type": "Person"},
        {"name": "to", "type": "Person"},
        {"name": "contents", "type": "string"},
    ],
}

MAIL_DOMAIN = {
    "name": "Ether Mail",
    "version": "1",
    "chainId": 1,
    "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
}

MAIL_MESSAGE = {
    "from": {
        "name": "Cow",
        "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826",
    },
    "to": {
        "name": "Bob",
        "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB",
    },
    "contents": "Hello, Bob!",
}

COW_PRIVATE_KEY = f"0x{keccak(text='cow').hex()}"
COW_ADDRESS = "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
EXCHANGE_ADDRESS = "0x4b75ba193755a52f5b6398466cb3e9458610cbaf"
CHAIN_ID = 5777
NFT_ADDRESS = "0x1e6b8a3d2c5f4e7a9b0c1d2e3f4a5b6c7d8e9f00"


@pytest.fixture
def mail_registry() -> TypeRegistry:
    return TypeRegistry(MAIL_TYPES)


@pytest.fixture
def mail_domain() -> EIP712Domain:
    return EIP712Domain.model_validate(MAIL_DOMAIN)


@pytest.fixture
def mail_typed_data() -> EIP712TypedData:
    return EIP712TypedData.model_validate(
        {
            "types": MAIL_TYPES,
            "primaryType": "Mail",
            "domain": MAIL_DOMAIN,
            "message": MAIL_MESSAGE,
        },
    )


@pytest.fixture
def order_registry() -> TypeRegistry:
    return TypeRegistry(ORDER_TYPES)


@pytest.fixture(name="maker")
def maker_fixture() -> LocalAccountSigner:
    return LocalAccountSigner(helpers.generate_private_key())


@pytest.fixture
def order(maker: LocalAccountSigner) -> dict[str, Any]:
    return {
        "makerAddress": maker.address,
        "takerAddress": NULL_ADDRESS,
        "royaltiesAddress": NULL_ADDRESS,
        "senderAddress": NULL_ADDRESS,
        "makerAssetAmount": "1",
        "takerAssetAmount": "10000000000000000",
        "royaltiesAmount": "0",
        "expirationTimeSeconds": "1956528000",
        "salt": "0x5f3a0d1c8e2b9f7a6c4d3e2f1a0b9c8d7e6f5a4b3c2d1e0f9a8b7c6d5e4f3a2b",
        "makerAssetData": (
            "0x02571792" + "00" * 12 + NFT_ADDRESS[2:] + f"{12341:064x}"
        ),
        "takerAssetData": (
            "0xf47261b0000000000000000000000000c778417e063141139fce010982780140aa0cd5ab"
        ),
    }


@pytest.fixture
def json_rpc_signer(httpserver: pytest_httpserver.HTTPServer) -> JsonRpcSigner:
    return JsonRpcSigner(
        httpserver.url_for("/"),
        headers={"Authorization": "Bearer secret-rpc-token"},
    )
