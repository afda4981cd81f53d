import json
import os
from pathlib import Path
from typing import Any

import typer
from eth_utils import keccak

from .encoding import encode_type
from .errors import OrderSignerError
from .evmtypes import EIP712TypedData
from .hashing import EIP712_PREFIX, hash_domain, hash_struct
from .registry import TypeRegistry
from .schemas import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION
from .signers import JsonRpcSigner
from .signing import OrderSigner

RPC_URL_ENV_VAR = "ORDERSIGNER_RPC_URL"
DOMAIN_NAME_ENV_VAR = "ORDERSIGNER_DOMAIN_NAME"
DOMAIN_VERSION_ENV_VAR = "ORDERSIGNER_DOMAIN_VERSION"

app = typer.Typer()


def load_json(path: Path) -> Any:
    with path.open() as file:
        return json.load(file)


def load_typed_data(path: Path) -> EIP712TypedData:
    return EIP712TypedData.model_validate(load_json(path))


def echo_response(data: Any) -> None:
    typer.echo(json.dumps(data, indent=4))


def fail(error: Exception) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


def get_signer() -> OrderSigner:
    url = os.environ.get(RPC_URL_ENV_VAR)

    if not url:
        typer.echo(f"Environment variable {RPC_URL_ENV_VAR} not set", err=True)
        raise typer.Exit(code=1)

    return OrderSigner(
        JsonRpcSigner(url),
        domain_name=os.environ.get(DOMAIN_NAME_ENV_VAR, DEFAULT_DOMAIN_NAME),
        domain_version=os.environ.get(DOMAIN_VERSION_ENV_VAR, DEFAULT_DOMAIN_VERSION),
    )


@app.command("encode-type")
def encode_type_command(
    typed_data_file: Path,
    type_name: str | None = typer.Option(None, "--type"),
) -> None:
    try:
        typed_data = load_typed_data(typed_data_file)
        registry = TypeRegistry.from_typed_data(typed_data)
        typer.echo(encode_type(type_name or typed_data.primary_type, registry))
    except (OrderSignerError, ValueError) as error:
        raise fail(error) from error


@app.command()
def digest(typed_data_file: Path) -> None:
    try:
        typed_data = load_typed_data(typed_data_file)
        registry = TypeRegistry.from_typed_data(typed_data)
        domain_separator = hash_domain(typed_data.domain, registry)
        message_hash = hash_struct(
            typed_data.primary_type,
            typed_data.message,
            registry,
        )
    except (OrderSignerError, ValueError) as error:
        raise fail(error) from error

    digest_bytes = keccak(EIP712_PREFIX + domain_separator + message_hash)
    echo_response(
        {
            "domainSeparator": f"0x{domain_separator.hex()}",
            "messageHash": f"0x{message_hash.hex()}",
            "digest": f"0x{digest_bytes.hex()}",
        },
    )


@app.command()
def sign(
    order_file: Path,
    signer_address: str = typer.Option(..., "--signer"),
    chain_id: int = typer.Option(..., "--chain-id"),
    verifying_contract: str = typer.Option(..., "--verifying-contract"),
) -> None:
    order_signer = get_signer()

    try:
        order = load_json(order_file)
        signed_order = order_signer.sign_order(
            order,
            signer_address=signer_address,
            chain_id=chain_id,
            verifying_contract=verifying_contract,
        )
    except (OrderSignerError, ValueError) as error:
        raise fail(error) from error

    echo_response(signed_order)


if __name__ == "__main__":
    app()
