from .rpctypes import Headers, JsonValue, RpcParams


def request_repr(
    url: str,
    method: str,
    params: RpcParams,
    headers: Headers,
    sensitive_headers: set[str] | None = None,
) -> str:
    if sensitive_headers is None:
        sensitive_headers = set()

    return str(
        {
            "url": url,
            "method": method,
            "params": params_repr(method, params),
            "headers": masked_headers(headers, sensitive_headers),
        },
    )


def params_repr(method: str, params: RpcParams) -> list[JsonValue]:
    # Typed-data payloads are large, only the signer address is useful in logs.
    if method.startswith("eth_signTypedData"):
        return [*params[:1], "<typed data>"]

    return list(params)


def masked_headers(
    headers: Headers,
    sensitive_headers: set[str],
) -> dict[str, str]:
    lowered = {header.lower() for header in sensitive_headers}
    return {
        header: masked_header_value(header, value, lowered)
        for header, value in headers.items()
    }


def masked_header_value(
    header: str,
    value: str | bytes,
    sensitive_headers: set[str],
) -> str:
    if isinstance(value, bytes):
        value = value.decode()

    if header.lower() in sensitive_headers:
        length = len(value)
        begin = value[:10]
        return f"{begin}*** ({length} chars)"

    return value
