from typing import TypedDict

JsonValue = (
    None | bool | int | float | str | list["JsonValue"] | dict[str, "JsonValue"]
)
JsonDict = dict[str, JsonValue]
Headers = dict[str, str]
RpcParams = list[JsonValue]


class RpcError(TypedDict, total=False):
    code: int
    message: str
    data: JsonValue


class RpcResponse(TypedDict, total=False):
    jsonrpc: str
    id: int
    result: JsonValue
    error: RpcError
