import operator
import os
from collections.abc import Callable, Generator, Mapping
from contextlib import AbstractContextManager, contextmanager
from typing import Any, NamedTuple, TypeVar

import pytest

from ordersigner.errors import SigningMethodUnsupportedError
from ordersigner.rpctypes import JsonValue, RpcParams

E = TypeVar("E", bound=BaseException)

TestFunction = Callable[..., None]


def cases(
    name_position: int,
    *cases: NamedTuple,
) -> Callable[[TestFunction], TestFunction]:
    def wrapper(test_function: TestFunction) -> TestFunction:
        return pytest.mark.parametrize(
            argnames="case",
            argvalues=list(cases),
            ids=operator.itemgetter(name_position),
        )(test_function)

    return wrapper


@contextmanager
def _noop_context_manager() -> Generator[None, None, None]:
    yield


def raises(
    error: type[E] | None,
) -> AbstractContextManager[Any]:
    if error is None:
        return _noop_context_manager()

    return pytest.raises(error)


def generate_private_key() -> str:
    return f"0x{os.urandom(32).hex()}"


class StubSigner:
    """Answers each RPC method with a canned result or error and records calls.

    Methods without a configured response are reported as unsupported.
    """

    def __init__(self, responses: Mapping[str, JsonValue | Exception]) -> None:
        self.responses = dict(responses)
        self.calls: list[tuple[str, RpcParams]] = []

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def request(self, method: str, params: RpcParams) -> JsonValue:
        self.calls.append((method, params))
        response = self.responses.get(
            method,
            SigningMethodUnsupportedError(
                f"The method {method} does not exist",
                code=-32601,
                method=method,
            ),
        )

        if isinstance(response, Exception):
            raise response

        return response
