from collections.abc import Sequence


class OrderSignerError(Exception):
    pass


class SchemaError(OrderSignerError):
    pass


class ArrayNotImplementedError(SchemaError, NotImplementedError):
    def __init__(self, type_name: str, field_name: str) -> None:
        super().__init__(
            f"Arrays are not implemented: {type_name}.{field_name}",
        )
        self.type_name = type_name
        self.field_name = field_name


class ValueShapeError(OrderSignerError):
    pass


class SignerError(OrderSignerError):
    def __init__(
        self,
        message: str,
        code: int | None = None,
        method: str | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.method = method
        super().__init__(f"Signer error: {code} {message}" if code else message)


class SigningMethodUnsupportedError(SignerError):
    pass


class UserRejectedError(SignerError):
    pass


class MalformedSignatureError(SignerError):
    pass


class AllMethodsExhaustedError(OrderSignerError):
    def __init__(self, attempts: Sequence[tuple[str, Exception]]) -> None:
        self.attempts = list(attempts)
        details = "; ".join(f"{method}: {error}" for method, error in self.attempts)
        super().__init__(f"All signing methods failed: {details}")


class NoSignatureProducedError(OrderSignerError):
    def __init__(self, method: str) -> None:
        super().__init__(f"No signature produced by {method}")
        self.method = method
