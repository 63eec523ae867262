"""Explorer service exception hierarchy."""

from typing import Iterable, Optional


class ExplorerError(Exception):
    """Base exception for all account explorer errors."""


class QueryBindingError(ExplorerError, KeyError):
    """A query marker has no value in the supplied parameters."""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(set(missing))
        markers = ", ".join(f":{name}" for name in self.missing)
        super().__init__(f"Missing query parameter(s): {markers}")

    def __str__(self) -> str:
        return self.args[0]


class RpcError(ExplorerError):
    """NEAR RPC call failed (transport error or error payload)."""

    def __init__(self, method: str, message: str, cause: Optional[BaseException] = None):
        self.method = method
        self.reason = message
        self.cause = cause
        super().__init__(f"[{method}] {message}")


class ContractParseError(ExplorerError):
    """Contract code could not be decoded as a WASM module."""
