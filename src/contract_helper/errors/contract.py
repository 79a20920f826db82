"""
Contract call errors.

Everything here is detected before or right after talking to the chain
and is never retried.
"""

from __future__ import annotations

from typing import Optional, Sequence

from contract_helper.errors.base import ContractHelperError
from contract_helper.utils.retry import PermanentError


class ContractCallError(ContractHelperError, PermanentError):
    """Base class for malformed contract call arguments."""


class ContractAddressNotProvidedError(ContractCallError):
    """Raised when a call has no contract address."""

    def __init__(self) -> None:
        super().__init__(
            "Contract address is not provided.",
            code="CONTRACT_ADDRESS_NOT_PROVIDED",
        )


class ContractMethodNotProvidedError(ContractCallError):
    """Raised when a call has no method name or signature."""

    def __init__(self) -> None:
        super().__init__(
            "Contract method is not provided.",
            code="CONTRACT_METHOD_NOT_PROVIDED",
        )


class ABIFunctionNotProvidedError(ContractCallError):
    """
    Raised when the method cannot be resolved to an ABI function.

    Either the ABI does not contain it, or the method string is not a
    parsable function signature.
    """

    def __init__(self, address: str, method: str) -> None:
        self.address = address
        self.method = method
        super().__init__(
            f"ABI function is not found for {address}:{method}, "
            "abi or full method signature is needed.",
            code="ABI_FUNCTION_NOT_PROVIDED",
            details={"address": address, "method": method},
        )


class InvalidAddressError(ContractCallError):
    """Raised when an address cannot be converted for the target chain."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"{address} is invalid address.",
            code="INVALID_ADDRESS",
            details={"address": address},
        )


class DuplicateCallKeyError(ContractCallError):
    """Raised when two calls in one batch share a key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Duplicate multicall key: {key}",
            code="DUPLICATE_CALL_KEY",
            details={"key": key},
        )


class MulticallError(ContractHelperError, PermanentError):
    """
    Raised when a multicall response cannot be turned into per-key results.

    Attributes:
        failed_calls: ``address:method(params)`` for each failing entry.
    """

    def __init__(self, message: str, failed_calls: Optional[Sequence[str]] = None) -> None:
        self.failed_calls = list(failed_calls or [])
        super().__init__(
            message,
            code="MULTICALL_ERROR",
            details={"failed_calls": self.failed_calls},
        )
