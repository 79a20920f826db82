"""
Base exception class for contract-helper.

All library exceptions inherit from ContractHelperError, which carries a
machine-readable code, the related transaction id (when there is one) and
a free-form details dictionary.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class ContractHelperError(Exception):
    """
    Base exception for all contract-helper errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "TRANSACTION_RECEIPT_ERROR").
        tx_id: Optional transaction id related to the error.
        details: Optional dictionary with additional error context.

    Example:
        >>> raise ContractHelperError(
        ...     "Transaction execute reverted",
        ...     code="TRANSACTION_RECEIPT_ERROR",
        ...     tx_id="0x123...",
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "CONTRACT_HELPER_ERROR",
        tx_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.tx_id = tx_id
        self.details = details or {}

    def __str__(self) -> str:
        """Return the plain message so callers can match on its text."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"tx_id={self.tx_id!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "tx_id": self.tx_id,
            "details": self.details,
        }


class AggregateError(ContractHelperError):
    """
    Several independent operations failed.

    Raised by the concurrency-bounded mapper when it runs in collect-all
    mode, and by batch flushes when some per-key callbacks gave up.

    Attributes:
        errors: The collected exceptions, in completion order.
    """

    def __init__(self, errors: Sequence[BaseException], message: Optional[str] = None) -> None:
        self.errors: List[BaseException] = list(errors)
        if message is None:
            message = f"{len(self.errors)} operation(s) failed: " + "; ".join(
                str(error) for error in self.errors
            )
        super().__init__(
            message,
            code="AGGREGATE_ERROR",
            details={"count": len(self.errors)},
        )


class AbortError(ContractHelperError):
    """Raised when an operation is cancelled through its abort signal."""

    def __init__(self, message: str = "This operation was aborted") -> None:
        super().__init__(message, code="ABORT_ERROR")
