"""Errors raised while building, broadcasting and confirming transactions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from contract_helper.errors.base import ContractHelperError
from contract_helper.utils.retry import PermanentError

if TYPE_CHECKING:
    from contract_helper.types import SimpleTransactionResult


class TransactionBuildError(ContractHelperError):
    """Raised when the node refuses to build a transaction."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="TRANSACTION_BUILD_ERROR", details=details)


class BroadcastTronTransactionError(ContractHelperError):
    """
    The TRON node rejected a signed transaction at broadcast time.

    Attributes:
        chain_code: Response code returned by the node (e.g. "SIGERROR").
    """

    def __init__(
        self,
        message: str,
        chain_code: Any = None,
        tx_id: Optional[str] = None,
    ) -> None:
        self.chain_code = chain_code
        super().__init__(
            message,
            code="BROADCAST_TRON_TRANSACTION_ERROR",
            tx_id=tx_id,
            details={"chain_code": chain_code},
        )


class TransactionReceiptError(ContractHelperError, PermanentError):
    """
    A transaction failed on chain, or its result could not be confirmed.

    Attributes:
        transaction_info: Whatever is known about the transaction so far.
    """

    def __init__(self, message: str, transaction_info: "SimpleTransactionResult") -> None:
        self.transaction_info = transaction_info
        super().__init__(
            message,
            code="TRANSACTION_RECEIPT_ERROR",
            tx_id=transaction_info.tx_id,
            details={"block_number": transaction_info.block_number},
        )
