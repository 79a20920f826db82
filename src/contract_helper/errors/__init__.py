"""
Exception hierarchy for contract-helper.

ContractHelperError
├── ContractCallError (never retried)
│   ├── ContractAddressNotProvidedError
│   ├── ContractMethodNotProvidedError
│   ├── ABIFunctionNotProvidedError
│   ├── InvalidAddressError
│   └── DuplicateCallKeyError
├── MulticallError
├── TransactionBuildError
├── BroadcastTronTransactionError
├── TransactionReceiptError
├── AggregateError
└── AbortError
"""

from contract_helper.errors.base import AbortError, AggregateError, ContractHelperError
from contract_helper.errors.contract import (
    ABIFunctionNotProvidedError,
    ContractAddressNotProvidedError,
    ContractCallError,
    ContractMethodNotProvidedError,
    DuplicateCallKeyError,
    InvalidAddressError,
    MulticallError,
)
from contract_helper.errors.transaction import (
    BroadcastTronTransactionError,
    TransactionBuildError,
    TransactionReceiptError,
)

__all__ = [
    "ContractHelperError",
    "AggregateError",
    "AbortError",
    "ContractCallError",
    "ContractAddressNotProvidedError",
    "ContractMethodNotProvidedError",
    "ABIFunctionNotProvidedError",
    "InvalidAddressError",
    "DuplicateCallKeyError",
    "MulticallError",
    "TransactionBuildError",
    "BroadcastTronTransactionError",
    "TransactionReceiptError",
]
