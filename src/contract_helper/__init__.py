"""
contract-helper: batched contract reads and transaction tracking for TRON and EVM.

Quick Start:
    >>> import asyncio
    >>> from contract_helper import ContractHelper
    >>>
    >>> async def main():
    ...     helper = ContractHelper.from_network("tron-nile")
    ...     name, symbol = await asyncio.gather(
    ...         helper.lazy_call({"address": token, "method": "function name() view returns (string)"}),
    ...         helper.lazy_call({"address": token, "method": "function symbol() view returns (string)"}),
    ...     )
    ...
    >>> asyncio.run(main())

Modules:
- `client`: ContractHelper facade and lazy call queue
- `helpers`: TRON and EVM helpers, transaction result checks
- `aggregate`: multicall request/response codec
- `formatting`: decoded value presentation
- `address`: TRON/EVM address conversions
- `abi`: function fragments and the eth_abi codec
- `errors`: exception hierarchy
- `utils`: retry, callbacks, concurrency-bounded mapper, logging
"""

from contract_helper.version import __version__, __version_info__

# Client
from contract_helper.client import ContractHelper

# Helpers
from contract_helper.helpers import (
    ContractHelperBase,
    EvmContractHelper,
    TronContractHelper,
)

# Configuration
from contract_helper.config import (
    NETWORKS,
    ChainKind,
    ContractHelperOptions,
    FormatValueOptions,
    Network,
    NetworkConfig,
    create_provider,
    get_network_config,
)

# Types
from contract_helper.types import (
    CheckTransactionType,
    ContractCallArgs,
    ContractQuery,
    EvmContractCallOptions,
    FeeCalculationContext,
    MultiCallArgs,
    Result,
    SimpleTransactionResult,
    TransactionOption,
    TronContractCallOptions,
)

# Codec and formatting
from contract_helper.aggregate import (
    build_aggregate_call,
    build_up_aggregate_response,
    build_up_aggregate_results,
    get_method_config,
    transform_contract_call_args,
)
from contract_helper.formatting import ValueFormatter
from contract_helper.address import (
    format_base58_address,
    format_hex_address,
    format_to_eth_address,
    is_eth_address,
    is_tron_address,
)

# Errors
from contract_helper.errors import (
    ABIFunctionNotProvidedError,
    AbortError,
    AggregateError,
    BroadcastTronTransactionError,
    ContractAddressNotProvidedError,
    ContractCallError,
    ContractHelperError,
    ContractMethodNotProvidedError,
    DuplicateCallKeyError,
    InvalidAddressError,
    MulticallError,
    TransactionBuildError,
    TransactionReceiptError,
)

# Utilities
from contract_helper.utils import (
    MAP_SKIP,
    PromiseCallback,
    RetryConfig,
    amap,
    configure_logging,
    get_logger,
    retry,
    retry_async,
    run_promise_with_callback,
    run_with_callback,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Client
    "ContractHelper",
    # Helpers
    "ContractHelperBase",
    "TronContractHelper",
    "EvmContractHelper",
    # Configuration
    "ChainKind",
    "ContractHelperOptions",
    "FormatValueOptions",
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "create_provider",
    # Types
    "ContractCallArgs",
    "MultiCallArgs",
    "ContractQuery",
    "SimpleTransactionResult",
    "CheckTransactionType",
    "TransactionOption",
    "TronContractCallOptions",
    "EvmContractCallOptions",
    "FeeCalculationContext",
    "Result",
    # Codec and formatting
    "get_method_config",
    "transform_contract_call_args",
    "build_aggregate_call",
    "build_up_aggregate_results",
    "build_up_aggregate_response",
    "ValueFormatter",
    "format_base58_address",
    "format_hex_address",
    "format_to_eth_address",
    "is_eth_address",
    "is_tron_address",
    # Errors
    "ContractHelperError",
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
    "AggregateError",
    "AbortError",
    # Utilities
    "PromiseCallback",
    "RetryConfig",
    "retry",
    "retry_async",
    "run_with_callback",
    "run_promise_with_callback",
    "amap",
    "MAP_SKIP",
    "get_logger",
    "configure_logging",
]
