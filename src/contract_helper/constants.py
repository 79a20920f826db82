"""Constants for contract-helper.

Retry budgets, polling intervals, fee multipliers and a few well-known
chain values shared by the TRON and EVM helpers.
"""

__all__ = [
    "DEFAULT_LAZY_QUERY_TIMEOUT_MS",
    "DEFAULT_MAX_LAZY_CALLS_LENGTH",
    "MULTICALL_RETRIES",
    "CALLBACK_RETRIES",
    "RETRY_DELAY_MS",
    "FETCH_RETRIES",
    "FETCH_RETRY_DELAY_MS",
    "TRON_FAST_POLL_INTERVAL_MS",
    "TRON_FINAL_POLL_INTERVAL_MS",
    "EVM_POLL_INTERVAL_MS",
    "FAST_CONFIRMATIONS",
    "FINAL_CONFIRMATIONS",
    "CONTRACT_SUCCESS",
    "TRON_FAILED_RESULT",
    "GAS_LIMIT_MULTIPLIER",
    "GAS_PRICE_MULTIPLIER",
    "MAX_FEE_MULTIPLIER",
    "FEE_LIMIT_MULTIPLIER",
    "DEFAULT_TRON_FEE_LIMIT",
    "TRON_ENERGY_FEE_PARAMETER",
    "TRON_ZERO_ADDRESS",
    "TRON_ADDRESS_PREFIX",
    "PROVIDER_TIMEOUT_SECONDS",
    "REVERT_SELECTOR",
]

# Lazy call queue
DEFAULT_LAZY_QUERY_TIMEOUT_MS = 1000
DEFAULT_MAX_LAZY_CALLS_LENGTH = 10
MULTICALL_RETRIES = 5
CALLBACK_RETRIES = 5
RETRY_DELAY_MS = 1000

# Transaction tracking
FETCH_RETRIES = 10
FETCH_RETRY_DELAY_MS = 1000
TRON_FAST_POLL_INTERVAL_MS = 1000
TRON_FINAL_POLL_INTERVAL_MS = 3000
EVM_POLL_INTERVAL_MS = 1000
FAST_CONFIRMATIONS = 0
FINAL_CONFIRMATIONS = 5
CONTRACT_SUCCESS = "SUCCESS"
TRON_FAILED_RESULT = "FAILED"

# Fees
GAS_LIMIT_MULTIPLIER = 1.2
GAS_PRICE_MULTIPLIER = 1.2
MAX_FEE_MULTIPLIER = 2
FEE_LIMIT_MULTIPLIER = 1.2
DEFAULT_TRON_FEE_LIMIT = 150_000_000  # 150 TRX in sun
TRON_ENERGY_FEE_PARAMETER = "getEnergyFee"

# Addresses
TRON_ZERO_ADDRESS = "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"  # 41 + 20 zero bytes
TRON_ADDRESS_PREFIX = "41"

# Network
PROVIDER_TIMEOUT_SECONDS = 30

# ABI
REVERT_SELECTOR = "0x08c379a0"
