"""
Shared fixtures for contract-helper tests.

Chain clients are stubbed: nothing here talks to a node.
"""

from typing import Any, List
from unittest.mock import AsyncMock, MagicMock

import pytest
from tronpy import AsyncTron


class AwaitableValue:
    """Stands in for web3 properties that are awaited, like ``eth.chain_id``."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def __await__(self):
        async def resolve() -> Any:
            return self.value

        return resolve().__await__()


# =============================================================================
# Fixtures - ABIs
# =============================================================================


@pytest.fixture
def sample_abi() -> List[str]:
    """Human-readable ABI with a multi-output and a single-output function."""
    return [
        "function foo(uint256 a, address b) view returns (bool success, uint256 result)",
        "function bar() view returns (uint256)",
    ]


# =============================================================================
# Fixtures - Providers
# =============================================================================


@pytest.fixture
def tron_provider() -> MagicMock:
    """AsyncTron stand-in; ``isinstance(provider, AsyncTron)`` holds."""
    provider = MagicMock(spec=AsyncTron)
    provider.trigger_const_smart_contract_function = AsyncMock()
    provider.get_transaction = AsyncMock()
    provider.get_transaction_info = AsyncMock()
    provider.get_chain_parameters = AsyncMock(
        return_value=[{"key": "getEnergyFee", "value": 420}]
    )
    provider.provider = MagicMock()
    provider.provider.make_request = AsyncMock()
    return provider


@pytest.fixture
def evm_provider() -> MagicMock:
    """AsyncWeb3 stand-in with an ``eth`` module of async stubs."""
    provider = MagicMock()
    eth = MagicMock()
    eth.call = AsyncMock()
    eth.estimate_gas = AsyncMock(return_value=50_000)
    eth.get_transaction_count = AsyncMock(return_value=7)
    eth.get_block = AsyncMock(return_value={"baseFeePerGas": 10})
    eth.get_transaction = AsyncMock()
    eth.get_transaction_receipt = AsyncMock()
    eth.chain_id = AwaitableValue(1)
    eth.max_priority_fee = AwaitableValue(2)
    eth.gas_price = AwaitableValue(100)
    eth.block_number = AwaitableValue(100)
    provider.eth = eth
    return provider
