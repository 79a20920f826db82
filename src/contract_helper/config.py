"""
Configuration for contract-helper.

Options are frozen pydantic models. Keys may be passed in snake_case or in
the camelCase spelling used by JavaScript tooling (``multicallV2Address``,
``formatValue`` and so on).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Literal, Optional

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from tronpy import AsyncTron
from tronpy.providers import AsyncHTTPProvider as TronHTTPProvider
from web3 import AsyncHTTPProvider, AsyncWeb3

from contract_helper.constants import (
    DEFAULT_LAZY_QUERY_TIMEOUT_MS,
    DEFAULT_MAX_LAZY_CALLS_LENGTH,
    PROVIDER_TIMEOUT_SECONDS,
)

__all__ = [
    "ChainKind",
    "FormatValueOptions",
    "ContractHelperOptions",
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "infer_chain",
    "create_provider",
]


class ChainKind(str, Enum):
    """Chain family a helper talks to."""

    TRON = "tron"
    EVM = "evm"


def infer_chain(provider: Any) -> ChainKind:
    """Pick the chain family from the provider type."""
    return ChainKind.TRON if isinstance(provider, AsyncTron) else ChainKind.EVM


class FormatValueOptions(BaseModel):
    """
    Presentation policy for decoded values.

    ``address=None`` means the chain default: base58 on TRON, checksum on EVM.
    ``uint="decimal"`` renders integers as :class:`decimal.Decimal`,
    ``uint="bigint"`` as plain :class:`int`.
    """

    model_config = ConfigDict(frozen=True)

    address: Optional[Literal["base58", "checksum", "hex"]] = None
    uint: Literal["decimal", "bigint"] = "decimal"


class ContractHelperOptions(BaseModel):
    """
    Options accepted by :class:`contract_helper.ContractHelper`.

    Example:
        ```python
        options = ContractHelperOptions(
            provider=AsyncWeb3(AsyncHTTPProvider(rpc_url)),
            multicall_v2_address="0xcA11bde05977b3631167028862bE2a173976CA11",
            format_value={"uint": "bigint"},
        )
        ```
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    chain: ChainKind = Field(description="Chain family, inferred from provider when omitted")
    provider: Any = Field(description="tronpy.AsyncTron or web3.AsyncWeb3 instance")
    multicall_v2_address: str = Field(description="Deployed multicall contract address")
    multicall_lazy_query_timeout: int = Field(
        default=DEFAULT_LAZY_QUERY_TIMEOUT_MS,
        ge=0,
        description="Debounce delay in ms before the lazy call queue is flushed",
    )
    multicall_max_lazy_calls_length: int = Field(
        default=DEFAULT_MAX_LAZY_CALLS_LENGTH,
        ge=1,
        validation_alias=AliasChoices(
            "multicall_max_lazy_calls_length",
            "multicallMaxLazyCallsLength",
            "multicall_max_pending_length",
            "multicallMaxPendingLength",
        ),
        description="Queue length that forces an immediate flush",
    )
    simulate_before_send: bool = Field(
        default=True,
        description="Dry-run EVM transactions with eth_call before signing",
    )
    require_success: bool = Field(
        default=True,
        description="EVM only; False batches through tryAggregate",
    )
    format_value: FormatValueOptions = Field(default_factory=FormatValueOptions)
    fee_calculation: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Hook returning fee overrides for a transaction being built",
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_chain(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("chain") is None:
            data = dict(data)
            data["chain"] = infer_chain(data.get("provider"))
        return data


class Network(str, Enum):
    TRON_NILE = "tron-nile"
    ETHEREUM = "ethereum"
    SEPOLIA = "sepolia"
    BASE = "base"
    BASE_SEPOLIA = "base-sepolia"


@dataclass
class NetworkConfig:
    name: Network
    chain: ChainKind
    rpc_url: str
    multicall_address: str
    chain_id: Optional[int] = None


MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

NETWORKS: Dict[Network, NetworkConfig] = {
    Network.TRON_NILE: NetworkConfig(
        name=Network.TRON_NILE,
        chain=ChainKind.TRON,
        rpc_url="https://nile.trongrid.io",
        multicall_address="TZHL5DTcqr6r3uugk2fgtZKHwe4Yp2bsQi",
    ),
    Network.ETHEREUM: NetworkConfig(
        name=Network.ETHEREUM,
        chain=ChainKind.EVM,
        rpc_url="https://ethereum-rpc.publicnode.com",
        multicall_address=MULTICALL3_ADDRESS,
        chain_id=1,
    ),
    Network.SEPOLIA: NetworkConfig(
        name=Network.SEPOLIA,
        chain=ChainKind.EVM,
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        multicall_address=MULTICALL3_ADDRESS,
        chain_id=11155111,
    ),
    Network.BASE: NetworkConfig(
        name=Network.BASE,
        chain=ChainKind.EVM,
        rpc_url="https://mainnet.base.org",
        multicall_address=MULTICALL3_ADDRESS,
        chain_id=8453,
    ),
    Network.BASE_SEPOLIA: NetworkConfig(
        name=Network.BASE_SEPOLIA,
        chain=ChainKind.EVM,
        rpc_url="https://sepolia.base.org",
        multicall_address=MULTICALL3_ADDRESS,
        chain_id=84532,
    ),
}


def get_network_config(network: Network, rpc_url: Optional[str] = None) -> NetworkConfig:
    cfg = NETWORKS[Network(network)]
    if rpc_url:
        return replace(cfg, rpc_url=rpc_url)
    return cfg


def create_provider(config: NetworkConfig, timeout: float = PROVIDER_TIMEOUT_SECONDS) -> Any:
    """
    Build an async chain client for ``config``.

    Args:
        config: Network to connect to.
        timeout: Request timeout in seconds.

    Returns:
        ``tronpy.AsyncTron`` for TRON networks, ``web3.AsyncWeb3`` otherwise.
    """
    if config.chain == ChainKind.TRON:
        client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        return AsyncTron(provider=TronHTTPProvider(config.rpc_url, client=client))
    return AsyncWeb3(AsyncHTTPProvider(config.rpc_url, request_kwargs={"timeout": timeout}))
