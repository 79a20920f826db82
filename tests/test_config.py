"""
Tests for options, network presets and provider construction.
"""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from tronpy import AsyncTron
from web3 import AsyncWeb3

from contract_helper.config import (
    NETWORKS,
    ChainKind,
    ContractHelperOptions,
    FormatValueOptions,
    Network,
    create_provider,
    get_network_config,
    infer_chain,
)
from contract_helper.constants import DEFAULT_LAZY_QUERY_TIMEOUT_MS, DEFAULT_MAX_LAZY_CALLS_LENGTH

MULTICALL = "0xcA11bde05977b3631167028862bE2a173976CA11"


class TestInferChain:
    def test_tron(self, tron_provider: MagicMock) -> None:
        assert infer_chain(tron_provider) == ChainKind.TRON

    def test_anything_else_is_evm(self, evm_provider: MagicMock) -> None:
        assert infer_chain(evm_provider) == ChainKind.EVM


class TestContractHelperOptions:
    def test_defaults(self, evm_provider: MagicMock) -> None:
        options = ContractHelperOptions(provider=evm_provider, multicall_v2_address=MULTICALL)

        assert options.chain == ChainKind.EVM
        assert options.multicall_lazy_query_timeout == DEFAULT_LAZY_QUERY_TIMEOUT_MS
        assert options.multicall_max_lazy_calls_length == DEFAULT_MAX_LAZY_CALLS_LENGTH
        assert options.simulate_before_send is True
        assert options.require_success is True
        assert options.format_value == FormatValueOptions()
        assert options.fee_calculation is None

    def test_camel_case_keys(self, tron_provider: MagicMock) -> None:
        options = ContractHelperOptions.model_validate(
            {
                "provider": tron_provider,
                "multicallV2Address": "TZHL5DTcqr6r3uugk2fgtZKHwe4Yp2bsQi",
                "multicallLazyQueryTimeout": 50,
                "multicallMaxPendingLength": 3,
                "formatValue": {"address": "hex", "uint": "bigint"},
            }
        )

        assert options.chain == ChainKind.TRON
        assert options.multicall_lazy_query_timeout == 50
        assert options.multicall_max_lazy_calls_length == 3
        assert options.format_value.address == "hex"

    def test_explicit_chain_wins(self, evm_provider: MagicMock) -> None:
        options = ContractHelperOptions(chain="tron", provider=evm_provider, multicall_v2_address=MULTICALL)

        assert options.chain == ChainKind.TRON

    @pytest.mark.parametrize(
        "overrides",
        [
            {"multicall_lazy_query_timeout": -1},
            {"multicall_max_lazy_calls_length": 0},
            {"format_value": {"uint": "float"}},
            {"format_value": {"address": "bech32"}},
        ],
    )
    def test_invalid(self, evm_provider: MagicMock, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            ContractHelperOptions(provider=evm_provider, multicall_v2_address=MULTICALL, **overrides)

    def test_multicall_address_required(self, evm_provider: MagicMock) -> None:
        with pytest.raises(ValidationError):
            ContractHelperOptions(provider=evm_provider)


class TestNetworks:
    def test_presets(self) -> None:
        assert NETWORKS[Network.TRON_NILE].chain == ChainKind.TRON
        assert NETWORKS[Network.BASE_SEPOLIA].chain_id == 84532
        assert {cfg.multicall_address for name, cfg in NETWORKS.items() if cfg.chain == ChainKind.EVM} == {MULTICALL}

    def test_lookup_by_string(self) -> None:
        assert get_network_config("sepolia").chain_id == 11155111

    def test_rpc_override(self) -> None:
        cfg = get_network_config(Network.BASE, rpc_url="http://localhost:8545")

        assert cfg.rpc_url == "http://localhost:8545"
        assert NETWORKS[Network.BASE].rpc_url == "https://mainnet.base.org"

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            get_network_config("mars")


class TestCreateProvider:
    def test_tron(self) -> None:
        provider = create_provider(get_network_config(Network.TRON_NILE))

        assert isinstance(provider, AsyncTron)

    def test_evm(self) -> None:
        provider = create_provider(get_network_config(Network.SEPOLIA), timeout=5)

        assert isinstance(provider, AsyncWeb3)
