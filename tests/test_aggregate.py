"""
Tests for the multicall codec.

Tests cover:
- Method resolution with and without an ABI
- Call validation and per-chain address formatting
- Batch encoding order and key checks
- Mapping positional responses back to keys
"""

from typing import Any, List

import pytest
from eth_abi import encode

from contract_helper.abi.codec import decode_function_result
from contract_helper.abi.fragments import FunctionFragment, parse_abi
from contract_helper.aggregate import (
    build_aggregate_call,
    build_up_aggregate_response,
    build_up_aggregate_results,
    find_fragment_from_abi,
    get_method_config,
    transform_contract_call_args,
)
from contract_helper.config import ChainKind
from contract_helper.errors import (
    ABIFunctionNotProvidedError,
    ContractAddressNotProvidedError,
    ContractMethodNotProvidedError,
    DuplicateCallKeyError,
    MulticallError,
)
from contract_helper.formatting import ValueFormatter
from contract_helper.types import AggregateContractResponse, ContractCall, MultiCallArgs

TOKEN_A = "0x97BDc4a77898e79F09066d1b2e52314760910be6"
TOKEN_B = "0x4838B106FCe9647Bdf1E7877BF73cE8B0BAD5f97"
TRON_HEX = "4197BDC4A77898E79F09066D1B2E52314760910BE6"
TRON_BASE58 = "TPoYNMEiYhnqhW2go2paY8Z6uNYfEQMjQK"


def stub_encoder(fragment: FunctionFragment, parameters: List[Any]) -> str:
    return f"{fragment.name}:{','.join(str(p) for p in parameters)}"


def handle_bigint(value: Any, fragment: FunctionFragment) -> Any:
    return ValueFormatter(ChainKind.EVM, {"uint": "bigint"}).handle_contract_value(value, fragment)


def two_calls(abi: List[str]) -> List[dict]:
    return [
        {"key": "total", "address": TOKEN_A, "abi": abi, "method": "bar"},
        {"key": "info", "address": TOKEN_B, "abi": abi, "method": "foo", "args": [1, TOKEN_A]},
    ]


# =============================================================================
# Method resolution
# =============================================================================


class TestGetMethodConfig:
    def test_from_abi(self, sample_abi: List[str]) -> None:
        config = get_method_config(TOKEN_A, "foo", sample_abi)

        assert config.name == "foo"
        assert config.fragment.sighash == "foo(uint256,address)"
        assert len(config.abi) == 2

    def test_signature_without_abi(self) -> None:
        config = get_method_config(TOKEN_A, "decimals() view returns (uint8)")

        assert config.name == "decimals"
        assert config.fragment.output_types == ["uint8"]
        assert config.signature == "function decimals() view returns (uint8)"

    def test_function_keyword_optional(self) -> None:
        with_keyword = get_method_config(TOKEN_A, "function decimals() view returns (uint8)")
        without = get_method_config(TOKEN_A, "decimals() view returns (uint8)")

        assert with_keyword.selector == without.selector

    def test_unparsable_without_abi(self) -> None:
        with pytest.raises(ABIFunctionNotProvidedError):
            get_method_config(TOKEN_A, "decimals")

    def test_missing_from_abi(self, sample_abi: List[str]) -> None:
        with pytest.raises(ABIFunctionNotProvidedError) as exc_info:
            get_method_config(TOKEN_B, "getOwner()", sample_abi)

        assert f"{TOKEN_B}:getOwner()" in str(exc_info.value)


class TestTransformContractCallArgs:
    def test_missing_address(self, sample_abi: List[str]) -> None:
        with pytest.raises(ContractAddressNotProvidedError):
            transform_contract_call_args({"abi": sample_abi, "method": "bar"}, ChainKind.EVM)

    def test_missing_method(self, sample_abi: List[str]) -> None:
        with pytest.raises(ContractMethodNotProvidedError):
            transform_contract_call_args({"address": TOKEN_A, "abi": sample_abi}, ChainKind.EVM)

    def test_tron_address_to_base58(self, sample_abi: List[str]) -> None:
        transformed = transform_contract_call_args(
            {"address": TRON_HEX, "abi": sample_abi, "method": "bar"}, ChainKind.TRON
        )

        assert transformed.address == TRON_BASE58

    def test_evm_address_checksummed(self, sample_abi: List[str]) -> None:
        transformed = transform_contract_call_args(
            {"address": TOKEN_B.lower(), "abi": sample_abi, "method": "bar"}, ChainKind.EVM
        )

        assert transformed.address == TOKEN_B

    def test_key_and_parameters_kept(self, sample_abi: List[str]) -> None:
        args = MultiCallArgs(key="k", address=TOKEN_A, abi=sample_abi, method="foo", args=[1, TOKEN_B])

        transformed = transform_contract_call_args(args, ChainKind.EVM)

        assert transformed.key == "k"
        assert transformed.parameters == [1, TOKEN_B]


def test_find_fragment_from_abi(sample_abi: List[str]) -> None:
    abi = parse_abi(sample_abi)

    by_name = ContractCall(key="a", address=TOKEN_A, abi=abi, method_name="foo", method_parameters=[])
    by_signature = ContractCall(
        key="b", address=TOKEN_A, abi=abi, method_name="bar", method_parameters=[], method_signature="bar()"
    )
    missing = ContractCall(key="c", address=TOKEN_A, abi=abi, method_name="baz", method_parameters=[])

    assert find_fragment_from_abi(by_name).name == "foo"
    assert find_fragment_from_abi(by_signature).name == "bar"
    assert find_fragment_from_abi(missing) is None


# =============================================================================
# Encoding
# =============================================================================


class TestBuildAggregateCall:
    def test_order_preserved(self, sample_abi: List[str]) -> None:
        calls = build_aggregate_call(two_calls(sample_abi), stub_encoder, ChainKind.EVM)

        assert [c.contract_call_index for c in calls] == [0, 1]
        assert [c.target for c in calls] == [TOKEN_A, TOKEN_B]
        assert [c.encoded_data for c in calls] == ["bar:", f"foo:1,{TOKEN_A}"]

    def test_tron_targets_base58(self, sample_abi: List[str]) -> None:
        calls = build_aggregate_call(
            [{"key": "k", "address": TRON_HEX, "abi": sample_abi, "method": "bar"}],
            stub_encoder,
            ChainKind.TRON,
        )

        assert calls[0].target == TRON_BASE58

    def test_evm_targets_checksummed(self, sample_abi: List[str]) -> None:
        calls = build_aggregate_call(
            [{"key": "k", "address": TOKEN_B.lower(), "abi": sample_abi, "method": "bar"}],
            stub_encoder,
            ChainKind.EVM,
        )

        assert calls[0].target == TOKEN_B

    def test_duplicate_key(self, sample_abi: List[str]) -> None:
        calls = two_calls(sample_abi)
        calls[1]["key"] = "total"

        with pytest.raises(DuplicateCallKeyError, match="total"):
            build_aggregate_call(calls, stub_encoder, ChainKind.EVM)

    def test_missing_function_fails_whole_batch(self, sample_abi: List[str]) -> None:
        """One unresolvable call aborts the batch and names the call."""
        calls = [
            {"key": "a", "address": TOKEN_A, "abi": sample_abi, "method": "bar"},
            {"key": "b", "address": TOKEN_B, "abi": sample_abi, "method": "getOwner()"},
        ]

        with pytest.raises(ABIFunctionNotProvidedError) as exc_info:
            build_aggregate_call(calls, stub_encoder, ChainKind.EVM)

        assert f"{TOKEN_B}:getOwner()" in str(exc_info.value)


# =============================================================================
# Decoding
# =============================================================================


class TestBuildUpAggregateResponse:
    def test_values_by_key(self, sample_abi: List[str]) -> None:
        response = AggregateContractResponse(
            block_number=10,
            return_data=[encode(["uint256"], [5]), encode(["bool", "uint256"], [True, 9])],
        )

        values = build_up_aggregate_response(
            two_calls(sample_abi), response, decode_function_result, handle_bigint, ChainKind.EVM
        )

        assert values["total"] == 5
        assert values["info"] == [True, 9]
        assert values["info"]["result"] == 9
        assert values["info"].success is True

    def test_result_contexts(self, sample_abi: List[str]) -> None:
        response = AggregateContractResponse(
            block_number=10,
            return_data=[encode(["uint256"], [5]), encode(["bool", "uint256"], [False, 0])],
        )

        results = build_up_aggregate_results(
            two_calls(sample_abi), response, decode_function_result, handle_bigint, ChainKind.EVM
        )

        info = results["info"]
        assert info.call_return_context.decoded
        assert info.call_return_context.success
        assert info.call_return_context.method_name == "foo"
        assert info.original_contract_call_context.address == TOKEN_B

    def test_length_mismatch(self, sample_abi: List[str]) -> None:
        response = AggregateContractResponse(block_number=1, return_data=[encode(["uint256"], [5])])

        with pytest.raises(MulticallError, match="1 result"):
            build_up_aggregate_response(
                two_calls(sample_abi), response, decode_function_result, handle_bigint, ChainKind.EVM
            )

    def test_undecodable_slot(self, sample_abi: List[str]) -> None:
        response = AggregateContractResponse(
            block_number=1,
            return_data=[b"\x01", encode(["bool", "uint256"], [True, 9])],
        )

        with pytest.raises(MulticallError) as exc_info:
            build_up_aggregate_response(
                two_calls(sample_abi), response, decode_function_result, handle_bigint, ChainKind.EVM
            )

        assert exc_info.value.failed_calls == [f"{TOKEN_A}:bar()"]

    def test_failed_try_aggregate_slot(self, sample_abi: List[str]) -> None:
        response = AggregateContractResponse(
            block_number=1,
            return_data=[encode(["uint256"], [5]), b""],
            success=[True, False],
        )

        with pytest.raises(MulticallError) as exc_info:
            build_up_aggregate_response(
                two_calls(sample_abi), response, decode_function_result, handle_bigint, ChainKind.EVM
            )

        assert exc_info.value.failed_calls == [f"{TOKEN_B}:foo(1,{TOKEN_A})"]
        assert "Fetch data error from multicall contract" in str(exc_info.value)
