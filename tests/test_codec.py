"""
Tests for the eth_abi-backed codec.
"""

from decimal import Decimal

import pytest
from eth_abi import decode, encode

from contract_helper.abi.codec import (
    abi_type,
    decode_function_result,
    decode_revert_reason,
    encode_function_data,
    encode_parameters,
    normalize_value,
    to_data_bytes,
)
from contract_helper.abi.fragments import Param, parse_signature

TRON_ADDRESS = "TPoYNMEiYhnqhW2go2paY8Z6uNYfEQMjQK"
TRON_ETH_ADDRESS = "0x97BDc4a77898e79F09066d1b2e52314760910be6"

TRANSFER = parse_signature("function transfer(address to, uint256 amount) returns (bool)")


class TestToDataBytes:
    def test_prefixed_hex(self) -> None:
        assert to_data_bytes("0x0102") == b"\x01\x02"

    def test_bare_hex(self) -> None:
        assert to_data_bytes("0102") == b"\x01\x02"

    def test_bytes(self) -> None:
        assert to_data_bytes(bytearray(b"\x01")) == b"\x01"

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            to_data_bytes("zz")


class TestNormalizeValue:
    def test_tron_address(self) -> None:
        assert normalize_value(Param("address"), TRON_ADDRESS) == TRON_ETH_ADDRESS

    @pytest.mark.parametrize("value", ["1000", "0x3e8", Decimal("1000"), 1000])
    def test_integers(self, value: object) -> None:
        assert normalize_value(Param("uint256"), value) == 1000

    def test_bool_as_integer(self) -> None:
        assert normalize_value(Param("uint8"), True) == 1

    def test_bytes_from_hex(self) -> None:
        assert normalize_value(Param("bytes32"), "0x" + "ab" * 32) == b"\xab" * 32

    def test_tuple_from_mapping(self) -> None:
        param = parse_signature("function f((address owner, uint256 amount) user)").inputs[0]

        assert normalize_value(param, {"amount": "5", "owner": TRON_ADDRESS}) == (TRON_ETH_ADDRESS, 5)

    def test_array_of_addresses(self) -> None:
        assert normalize_value(Param("address[]"), [TRON_ADDRESS]) == [TRON_ETH_ADDRESS]

    def test_custom_address_formatter(self) -> None:
        assert normalize_value(Param("address"), "x", lambda address: "formatted") == "formatted"


class TestEncode:
    def test_function_data(self) -> None:
        data = encode_function_data(TRANSFER, [TRON_ADDRESS, 1000])

        assert data.startswith("0xa9059cbb")
        to, amount = decode(["address", "uint256"], bytes.fromhex(data[10:]))
        assert to.lower() == TRON_ETH_ADDRESS.lower()
        assert amount == 1000

    def test_no_arguments(self) -> None:
        assert encode_function_data(parse_signature("bar()")) == "0xfebb0f7e"

    def test_argument_count_checked(self) -> None:
        with pytest.raises(ValueError, match="Expected 2 argument"):
            encode_parameters(TRANSFER.inputs, [TRON_ADDRESS])

    def test_trc_token_is_uint256(self) -> None:
        param = Param("trcToken")

        assert abi_type(param) == "uint256"
        assert encode_parameters([param], [1000001]) == encode(["uint256"], [1000001])


class TestDecode:
    def test_function_result(self) -> None:
        fragment = parse_signature("function foo() view returns (bool success, uint256 result)")

        assert decode_function_result(fragment, encode(["bool", "uint256"], [True, 9])) == (True, 9)

    def test_hex_input(self) -> None:
        fragment = parse_signature("function bar() view returns (uint256)")

        assert decode_function_result(fragment, encode(["uint256"], [5]).hex()) == (5,)


class TestRevertReason:
    def test_error_string(self) -> None:
        data = "0x08c379a0" + encode(["string"], ["insufficient balance"]).hex()

        assert decode_revert_reason(data) == "insufficient balance"

    @pytest.mark.parametrize("data", [None, "", "0x", "0x12345678", "not hex", b"\x08\xc3\x79\xa0\x00"])
    def test_unrecognized(self, data: object) -> None:
        assert decode_revert_reason(data) is None
