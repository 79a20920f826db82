"""ABI fragments and the eth_abi-backed codec."""

from contract_helper.abi.codec import (
    abi_type,
    decode_function_result,
    decode_parameters,
    decode_revert_reason,
    encode_function_data,
    encode_parameters,
    normalize_value,
    to_data_bytes,
)
from contract_helper.abi.fragments import (
    FunctionFragment,
    Param,
    find_function,
    parse_abi,
    parse_signature,
)

__all__ = [
    "FunctionFragment",
    "Param",
    "find_function",
    "parse_abi",
    "parse_signature",
    "abi_type",
    "normalize_value",
    "encode_parameters",
    "encode_function_data",
    "decode_parameters",
    "decode_function_result",
    "decode_revert_reason",
    "to_data_bytes",
]
