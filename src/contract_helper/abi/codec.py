"""
ABI encoding and decoding on top of ``eth_abi``.

Values are normalized before encoding so callers can pass TRON addresses,
``0x`` hex strings for ``bytes`` arguments, decimal strings or
:class:`decimal.Decimal` for integers, and mappings for tuple arguments.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_utils import to_bytes

from contract_helper.abi.fragments import FunctionFragment, Param
from contract_helper.address import format_to_eth_address
from contract_helper.constants import REVERT_SELECTOR

__all__ = [
    "abi_type",
    "normalize_value",
    "encode_parameters",
    "encode_function_data",
    "decode_parameters",
    "decode_function_result",
    "decode_revert_reason",
    "to_data_bytes",
]

_TRC_TOKEN = re.compile(r"\btrcToken\b")


def abi_type(param: Param) -> str:
    """Type string understood by ``eth_abi``."""
    return _TRC_TOKEN.sub("uint256", param.canonical_type)


def to_data_bytes(data: Union[str, bytes, bytearray]) -> bytes:
    """Accept ``0x`` hex, bare hex or raw bytes."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if data.startswith(("0x", "0X")):
        return to_bytes(hexstr=data)
    return bytes.fromhex(data)


def normalize_value(
    param: Param,
    value: Any,
    address_formatter: Callable[[Any], Any] = format_to_eth_address,
) -> Any:
    """Coerce ``value`` into what ``eth_abi`` expects for ``param``."""
    if param.array_suffix:
        element = param.element()
        return [normalize_value(element, item, address_formatter) for item in value]

    if param.is_tuple:
        if isinstance(value, Mapping):
            value = [value[c.name] for c in param.components]
        return tuple(
            normalize_value(component, item, address_formatter)
            for component, item in zip(param.components, value)
        )

    type_ = abi_type(param)
    if type_ == "address":
        return address_formatter(value)
    if type_.startswith(("uint", "int")):
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, Decimal):
            return int(value)
        if isinstance(value, str):
            return int(value, 0)
        return value
    if type_.startswith("bytes") and isinstance(value, str):
        return to_data_bytes(value)
    return value


def encode_parameters(
    params: Sequence[Param],
    values: Sequence[Any],
    address_formatter: Callable[[Any], Any] = format_to_eth_address,
) -> bytes:
    """ABI-encode ``values`` against ``params``."""
    if len(params) != len(values):
        raise ValueError(
            f"Expected {len(params)} argument(s), got {len(values)}"
        )
    normalized = [
        normalize_value(param, value, address_formatter)
        for param, value in zip(params, values)
    ]
    return encode([abi_type(p) for p in params], normalized)


def encode_function_data(
    fragment: FunctionFragment,
    values: Optional[Sequence[Any]] = None,
    address_formatter: Callable[[Any], Any] = format_to_eth_address,
) -> str:
    """Selector plus encoded arguments, as ``0x`` hex."""
    params = encode_parameters(fragment.inputs, list(values or []), address_formatter)
    return fragment.selector + params.hex()


def decode_parameters(params: Sequence[Param], data: Union[str, bytes]) -> Tuple[Any, ...]:
    return tuple(decode([abi_type(p) for p in params], to_data_bytes(data)))


def decode_function_result(fragment: FunctionFragment, data: Union[str, bytes]) -> Tuple[Any, ...]:
    """Decode the return data of ``fragment`` into a tuple, one item per output."""
    return decode_parameters(fragment.outputs, data)


def decode_revert_reason(raw: Union[str, bytes, None]) -> Optional[str]:
    """Decode Solidity revert reason from error data.

    Args:
        raw: Revert data (``Error(string)`` payload)

    Returns:
        Decoded revert reason string, or None if decoding fails
    """
    if not raw:
        return None
    try:
        data = to_data_bytes(raw)
    except ValueError:
        return None
    selector = to_data_bytes(REVERT_SELECTOR)
    if not data.startswith(selector):
        return None
    try:
        (reason,) = decode(["string"], data[len(selector):])
    except Exception:
        return None
    return reason

