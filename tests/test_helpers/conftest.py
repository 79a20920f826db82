"""
Shared constants and response builders for helper tests.
"""

from typing import Any, Sequence, Tuple

from eth_abi import decode, encode


# =============================================================================
# Test Constants
# =============================================================================

# Same account in TRON base58 and EVM checksum form
TRON_ADDRESS = "TPoYNMEiYhnqhW2go2paY8Z6uNYfEQMjQK"
TRON_ETH_ADDRESS = "0x97BDc4a77898e79F09066d1b2e52314760910be6"

TRON_MULTICALL = "TZHL5DTcqr6r3uugk2fgtZKHwe4Yp2bsQi"
EVM_MULTICALL = "0xcA11bde05977b3631167028862bE2a173976CA11"

EVM_TOKEN = "0x4838B106FCe9647Bdf1E7877BF73cE8B0BAD5f97"
EVM_SENDER = "0x1234567890123456789012345678901234567890"

EVM_TX_HASH = "0x" + "a" * 64
TRON_TX_ID = "b" * 64

BAR_SIGNATURE = "function bar() view returns (uint256)"
OWNER_SIGNATURE = "function getOwner() view returns (address)"


# =============================================================================
# Response builders
# =============================================================================


def encode_uint(value: int) -> bytes:
    return encode(["uint256"], [value])


def encode_address(address: str) -> bytes:
    return encode(["address"], [address])


def tron_aggregate_result(*return_data: bytes, block_number: int = 123) -> str:
    """Hex (no ``0x``) of an ``aggregate`` result, as returned by the TRON node."""
    return encode(["uint256", "bytes[]"], [block_number, list(return_data)]).hex()


def evm_aggregate_result(*return_data: bytes, block_number: int = 123) -> bytes:
    return encode(["uint256", "bytes[]"], [block_number, list(return_data)])


def evm_try_aggregate_result(*slots: Tuple[bool, bytes]) -> bytes:
    return encode(["(bool,bytes)[]"], [list(slots)])


def revert_data(reason: str) -> str:
    return "0x08c379a0" + encode(["string"], [reason]).hex()


def decode_calldata(calldata: str, types: Sequence[str]) -> Tuple[Any, ...]:
    """Decode the arguments of a ``0x`` calldata string."""
    return decode(list(types), bytes.fromhex(calldata[10:]))
