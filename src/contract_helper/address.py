"""
Address conversion between TRON and EVM encodings.

A TRON account is the same 20 bytes as an EVM account, prefixed with
``0x41`` and usually shown in base58check ("T..."). The helpers below
convert between the three spellings. Strings that are not valid
addresses for the requested conversion are returned unchanged.
"""

from __future__ import annotations

from typing import Any

from eth_utils import is_address as is_eth_address
from eth_utils import to_checksum_address
from tronpy import keys as tron_keys

from contract_helper.constants import TRON_ADDRESS_PREFIX

__all__ = [
    "is_tron_address",
    "is_eth_address",
    "format_base58_address",
    "format_hex_address",
    "format_to_eth_address",
    "to_tron_checksum_address",
    "to_tron_hex_address",
]


def is_tron_address(address: Any) -> bool:
    """True for base58check ("T...") or 21-byte hex ("41...") TRON addresses."""
    if not isinstance(address, str) or not address:
        return False
    try:
        return bool(tron_keys.is_address(address))
    except (ValueError, TypeError, IndexError):
        return False


def to_tron_hex_address(address: str) -> str:
    """Lowercase ``41``-prefixed hex form of a TRON address."""
    return tron_keys.to_hex_address(address).lower()


def to_tron_checksum_address(address: str) -> str:
    """``41`` followed by the EIP-55 checksummed body of a TRON address."""
    body = to_tron_hex_address(address)[len(TRON_ADDRESS_PREFIX):]
    return TRON_ADDRESS_PREFIX + to_checksum_address("0x" + body)[2:]


def format_base58_address(address: Any) -> Any:
    """Convert a TRON hex or base58 address, or a ``0x`` EVM address, to base58."""
    if isinstance(address, str) and address.startswith(("0x", "0X")) and is_eth_address(address.lower()):
        address = TRON_ADDRESS_PREFIX + address[2:].lower()
    if not is_tron_address(address):
        return address
    return tron_keys.to_base58check_address(to_tron_hex_address(address))


def format_hex_address(address: Any) -> Any:
    """Convert a TRON hex or base58 address to its checksummed ``41`` hex form."""
    if not is_tron_address(address):
        return address
    return to_tron_checksum_address(address)


def format_to_eth_address(address: Any) -> Any:
    """
    Convert a TRON address or an EVM address to an EIP-55 checksummed ``0x`` address.

    Example:
        >>> format_to_eth_address("TPoYNMEiYhnqhW2go2paY8Z6uNYfEQMjQK")
        '0x97BDc4a77898e79F09066d1b2e52314760910be6'
    """
    if is_tron_address(address):
        return to_checksum_address("0x" + to_tron_hex_address(address)[2:])
    if isinstance(address, str) and is_eth_address(address.lower()):
        return to_checksum_address(address)
    return address
