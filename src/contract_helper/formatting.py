"""
Presentation of decoded contract values.

``ValueFormatter`` walks a decoded value alongside its ABI type:
arrays element by element, integers to :class:`~decimal.Decimal` (or
``int``), addresses to the configured spelling for the chain, tuples to
:class:`~contract_helper.types.Result`. Everything else is returned as
``eth_abi`` produced it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Sequence, Union

from eth_utils import to_checksum_address

from contract_helper.abi.fragments import FunctionFragment, Param
from contract_helper.address import (
    format_base58_address,
    format_to_eth_address,
    to_tron_checksum_address,
    to_tron_hex_address,
)
from contract_helper.config import ChainKind, FormatValueOptions
from contract_helper.types import Result

__all__ = ["ValueFormatter", "unwrap_single_output"]

_DEFAULT_ADDRESS_FORMAT = {
    ChainKind.TRON: "base58",
    ChainKind.EVM: "checksum",
}


class ValueFormatter:
    """Formats decoded values for one chain according to ``options``."""

    def __init__(
        self,
        chain: ChainKind,
        options: Optional[Union[FormatValueOptions, dict]] = None,
    ) -> None:
        if options is None:
            options = FormatValueOptions()
        elif isinstance(options, dict):
            options = FormatValueOptions.model_validate(options)
        self.chain = ChainKind(chain)
        self.options = options
        self.address_format = options.address or _DEFAULT_ADDRESS_FORMAT[self.chain]
        if self.chain == ChainKind.EVM and self.address_format == "base58":
            raise ValueError("base58 address format is only available on TRON")

    def format_value(self, value: Any, type_: Union[str, Param]) -> Any:
        """
        Format ``value`` according to its ABI type.

        Args:
            value: Decoded value.
            type_: ABI type string, or the :class:`Param` when tuple
                components are needed.
        """
        param = type_ if isinstance(type_, Param) else Param(type=type_)

        if param.array_suffix:
            element = param.element()
            return [self.format_value(item, element) for item in value]

        if param.is_tuple:
            return Result(
                [self.format_value(item, c) for c, item in zip(param.components, value)],
                [c.name for c in param.components],
            )

        if param.type.startswith(("uint", "int")) or param.type == "trcToken":
            return self._format_integer(value)
        if param.type == "address":
            return self._format_address(value)
        return value

    def handle_contract_value(self, value: Any, fragment: FunctionFragment) -> Any:
        """
        Shape the decoded outputs of ``fragment``.

        A single unnamed output is returned as a bare formatted value;
        ``value`` is then that value itself rather than a one-item tuple.
        Otherwise a :class:`Result` readable by index and output name.
        """
        outputs = fragment.outputs
        if len(outputs) == 1 and not outputs[0].name:
            return self.format_value(value, outputs[0])
        return Result(
            [self.format_value(value[index], output) for index, output in enumerate(outputs)],
            [output.name for output in outputs],
        )

    def _format_integer(self, value: Any) -> Union[int, Decimal]:
        if self.options.uint == "bigint":
            return int(value)
        return Decimal(str(value))

    def _format_address(self, value: Any) -> str:
        if self.chain == ChainKind.EVM:
            checksummed = to_checksum_address(value)
            return checksummed.lower() if self.address_format == "hex" else checksummed

        tron_hex = "41" + format_to_eth_address(value)[2:].lower()
        if self.address_format == "checksum":
            return to_tron_checksum_address(tron_hex)
        if self.address_format == "hex":
            return to_tron_hex_address(tron_hex)
        return format_base58_address(tron_hex)


def unwrap_single_output(decoded: Sequence[Any], fragment: FunctionFragment) -> Any:
    """Collapse the decoded tuple of a single unnamed output to its only item."""
    outputs = fragment.outputs
    if len(outputs) == 1 and not outputs[0].name and len(decoded) == 1:
        return decoded[0]
    return decoded
