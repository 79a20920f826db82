"""Per-chain contract helpers."""

from contract_helper.helpers.base import ContractHelperBase
from contract_helper.helpers.evm import EvmContractHelper
from contract_helper.helpers.tron import TronContractHelper

__all__ = [
    "ContractHelperBase",
    "EvmContractHelper",
    "TronContractHelper",
]
