"""
EVM implementation of the contract helper, on top of ``web3.AsyncWeb3``.

Batches go to a Multicall2/Multicall3 deployment through ``eth_call``:
``aggregate`` when every call must succeed, ``tryAggregate(false, ...)``
otherwise. Transactions are built here (fees, nonce, gas) and signed by the
caller.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from eth_utils import add_0x_prefix, encode_hex, to_checksum_address
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception

from contract_helper.abi.codec import (
    decode_function_result,
    decode_revert_reason,
    encode_function_data,
    to_data_bytes,
)
from contract_helper.aggregate import (
    build_aggregate_call,
    build_up_aggregate_response,
    transform_contract_call_args,
)
from contract_helper.config import ChainKind, FormatValueOptions
from contract_helper.constants import (
    EVM_POLL_INTERVAL_MS,
    FAST_CONFIRMATIONS,
    FINAL_CONFIRMATIONS,
    GAS_LIMIT_MULTIPLIER,
    GAS_PRICE_MULTIPLIER,
    MAX_FEE_MULTIPLIER,
)
from contract_helper.errors import TransactionReceiptError
from contract_helper.formatting import unwrap_single_output
from contract_helper.helpers.base import CallArgs, ContractHelperBase, MultiCallArgsLike
from contract_helper.helpers.multicall_abi import EVM_AGGREGATE, EVM_TRY_AGGREGATE
from contract_helper.types import (
    AggregateCall,
    AggregateContractResponse,
    EvmContractCallOptions,
    FeeCalculationContext,
    SignTransaction,
    SimpleTransactionResult,
)
from contract_helper.utils.logging import get_logger

_logger = get_logger(__name__)

REVERTED_MESSAGE = "Transaction execute reverted"

_CALL_FIELDS = ("from", "to", "data", "value", "gas")


def _evm_options(options: Any) -> EvmContractCallOptions:
    if options is None:
        return EvmContractCallOptions()
    if isinstance(options, EvmContractCallOptions):
        return options
    return EvmContractCallOptions.model_validate(options)


def _hash_to_hex(tx_hash: Any) -> str:
    if isinstance(tx_hash, (bytes, bytearray)):
        return encode_hex(tx_hash)
    return add_0x_prefix(str(tx_hash))


class EvmContractHelper(ContractHelperBase):
    """
    Contract helper bound to a ``web3.AsyncWeb3`` instance.

    Args:
        multicall_address: Multicall2 or Multicall3 deployment.
        provider: Connected ``AsyncWeb3``.
        simulate: Run the built transaction through ``eth_call`` before
            handing it to the signer.
        format_value: Presentation policy for decoded values.
        fee_calculation: Optional hook returning fee fields for a
            transaction being built.
        require_success: ``False`` batches through ``tryAggregate`` so the
            failing slots can be named in the error.
    """

    chain = ChainKind.EVM

    poll_interval_ms: int = EVM_POLL_INTERVAL_MS
    fast_confirmations: int = FAST_CONFIRMATIONS
    final_confirmations: int = FINAL_CONFIRMATIONS

    def __init__(
        self,
        multicall_address: str,
        provider: AsyncWeb3,
        simulate: bool = True,
        format_value: Optional[Union[FormatValueOptions, dict]] = None,
        fee_calculation: Optional[Callable[[FeeCalculationContext], Any]] = None,
        require_success: bool = True,
    ) -> None:
        super().__init__(multicall_address, provider, format_value, fee_calculation)
        self.simulate = simulate
        self.require_success = require_success

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def call(self, args: CallArgs) -> Any:
        transformed = transform_contract_call_args(args, self.chain)
        fragment = transformed.method.fragment
        raw = await self.provider.eth.call(
            {
                "to": transformed.address,
                "data": encode_function_data(fragment, transformed.parameters),
            }
        )
        decoded = decode_function_result(fragment, bytes(raw))
        return self.handle_contract_value(unwrap_single_output(decoded, fragment), fragment)

    @staticmethod
    def _map_aggregate_calls(calls: Sequence[AggregateCall]) -> List[Tuple[str, bytes]]:
        return [(call.target, to_data_bytes(call.encoded_data)) for call in calls]

    async def multicall(self, calls: Sequence[MultiCallArgsLike]) -> Dict[str, Any]:
        aggregate_calls = build_aggregate_call(calls, encode_function_data, self.chain)
        targets = self._map_aggregate_calls(aggregate_calls)

        if self.require_success:
            data = encode_function_data(EVM_AGGREGATE, [targets])
        else:
            data = encode_function_data(EVM_TRY_AGGREGATE, [False, targets])
        raw = await self.provider.eth.call(
            {"to": to_checksum_address(self.multicall_address), "data": data}
        )

        if self.require_success:
            block_number, return_data = decode_function_result(EVM_AGGREGATE, bytes(raw))
            response = AggregateContractResponse(block_number=block_number, return_data=list(return_data))
        else:
            (results,) = decode_function_result(EVM_TRY_AGGREGATE, bytes(raw))
            response = AggregateContractResponse(
                block_number=None,
                return_data=[return_data for _, return_data in results],
                success=[bool(success) for success, _ in results],
            )

        _logger.debug(
            "Multicall executed",
            extra={"chain": self.chain.value, "calls": len(aggregate_calls), "block_number": response.block_number},
        )
        return build_up_aggregate_response(
            calls,
            response,
            decode_function_result,
            self.handle_contract_value,
            self.chain,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_transaction(self, from_: str, args: CallArgs) -> Dict[str, Any]:
        """
        Build an unsigned transaction dict ready for ``sign_transaction``.

        Nonce and chain id are fetched only when the call options do not
        carry them. Fees follow, in order: explicit ``gas_price`` (type 0),
        explicit ``max_fee_per_gas`` (type 2), the ``fee_calculation`` hook,
        then the node's fee data when ``estimate_fee`` is on.

        Raises:
            ContractLogicError: If simulation is on and the call reverts.
        """
        transformed = transform_contract_call_args(args, self.chain)
        options = _evm_options(transformed.options)
        fragment = transformed.method.fragment
        eth = self.provider.eth

        tx: Dict[str, Any] = {
            "from": to_checksum_address(from_),
            "to": transformed.address,
            "data": encode_function_data(fragment, transformed.parameters),
        }
        if options.value:
            tx["value"] = options.value
        tx["nonce"] = (
            options.nonce if options.nonce is not None else await eth.get_transaction_count(tx["from"])
        )
        tx["chainId"] = options.chain_id if options.chain_id is not None else await eth.chain_id
        tx.update(await self._resolve_fees(tx, options))

        if options.gas_limit is not None:
            tx["gas"] = options.gas_limit
        elif options.estimate_fee:
            estimated = await eth.estimate_gas(tx)
            tx["gas"] = int(estimated * GAS_LIMIT_MULTIPLIER)

        if self.simulate:
            await self._simulate(tx, fragment.name)
        return tx

    async def _resolve_fees(self, tx: Dict[str, Any], options: EvmContractCallOptions) -> Dict[str, Any]:
        eth = self.provider.eth
        if options.gas_price is not None:
            return {"type": 0, "gasPrice": options.gas_price}

        if options.max_fee_per_gas is not None:
            priority = options.max_priority_fee_per_gas
            if priority is None:
                priority = await eth.max_priority_fee
            return {
                "type": 2,
                "maxFeePerGas": options.max_fee_per_gas,
                "maxPriorityFeePerGas": priority,
            }

        overrides = await self._fee_overrides(tx, options.estimate_fee)
        if overrides:
            return overrides
        if not options.estimate_fee:
            return {}

        block = await eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            gas_price = await eth.gas_price
            return {"type": 0, "gasPrice": int(gas_price * GAS_PRICE_MULTIPLIER)}

        priority = options.max_priority_fee_per_gas
        if priority is None:
            priority = await eth.max_priority_fee
        return {
            "type": 2,
            "maxPriorityFeePerGas": priority,
            "maxFeePerGas": base_fee * MAX_FEE_MULTIPLIER + priority,
        }

    async def _simulate(self, tx: Dict[str, Any], method: str) -> None:
        try:
            await self.provider.eth.call({k: tx[k] for k in _CALL_FIELDS if k in tx})
        except Exception as e:
            _logger.error(
                "Transaction simulation failed",
                extra={"to": tx.get("to"), "method": method, "error": str(e)},
            )
            raise

    async def send_transaction(self, transaction: Dict[str, Any], sign: SignTransaction) -> str:
        return _hash_to_hex(await super().send_transaction(transaction, sign))

    # ------------------------------------------------------------------
    # Transaction tracking
    # ------------------------------------------------------------------

    async def _revert_reason(self, tx_id: str, block_number: int) -> Optional[str]:
        eth = self.provider.eth
        try:
            tx = await eth.get_transaction(tx_id)
            await eth.call(
                {
                    "from": tx["from"],
                    "to": tx["to"],
                    "data": tx["input"],
                    "value": tx.get("value", 0),
                },
                block_number,
            )
        except ContractLogicError as e:
            return decode_revert_reason(getattr(e, "data", None)) or str(e)
        except (Web3Exception, ValueError) as e:
            _logger.debug("Revert replay failed", extra={"tx_id": tx_id, "error": str(e)})
        return None

    async def _check_receipt(
        self,
        tx_id: str,
        confirmations: int,
        timeout_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        eth = self.provider.eth

        async def fetch() -> Optional[Dict[str, Any]]:
            try:
                receipt = await eth.get_transaction_receipt(tx_id)
            except TransactionNotFound:
                return None
            if receipt is None:
                return None
            if confirmations > 0:
                head = await eth.block_number
                if head - receipt["blockNumber"] + 1 < confirmations:
                    return None
            if not receipt["status"]:
                reason = await self._revert_reason(tx_id, receipt["blockNumber"])
                raise TransactionReceiptError(
                    reason or REVERTED_MESSAGE,
                    SimpleTransactionResult(
                        tx_id=tx_id,
                        block_number=(
                            receipt["blockNumber"] if confirmations >= self.final_confirmations else None
                        ),
                    ),
                )
            return receipt

        return await self._poll(
            fetch,
            tx_id=tx_id,
            interval_ms=self.poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    async def fast_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        receipt = await self._check_receipt(tx_id, self.fast_confirmations, timeout_ms)
        return SimpleTransactionResult(tx_id=_hash_to_hex(receipt.get("transactionHash", tx_id)))

    async def final_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        receipt = await self._check_receipt(tx_id, self.final_confirmations, timeout_ms)
        return SimpleTransactionResult(
            tx_id=_hash_to_hex(receipt.get("transactionHash", tx_id)),
            block_number=receipt["blockNumber"],
        )
