"""
TRON implementation of the contract helper.

Reads go through ``wallet/triggerconstantcontract`` with the zero address as
owner; writes are built with ``wallet/triggersmartcontract`` and handed to
the caller's signer. Calldata is plain Ethereum ABI with TRON addresses
rewritten to their 20-byte ``0x`` form.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from tronpy import AsyncTron
from tronpy.exceptions import TransactionNotFound

from contract_helper.abi.codec import (
    decode_function_result,
    encode_function_data,
    encode_parameters,
    to_data_bytes,
)
from contract_helper.abi.fragments import FunctionFragment
from contract_helper.address import format_base58_address, format_to_eth_address, is_tron_address
from contract_helper.aggregate import (
    build_aggregate_call,
    build_up_aggregate_response,
    transform_contract_call_args,
)
from contract_helper.config import ChainKind, FormatValueOptions
from contract_helper.constants import (
    CONTRACT_SUCCESS,
    DEFAULT_TRON_FEE_LIMIT,
    FEE_LIMIT_MULTIPLIER,
    TRON_ENERGY_FEE_PARAMETER,
    TRON_FAILED_RESULT,
    TRON_FAST_POLL_INTERVAL_MS,
    TRON_FINAL_POLL_INTERVAL_MS,
    TRON_ZERO_ADDRESS,
)
from contract_helper.errors import (
    BroadcastTronTransactionError,
    InvalidAddressError,
    TransactionBuildError,
    TransactionReceiptError,
)
from contract_helper.formatting import unwrap_single_output
from contract_helper.helpers.base import CallArgs, ContractHelperBase, MultiCallArgsLike
from contract_helper.helpers.multicall_abi import TRON_AGGREGATE
from contract_helper.types import (
    AggregateCall,
    AggregateContractResponse,
    FeeCalculationContext,
    SimpleTransactionResult,
    TronContractCallOptions,
)
from contract_helper.utils.logging import get_logger

_logger = get_logger(__name__)


def to_utf8(message: Optional[str]) -> str:
    """Decode a hex-encoded UTF-8 node message; non-hex text is returned as is."""
    if not message:
        return ""
    try:
        return bytes.fromhex(message).decode("utf-8", errors="replace")
    except ValueError:
        return message


def _to_eth_target(address: str) -> str:
    if not is_tron_address(address):
        raise InvalidAddressError(address)
    return format_to_eth_address(address)


def _tron_options(options: Any) -> TronContractCallOptions:
    if options is None:
        return TronContractCallOptions()
    if isinstance(options, TronContractCallOptions):
        return options
    return TronContractCallOptions.model_validate(options)


class TronContractHelper(ContractHelperBase):
    """
    Contract helper bound to a ``tronpy.AsyncTron`` client.

    Example:
        ```python
        helper = TronContractHelper(
            "TZHL5DTcqr6r3uugk2fgtZKHwe4Yp2bsQi",
            AsyncTron(network="nile"),
        )
        decimals = await helper.call({
            "address": usdt,
            "method": "function decimals() view returns (uint8)",
        })
        ```
    """

    chain = ChainKind.TRON

    fast_poll_interval_ms: int = TRON_FAST_POLL_INTERVAL_MS
    final_poll_interval_ms: int = TRON_FINAL_POLL_INTERVAL_MS

    def __init__(
        self,
        multicall_address: str,
        provider: AsyncTron,
        format_value: Optional[Union[FormatValueOptions, dict]] = None,
        fee_calculation: Optional[Callable[[FeeCalculationContext], Any]] = None,
    ) -> None:
        super().__init__(multicall_address, provider, format_value, fee_calculation)

    # ------------------------------------------------------------------
    # Codec hooks
    # ------------------------------------------------------------------

    @staticmethod
    def _encode_function_data(fragment: FunctionFragment, values: List[Any]) -> str:
        return encode_function_data(fragment, values, format_to_eth_address)

    @staticmethod
    def _encode_parameter(fragment: FunctionFragment, values: Sequence[Any]) -> str:
        return encode_parameters(fragment.inputs, list(values), format_to_eth_address).hex()

    @staticmethod
    def _map_aggregate_calls(calls: Sequence[AggregateCall]) -> List[Tuple[str, bytes]]:
        return [(_to_eth_target(call.target), to_data_bytes(call.encoded_data)) for call in calls]

    async def _trigger_constant(self, contract: str, fragment: FunctionFragment, parameter: str) -> str:
        return await self.provider.trigger_const_smart_contract_function(
            TRON_ZERO_ADDRESS,
            format_base58_address(contract),
            fragment.sighash,
            parameter,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def call(self, args: CallArgs) -> Any:
        transformed = transform_contract_call_args(args, self.chain)
        fragment = transformed.method.fragment
        raw = await self._trigger_constant(
            transformed.address,
            fragment,
            self._encode_parameter(fragment, transformed.parameters),
        )
        decoded = decode_function_result(fragment, raw or b"")
        return self.handle_contract_value(unwrap_single_output(decoded, fragment), fragment)

    async def multicall(self, calls: Sequence[MultiCallArgsLike]) -> Dict[str, Any]:
        aggregate_calls = build_aggregate_call(calls, self._encode_function_data, self.chain)
        parameter = self._encode_parameter(
            TRON_AGGREGATE,
            [self._map_aggregate_calls(aggregate_calls)],
        )
        raw = await self._trigger_constant(self.multicall_address, TRON_AGGREGATE, parameter)
        block_number, return_data = decode_function_result(TRON_AGGREGATE, raw)
        _logger.debug(
            "Multicall executed",
            extra={"chain": self.chain.value, "calls": len(aggregate_calls), "block_number": block_number},
        )
        response = AggregateContractResponse(block_number=block_number, return_data=list(return_data))
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
        Build an unsigned ``TriggerSmartContract`` transaction.

        The fee limit comes from the call options, then the fee hook, then
        an energy estimate, and finally ``DEFAULT_TRON_FEE_LIMIT``.

        Raises:
            TransactionBuildError: If the node refuses to build it.
        """
        transformed = transform_contract_call_args(args, self.chain)
        options = _tron_options(transformed.options)
        fragment = transformed.method.fragment

        payload: Dict[str, Any] = {
            "owner_address": format_base58_address(from_),
            "contract_address": transformed.address,
            "function_selector": fragment.sighash,
            "parameter": self._encode_parameter(fragment, transformed.parameters),
            "visible": True,
        }
        if options.call_value:
            payload["call_value"] = options.call_value
        if options.token_id is not None:
            payload["token_id"] = options.token_id
            payload["call_token_value"] = options.token_value or 0

        payload["fee_limit"] = await self._resolve_fee_limit(payload, options)

        response = await self.provider.provider.make_request("wallet/triggersmartcontract", payload)
        result = response.get("result") or {}
        if not result.get("result") or "transaction" not in response:
            message = to_utf8(result.get("message")) or "Failed to build transaction"
            _logger.warning(
                "Transaction build rejected",
                extra={"contract": transformed.address, "method": fragment.name, "error": message},
            )
            raise TransactionBuildError(message, details={"code": result.get("code")})
        return response["transaction"]

    async def _resolve_fee_limit(self, payload: Mapping[str, Any], options: TronContractCallOptions) -> int:
        if options.fee_limit is not None:
            return options.fee_limit

        overrides = await self._fee_overrides(dict(payload), options.estimate_fee)
        fee_limit = overrides.get("fee_limit", overrides.get("feeLimit"))
        if fee_limit is not None:
            return int(fee_limit)

        if options.estimate_fee:
            estimated = await self._estimate_fee_limit(payload)
            if estimated:
                return estimated
        return DEFAULT_TRON_FEE_LIMIT

    async def _estimate_fee_limit(self, payload: Mapping[str, Any]) -> Optional[int]:
        estimate = await self.provider.provider.make_request(
            "wallet/triggerconstantcontract",
            {k: v for k, v in payload.items() if k != "fee_limit"},
        )
        energy_used = estimate.get("energy_used")
        if not energy_used:
            return None
        energy_price = await self._energy_price()
        if not energy_price:
            return None
        return int(energy_used * energy_price * FEE_LIMIT_MULTIPLIER)

    async def _energy_price(self) -> Optional[int]:
        for parameter in await self.provider.get_chain_parameters():
            if parameter.get("key") == TRON_ENERGY_FEE_PARAMETER:
                return int(parameter.get("value", 0))
        return None

    @staticmethod
    async def broadcast_transaction(provider: AsyncTron, signed_transaction: Dict[str, Any]) -> str:
        """
        Broadcast a signed transaction and return its id.

        Raises:
            BroadcastTronTransactionError: If the node answers with an error
                code. The message is decoded from the node's hex text.
        """
        response = await provider.provider.make_request("wallet/broadcasttransaction", signed_transaction)
        code = response.get("code")
        if code and code != CONTRACT_SUCCESS:
            message = to_utf8(response.get("message")) or str(code)
            tx_id = signed_transaction.get("txID")
            _logger.warning(
                "Broadcast rejected",
                extra={"tx_id": tx_id, "code": code, "error": message},
            )
            raise BroadcastTronTransactionError(message, chain_code=code, tx_id=tx_id)
        return response.get("txid") or signed_transaction["txID"]

    # ------------------------------------------------------------------
    # Transaction tracking
    # ------------------------------------------------------------------

    async def fast_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        """
        Wait for the transaction to be packed with every contract result SUCCESS.

        Raises:
            TransactionReceiptError: A contract result is not SUCCESS (the
                failing values joined by ``,``), or the deadline passed.
        """

        async def fetch() -> Optional[SimpleTransactionResult]:
            try:
                transaction = await self.provider.get_transaction(tx_id)
            except TransactionNotFound:
                return None
            ret = (transaction or {}).get("ret")
            if not ret:
                return None
            info = SimpleTransactionResult(tx_id=transaction.get("txID", tx_id))
            failed = [str(r.get("contractRet")) for r in ret if r.get("contractRet") != CONTRACT_SUCCESS]
            if failed:
                raise TransactionReceiptError(",".join(failed), info)
            return info

        return await self._poll(
            fetch,
            tx_id=tx_id,
            interval_ms=self.fast_poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    async def final_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        """
        Wait for the transaction info to be available and check its outcome.

        Raises:
            TransactionReceiptError: The result is FAILED (with the decoded
                ``resMessage``), the info has no ``contractResult``, or the
                deadline passed.
        """

        async def fetch() -> Optional[SimpleTransactionResult]:
            try:
                output = await self.provider.get_transaction_info(tx_id)
            except TransactionNotFound:
                return None
            if not output:
                return None
            info = SimpleTransactionResult(
                tx_id=output.get("id", tx_id),
                block_number=output.get("blockNumber"),
            )
            if output.get("result") == TRON_FAILED_RESULT:
                raise TransactionReceiptError(to_utf8(output.get("resMessage")), info)
            if "contractResult" not in output:
                raise TransactionReceiptError(
                    "Failed to execute: " + json.dumps(output, indent=2),
                    info,
                )
            return info

        return await self._poll(
            fetch,
            tx_id=tx_id,
            interval_ms=self.final_poll_interval_ms,
            timeout_ms=timeout_ms,
        )
