"""
Chain-agnostic multicall codec.

:func:`build_aggregate_call` turns a batch of logical calls into
``(target, calldata)`` pairs for the on-chain multicall contract, and
:func:`build_up_aggregate_response` maps the contract's positional
response back to the callers' keys. The chain helpers inject the actual
encode, decode and formatting functions.

Both directions re-derive the call from the same arguments with
:func:`transform_contract_call_args`, so slot ``i`` of the response always
belongs to call ``i`` of the batch.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from contract_helper.abi.fragments import FunctionFragment, find_function, parse_abi, parse_signature
from contract_helper.address import format_base58_address, format_to_eth_address
from contract_helper.config import ChainKind
from contract_helper.errors import (
    ABIFunctionNotProvidedError,
    ContractAddressNotProvidedError,
    ContractMethodNotProvidedError,
    DuplicateCallKeyError,
    MulticallError,
)
from contract_helper.formatting import unwrap_single_output
from contract_helper.types import (
    AggregateCall,
    AggregateContractResponse,
    CallReturnContext,
    ContractCall,
    ContractCallArgs,
    ContractCallReturnContext,
    MethodConfig,
    MultiCallArgs,
    TransformedCallArgs,
    as_call_args,
)
from contract_helper.utils.logging import get_logger

__all__ = [
    "get_method_config",
    "transform_contract_call_args",
    "find_fragment_from_abi",
    "build_aggregate_call",
    "build_up_aggregate_results",
    "build_up_aggregate_response",
]

_logger = get_logger(__name__)

EncodeFunctionData = Callable[[FunctionFragment, List[Any]], str]
DecodeFunctionData = Callable[[FunctionFragment, bytes], Sequence[Any]]
HandleContractValue = Callable[[Any, FunctionFragment], Any]


def get_method_config(address: str, method: str, abi: Optional[Union[str, List[Any]]] = None) -> MethodConfig:
    """
    Resolve ``method`` to a function fragment.

    With an ABI, ``method`` is looked up by name or signature. Without
    one it must be a parsable signature, ``"function "`` being optional.

    Raises:
        ABIFunctionNotProvidedError: When the method cannot be resolved.
    """
    try:
        if abi:
            fragments = parse_abi(abi)
            fragment = find_function(fragments, method)
        else:
            text = method.strip()
            fragment = parse_signature(text if text.startswith("function") else f"function {text}")
            fragments = [fragment]
    except (ValueError, KeyError, TypeError, AttributeError):
        raise ABIFunctionNotProvidedError(address, method) from None

    if fragment is None:
        raise ABIFunctionNotProvidedError(address, method)

    return MethodConfig(
        abi=fragments,
        selector=fragment.selector,
        signature=fragment.format_full(),
        fragment=fragment,
        name=fragment.name,
    )


def transform_contract_call_args(
    args: Union[ContractCallArgs, Mapping[str, Any]],
    chain: ChainKind,
) -> TransformedCallArgs:
    """
    Validate a call and format its address for ``chain``.

    Raises:
        ContractAddressNotProvidedError: No address.
        ContractMethodNotProvidedError: No method.
        ABIFunctionNotProvidedError: Method not resolvable.
    """
    call = as_call_args(args)
    if not call.address:
        raise ContractAddressNotProvidedError()
    if not call.method:
        raise ContractMethodNotProvidedError()

    method = get_method_config(call.address, call.method, call.abi)
    if ChainKind(chain) == ChainKind.TRON:
        address = format_base58_address(call.address)
    else:
        address = format_to_eth_address(call.address)

    return TransformedCallArgs(
        address=address,
        abi=method.abi,
        method=method,
        parameters=list(call.parameters),
        options=call.options,
        key=getattr(call, "key", None),
    )


def find_fragment_from_abi(contract_call: ContractCall) -> Optional[FunctionFragment]:
    """Fragment of ``contract_call``'s method in its ABI, or None."""
    return find_function(contract_call.abi, contract_call.method_signature or contract_call.method_name)


def _to_contract_call(args: MultiCallArgs, chain: ChainKind) -> ContractCall:
    transformed = transform_contract_call_args(args, chain)
    return ContractCall(
        key=args.key,
        address=transformed.address,
        abi=transformed.abi,
        method_name=transformed.method.name,
        method_parameters=transformed.parameters,
        method_signature=transformed.method.fragment.sighash,
    )


def _as_multi_call_args(calls: Sequence[Union[MultiCallArgs, Mapping[str, Any]]]) -> List[MultiCallArgs]:
    return [as_call_args(call, MultiCallArgs) for call in calls]


def build_aggregate_call(
    multi_call_args: Sequence[Union[MultiCallArgs, Mapping[str, Any]]],
    encode_function_data: EncodeFunctionData,
    chain: ChainKind,
) -> List[AggregateCall]:
    """
    Encode a batch for the multicall contract, preserving input order.

    Raises:
        ABIFunctionNotProvidedError: If any call's fragment is missing;
            the whole batch fails.
        DuplicateCallKeyError: If two calls share a key.
    """
    calls = _as_multi_call_args(multi_call_args)
    seen = set()
    aggregate_calls: List[AggregateCall] = []

    for index, args in enumerate(calls):
        if args.key in seen:
            raise DuplicateCallKeyError(args.key)
        seen.add(args.key)

        contract_call = _to_contract_call(args, chain)
        fragment = find_fragment_from_abi(contract_call)
        if fragment is None:
            raise ABIFunctionNotProvidedError(contract_call.address, contract_call.method_name)

        aggregate_calls.append(
            AggregateCall(
                contract_call_index=index,
                target=contract_call.address,
                encoded_data=encode_function_data(fragment, contract_call.method_parameters),
            )
        )
    return aggregate_calls


def build_up_aggregate_results(
    multi_call_args: Sequence[Union[MultiCallArgs, Mapping[str, Any]]],
    response: AggregateContractResponse,
    decode_function_data: DecodeFunctionData,
    handle_contract_value: HandleContractValue,
    chain: ChainKind,
) -> Dict[str, ContractCallReturnContext]:
    """
    Decode every response slot into a full return context, keyed by call key.

    A slot whose fragment cannot be found is passed through undecoded. A
    slot the chain reported as failed, or whose bytes fail to decode, is
    marked unsuccessful; if any slot is, the whole batch raises.

    Raises:
        MulticallError: Slot count mismatch, or one or more failed slots.
    """
    calls = _as_multi_call_args(multi_call_args)
    if len(response.return_data) != len(calls):
        raise MulticallError(
            f"Multicall returned {len(response.return_data)} result(s) for {len(calls)} call(s)"
        )

    results: Dict[str, ContractCallReturnContext] = {}
    for index, return_data in enumerate(response.return_data):
        contract_call = _to_contract_call(calls[index], chain)
        chain_success = response.success[index] if response.success is not None else True
        fragment = find_fragment_from_abi(contract_call)

        decoded = False
        success = chain_success
        value: Any = return_data
        if fragment is not None and chain_success:
            try:
                raw = unwrap_single_output(decode_function_data(fragment, return_data), fragment)
                value = handle_contract_value(raw, fragment)
                decoded = True
            except Exception as e:
                _logger.warning(
                    "Failed to decode multicall result",
                    extra={"call": contract_call.describe(), "error": str(e)},
                )
                success = False

        results[contract_call.key] = ContractCallReturnContext(
            original_contract_call_context=contract_call,
            call_return_context=CallReturnContext(
                return_value=value,
                decoded=decoded,
                method_name=contract_call.method_name,
                method_parameters=contract_call.method_parameters,
                success=success,
            ),
        )

    failed = [
        context.original_contract_call_context.describe()
        for context in results.values()
        if not context.call_return_context.success
    ]
    if failed:
        raise MulticallError(
            "Fetch data error from multicall contract: " + ";".join(failed),
            failed_calls=failed,
        )
    return results


def build_up_aggregate_response(
    multi_call_args: Sequence[Union[MultiCallArgs, Mapping[str, Any]]],
    response: AggregateContractResponse,
    decode_function_data: DecodeFunctionData,
    handle_contract_value: HandleContractValue,
    chain: ChainKind,
) -> Dict[str, Any]:
    """Like :func:`build_up_aggregate_results`, keeping only ``key -> value``."""
    results = build_up_aggregate_results(
        multi_call_args,
        response,
        decode_function_data,
        handle_contract_value,
        chain,
    )
    return {
        key: context.call_return_context.return_value
        for key, context in results.items()
    }
