"""
Static ABIs of the multicall contracts.

TRON deployments expose the Multicall2 ``aggregate`` entry point (plus the
usual block getters); EVM deployments are Multicall2 or Multicall3, both of
which implement ``aggregate`` and ``tryAggregate``.
"""

from typing import Any, Dict, List

from contract_helper.abi.fragments import FunctionFragment, find_function, parse_abi

__all__ = [
    "TRON_MULTICALL_ABI",
    "EVM_MULTICALL_ABI",
    "TRON_AGGREGATE",
    "EVM_AGGREGATE",
    "EVM_TRY_AGGREGATE",
]

_CALL_COMPONENTS: List[Dict[str, Any]] = [
    {"internalType": "address", "name": "target", "type": "address"},
    {"internalType": "bytes", "name": "callData", "type": "bytes"},
]

_RESULT_COMPONENTS: List[Dict[str, Any]] = [
    {"internalType": "bool", "name": "success", "type": "bool"},
    {"internalType": "bytes", "name": "returnData", "type": "bytes"},
]


def _getter(name: str, output_name: str, output_type: str = "uint256") -> Dict[str, Any]:
    return {
        "inputs": [],
        "name": name,
        "outputs": [{"internalType": output_type, "name": output_name, "type": output_type}],
        "stateMutability": "view",
        "type": "function",
    }


TRON_MULTICALL_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {
                "components": _CALL_COMPONENTS,
                "internalType": "struct TronMulticall.Call[]",
                "name": "calls",
                "type": "tuple[]",
            }
        ],
        "name": "aggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes[]", "name": "returnData", "type": "bytes[]"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    _getter("getBasefee", "basefee"),
    _getter("getBlockNumber", "blockNumber"),
    _getter("getChainId", "chainid"),
    _getter("getCurrentBlockTimestamp", "timestamp"),
    _getter("getLastBlockHash", "blockHash", "bytes32"),
    {
        "inputs": [{"internalType": "address", "name": "addr", "type": "address"}],
        "name": "getEthBalance",
        "outputs": [{"internalType": "uint256", "name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "addr", "type": "address"}],
        "name": "isContract",
        "outputs": [{"internalType": "bool", "name": "result", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]

EVM_MULTICALL_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {
                "components": _CALL_COMPONENTS,
                "internalType": "struct Multicall2.Call[]",
                "name": "calls",
                "type": "tuple[]",
            }
        ],
        "name": "aggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes[]", "name": "returnData", "type": "bytes[]"},
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "bool", "name": "requireSuccess", "type": "bool"},
            {
                "components": _CALL_COMPONENTS,
                "internalType": "struct Multicall2.Call[]",
                "name": "calls",
                "type": "tuple[]",
            },
        ],
        "name": "tryAggregate",
        "outputs": [
            {
                "components": _RESULT_COMPONENTS,
                "internalType": "struct Multicall2.Result[]",
                "name": "returnData",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    _getter("getBlockNumber", "blockNumber"),
    _getter("getCurrentBlockTimestamp", "timestamp"),
    _getter("getCurrentBlockGasLimit", "gaslimit"),
    _getter("getLastBlockHash", "blockHash", "bytes32"),
    {
        "inputs": [{"internalType": "address", "name": "addr", "type": "address"}],
        "name": "getEthBalance",
        "outputs": [{"internalType": "uint256", "name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def _function(abi: List[Dict[str, Any]], name: str) -> FunctionFragment:
    fragment = find_function(parse_abi(abi), name)
    if fragment is None:
        raise LookupError(f"{name} missing from multicall ABI")
    return fragment


TRON_AGGREGATE = _function(TRON_MULTICALL_ABI, "aggregate")
EVM_AGGREGATE = _function(EVM_MULTICALL_ABI, "aggregate")
EVM_TRY_AGGREGATE = _function(EVM_MULTICALL_ABI, "tryAggregate")
