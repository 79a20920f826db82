#!/usr/bin/env python3
"""
Example: batched reads through the lazy call queue

Reads of one token are queued with ``lazy_call`` and go out as a single
multicall request once the debounce window closes.

Run this example:
    python examples/batch_reads.py [holder-address]
"""

import asyncio
import sys

from contract_helper import ContractHelper, configure_logging

# Circle USDC on Base Sepolia
USDC = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
DEFAULT_HOLDER = "0x0000000000000000000000000000000000000000"

ERC20_ABI = [
    "function name() view returns (string)",
    "function symbol() view returns (string)",
    "function decimals() view returns (uint8)",
    "function balanceOf(address owner) view returns (uint256)",
]


async def main() -> None:
    configure_logging()
    holder = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_HOLDER

    helper = ContractHelper.from_network(
        "base-sepolia",
        multicall_lazy_query_timeout=100,
        format_value={"uint": "bigint"},
    )
    print(helper)

    name, symbol, decimals, balance = await asyncio.gather(
        helper.lazy_call({"address": USDC, "abi": ERC20_ABI, "method": "name"}),
        helper.lazy_call({"address": USDC, "abi": ERC20_ABI, "method": "symbol"}),
        helper.lazy_call({"address": USDC, "abi": ERC20_ABI, "method": "decimals"}),
        helper.lazy_call({"address": USDC, "abi": ERC20_ABI, "method": "balanceOf", "args": [holder]}),
    )

    print(f"Token:   {name} ({symbol})")
    print(f"Holder:  {holder}")
    print(f"Balance: {balance / 10 ** decimals:.{decimals}f}")

    # The same reads as one explicit multicall, returned by key
    values = await helper.multicall(
        [
            {"key": "symbol", "address": USDC, "abi": ERC20_ABI, "method": "symbol"},
            {"key": "supply", "address": USDC, "method": "function totalSupply() view returns (uint256)"},
        ]
    )
    print(f"Supply:  {values['supply']} {values['symbol']} base units")


if __name__ == "__main__":
    asyncio.run(main())
