#!/usr/bin/env python3
"""
Example: send an ERC-20 transfer and track it

The helper builds the transaction; signing stays with the caller, here a
local eth_account key.

Usage:
    python examples/send_transfer.py <recipient> <amount-in-base-units>

Environment Variables:
    PRIVATE_KEY: Key of the sending wallet
    RPC_URL: Base Sepolia RPC URL (default: https://sepolia.base.org)
"""

import asyncio
import os
import sys
from typing import Any, Dict

from dotenv import load_dotenv
from eth_account import Account

from contract_helper import (
    CheckTransactionType,
    ChainKind,
    ContractHelper,
    TransactionOption,
    TransactionReceiptError,
    configure_logging,
)

load_dotenv()

PRIVATE_KEY = os.getenv("PRIVATE_KEY", "")
RPC_URL = os.getenv("RPC_URL") or None

USDC = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


async def main() -> None:
    if not PRIVATE_KEY or len(sys.argv) < 3:
        print("Set PRIVATE_KEY and pass <recipient> <amount>")
        sys.exit(1)

    configure_logging()
    account = Account.from_key(PRIVATE_KEY)
    recipient, amount = sys.argv[1], int(sys.argv[2])

    async def sign(transaction: Dict[str, Any], provider: Any, chain: ChainKind) -> str:
        signed = account.sign_transaction(transaction)
        tx_hash = await provider.eth.send_raw_transaction(signed.raw_transaction)
        return tx_hash.hex()

    helper = ContractHelper.from_network("base-sepolia", rpc_url=RPC_URL)

    tx_id = await helper.send_with_options(
        account.address,
        sign,
        {
            "address": USDC,
            "method": "function transfer(address to, uint256 amount) returns (bool)",
            "args": [recipient, amount],
        },
        {"eth": {"gasLimit": 100_000}},
    )
    print(f"Sent:      {tx_id}")

    try:
        result = await helper.check_transaction_result(
            tx_id,
            TransactionOption(
                check=CheckTransactionType.FINAL,
                timeout_ms=120_000,
                success=lambda r: print(f"Callback:  confirmed in block {r.block_number}"),
            ),
        )
    except TransactionReceiptError as e:
        print(f"Failed:    {e}")
        sys.exit(1)

    print(f"Finalized: block {result.block_number}")


if __name__ == "__main__":
    asyncio.run(main())
