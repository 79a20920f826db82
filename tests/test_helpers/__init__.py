"""
Per-chain helper tests for contract-helper.

Tests cover:
- Two-phase transaction checks and the poll loop (test_base.py)
- TronContractHelper reads, transaction building and checks (test_tron_helper.py)
- EvmContractHelper reads, fee resolution and receipt checks (test_evm_helper.py)
"""
