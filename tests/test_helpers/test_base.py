"""
Tests for ContractHelperBase.

Tests cover:
- check_transaction_result in fast (default) and final mode
- Callback delivery for the awaited and the background check
- The deadline-bounded poll loop
- send() wiring create_transaction and the caller's signer
"""

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from contract_helper.config import ChainKind
from contract_helper.errors import TransactionReceiptError
from contract_helper.helpers.base import ContractHelperBase
from contract_helper.types import (
    CheckTransactionType,
    SimpleTransactionResult,
    TransactionOption,
)

TX_ID = "0x" + "c" * 64
FAST_RESULT = SimpleTransactionResult(tx_id=TX_ID)
FINAL_RESULT = SimpleTransactionResult(tx_id=TX_ID, block_number=42)


class StubHelper(ContractHelperBase):
    """Minimal concrete helper whose checks are mocks."""

    chain = ChainKind.EVM

    def __init__(self) -> None:
        super().__init__("0xcA11bde05977b3631167028862bE2a173976CA11", MagicMock())
        self.fetch_retry_delay_ms = 1
        self.fast = AsyncMock(return_value=FAST_RESULT)
        self.final = AsyncMock(return_value=FINAL_RESULT)

    async def call(self, args: Any) -> Any:
        return None

    async def multicall(self, calls: Any) -> Dict[str, Any]:
        return {}

    async def create_transaction(self, from_: str, args: Any) -> Dict[str, Any]:
        return {"from": from_, "to": args["address"]}

    async def fast_check_transaction_result(
        self, tx_id: str, timeout_ms: Optional[int] = None
    ) -> SimpleTransactionResult:
        return await self.fast(tx_id, timeout_ms)

    async def final_check_transaction_result(
        self, tx_id: str, timeout_ms: Optional[int] = None
    ) -> SimpleTransactionResult:
        return await self.final(tx_id, timeout_ms)


@pytest.fixture
def helper() -> StubHelper:
    return StubHelper()


class Recorder:
    """Collects success/error callback invocations."""

    def __init__(self) -> None:
        self.successes: List[Any] = []
        self.errors: List[BaseException] = []

    def success(self, value: Any) -> None:
        self.successes.append(value)

    def error(self, error: BaseException) -> None:
        self.errors.append(error)

    def option(self, check: CheckTransactionType = CheckTransactionType.FAST, **kwargs: Any) -> TransactionOption:
        return TransactionOption(success=self.success, error=self.error, check=check, **kwargs)


# =============================================================================
# Fast mode
# =============================================================================


class TestFastCheck:
    """check_transaction_result with the default fast check."""

    @pytest.mark.asyncio
    async def test_fast_is_default(self, helper: StubHelper) -> None:
        """Without options the fast result is returned and final runs in the background."""
        result = await helper.check_transaction_result(TX_ID)

        assert result == FAST_RESULT
        helper.fast.assert_awaited_once_with(TX_ID, None)
        await helper.wait_background_tasks()
        helper.final.assert_awaited_once_with(TX_ID, None)

    @pytest.mark.asyncio
    async def test_success_callback_gets_final_result(self, helper: StubHelper) -> None:
        """The caller gets the fast result, the callback the final one."""
        recorder = Recorder()

        result = await helper.check_transaction_result(TX_ID, recorder.option())
        assert result == FAST_RESULT
        assert recorder.successes == []

        await helper.wait_background_tasks()
        assert recorder.successes == [FINAL_RESULT]
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_does_not_wait_for_final(self, helper: StubHelper) -> None:
        """The return value never waits for the background check."""
        gate = asyncio.Event()

        async def slow_final(tx_id: str, timeout_ms: Optional[int]) -> SimpleTransactionResult:
            await gate.wait()
            return FINAL_RESULT

        helper.final.side_effect = slow_final

        result = await asyncio.wait_for(helper.check_transaction_result(TX_ID), timeout=1)

        assert result == FAST_RESULT
        assert len(helper._background_tasks) == 1
        gate.set()
        await helper.wait_background_tasks()
        assert helper._background_tasks == set()

    @pytest.mark.asyncio
    async def test_fast_failure_raises_and_skips_final(self, helper: StubHelper) -> None:
        """A failed fast check is raised, reported, and final never starts."""
        recorder = Recorder()
        failure = TransactionReceiptError("REVERT", FAST_RESULT)
        helper.fast.side_effect = failure

        with pytest.raises(TransactionReceiptError):
            await helper.check_transaction_result(TX_ID, recorder.option())

        assert recorder.errors == [failure]
        assert recorder.successes == []
        helper.final.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_final_failure_only_reaches_callback(self, helper: StubHelper) -> None:
        """A background failure goes to the error callback, not the caller."""
        recorder = Recorder()
        failure = TransactionReceiptError("OUT_OF_ENERGY", FINAL_RESULT)
        helper.final.side_effect = failure

        result = await helper.check_transaction_result(TX_ID, recorder.option())
        await helper.wait_background_tasks()

        assert result == FAST_RESULT
        assert recorder.errors == [failure]
        assert recorder.successes == []

    @pytest.mark.asyncio
    async def test_timeout_forwarded(self, helper: StubHelper) -> None:
        """timeout_ms reaches both checks."""
        await helper.check_transaction_result(TX_ID, TransactionOption(timeout_ms=250))
        await helper.wait_background_tasks()

        helper.fast.assert_awaited_once_with(TX_ID, 250)
        helper.final.assert_awaited_once_with(TX_ID, 250)


# =============================================================================
# Final mode
# =============================================================================


class TestFinalCheck:
    """check_transaction_result with check=FINAL."""

    @pytest.mark.asyncio
    async def test_only_final_runs(self, helper: StubHelper) -> None:
        recorder = Recorder()

        result = await helper.check_transaction_result(TX_ID, recorder.option(CheckTransactionType.FINAL))

        assert result == FINAL_RESULT
        assert recorder.successes == [FINAL_RESULT]
        helper.fast.assert_not_awaited()
        assert helper._background_tasks == set()

    @pytest.mark.asyncio
    async def test_accepts_string_check(self, helper: StubHelper) -> None:
        """The check type may be given by its value."""
        result = await helper.check_transaction_result(TX_ID, TransactionOption(check="final"))

        assert result == FINAL_RESULT

    @pytest.mark.asyncio
    async def test_failure_raises_and_reports(self, helper: StubHelper) -> None:
        recorder = Recorder()
        failure = TransactionReceiptError("REVERT", FINAL_RESULT)
        helper.final.side_effect = failure

        with pytest.raises(TransactionReceiptError):
            await helper.check_transaction_result(TX_ID, recorder.option(CheckTransactionType.FINAL))

        assert recorder.errors == [failure]

    @pytest.mark.asyncio
    async def test_throwing_success_callback_goes_to_error(self, helper: StubHelper) -> None:
        """A success callback that raises is reported to error; the result stands."""
        errors: List[BaseException] = []

        def explode(_value: Any) -> None:
            raise RuntimeError("callback bug")

        option = TransactionOption(success=explode, error=errors.append, check=CheckTransactionType.FINAL)
        result = await helper.check_transaction_result(TX_ID, option)

        assert result == FINAL_RESULT
        assert len(errors) == 1
        assert str(errors[0]) == "callback bug"

    @pytest.mark.asyncio
    async def test_throwing_error_callback_is_swallowed(self, helper: StubHelper) -> None:
        """The original failure is raised even if the error callback raises."""
        helper.final.side_effect = TransactionReceiptError("REVERT", FINAL_RESULT)

        def explode(_error: BaseException) -> None:
            raise RuntimeError("callback bug")

        option = TransactionOption(error=explode, check=CheckTransactionType.FINAL)
        with pytest.raises(TransactionReceiptError, match="REVERT"):
            await helper.check_transaction_result(TX_ID, option)


# =============================================================================
# Poll loop
# =============================================================================


class TestPoll:
    """Tests for the deadline-bounded poll loop."""

    @pytest.mark.asyncio
    async def test_returns_first_value(self, helper: StubHelper) -> None:
        fetch = AsyncMock(side_effect=[None, None, "receipt"])

        result = await helper._poll(fetch, tx_id=TX_ID, interval_ms=1)

        assert result == "receipt"
        assert fetch.await_count == 3

    @pytest.mark.asyncio
    async def test_fetch_errors_are_retried(self, helper: StubHelper) -> None:
        """Network errors consume the fetch retry budget, not the poll."""
        fetch = AsyncMock(side_effect=[ConnectionError("reset"), ConnectionError("reset"), "receipt"])

        result = await helper._poll(fetch, tx_id=TX_ID, interval_ms=1)

        assert result == "receipt"

    @pytest.mark.asyncio
    async def test_fetch_retry_budget(self, helper: StubHelper) -> None:
        """After ten retries the last fetch error propagates."""
        fetch = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(ConnectionError):
            await helper._poll(fetch, tx_id=TX_ID, interval_ms=1)

        assert fetch.await_count == helper.fetch_retries + 1 == 11

    @pytest.mark.asyncio
    async def test_receipt_error_not_retried(self, helper: StubHelper) -> None:
        fetch = AsyncMock(side_effect=TransactionReceiptError("REVERT", FAST_RESULT))

        with pytest.raises(TransactionReceiptError):
            await helper._poll(fetch, tx_id=TX_ID, interval_ms=1)

        assert fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout(self, helper: StubHelper) -> None:
        """A poll that never sees a result fails once the deadline passed."""
        fetch = AsyncMock(return_value=None)

        with pytest.raises(TransactionReceiptError) as exc_info:
            await helper._poll(fetch, tx_id=TX_ID, interval_ms=3000, timeout_ms=10)

        assert "timeout" in str(exc_info.value)
        assert exc_info.value.transaction_info.tx_id == TX_ID
        assert exc_info.value.tx_id == TX_ID

    @pytest.mark.asyncio
    async def test_sleep_bounded_by_deadline(self, helper: StubHelper) -> None:
        """A long poll interval does not overshoot a short deadline."""
        fetch = AsyncMock(return_value=None)
        loop = asyncio.get_running_loop()
        started = loop.time()

        with pytest.raises(TransactionReceiptError):
            await helper._poll(fetch, tx_id=TX_ID, interval_ms=60_000, timeout_ms=50)

        assert loop.time() - started < 1

    @pytest.mark.asyncio
    async def test_expired_deadline_skips_fetch(self, helper: StubHelper) -> None:
        """With a zero deadline no fetch is started."""
        fetch = AsyncMock(return_value="receipt")

        with pytest.raises(TransactionReceiptError, match="timeout"):
            await helper._poll(fetch, tx_id=TX_ID, interval_ms=1, timeout_ms=0)

        fetch.assert_not_awaited()


# =============================================================================
# Send
# =============================================================================


class TestSend:
    """Tests for send() on the base class."""

    @pytest.mark.asyncio
    async def test_sign_receives_transaction_provider_and_chain(self, helper: StubHelper) -> None:
        sign = AsyncMock(return_value=TX_ID)

        tx_id = await helper.send("0xsender", sign, {"address": "0xcontract"})

        assert tx_id == TX_ID
        sign.assert_awaited_once_with(
            {"from": "0xsender", "to": "0xcontract"},
            helper.provider,
            ChainKind.EVM,
        )

    @pytest.mark.asyncio
    async def test_sync_signer(self, helper: StubHelper) -> None:
        """A plain function works as signer too."""
        tx_id = await helper.send("0xsender", lambda tx, provider, chain: "0xdone", {"address": "0x1"})

        assert tx_id == "0xdone"
