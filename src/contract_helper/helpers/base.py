"""
Shared contract of the per-chain helpers.

Each helper owns one chain client and one multicall address for its whole
life. Besides the abstract read/send primitives, the base class hosts the
two-phase transaction check and the deadline-bounded poll loop both chains
use.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    TypeVar,
    Union,
)

from contract_helper.config import ChainKind, FormatValueOptions
from contract_helper.constants import FETCH_RETRIES, FETCH_RETRY_DELAY_MS
from contract_helper.errors import TransactionReceiptError
from contract_helper.formatting import ValueFormatter
from contract_helper.types import (
    CheckTransactionType,
    ContractCallArgs,
    FeeCalculationContext,
    MultiCallArgs,
    SignTransaction,
    SimpleTransactionResult,
    TransactionOption,
)
from contract_helper.utils.callbacks import (
    PromiseCallback,
    maybe_await,
    run_promise_with_callback,
)
from contract_helper.utils.logging import get_logger
from contract_helper.utils.retry import RetryConfig, retry_async

T = TypeVar("T")

_logger = get_logger(__name__)

CallArgs = Union[ContractCallArgs, Mapping[str, Any]]
MultiCallArgsLike = Union[MultiCallArgs, Mapping[str, Any]]


class ContractHelperBase(ABC):
    """
    Base class for the TRON and EVM helpers.

    Attributes:
        chain: Chain family of the helper.
        multicall_address: Multicall contract used by :meth:`multicall`.
        provider: Chain client, fixed at construction.
        formatter: Presentation policy for decoded values.
        fetch_retries: Retries of each network fetch while polling.
        fetch_retry_delay_ms: Delay between those retries.
    """

    chain: ChainKind

    fetch_retries: int = FETCH_RETRIES
    fetch_retry_delay_ms: int = FETCH_RETRY_DELAY_MS

    def __init__(
        self,
        multicall_address: str,
        provider: Any,
        format_value: Optional[Union[FormatValueOptions, dict]] = None,
        fee_calculation: Optional[Callable[[FeeCalculationContext], Any]] = None,
    ) -> None:
        self.multicall_address = multicall_address
        self.provider = provider
        self.formatter = ValueFormatter(self.chain, format_value)
        self.fee_calculation = fee_calculation
        self._background_tasks: Set["asyncio.Task[Any]"] = set()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def call(self, args: CallArgs) -> Any:
        """Run one read-only contract call and return its formatted value."""

    @abstractmethod
    async def multicall(self, calls: Sequence[MultiCallArgsLike]) -> Dict[str, Any]:
        """Run a batch of reads through the multicall contract, keyed by call key."""

    def handle_contract_value(self, value: Any, fragment: Any) -> Any:
        return self.formatter.handle_contract_value(value, fragment)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_transaction(self, from_: str, args: CallArgs) -> Dict[str, Any]:
        """Build the unsigned transaction for a state-changing call."""

    async def send_transaction(self, transaction: Dict[str, Any], sign: SignTransaction) -> str:
        """Hand ``transaction`` to the caller's signer and return its tx id."""
        return await maybe_await(sign, transaction, self.provider, self.chain)

    async def send(self, from_: str, sign: SignTransaction, args: CallArgs) -> str:
        """Build, sign and broadcast a state-changing call. Returns the tx id."""
        transaction = await self.create_transaction(from_, args)
        tx_id = await self.send_transaction(transaction, sign)
        _logger.info(
            "Transaction sent",
            extra={"chain": self.chain.value, "tx_id": tx_id, "from": from_},
        )
        return tx_id

    async def _fee_overrides(self, transaction: Dict[str, Any], estimate_fee: bool) -> Dict[str, Any]:
        if self.fee_calculation is None:
            return {}
        context = FeeCalculationContext(
            chain=self.chain,
            provider=self.provider,
            transaction=dict(transaction),
            estimate_fee=estimate_fee,
        )
        overrides = await maybe_await(self.fee_calculation, context)
        return dict(overrides or {})

    # ------------------------------------------------------------------
    # Transaction tracking
    # ------------------------------------------------------------------

    @abstractmethod
    async def fast_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        """Wait until the transaction is included and did not fail."""

    @abstractmethod
    async def final_check_transaction_result(
        self,
        tx_id: str,
        timeout_ms: Optional[int] = None,
    ) -> SimpleTransactionResult:
        """Wait until the transaction is final and did not fail."""

    async def check_transaction_result(
        self,
        tx_id: str,
        options: Optional[TransactionOption] = None,
    ) -> SimpleTransactionResult:
        """
        Confirm a transaction through the fast or the final path.

        With ``CheckTransactionType.FAST`` the fast check is awaited and the
        final check then runs in the background, reporting to
        ``options.success``/``options.error`` only. With
        ``CheckTransactionType.FINAL`` only the final check runs and feeds
        the callbacks.

        Returns:
            The outcome of the awaited check.

        Raises:
            TransactionReceiptError: If the awaited check fails.
        """
        options = options or TransactionOption()
        check = CheckTransactionType(options.check)

        if check == CheckTransactionType.FINAL:
            return await run_promise_with_callback(
                self.final_check_transaction_result(tx_id, options.timeout_ms),
                options,
            )

        transaction = await run_promise_with_callback(
            self.fast_check_transaction_result(tx_id, options.timeout_ms),
            PromiseCallback(error=options.error),
        )
        self._spawn(
            run_promise_with_callback(
                self.final_check_transaction_result(tx_id, options.timeout_ms),
                options,
            )
        )
        return transaction

    def _retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.fetch_retries + 1,
            base_delay_ms=self.fetch_retry_delay_ms,
        )

    async def _poll(
        self,
        fetch: Callable[[], Awaitable[Optional[T]]],
        *,
        tx_id: str,
        interval_ms: int,
        timeout_ms: Optional[int] = None,
    ) -> T:
        """
        Call ``fetch`` until it returns something other than None.

        Each fetch is retried on error with the helper's fetch budget. The
        deadline is checked before every iteration only; a fetch already in
        flight is allowed to finish.

        Raises:
            TransactionReceiptError: Once the deadline has passed.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout_ms is None else loop.time() + timeout_ms / 1000

        while True:
            if deadline is not None and loop.time() >= deadline:
                _logger.warning(
                    "Transaction check timed out",
                    extra={"chain": self.chain.value, "tx_id": tx_id, "timeout_ms": timeout_ms},
                )
                raise TransactionReceiptError(
                    f"Transaction check timeout after {timeout_ms}ms",
                    SimpleTransactionResult(tx_id=tx_id),
                )

            result = await retry_async(fetch, self._retry_config())
            if result is not None:
                return result

            delay = interval_ms / 1000
            if deadline is not None:
                delay = max(0.0, min(delay, deadline - loop.time()))
            await asyncio.sleep(delay)

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _spawn(self, awaitable: Awaitable[Any]) -> "asyncio.Task[Any]":
        task = asyncio.ensure_future(awaitable)
        self._background_tasks.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: "asyncio.Task[Any]") -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _logger.debug(
                "Background check failed",
                extra={"chain": self.chain.value, "error": str(error)},
            )

    async def wait_background_tasks(self) -> List[Any]:
        """Wait for pending background checks. Errors are returned, not raised."""
        tasks = list(self._background_tasks)
        if not tasks:
            return []
        return await asyncio.gather(*tasks, return_exceptions=True)
