"""
ContractHelper: the object applications talk to.

It picks the TRON or EVM helper from the configured provider, forwards
immediate reads and writes to it, and runs the lazy call queue: single
reads are buffered and sent to the chain as one multicall, either when the
queue is full, when a caller asks for it, or after a debounce delay.

Example:
    ```python
    from web3 import AsyncHTTPProvider, AsyncWeb3
    from contract_helper import ContractHelper

    helper = ContractHelper(
        provider=AsyncWeb3(AsyncHTTPProvider(rpc_url)),
        multicall_v2_address="0xcA11bde05977b3631167028862bE2a173976CA11",
    )

    symbol, decimals = await asyncio.gather(
        helper.lazy_call({"address": usdc, "method": "function symbol() view returns (string)"}),
        helper.lazy_call({"address": usdc, "method": "function decimals() view returns (uint8)"}),
    )
    ```
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from pydantic import BaseModel

from contract_helper.config import (
    ChainKind,
    ContractHelperOptions,
    Network,
    create_provider,
    get_network_config,
)
from contract_helper.constants import CALLBACK_RETRIES, MULTICALL_RETRIES, RETRY_DELAY_MS
from contract_helper.helpers import ContractHelperBase, EvmContractHelper, TronContractHelper
from contract_helper.helpers.base import CallArgs, MultiCallArgsLike
from contract_helper.types import (
    ContractQuery,
    EvmContractCallOptions,
    MultiCallArgs,
    SignTransaction,
    SimpleTransactionResult,
    TransactionOption,
    TronContractCallOptions,
    as_call_args,
)
from contract_helper.utils.callbacks import (
    PromiseCallback,
    maybe_await,
    notify_error,
    run_promise_with_callback,
)
from contract_helper.utils.logging import get_logger
from contract_helper.utils.pmap import amap
from contract_helper.utils.retry import retry

_logger = get_logger(__name__)

ChainCallOptions = Mapping[str, Union[TronContractCallOptions, EvmContractCallOptions, Mapping[str, Any]]]


def _call_args_dict(args: CallArgs) -> Dict[str, Any]:
    if isinstance(args, BaseModel):
        return args.model_dump(exclude_none=True)
    return dict(args)


class ContractHelper:
    """
    Contract reads, batched reads and transactions on TRON or EVM.

    Args:
        options: :class:`ContractHelperOptions`, or a dict of them.
        **kwargs: Options given as keywords instead.

    Attributes:
        chain: Chain family selected from the provider.
        helper: The per-chain helper doing the work.
        multicall_retries: Retries of a failed batch flush.
        callback_retries: Retries of each per-key success callback.
        retry_delay_ms: Delay between those retries.
    """

    multicall_retries: int = MULTICALL_RETRIES
    callback_retries: int = CALLBACK_RETRIES
    retry_delay_ms: int = RETRY_DELAY_MS

    def __init__(
        self,
        options: Optional[Union[ContractHelperOptions, Mapping[str, Any]]] = None,
        **kwargs: Any,
    ) -> None:
        if options is None:
            options = ContractHelperOptions.model_validate(kwargs)
        elif not isinstance(options, ContractHelperOptions):
            options = ContractHelperOptions.model_validate({**options, **kwargs})

        self.options = options
        self.chain = options.chain
        self.provider = options.provider
        self.helper = self._create_helper(options)

        self.lazy_query_timeout_ms = options.multicall_lazy_query_timeout
        self.max_lazy_calls_length = options.multicall_max_lazy_calls_length

        self._pending_queries: List[ContractQuery] = []
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._flush_tasks: Set["asyncio.Task[Any]"] = set()

    @staticmethod
    def _create_helper(options: ContractHelperOptions) -> ContractHelperBase:
        if options.chain == ChainKind.TRON:
            return TronContractHelper(
                options.multicall_v2_address,
                options.provider,
                format_value=options.format_value,
                fee_calculation=options.fee_calculation,
            )
        return EvmContractHelper(
            options.multicall_v2_address,
            options.provider,
            simulate=options.simulate_before_send,
            format_value=options.format_value,
            fee_calculation=options.fee_calculation,
            require_success=options.require_success,
        )

    @classmethod
    def from_network(
        cls,
        network: Union[Network, str],
        rpc_url: Optional[str] = None,
        **options: Any,
    ) -> "ContractHelper":
        """
        Build a helper for one of the known networks.

        Example:
            ```python
            helper = ContractHelper.from_network("tron-nile", format_value={"uint": "bigint"})
            ```
        """
        config = get_network_config(Network(network), rpc_url)
        return cls(
            {
                "chain": config.chain,
                "provider": create_provider(config),
                "multicall_v2_address": config.multicall_address,
                **options,
            }
        )

    def __repr__(self) -> str:
        return (
            f"ContractHelper(chain={self.chain.value!r}, "
            f"multicall={self.helper.multicall_address!r}, "
            f"pending={self.lazy_calls_length})"
        )

    # ------------------------------------------------------------------
    # Immediate calls
    # ------------------------------------------------------------------

    async def call(self, args: CallArgs) -> Any:
        """
        Call a read-only contract method.

        ``abi`` may be left out when ``method`` is a full signature.

        Example:
            ```python
            owner = await helper.call({
                "address": token,
                "method": "function owner() view returns (address)",
            })
            ```
        """
        return await self.helper.call(args)

    async def multicall(self, calls: Sequence[MultiCallArgsLike]) -> Any:
        """
        Run several reads in one multicall request.

        Returns:
            ``{key: value}`` for the batch, or the bare value when the batch
            holds a single call.

        Raises:
            MulticallError: If any call in the batch failed.
        """
        values = await self.helper.multicall(calls)
        if len(values) == 1:
            return next(iter(values.values()))
        return values

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def send(
        self,
        from_: str,
        sign: SignTransaction,
        args: CallArgs,
        options: Optional[TransactionOption] = None,
    ) -> SimpleTransactionResult:
        """
        Build the transaction, hand it to ``sign`` and confirm it.

        ``sign(transaction, provider, chain)`` signs and broadcasts, and
        returns the tx id. Chain specific options (fee limit, gas, value)
        travel in ``args["options"]``.
        """
        tx_id = await self.helper.send(from_, sign, args)
        return await self.check_transaction_result(tx_id, options)

    async def send_with_options(
        self,
        from_: str,
        sign: SignTransaction,
        args: CallArgs,
        chain_options: Optional[ChainCallOptions] = None,
    ) -> str:
        """
        Send with options picked for the active chain and return the tx id.

        ``chain_options`` holds ``trx`` (TRON) and/or ``eth`` (EVM) options.

        Example:
            ```python
            tx_id = await helper.send_with_options(
                sender,
                sign,
                {"address": token, "method": "transfer(address,uint256)", "parameters": [to, 1000]},
                {"trx": {"feeLimit": 100_000_000}, "eth": {"gasLimit": 60_000}},
            )
            ```
        """
        chain_options = chain_options or {}
        selected = chain_options.get("trx" if self.chain == ChainKind.TRON else "eth")
        call = _call_args_dict(args)
        call["options"] = selected
        return await self.helper.send(from_, sign, call)

    async def send_and_check_result(
        self,
        from_: str,
        sign: SignTransaction,
        args: CallArgs,
        chain_options: Optional[ChainCallOptions] = None,
        check_options: Optional[TransactionOption] = None,
    ) -> SimpleTransactionResult:
        """:meth:`send_with_options` followed by :meth:`check_transaction_result`."""
        tx_id = await self.send_with_options(from_, sign, args, chain_options)
        return await self.check_transaction_result(tx_id, check_options)

    async def check_transaction_result(
        self,
        tx_id: str,
        options: Optional[TransactionOption] = None,
    ) -> SimpleTransactionResult:
        """
        Confirm a transaction.

        The fast check is awaited by default and the final check keeps
        running in the background for ``options.success``/``options.error``.
        Pass ``TransactionOption(check=CheckTransactionType.FINAL)`` to await
        finality instead.

        Raises:
            TransactionReceiptError: If the transaction failed or the
                ``timeout_ms`` deadline passed.
        """
        return await self.helper.check_transaction_result(tx_id, options)

    # ------------------------------------------------------------------
    # Lazy call queue
    # ------------------------------------------------------------------

    @property
    def lazy_calls_length(self) -> int:
        """Number of queued calls not flushed yet."""
        return len(self._pending_queries)

    def lazy_call(self, args: CallArgs) -> "asyncio.Future[Any]":
        """
        Queue a read and return a future of its value.

        Must be called with a running event loop.
        """
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[Any]" = loop.create_future()

        def resolve(value: Any) -> Any:
            if not future.done():
                future.set_result(value)
            return value

        def reject(error: BaseException) -> None:
            if not future.done():
                future.set_exception(error)

        query = as_call_args({**_call_args_dict(args), "key": str(uuid.uuid4())}, MultiCallArgs)
        self.add_lazy_call(ContractQuery(query=query, callback=PromiseCallback(success=resolve, error=reject)))
        return future

    def add_lazy_call(
        self,
        query: Union[ContractQuery, MultiCallArgsLike],
        trigger: bool = False,
    ) -> None:
        """
        Queue a call.

        The queue is flushed right away when the query has no callback, when
        ``trigger`` is set, or when it reached ``max_lazy_calls_length``.
        Otherwise the debounce timer is restarted.
        """
        if not isinstance(query, ContractQuery):
            query = ContractQuery(query=as_call_args(query, MultiCallArgs))

        self._pending_queries.append(query)
        if query.callback is None or trigger or self.lazy_calls_length >= self.max_lazy_calls_length:
            self.execute_lazy_calls()
        else:
            self._debounce()

    def _debounce(self) -> None:
        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = loop.call_later(
            self.lazy_query_timeout_ms / 1000,
            self._on_debounce,
        )

    def _on_debounce(self) -> None:
        self._debounce_handle = None
        self.execute_lazy_calls()

    def execute_lazy_calls(self, callback: Optional[PromiseCallback] = None) -> "asyncio.Future[Any]":
        """
        Flush the queue now.

        The queue is swapped for an empty one before anything is awaited, so
        calls queued meanwhile go to the next batch.

        Returns:
            A future of the flush result: the bare value for a one-call
            batch, ``{key: value}`` otherwise, ``{}`` for an empty queue.
        """
        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

        if not self._pending_queries:
            done: "asyncio.Future[Any]" = loop.create_future()
            done.set_result({})
            return done

        queries, self._pending_queries = self._pending_queries, []
        task = loop.create_task(run_promise_with_callback(self._flush(queries), callback))
        self._flush_tasks.add(task)
        task.add_done_callback(self._on_flush_done)
        return task

    def _on_flush_done(self, task: "asyncio.Task[Any]") -> None:
        self._flush_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _logger.debug("Lazy call flush failed", extra={"error": str(task.exception())})

    async def _flush(self, queries: List[ContractQuery]) -> Any:
        # Every queued callback, duplicate keys included, hears about a failed batch.
        waiters = [query.callback for query in queries]
        callbacks = {query.query.key: query.callback for query in queries}
        calls = [query.query for query in queries]
        _logger.debug("Flushing lazy calls", extra={"chain": self.chain.value, "size": len(calls)})

        try:
            values = await retry(
                lambda: self.helper.multicall(calls),
                self.multicall_retries,
                self.retry_delay_ms,
            )
        except Exception as e:
            _logger.warning(
                "Lazy call multicall failed",
                extra={"chain": self.chain.value, "size": len(calls), "error": str(e)},
            )
            await amap(
                waiters,
                lambda cb, _index: notify_error(cb, e),
                concurrency=len(waiters),
                stop_on_error=False,
            )
            raise

        async def deliver(key: str, _index: int) -> Any:
            value = values[key]
            cb = callbacks.get(key)
            success = getattr(cb, "success", None)
            if success is None:
                return value
            try:
                return await retry(
                    lambda: maybe_await(success, value),
                    self.callback_retries,
                    self.retry_delay_ms,
                )
            except Exception as e:
                _logger.warning(
                    "Lazy call callback failed",
                    extra={"key": key, "error": str(e)},
                )
                await notify_error(cb, e)
                raise

        keys = list(values)
        results = await amap(keys, deliver, concurrency=max(len(keys), 1), stop_on_error=False)
        if len(results) == 1:
            return results[0]
        return dict(zip(keys, results))

    async def wait_background_tasks(self) -> None:
        """Wait for in-flight flushes and background transaction checks."""
        while self._flush_tasks:
            await asyncio.gather(*list(self._flush_tasks), return_exceptions=True)
        await self.helper.wait_background_tasks()
