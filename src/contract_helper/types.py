"""
Data model shared by the codec, the per-chain helpers and the lazy call queue.

Call arguments and transaction options are pydantic models so plain dicts
(in snake_case or camelCase) are accepted wherever a model is expected.
Internal records that never cross the public API are dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
)

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from contract_helper.abi.fragments import FunctionFragment
from contract_helper.config import ChainKind
from contract_helper.utils.callbacks import PromiseCallback

__all__ = [
    "ContractCallArgs",
    "MultiCallArgs",
    "as_call_args",
    "MethodConfig",
    "TransformedCallArgs",
    "ContractCall",
    "AggregateCall",
    "AggregateContractResponse",
    "CallReturnContext",
    "ContractCallReturnContext",
    "ContractQuery",
    "SimpleTransactionResult",
    "CheckTransactionType",
    "TransactionOption",
    "TronContractCallOptions",
    "EvmContractCallOptions",
    "FeeCalculationContext",
    "SignTransaction",
    "Result",
]


# ============================================================================
# Call arguments
# ============================================================================


class ContractCallArgs(BaseModel):
    """
    One contract method invocation.

    ``abi`` may be omitted when ``method`` is a full signature such as
    ``"function decimals() view returns (uint8)"``. ``parameters`` is also
    accepted under the name ``args``. Address and method are checked when
    the call is transformed, so a missing one raises a library error rather
    than a validation error.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

    address: Optional[str] = None
    abi: Optional[Union[str, List[Any]]] = None
    method: Optional[str] = None
    parameters: List[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("parameters", "args"),
    )
    options: Optional[Any] = None


class MultiCallArgs(ContractCallArgs):
    """A call inside a batch, routed back to its caller by ``key``."""

    key: str


CallArgsT = TypeVar("CallArgsT", bound=ContractCallArgs)


def as_call_args(
    value: Union[ContractCallArgs, Mapping[str, Any]],
    model: Type[CallArgsT] = ContractCallArgs,  # type: ignore[assignment]
) -> CallArgsT:
    """Coerce a dict or another call model into ``model``."""
    if isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return model.model_validate(value)


# ============================================================================
# Codec records
# ============================================================================


@dataclass(frozen=True)
class MethodConfig:
    """Resolved method of a call. Derived per call, never stored."""

    abi: List[FunctionFragment]
    selector: str
    signature: str
    fragment: FunctionFragment
    name: str


@dataclass(frozen=True)
class TransformedCallArgs:
    """Call arguments after address formatting and method resolution."""

    address: str
    abi: List[FunctionFragment]
    method: MethodConfig
    parameters: List[Any]
    options: Optional[Any] = None
    key: Optional[str] = None


@dataclass
class ContractCall:
    key: str
    address: str
    abi: List[FunctionFragment]
    method_name: str
    method_parameters: List[Any]
    method_signature: str = ""

    def describe(self) -> str:
        params = ",".join(str(p) for p in self.method_parameters)
        return f"{self.address}:{self.method_name}({params})"


@dataclass(frozen=True)
class AggregateCall:
    """Wire-ready unit for the multicall contract."""

    contract_call_index: int
    target: str
    encoded_data: str


@dataclass
class AggregateContractResponse:
    """
    Raw multicall response, one entry per submitted call, in call order.

    ``success`` is only present for try-aggregate style calls.
    """

    block_number: Optional[int]
    return_data: List[bytes]
    success: Optional[List[bool]] = None


@dataclass
class CallReturnContext:
    return_value: Any
    decoded: bool
    method_name: str
    method_parameters: List[Any]
    success: bool


@dataclass
class ContractCallReturnContext:
    original_contract_call_context: ContractCall
    call_return_context: CallReturnContext


@dataclass
class ContractQuery:
    """Pending lazy call. Without a callback it is flushed immediately."""

    query: MultiCallArgs
    callback: Optional[PromiseCallback] = None


# ============================================================================
# Transactions
# ============================================================================


class SimpleTransactionResult(BaseModel):
    """Settled transaction as reported by the fast or final check."""

    model_config = ConfigDict(frozen=True)

    tx_id: str
    block_number: Optional[int] = None


class CheckTransactionType(str, Enum):
    FAST = "fast"
    FINAL = "final"


@dataclass
class TransactionOption(PromiseCallback):
    """
    How :meth:`check_transaction_result` confirms a transaction.

    ``check`` selects the awaited path; the other check runs in the
    background only to feed ``success``/``error``.
    """

    check: CheckTransactionType = CheckTransactionType.FAST
    timeout_ms: Optional[int] = None


class _CallOptions(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    estimate_fee: bool = True


class TronContractCallOptions(_CallOptions):
    fee_limit: Optional[int] = Field(default=None, ge=0)
    call_value: Optional[int] = Field(default=None, ge=0)
    token_id: Optional[int] = None
    token_value: Optional[int] = Field(default=None, ge=0)


class EvmContractCallOptions(_CallOptions):
    gas_limit: Optional[int] = Field(default=None, ge=0)
    gas_price: Optional[int] = Field(default=None, ge=0)
    max_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    max_priority_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    value: Optional[int] = Field(default=None, ge=0)
    nonce: Optional[int] = Field(default=None, ge=0)
    chain_id: Optional[int] = None


@dataclass
class FeeCalculationContext:
    """What a ``fee_calculation`` hook gets to look at."""

    chain: ChainKind
    provider: Any
    transaction: Dict[str, Any]
    estimate_fee: bool


SignTransaction = Callable[[Dict[str, Any], Any, ChainKind], Awaitable[str]]
"""``sign(transaction, provider, chain) -> tx id``. Signing never happens here."""


# ============================================================================
# Decoded multi-output values
# ============================================================================


class Result(Sequence[Any]):
    """
    Ordered values that can also be read by output name.

    >>> r = Result([True, 5], ["success", "result"])
    >>> r[0], r["result"], r.success
    (True, 5, True)
    """

    __slots__ = ("_values", "_names")

    def __init__(self, values: Sequence[Any], names: Optional[Sequence[str]] = None) -> None:
        self._values = list(values)
        self._names: Dict[str, int] = {}
        for index, name in enumerate(names or ()):
            if name and name not in self._names:
                self._names[name] = index

    def __getitem__(self, key: Any) -> Any:  # type: ignore[override]
        if isinstance(key, str):
            try:
                return self._values[self._names[key]]
            except KeyError:
                raise KeyError(key) from None
        return self._values[key]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[self._names[name]]
        except KeyError:
            raise AttributeError(name) from None

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Result):
            return self._values == other._values and self._names == other._names
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        names = {index: name for name, index in self._names.items()}
        items = ", ".join(
            f"{names[i]}={v!r}" if i in names else repr(v)
            for i, v in enumerate(self._values)
        )
        return f"Result({items})"

    def keys(self) -> List[str]:
        return list(self._names)

    def to_dict(self) -> Dict[str, Any]:
        """Named values only."""
        return {name: self._values[index] for name, index in self._names.items()}

    def to_list(self) -> List[Any]:
        return list(self._values)
