"""
ABI function fragments.

A :class:`FunctionFragment` is built either from a JSON ABI entry or from
a human-readable signature such as
``"function balanceOf(address owner) view returns (uint256)"``. It knows
its canonical signature, its 4-byte selector and how to render itself
back to JSON ABI form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from eth_utils import function_signature_to_4byte_selector

__all__ = [
    "Param",
    "FunctionFragment",
    "parse_signature",
    "parse_abi",
    "find_function",
]

_ARRAY_SUFFIX = re.compile(r"(\[\d*\])+$")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_TYPE_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}
_PARAM_MODIFIERS = {"indexed", "memory", "calldata", "storage", "payable"}
_STATE_MUTABILITY = {"view", "pure", "payable", "nonpayable"}
_SIGNATURE = re.compile(
    r"^(?:function\s+)?(?P<name>[A-Za-z_$][A-Za-z0-9_$]*)\s*\((?P<rest>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class Param:
    """One input or output of a function."""

    type: str
    name: str = ""
    components: Tuple["Param", ...] = ()

    @property
    def is_tuple(self) -> bool:
        return self.type.startswith("tuple")

    @property
    def array_suffix(self) -> str:
        match = _ARRAY_SUFFIX.search(self.type)
        return match.group(0) if match else ""

    @property
    def canonical_type(self) -> str:
        """Type as used in signatures, e.g. ``(address,uint256)[]``."""
        if self.is_tuple:
            inner = ",".join(c.canonical_type for c in self.components)
            return f"({inner}){self.array_suffix}"
        return self.type

    def element(self) -> "Param":
        """The element param of an array type."""
        suffix = self.array_suffix
        if not suffix:
            raise ValueError(f"{self.type} is not an array type")
        last = suffix[suffix.rindex("["):]
        return Param(type=self.type[: -len(last)], name=self.name, components=self.components)

    def to_abi(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"name": self.name, "type": self.type}
        if self.components:
            entry["components"] = [c.to_abi() for c in self.components]
        return entry

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any]) -> "Param":
        components = tuple(cls.from_abi(c) for c in entry.get("components") or ())
        return cls(
            type=_normalize_type(entry["type"]),
            name=entry.get("name") or "",
            components=components,
        )


@dataclass(frozen=True)
class FunctionFragment:
    """Parsed description of one contract function."""

    name: str
    inputs: Tuple[Param, ...] = ()
    outputs: Tuple[Param, ...] = ()
    state_mutability: str = "nonpayable"
    _selector: bytes = field(default=b"", repr=False, compare=False)

    def __post_init__(self) -> None:
        selector = function_signature_to_4byte_selector(self.sighash)
        object.__setattr__(self, "_selector", selector)

    @property
    def sighash(self) -> str:
        """Canonical signature, e.g. ``transfer(address,uint256)``."""
        return f"{self.name}({','.join(p.canonical_type for p in self.inputs)})"

    @property
    def selector(self) -> str:
        """``0x``-prefixed 4-byte selector."""
        return "0x" + self._selector.hex()

    @property
    def selector_bytes(self) -> bytes:
        return self._selector

    @property
    def input_types(self) -> List[str]:
        return [p.canonical_type for p in self.inputs]

    @property
    def output_types(self) -> List[str]:
        return [p.canonical_type for p in self.outputs]

    def format_full(self) -> str:
        """Human-readable signature with names, mutability and outputs."""

        def render(params: Sequence[Param]) -> str:
            return ", ".join(
                f"{p.canonical_type} {p.name}".rstrip() for p in params
            )

        text = f"function {self.name}({render(self.inputs)})"
        if self.state_mutability != "nonpayable":
            text += f" {self.state_mutability}"
        if self.outputs:
            text += f" returns ({render(self.outputs)})"
        return text

    def to_abi(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "inputs": [p.to_abi() for p in self.inputs],
            "outputs": [p.to_abi() for p in self.outputs],
            "stateMutability": self.state_mutability,
        }

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any]) -> "FunctionFragment":
        mutability = entry.get("stateMutability")
        if mutability is None:
            if entry.get("constant"):
                mutability = "view"
            elif entry.get("payable"):
                mutability = "payable"
            else:
                mutability = "nonpayable"
        return cls(
            name=entry["name"],
            inputs=tuple(Param.from_abi(p) for p in entry.get("inputs") or ()),
            outputs=tuple(Param.from_abi(p) for p in entry.get("outputs") or ()),
            state_mutability=mutability,
        )

    @classmethod
    def from_signature(cls, signature: str) -> "FunctionFragment":
        return parse_signature(signature)


def _normalize_type(type_: str) -> str:
    suffix_match = _ARRAY_SUFFIX.search(type_)
    suffix = suffix_match.group(0) if suffix_match else ""
    base = type_[: len(type_) - len(suffix)]
    return _TYPE_ALIASES.get(base, base) + suffix


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested in parentheses."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ValueError("Unbalanced parentheses in signature")
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise ValueError("Unbalanced parentheses in signature")
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return parts


def _matching_paren(text: str, start: int) -> int:
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "(":
            depth += 1
        elif text[index] == ")":
            depth -= 1
            if depth == 0:
                return index
    raise ValueError("Unbalanced parentheses in signature")


def _parse_param(text: str) -> Param:
    text = text.strip()
    if not text:
        raise ValueError("Empty parameter")

    if text.startswith("tuple("):
        text = text[len("tuple"):]
    if text.startswith("("):
        end = _matching_paren(text, 0)
        components = tuple(_parse_param(p) for p in _split_top_level(text[1:end]))
        rest = text[end + 1:]
        suffix_match = re.match(r"^((?:\[\d*\])*)", rest)
        suffix = suffix_match.group(1) if suffix_match else ""
        words = rest[len(suffix):].split()
        type_ = "tuple" + suffix
    else:
        words = text.split()
        type_ = _normalize_type(words.pop(0))
        components = ()
        if not re.match(r"^[a-z][a-z0-9]*(\[\d*\])*$", type_, re.IGNORECASE):
            raise ValueError(f"Invalid parameter type: {type_}")

    words = [w for w in words if w not in _PARAM_MODIFIERS]
    if len(words) > 1:
        raise ValueError(f"Invalid parameter: {text}")
    name = words[0] if words else ""
    if name and not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid parameter name: {name}")
    return Param(type=type_, name=name, components=components)


def _parse_params(text: str) -> Tuple[Param, ...]:
    return tuple(_parse_param(p) for p in _split_top_level(text))


def parse_signature(signature: str) -> FunctionFragment:
    """
    Parse a human-readable function signature.

    Accepts ``"function foo(uint256 a) view returns (bool)"`` as well as the
    bare ``"foo(uint256)"`` form.

    Raises:
        ValueError: If the text is not a function signature.
    """
    text = " ".join(signature.strip().split())
    match = _SIGNATURE.match(text)
    if not match:
        raise ValueError(f"Invalid function signature: {signature}")

    name = match.group("name")
    rest = "(" + match.group("rest")
    end = _matching_paren(rest, 0)
    inputs = _parse_params(rest[1:end])
    tail = rest[end + 1:].strip()

    outputs: Tuple[Param, ...] = ()
    returns_at = tail.find("returns")
    modifiers = (tail if returns_at < 0 else tail[:returns_at]).split()
    if returns_at >= 0:
        returns = tail[returns_at + len("returns"):].strip()
        if not returns.startswith("("):
            raise ValueError(f"Invalid returns clause: {signature}")
        out_end = _matching_paren(returns, 0)
        if returns[out_end + 1:].strip():
            raise ValueError(f"Unexpected text after returns: {signature}")
        outputs = _parse_params(returns[1:out_end])

    mutability = "nonpayable"
    for word in modifiers:
        if word in _STATE_MUTABILITY:
            mutability = word
        elif word == "constant":
            mutability = "view"
        elif word not in {"external", "public"}:
            raise ValueError(f"Unknown modifier {word!r} in {signature}")

    return FunctionFragment(name=name, inputs=inputs, outputs=outputs, state_mutability=mutability)


def parse_abi(abi: Union[str, Iterable[Union[str, Mapping[str, Any]]]]) -> List[FunctionFragment]:
    """
    Collect the function fragments of an ABI.

    ``abi`` may be a list of JSON entries, a list of human-readable
    signatures, or a mix. Non-function entries (events, errors,
    constructors, human-readable ``event ...`` lines) are skipped.
    """
    if isinstance(abi, str):
        abi = [abi]
    fragments: List[FunctionFragment] = []
    for entry in abi:
        if isinstance(entry, str):
            head = entry.strip().split(" ", 1)[0]
            if head in {"event", "error", "constructor", "fallback", "receive", "struct"}:
                continue
            fragments.append(parse_signature(entry))
        elif entry.get("type", "function") == "function":
            fragments.append(FunctionFragment.from_abi(entry))
    return fragments


def find_function(fragments: Sequence[FunctionFragment], key: str) -> Optional[FunctionFragment]:
    """
    Look up a function by name, canonical signature or full signature.

    Returns ``None`` when nothing matches, or when a bare name is
    ambiguous because the function is overloaded.
    """
    key = key.strip()
    if "(" in key:
        try:
            wanted = parse_signature(key).sighash
        except ValueError:
            return None
        for fragment in fragments:
            if fragment.sighash == wanted:
                return fragment
        return None

    matches = [fragment for fragment in fragments if fragment.name == key]
    if len(matches) != 1:
        return None
    return matches[0]
