"""Priority-ordered strategy chains.

A strategy is a plain callable ``(page) -> value | None``. ``first_match``
evaluates the strategies in order and stops at the first one returning a
usable value. Empty results and exceptions both count as a miss and are kept
on the returned ``Attempt`` so callers can report why a field stayed empty.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

P = TypeVar("P")
V = TypeVar("V")

Strategy = Callable[[P], V | None]


@dataclass(frozen=True)
class Attempt(Generic[V]):
    value: V | None = None
    source: str | None = None  # name of the strategy that matched
    misses: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.source is not None

    @property
    def reason(self) -> str | None:
        if self.ok:
            return None
        return "; ".join(self.misses) or "no strategies"


def _is_usable(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True


def first_match(strategies: Sequence[Strategy], page: P) -> Attempt:
    misses: list[str] = []
    for strategy in strategies:
        name = getattr(strategy, "__name__", repr(strategy)).lstrip("_")
        try:
            value = strategy(page)
        except Exception as exc:
            misses.append(f"{name}: {type(exc).__name__}: {exc}")
            continue
        if _is_usable(value):
            return Attempt(value=value, source=name, misses=misses)
        misses.append(f"{name}: no match")
    return Attempt(misses=misses)
