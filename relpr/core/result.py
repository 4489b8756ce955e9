"""Result type for explicit error handling.

Platform calls, config loading and reconciliation steps all return
``Result[T, E]`` instead of raising. Callers branch on ``isinstance``:

    tag = latest_tag(api, prefix="v", strategy="tags", console=console)
    if isinstance(tag, Err):
        return tag
    current = tag.value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Union[Ok[T], Err[E]]
