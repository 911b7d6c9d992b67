"""Persistent, prepend-only environment used to instantiate closures."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dtcore.core.ast import Val


@dataclass(frozen=True)
class DbiEnv:
    """
    Immutable cons list indexed by de Bruijn position.

    ``cons`` shares the tail with every other holder, so two closures that
    captured the same environment keep pointing at the same nodes.
    """

    def cons(self, value: Val) -> DbiEnv:
        return Extend(value, self)

    def project(self, n: int) -> Val | None:
        """Walk ``n`` steps; ``None`` when the environment is shorter."""
        env = self
        while isinstance(env, Extend):
            if n == 0:
                return env.head
            env = env.tail
            n -= 1
        return None

    def is_empty(self) -> bool:
        return isinstance(self, Nil)

    def __iter__(self) -> Iterator[Val]:
        env = self
        while isinstance(env, Extend):
            yield env.head
            env = env.tail

    def __len__(self) -> int:
        return sum(1 for _ in self)

    @staticmethod
    def of(*values: Val) -> DbiEnv:
        """Build an environment whose index 0 is ``values[0]``."""
        env: DbiEnv = NIL
        for value in reversed(values):
            env = env.cons(value)
        return env


@dataclass(frozen=True)
class Nil(DbiEnv):
    def __repr__(self) -> str:
        return "Nil"


@dataclass(frozen=True)
class Extend(DbiEnv):
    head: Val
    tail: DbiEnv

    def __repr__(self) -> str:
        return f"DbiEnv({list(self)!r})"


NIL = Nil()
