"""Result type for explicit error handling.

Expected failures (a refused connection, a bad credentials file, a missing
`.deployrc.json`) are returned as values instead of raised:

    def load(path: Path) -> Result[ProductConfig, ConfigError]:
        if not path.exists():
            return Err(ConfigError(kind="missing", message=f"not found: {path}"))
        return Ok(parse(path))

    match load(path):
        case Ok(config):
            print(config.slug)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result holding `value`."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result holding `error`."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> None:
        """Raises ValueError; an Err has no value.

        Raises:
            ValueError: Always, containing the error.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Narrow a Result to Ok for type checkers."""
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Narrow a Result to Err for type checkers."""
    return isinstance(result, Err)
