"""Per-file outcomes of a batch move.

A batch never raises for one bad file; each move yields a Success carrying
the mapping it applied or a Failure carrying the error, and the organizer
sorts them out afterwards with ``partition``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Tuple, TypeVar, Union

T = TypeVar('T')
E = TypeVar('E', bound=Exception)


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    _value: T

    def __repr__(self) -> str:
        return f"Success({self._value!r})"

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def value(self) -> T:
        return self._value

    def error(self):
        raise ValueError("Success has no error")


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    _error: E

    def __repr__(self) -> str:
        return f"Failure({self._error!r})"

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def value(self):
        raise ValueError(f"Failure has no value: {self._error}")

    def error(self) -> E:
        return self._error


Result = Union[Success[T], Failure[E]]


def partition(results: List[Result]) -> Tuple[List, List[Exception]]:
    """Split ``results`` into (values, errors), keeping their order."""
    successes = []
    failures = []
    for result in results:
        if result.is_success():
            successes.append(result.value())
        else:
            failures.append(result.error())
    return successes, failures
