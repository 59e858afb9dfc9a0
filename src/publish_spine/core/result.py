"""
Result envelope for consistent success/failure handling.

``Ok[T]`` / ``Err[T]`` make the expected failure paths explicit: rich-text
conversion and per-document validation return a Result instead of raising, so
the caller decides the degrade policy at the call site and one bad record never
aborts a whole rebuild.

Manifesto:
    - **Explicit over Implicit:** No hidden exceptions on expected paths
    - **Recovery at the seam:** ``unwrap_or_else`` carries the fallback
    - **Batch-friendly:** ``partition_results`` splits a bulk fetch into
      usable records and dropped failures

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T]                                │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[T]      │     Utilities           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: Exc    │ • try_result_with()     │
        │ • is_ok()       │ • is_err()      │ • partition_results()   │
        │ • unwrap_or_else() (recovery)     │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> from publish_spine.core.result import Ok, Err
    >>> Ok(10).unwrap_or_else(lambda e: 0)
    10
    >>> Err(ValueError("oops")).unwrap_or_else(lambda e: str(e))
    'oops'

Tags:
    result-pattern, error-handling, batch-processing, publish-spine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        return self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error. ``unwrap_or_else`` is the recovery point."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        """Call f with error to get value."""
        return f(self.error)

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def try_result_with(
    f: Callable[[], T],
    error_mapper: Callable[[Exception], Exception] | None = None,
) -> Result[T]:
    """Execute function and map exceptions to pipeline error types."""
    try:
        return Ok(f())
    except Exception as e:
        if error_mapper:
            return Err(error_mapper(e))
        return Err(e)


def partition_results(results: list[Result[T]]) -> tuple[list[T], list[Exception]]:
    """
    Split results into successes and failures, preserving order.

    >>> partition_results([Ok(1), Err(ValueError("x")), Ok(3)])[0]
    [1, 3]
    """
    values: list[T] = []
    errors: list[Exception] = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err(error):
                errors.append(error)
    return values, errors


__all__ = [
    "Ok",
    "Err",
    "Result",
    "try_result_with",
    "partition_results",
]
