"""Result type for advisory pipeline steps.

Advisory steps (layout analysis, context retrieval, AI cleanup) never raise
to the pipeline. They report whether they produced a real value or fell back
to a substitute so callers and tests can tell the two apart.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AdvisoryResult(Generic[T]):
    """Outcome of an advisory step.

    Attributes:
        ok: True when ``value`` came from the step itself.
        value: The step's value, or the fallback when ``ok`` is False.
        error: Why the step fell back, if it did.
    """

    ok: bool
    value: T
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "AdvisoryResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def fallback(cls, value: T, error: str) -> "AdvisoryResult[T]":
        return cls(ok=False, value=value, error=error)
