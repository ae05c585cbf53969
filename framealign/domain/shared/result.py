"""
Result container returned by every use case.

Expected failures (insufficient data, degenerate geometry) travel as a
failure Result instead of an exception so callers can skip the frame and
retry on the next detection.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from framealign.domain.shared.errors import AlignmentError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an AlignmentError, never both."""

    value: Optional[T] = None
    error: Optional[AlignmentError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AlignmentError, message: Optional[str] = None) -> "Result[T]":
        return cls(error=error, message=message or str(error))

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def get_or_none(self) -> Optional[T]:
        return self.value if self.error is None else None

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __str__(self) -> str:
        if self.error is not None:
            return f"Result.failure({type(self.error).__name__}: {self.message})"
        return f"Result.success({self.value})"
