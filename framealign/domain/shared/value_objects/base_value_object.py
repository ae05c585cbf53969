"""
Base value object implementation for the domain layer.

Value objects are immutable and compared by their attributes. Every
transform, landmark and score in the alignment engine is one.
"""
from abc import ABC
from dataclasses import dataclass, fields
from typing import Any, Dict


@dataclass(frozen=True)
class BaseValueObject(ABC):
    """
    Base class for all value objects in the domain.

    Value objects must be:
    - Immutable (frozen=True)
    - Compared by value equality
    - Validated once, on construction
    """

    def __post_init__(self) -> None:
        """Validate value object after creation."""
        self._validate()

    def _validate(self) -> None:
        """Override in subclasses to add validation logic."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert value object to dictionary representation."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        values = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"{self.__class__.__name__}({values})"
