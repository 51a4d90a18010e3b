"""
Explicit store call outcomes: a value or an error kind, never a raised exception.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class StoreErrorKind(str, Enum):
    CONNECTION = "CONNECTION"
    STATEMENT = "STATEMENT"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[StoreErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "StoreResult":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: StoreErrorKind, message: str = "") -> "StoreResult":
        return cls(error=kind, message=message)
