"""Explicit success/failure value for decoders that must not raise."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class DecodeError(BaseModel):
    """Why a chain value could not be decoded."""

    model_config = ConfigDict(frozen=True)

    message: str

    def __str__(self) -> str:
        return self.message


class Decoded(BaseModel, Generic[T]):
    """Either a decoded ``value`` or a ``DecodeError``, never both.

    Callers check ``ok`` before touching ``value``; there is no sentinel
    that could leak into an entity field.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> Decoded[Any]:
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> Decoded[Any]:
        return cls(error=DecodeError(message=message))

    def unwrap(self) -> T:
        if self.error is not None:
            raise ValueError(f"unwrap() on failed decode: {self.error}")
        return self.value
