"""Valores de resultado para encadenar llamadas al almacén sin excepciones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StoreError:
    """Describe qué llamada falló y por qué."""

    operation: str
    entity: str
    detail: str
    status_code: int | None = None

    def describe(self) -> str:
        status = f" (status={self.status_code})" if self.status_code is not None else ""
        return f"{self.operation} {self.entity} falló{status}: {self.detail}"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err:
    error: StoreError


Result = Union[Ok[T], Err]
