
# storefront/ftypes.py
# Результаты операций движка. Бизнес-отказ возвращается значением Failure,
# исключения остаются для ошибок программы.
# Кроме Maybe/Either здесь: Maybe.to_either (поиск -> отказ NOT_FOUND),
# Either.fold (разбор результата в одном месте) и Checked (значение
# применено, но несёт предупреждение, например обрезку по складу).

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

from .domain import Failure

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """
    Значение, которого может не быть (поиск товара, купона).
    Maybe.some(value) / Maybe.nothing() / Maybe.of(optional)
    """

    value: Optional[T]

    @staticmethod
    def some(value: T) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[None]":
        return Maybe(None)

    @staticmethod
    def of(value: Optional[T]) -> "Maybe[T]":
        return Maybe(value)

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        return Maybe.some(fn(self.value)) if self.is_some() else Maybe.nothing()

    def bind(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value) if self.is_some() else Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default

    def to_either(self, failure: Failure) -> "Either[Failure, T]":
        """Отсутствие значения превращается в Left(failure)"""
        return Either.right(self.value) if self.is_some() else Either.left(failure)

    def __repr__(self) -> str:
        return f"Some({self.value})" if self.is_some() else "Nothing"


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Left — отказ (обычно Failure), Right — успешный результат.
    Операция с Left-результатом не меняет состояние магазина.
    """

    is_left: bool
    value: Union[L, R]

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return Either.right(fn(self.value)) if self.is_right else self  # type: ignore[return-value]

    def bind(self, fn: Callable[[R], "Either[L, U]"]) -> "Either[L, U]":
        return fn(self.value) if self.is_right else self  # type: ignore[return-value]

    def get_or_else(self, default: U) -> R | U:
        return self.value if self.is_right else default  # type: ignore[return-value]

    def fold(self, on_left: Callable[[L], U], on_right: Callable[[R], U]) -> U:
        return on_left(self.value) if self.is_left else on_right(self.value)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"Left({self.value})" if self.is_left else f"Right({self.value})"


@dataclass(frozen=True)
class Checked(Generic[T]):
    """
    Результат, который применён всегда, но может нести предупреждение.
    Пример: количество обрезано до остатка на складе (STOCK_EXCEEDED).
    """

    value: T
    issue: Optional[Failure] = None

    @staticmethod
    def ok(value: T) -> "Checked[T]":
        return Checked(value)

    @staticmethod
    def with_issue(value: T, issue: Failure) -> "Checked[T]":
        return Checked(value, issue)

    @property
    def has_issue(self) -> bool:
        return self.issue is not None
