"""Границы движка: каталог, хранилище ключ-значение, приёмник уведомлений."""
from typing import Optional, Protocol

from .domain import Product, Severity
from .ftypes import Maybe


class CatalogPort(Protocol):
    def find_product(self, product_id: str) -> Maybe[Product]:
        ...


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class NotificationSink(Protocol):
    def notify(self, message: str, severity: Severity) -> None:
        ...
