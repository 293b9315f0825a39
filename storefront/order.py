import itertools
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .domain import Cart, Coupon, Order
from .ports import CatalogPort
from .pricing import cart_totals


@dataclass(frozen=True)
class OrderCompletion:
    """Результат оформления: заказ + сброшенные корзина и купон"""

    order: Order
    cleared_cart: Cart = Cart()
    cleared_coupon: Optional[Coupon] = None


# ============ Источники номеров заказа (замыкания) ============


def timestamp_order_ids(clock: Callable[[], float] = time.time) -> Callable[[], str]:
    """
    Номера вида ORD-<миллисекунды>. Если часы не сдвинулись с прошлого
    вызова, номер увеличивается на 1, так что в процессе номера не повторяются.
    """
    last = 0

    def next_id() -> str:
        nonlocal last
        last = max(int(clock() * 1000), last + 1)
        return f"ORD-{last}"

    return next_id


def sequential_order_ids(prefix: str = "ORD-", start: int = 1) -> Callable[[], str]:
    """Детерминированные номера ORD-1, ORD-2, ... для тестов и демо"""
    counter = itertools.count(start)
    return lambda: f"{prefix}{next(counter)}"


# ============ Оформление заказа ============


def complete_order(
    cart: Cart,
    catalog: CatalogPort,
    selected_coupon: Optional[Coupon],
    id_source: Callable[[], str],
) -> OrderCompletion:
    """
    Оформляет корзину. Всегда успешно: остатки здесь не перепроверяются.
    Корзина и выбранный купон сбрасываются одним переходом состояния.
    """
    totals = cart_totals(cart, catalog, selected_coupon)
    order = Order(
        id=id_source(),
        lines=cart.lines,
        total_before_discount=totals.total_before_discount,
        total_after_discount=totals.total_after_discount,
        coupon_code=selected_coupon.code if selected_coupon else None,
    )
    return OrderCompletion(order=order)
