from functools import reduce
from typing import Optional, Tuple

from .coupon import apply_coupon
from .discount import line_discount_rate, line_total
from .domain import Cart, CartLine, CartTotals, Coupon, LineRow
from .money import round_money
from .ports import CatalogPort


def _undiscounted(line: CartLine, catalog: CatalogPort) -> int:
    return (
        catalog.find_product(line.product_id)
        .map(lambda p: p.price * line.quantity)
        .get_or_else(0)
    )


def subtotal(cart: Cart, catalog: CatalogPort) -> int:
    """Сумма после скидок позиций, до купона"""
    return round_money(
        reduce(lambda acc, line: acc + line_total(line, cart, catalog), cart.lines, 0)
    )


def cart_totals(
    cart: Cart, catalog: CatalogPort, selected_coupon: Optional[Coupon] = None
) -> CartTotals:
    """
    Итоги корзины: до скидок и после скидок позиций и купона.
    Чистая функция: одинаковые корзина, каталог и купон дают одинаковый результат.
    """
    before = round_money(
        reduce(lambda acc, line: acc + _undiscounted(line, catalog), cart.lines, 0)
    )
    after = subtotal(cart, catalog)

    if selected_coupon is not None:
        after = apply_coupon(selected_coupon, after)

    return CartTotals(total_before_discount=before, total_after_discount=after)


def line_rows(cart: Cart, catalog: CatalogPort) -> Tuple[LineRow, ...]:
    """Позиции корзины в порядке добавления; товары вне каталога пропускаются"""

    def to_row(line: CartLine) -> Optional[LineRow]:
        return (
            catalog.find_product(line.product_id)
            .map(
                lambda p: LineRow(
                    product=p,
                    quantity=line.quantity,
                    rate=line_discount_rate(line, cart, catalog),
                    total=line_total(line, cart, catalog),
                    undiscounted=p.price * line.quantity,
                )
            )
            .get_or_else(None)
        )

    return tuple(filter(None, map(to_row, cart.lines)))
