from typing import Dict, List

from .cart import total_item_count
from .constants import LOW_STOCK_THRESHOLD
from .discount import quantity_to_next_tier
from .domain import LineRow, Product
from .events import ShopState
from .money import format_price, format_rate
from .pricing import cart_totals, line_rows


# ============ Витрина ============


def display_price(product: Product, remaining: int, is_admin: bool = False) -> str:
    """
    Цена для карточки товара: SOLD OUT, если остатка нет;
    администратору — без символа валюты
    """
    if remaining <= 0:
        return "SOLD OUT"
    if is_admin:
        return format_price(product.price, show_symbol=False)
    return format_price(product.price)


def stock_badge(remaining: int) -> str:
    """Подпись остатка под карточкой"""
    if remaining <= 0:
        return "Нет в наличии"
    if remaining <= LOW_STOCK_THRESHOLD:
        return f"Осталось мало! {remaining} шт."
    return f"В наличии {remaining} шт."


def tier_summary(product: Product) -> List[str]:
    """['от 10 шт. — 10%', ...]"""
    return [f"от {t.quantity} шт. — {format_rate(t.rate)}" for t in product.discount_tiers]


# ============ Отчёт по корзине ============


def _row_report(row: LineRow) -> Dict:
    return {
        "product_id": row.product.id,
        "name": row.product.name,
        "quantity": row.quantity,
        "unit_price": row.product.price,
        "rate": row.rate,
        "rate_label": format_rate(row.rate) if row.rate > 0 else "",
        "total": row.total,
        "undiscounted": row.undiscounted,
        "to_next_tier": quantity_to_next_tier(row.product.discount_tiers, row.quantity),
    }


def cart_summary(state: ShopState) -> Dict:
    """
    Сводка корзины для экрана оформления
    Возвращает: {rows, item_count, total_before_discount, total_discount,
                 total_after_discount, coupon_code}
    """
    totals = cart_totals(state.cart, state.catalog, state.selected_coupon)
    rows = tuple(map(_row_report, line_rows(state.cart, state.catalog)))

    return {
        "rows": rows,
        "item_count": total_item_count(state.cart),
        "total_before_discount": totals.total_before_discount,
        "total_discount": totals.total_discount,
        "total_after_discount": totals.total_after_discount,
        "coupon_code": state.selected_coupon.code if state.selected_coupon else None,
    }
