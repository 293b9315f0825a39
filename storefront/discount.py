from functools import reduce
from typing import Optional, Tuple

from .constants import (
    BULK_BONUS_RATE,
    BULK_QUANTITY_THRESHOLD,
    MAX_DISCOUNT_RATE,
    MAX_TIER_QUANTITY,
    MIN_TIER_QUANTITY,
)
from .domain import Cart, CartLine, DiscountTier, ErrorKind, Failure
from .ftypes import Either
from .money import round_money
from .ports import CatalogPort


# ============ Скидочные уровни товара ============


def is_valid_tier(tier: DiscountTier) -> bool:
    """Порог 1..1000 (целое), доля в (0, 1]"""
    return (
        isinstance(tier.quantity, int)
        and MIN_TIER_QUANTITY <= tier.quantity <= MAX_TIER_QUANTITY
        and 0 < tier.rate <= 1
    )


def has_unique_quantities(tiers: Tuple[DiscountTier, ...]) -> bool:
    quantities = [t.quantity for t in tiers]
    return len(set(quantities)) == len(quantities)


def sort_tiers(tiers: Tuple[DiscountTier, ...]) -> Tuple[DiscountTier, ...]:
    return tuple(sorted(tiers, key=lambda t: t.quantity))


def add_tier(
    tiers: Tuple[DiscountTier, ...], tier: DiscountTier
) -> Either[Failure, Tuple[DiscountTier, ...]]:
    """Новый уровень; порог не должен совпадать с уже существующим"""
    if not is_valid_tier(tier):
        return Either.left(
            Failure(ErrorKind.INVALID_INPUT, "Некорректный уровень скидки")
        )
    if any(t.quantity == tier.quantity for t in tiers):
        return Either.left(
            Failure(
                ErrorKind.INVALID_INPUT,
                f"Уровень для {tier.quantity} шт. уже существует",
            )
        )
    return Either.right(sort_tiers(tiers + (tier,)))


def remove_tier(
    tiers: Tuple[DiscountTier, ...], quantity: int
) -> Tuple[DiscountTier, ...]:
    return tuple(filter(lambda t: t.quantity != quantity, tiers))


def update_tier_rate(
    tiers: Tuple[DiscountTier, ...], quantity: int, rate: float
) -> Either[Failure, Tuple[DiscountTier, ...]]:
    if not 0 < rate <= 1:
        return Either.left(
            Failure(ErrorKind.INVALID_INPUT, "Скидка должна быть в диапазоне (0, 1]")
        )
    if not any(t.quantity == quantity for t in tiers):
        return Either.left(
            Failure(ErrorKind.NOT_FOUND, f"Уровень для {quantity} шт. не найден")
        )
    return Either.right(
        tuple(
            DiscountTier(quantity=t.quantity, rate=rate) if t.quantity == quantity else t
            for t in tiers
        )
    )


def current_tier(
    tiers: Tuple[DiscountTier, ...], quantity: int
) -> Optional[DiscountTier]:
    """Уровень, который сейчас даёт максимальную скидку (None, если ни один)"""
    reached = tuple(filter(lambda t: t.quantity <= quantity, tiers))
    if not reached:
        return None
    return reduce(lambda best, t: t if t.rate > best.rate else best, reached)


def quantity_to_next_tier(
    tiers: Tuple[DiscountTier, ...], quantity: int
) -> Optional[int]:
    """Сколько штук не хватает до следующего порога (None - порогов больше нет)"""
    upcoming = [t.quantity for t in sort_tiers(tiers) if t.quantity > quantity]
    return upcoming[0] - quantity if upcoming else None


# ============ Скидка позиции корзины ============


def base_discount_rate(tiers: Tuple[DiscountTier, ...], quantity: int) -> float:
    """Максимальная доля среди уровней с порогом <= quantity, иначе 0"""
    return reduce(
        lambda best, t: t.rate if t.quantity <= quantity and t.rate > best else best,
        tiers,
        0.0,
    )


def has_bulk_purchase(cart: Cart, threshold: int = BULK_QUANTITY_THRESHOLD) -> bool:
    """Оптовая покупка: хотя бы одна позиция корзины набрала порог"""
    return any(line.quantity >= threshold for line in cart.lines)


def line_discount_rate(line: CartLine, cart: Cart, catalog: CatalogPort) -> float:
    """
    Итоговая доля скидки позиции:
    базовая по уровням товара + 0.05 за оптовую корзину, не больше 0.5.
    Бонус - предикат по всей корзине, поэтому ставка пересчитывается
    на каждом снимке корзины.
    """
    product = catalog.find_product(line.product_id)
    if product.is_none():
        return 0.0

    base = base_discount_rate(product.value.discount_tiers, line.quantity)
    bonus = BULK_BONUS_RATE if has_bulk_purchase(cart) else 0.0
    return min(base + bonus, MAX_DISCOUNT_RATE)


def line_total(line: CartLine, cart: Cart, catalog: CatalogPort) -> int:
    """price * quantity * (1 - rate), одно округление в конце"""
    return (
        catalog.find_product(line.product_id)
        .map(
            lambda p: round_money(
                p.price * line.quantity * (1 - line_discount_rate(line, cart, catalog))
            )
        )
        .get_or_else(0)
    )
