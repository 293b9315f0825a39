import re
from typing import Tuple

from .constants import (
    COUPON_CODE_PATTERN,
    MAX_PERCENTAGE_DISCOUNT,
    MIN_ORDER_AMOUNT_FOR_PERCENTAGE,
)
from .domain import Coupon, DiscountType, ErrorKind, Failure
from .ftypes import Either, Maybe
from .money import round_money


# ============ Применимость и эффект купона ============


def is_applicable(coupon: Coupon, subtotal: int) -> bool:
    """
    Единое правило применимости (выбор, расчёт, список доступных купонов):
    процентный купон - только при сумме от 10 000, купон на сумму - всегда.
    """
    if coupon.discount_type is DiscountType.PERCENTAGE:
        return subtotal >= MIN_ORDER_AMOUNT_FOR_PERCENTAGE
    return True


def wastes_value(coupon: Coupon, subtotal: int) -> bool:
    """Купон на сумму не меньше самого заказа: часть скидки пропадёт"""
    return coupon.discount_type is DiscountType.AMOUNT and coupon.discount_value >= subtotal


def discount_amount(coupon: Coupon, subtotal: int) -> int:
    if not is_applicable(coupon, subtotal):
        return 0
    if coupon.discount_type is DiscountType.AMOUNT:
        return min(coupon.discount_value, subtotal)
    return round_money(subtotal * coupon.discount_value / 100)


def apply_coupon(coupon: Coupon, subtotal: int) -> int:
    return max(0, subtotal - discount_amount(coupon, subtotal))


def select_coupon(coupon: Coupon, subtotal: int) -> Either[Failure, Coupon]:
    """Выбор купона для корзины; неприменимый купон отклоняется сразу"""
    if not is_applicable(coupon, subtotal):
        return Either.left(
            Failure(
                ErrorKind.COUPON_NOT_APPLICABLE,
                "Процентный купон доступен при заказе от 10 000 ₸",
            )
        )
    return Either.right(coupon)


def applicable_coupons(coupons: Tuple[Coupon, ...], subtotal: int) -> Tuple[Coupon, ...]:
    return tuple(filter(lambda c: is_applicable(c, subtotal), coupons))


# ============ Справочник купонов ============


def normalize_code(code: str) -> str:
    return code.strip().upper()


def is_valid_coupon_code(code: str) -> bool:
    """4-12 символов: заглавные латинские буквы и цифры"""
    return re.match(COUPON_CODE_PATTERN, code) is not None


def create_coupon(
    name: str, code: str, discount_type: DiscountType, discount_value: int
) -> Either[Failure, Coupon]:
    def invalid(message: str) -> Either[Failure, Coupon]:
        return Either.left(Failure(ErrorKind.INVALID_INPUT, message))

    if not name.strip():
        return invalid("Введите название купона")
    if not code.strip():
        return invalid("Введите код купона")
    if not is_valid_coupon_code(normalize_code(code)):
        return invalid("Код купона: 4-12 заглавных латинских букв или цифр")
    if discount_value <= 0:
        return invalid("Размер скидки должен быть больше 0")
    if discount_type is DiscountType.PERCENTAGE and discount_value > MAX_PERCENTAGE_DISCOUNT:
        return invalid("Процентная скидка не может быть больше 100%")

    return Either.right(
        Coupon(
            code=normalize_code(code),
            name=name.strip(),
            discount_type=discount_type,
            discount_value=discount_value,
        )
    )


def find_coupon(coupons: Tuple[Coupon, ...], code: str) -> Maybe[Coupon]:
    return Maybe.of(next((c for c in coupons if c.code == normalize_code(code)), None))


def add_coupon(coupons: Tuple[Coupon, ...], coupon: Coupon) -> Either[Failure, Tuple[Coupon, ...]]:
    if find_coupon(coupons, coupon.code).is_some():
        return Either.left(
            Failure(ErrorKind.DUPLICATE_CODE, "Купон с таким кодом уже существует")
        )
    return Either.right(coupons + (coupon,))


def remove_coupon(coupons: Tuple[Coupon, ...], code: str) -> Either[Failure, Tuple[Coupon, ...]]:
    if find_coupon(coupons, code).is_none():
        return Either.left(Failure(ErrorKind.NOT_FOUND, "Купон не найден"))
    return Either.right(tuple(c for c in coupons if c.code != normalize_code(code)))
