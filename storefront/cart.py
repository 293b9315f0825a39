from functools import reduce
from typing import Optional, Tuple

from .domain import Cart, CartLine, ErrorKind, Failure, Product
from .ftypes import Checked, Either
from .ports import CatalogPort


# ============ Чтение корзины ============


def find_line(cart: Cart, product_id: str) -> Optional[CartLine]:
    return next((line for line in cart.lines if line.product_id == product_id), None)


def remaining_stock(product: Product, cart: Cart) -> int:
    """
    Сколько ещё можно положить в корзину.
    Результат <= 0 означает «добавить нельзя».
    """
    line = find_line(cart, product.id)
    return product.stock - (line.quantity if line else 0)


def total_item_count(cart: Cart) -> int:
    """Общее количество штук (бейдж корзины в шапке)"""
    return reduce(lambda acc, line: acc + line.quantity, cart.lines, 0)


def _stock_exceeded(product: Product) -> Failure:
    return Failure(
        ErrorKind.STOCK_EXCEEDED, f"На складе только {product.stock} шт."
    )


# ============ Cart operations (чистые функции) ============


def add_line(cart: Cart, product: Product) -> Either[Failure, Cart]:
    """
    Добавляет одну штуку товара → Either[Failure, Cart]
    Left(OUT_OF_STOCK), если остатка нет;
    Left(STOCK_EXCEEDED), если итоговое количество всё же превысило склад
    (повторная проверка перед фиксацией нового снимка).
    """
    if remaining_stock(product, cart) <= 0:
        return Either.left(Failure(ErrorKind.OUT_OF_STOCK, "Недостаточно товара на складе!"))

    existing = find_line(cart, product.id)
    new_quantity = existing.quantity + 1 if existing else 1

    if new_quantity > product.stock:
        return Either.left(_stock_exceeded(product))

    if existing:
        lines = tuple(
            CartLine(line.product_id, new_quantity) if line.product_id == product.id else line
            for line in cart.lines
        )
    else:
        lines = cart.lines + (CartLine(product.id, 1),)

    return Either.right(Cart(lines=lines))


def remove_line(cart: Cart, product_id: str) -> Cart:
    """Возвращает корзину без позиции; отсутствие позиции - не ошибка"""
    return Cart(lines=tuple(filter(lambda line: line.product_id != product_id, cart.lines)))


def set_quantity(cart: Cart, product: Product, new_quantity: int) -> Checked[Cart]:
    """
    Задаёт количество позиции.
    <= 0 - позиция удаляется; больше остатка - обрезается до остатка,
    новое значение применяется, а Checked несёт STOCK_EXCEEDED.
    """
    if new_quantity <= 0:
        return Checked.ok(remove_line(cart, product.id))

    if find_line(cart, product.id) is None:
        return Checked.ok(cart)

    final_quantity = min(new_quantity, product.stock)
    lines = tuple(
        CartLine(line.product_id, final_quantity) if line.product_id == product.id else line
        for line in cart.lines
    )
    # остаток мог упасть до 0 после правки каталога
    updated = Cart(lines=tuple(line for line in lines if line.quantity > 0))

    if final_quantity != new_quantity:
        return Checked.with_issue(updated, _stock_exceeded(product))
    return Checked.ok(updated)


def reconcile(cart: Cart, catalog: CatalogPort) -> Checked[Cart]:
    """
    Приводит корзину к текущему каталогу после правок администратора
    или загрузки из хранилища: позиции с количеством <= 0, повторы
    товара (остаётся первая позиция), удалённые товары и товары
    с нулевым остатком удаляются, остальные обрезаются до остатка.
    """

    def fit(line: CartLine) -> Optional[CartLine]:
        product = catalog.find_product(line.product_id)
        if line.quantity <= 0 or product.is_none() or product.value.stock <= 0:
            return None
        return CartLine(line.product_id, min(line.quantity, product.value.stock))

    def keep_first(acc: Tuple[CartLine, ...], line: CartLine) -> Tuple[CartLine, ...]:
        if any(kept.product_id == line.product_id for kept in acc):
            return acc
        return acc + (line,)

    fitted = reduce(keep_first, filter(None, map(fit, cart.lines)), ())
    reconciled = Cart(lines=fitted)

    if reconciled != cart:
        return Checked.with_issue(
            reconciled,
            Failure(
                ErrorKind.STOCK_EXCEEDED,
                "Корзина обновлена: изменились остатки товаров",
            ),
        )
    return Checked.ok(reconciled)
