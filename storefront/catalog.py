import uuid
from dataclasses import dataclass, replace
from typing import Callable, Tuple

from .constants import (
    MAX_PRODUCT_NAME_LENGTH,
    MAX_PRODUCT_PRICE,
    MAX_STOCK,
    MIN_PRODUCT_PRICE,
    MIN_STOCK,
)
from .discount import (
    add_tier,
    has_unique_quantities,
    is_valid_tier,
    remove_tier,
    sort_tiers,
)
from .domain import DiscountTier, ErrorKind, Failure, Product
from .ftypes import Either, Maybe


@dataclass(frozen=True)
class Catalog:
    """
    Иммутабельный каталог товаров.
    Реализует порт поиска товара; все правки возвращают новый Catalog.
    """

    products: Tuple[Product, ...] = ()

    def find_product(self, product_id: str) -> Maybe[Product]:
        found = next((p for p in self.products if p.id == product_id), None)
        return Maybe.of(found)

    def replace_product(self, product: Product) -> "Catalog":
        return Catalog(
            products=tuple(product if p.id == product.id else p for p in self.products)
        )


def new_product_id() -> str:
    return uuid.uuid4().hex


# ============ Валидаторы ============


def is_valid_product_name(name: str) -> bool:
    return 1 <= len(name.strip()) <= MAX_PRODUCT_NAME_LENGTH


def is_valid_price(price: int) -> bool:
    return isinstance(price, int) and MIN_PRODUCT_PRICE < price <= MAX_PRODUCT_PRICE


def is_valid_stock(stock: int) -> bool:
    return isinstance(stock, int) and MIN_STOCK <= stock <= MAX_STOCK


def _invalid(message: str) -> Either[Failure, Product]:
    return Either.left(Failure(ErrorKind.INVALID_INPUT, message))


def validate_product(product: Product) -> Either[Failure, Product]:
    """
    Проверяет все поля товара. Возвращает нормализованный товар
    (имя без пробелов по краям, уровни по возрастанию порога)
    либо первый найденный отказ.
    """
    if not is_valid_product_name(product.name):
        return _invalid("Название товара: от 1 до 100 символов")
    if not is_valid_price(product.price):
        return _invalid("Цена должна быть больше 0 и не больше 10 000 000")
    if not is_valid_stock(product.stock):
        return _invalid("Остаток должен быть от 0 до 100 000")
    if not all(map(is_valid_tier, product.discount_tiers)):
        return _invalid("Некорректный уровень скидки")
    if not has_unique_quantities(product.discount_tiers):
        return _invalid("Пороги скидок не должны повторяться")

    return Either.right(
        replace(
            product,
            name=product.name.strip(),
            discount_tiers=sort_tiers(product.discount_tiers),
        )
    )


def create_product(
    name: str,
    price: int,
    stock: int,
    tiers: Tuple[DiscountTier, ...] = (),
    description: str = "",
    id_source: Callable[[], str] = new_product_id,
) -> Either[Failure, Product]:
    """Собирает новый товар; при ошибке частичный объект не создаётся"""
    candidate = Product(
        id="",
        name=name,
        price=price,
        stock=stock,
        discount_tiers=tuple(tiers),
        description=description,
    )
    return validate_product(candidate).map(lambda p: replace(p, id=id_source()))


# ============ Операции над каталогом ============


def _name_taken(catalog: Catalog, name: str, except_id: str = "") -> bool:
    return any(
        p.name.strip() == name.strip() and p.id != except_id for p in catalog.products
    )


def _not_found(product_id: str) -> Failure:
    return Failure(ErrorKind.NOT_FOUND, f"Товар {product_id} не найден")


def add_product(catalog: Catalog, product: Product) -> Either[Failure, Catalog]:
    if _name_taken(catalog, product.name):
        return Either.left(
            Failure(ErrorKind.DUPLICATE_NAME, "Товар с таким названием уже есть")
        )
    return Either.right(Catalog(products=catalog.products + (product,)))


def update_product(
    catalog: Catalog, product_id: str, **changes
) -> Either[Failure, Catalog]:
    """
    Частичное обновление товара (name, price, stock, discount_tiers, ...).
    Проверяет уникальность имени среди остальных товаров и валидность
    итогового товара целиком.
    """
    found = catalog.find_product(product_id)
    if found.is_none():
        return Either.left(_not_found(product_id))

    new_name = changes.get("name")
    if new_name is not None and _name_taken(catalog, new_name, except_id=product_id):
        return Either.left(
            Failure(ErrorKind.DUPLICATE_NAME, "Товар с таким названием уже есть")
        )

    if "discount_tiers" in changes:
        changes["discount_tiers"] = tuple(changes["discount_tiers"])

    return validate_product(replace(found.value, **changes)).map(
        catalog.replace_product
    )


def remove_product(catalog: Catalog, product_id: str) -> Either[Failure, Catalog]:
    if catalog.find_product(product_id).is_none():
        return Either.left(_not_found(product_id))
    return Either.right(
        Catalog(products=tuple(p for p in catalog.products if p.id != product_id))
    )


def update_stock(
    catalog: Catalog, product_id: str, stock: int
) -> Either[Failure, Catalog]:
    if not is_valid_stock(stock):
        return Either.left(
            Failure(ErrorKind.INVALID_INPUT, "Остаток должен быть от 0 до 100 000")
        )
    return update_product(catalog, product_id, stock=stock)


def add_product_tier(
    catalog: Catalog, product_id: str, tier: DiscountTier
) -> Either[Failure, Catalog]:
    return (
        catalog.find_product(product_id)
        .to_either(_not_found(product_id))
        .bind(lambda p: add_tier(p.discount_tiers, tier))
        .map(
            lambda tiers: catalog.replace_product(
                replace(catalog.find_product(product_id).value, discount_tiers=tiers)
            )
        )
    )


def remove_product_tier(
    catalog: Catalog, product_id: str, quantity: int
) -> Either[Failure, Catalog]:
    return (
        catalog.find_product(product_id)
        .to_either(_not_found(product_id))
        .map(
            lambda p: catalog.replace_product(
                replace(p, discount_tiers=remove_tier(p.discount_tiers, quantity))
            )
        )
    )
