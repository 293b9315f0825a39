import json
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, TypeVar

from .catalog import validate_product
from .constants import CART_KEY
from .domain import Cart, CartLine, Coupon, DiscountTier, DiscountType, Product
from .log import get_logger
from .ports import CatalogPort, KeyValueStore

logger = get_logger(__name__)

T = TypeVar("T")


# ============ Хранилища ключ-значение ============


class MemoryStore:
    """Хранилище в памяти (тесты, одноразовые сессии)"""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """Один JSON-файл на ключ в каталоге base_dir"""

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ============ JSON-представление сущностей ============


def product_to_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "stock": product.stock,
        "description": product.description,
        "discounts": [{"quantity": t.quantity, "rate": t.rate} for t in product.discount_tiers],
        "isRecommended": product.is_recommended,
    }


def product_from_dict(data: dict) -> Product:
    return Product(
        id=str(data["id"]),
        name=str(data["name"]),
        price=int(data["price"]),
        stock=int(data["stock"]),
        discount_tiers=tuple(
            DiscountTier(quantity=int(d["quantity"]), rate=float(d["rate"]))
            for d in data.get("discounts", [])
        ),
        description=str(data.get("description", "")),
        is_recommended=bool(data.get("isRecommended", False)),
    )


def valid_product_from_dict(data: dict) -> Product:
    """Товар из хранилища с полной проверкой полей; невалидный даёт ValueError"""
    return validate_product(product_from_dict(data)).fold(
        lambda failure: _raise_invalid(failure.message), lambda product: product
    )


def _raise_invalid(message: str) -> Product:
    raise ValueError(message)


def coupon_to_dict(coupon: Coupon) -> dict:
    return {
        "name": coupon.name,
        "code": coupon.code,
        "discountType": coupon.discount_type.value,
        "discountValue": coupon.discount_value,
    }


def coupon_from_dict(data: dict) -> Coupon:
    return Coupon(
        code=str(data["code"]),
        name=str(data["name"]),
        discount_type=DiscountType(data["discountType"]),
        discount_value=int(data["discountValue"]),
    )


def cart_to_list(cart: Cart, catalog: CatalogPort) -> list:
    """Позиции в виде пар {product, quantity}; товары вне каталога не пишутся"""
    return [
        {"product": product_to_dict(product), "quantity": line.quantity}
        for line in cart.lines
        for product in [catalog.find_product(line.product_id).get_or_else(None)]
        if product is not None
    ]


def cart_line_from_dict(data: dict) -> CartLine:
    return CartLine(product_id=str(data["product"]["id"]), quantity=int(data["quantity"]))


# ============ Сохранение и загрузка коллекций ============


def save_collection(
    store: KeyValueStore, key: str, items: list
) -> None:
    """Пустой список не хранится: ключ удаляется"""
    if not items:
        store.remove(key)
        return
    store.set(key, json.dumps(items, ensure_ascii=False))


def load_collection(
    store: KeyValueStore,
    key: str,
    decode: Callable[[dict], T],
    default: Tuple[T, ...],
) -> Tuple[T, ...]:
    """
    Читает JSON-массив по ключу. Отсутствующий ключ или любая ошибка
    разбора дают default; ошибка не пробрасывается, а пишется в лог.
    """
    try:
        raw = store.get(key)
        if raw is None:
            return default
        return tuple(map(decode, json.loads(raw)))
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning("Не удалось прочитать '%s' из хранилища: %s", key, exc)
        return default


def save_cart(store: KeyValueStore, cart: Cart, catalog: CatalogPort) -> None:
    save_collection(store, CART_KEY, cart_to_list(cart, catalog))


def load_cart(store: KeyValueStore, default: Cart = Cart()) -> Cart:
    lines = load_collection(store, CART_KEY, cart_line_from_dict, default.lines)
    return Cart(lines=lines)


# ============ Начальные данные ============


def load_seed(path: str) -> Tuple[Tuple[Product, ...], Tuple[Coupon, ...]]:
    """Загружает seed.json → (товары, купоны)"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    products = tuple(map(product_from_dict, data.get("products", [])))
    coupons = tuple(map(coupon_from_dict, data.get("coupons", [])))
    return products, coupons
