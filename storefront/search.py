from typing import Callable, Iterable, Iterator

from .cart import remaining_stock
from .constants import LOW_STOCK_THRESHOLD
from .domain import Cart, Product


## замыкание-фильтр: поиск без учёта регистра по названию и описанию
def by_search_term(term: str) -> Callable[[Product], bool]:
    needle = term.strip().lower()
    return lambda p: needle in p.name.lower() or needle in p.description.lower()


## ленивый поиск товаров; пустой запрос отдаёт весь каталог
def iter_matching_products(products: Iterable[Product], term: str) -> Iterator[Product]:
    matches = by_search_term(term)
    for product in products:
        if not term.strip() or matches(product):
            yield product


## лениво отдаёт товары, которых осталось мало с учётом корзины (но не ноль)
def iter_low_stock(
    products: Iterable[Product], cart: Cart, threshold: int = LOW_STOCK_THRESHOLD
) -> Iterator[Product]:
    for product in products:
        left = remaining_stock(product, cart)
        if 0 < left <= threshold:
            yield product
