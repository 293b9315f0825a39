import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from functools import reduce
from typing import Callable, Optional, Tuple

from .cart import add_line, reconcile, remove_line, set_quantity
from .catalog import (
    Catalog,
    add_product,
    add_product_tier,
    create_product,
    remove_product,
    remove_product_tier,
    update_product,
    update_stock,
)
from .coupon import (
    add_coupon,
    create_coupon,
    find_coupon,
    remove_coupon,
    select_coupon,
    wastes_value,
)
from .domain import Cart, Coupon, ErrorKind, Event, Failure, Order, Severity
from .ftypes import Either
from .money import format_price
from .order import complete_order
from .pricing import subtotal

Notice = Tuple[str, Severity]


@dataclass(frozen=True)
class ShopState:
    """Полный снимок магазина; заменяется целиком после каждого события"""

    catalog: Catalog = Catalog()
    coupons: Tuple[Coupon, ...] = ()
    cart: Cart = Cart()
    selected_coupon: Optional[Coupon] = None
    last_order: Optional[Order] = None
    last_event: Optional[str] = None


@dataclass(frozen=True)
class Outcome:
    """Новое состояние + уведомления, которые нужно показать пользователю"""

    state: ShopState
    notices: Tuple[Notice, ...] = ()

    @property
    def ok(self) -> bool:
        return all(severity is not Severity.ERROR for _, severity in self.notices)


Handler = Callable[[Event, ShopState], Outcome]


@dataclass(frozen=True)
class EventBus:
    """
    Иммутабельная шина событий магазина
    Подписчики - чистые функции: (Event, ShopState) -> Outcome
    """

    subscribers: Tuple[Tuple[str, Handler], ...] = ()

    def subscribe(self, event_name: str, handler: Handler) -> "EventBus":
        """Возвращает новую шину с добавленным подписчиком"""
        return EventBus(subscribers=self.subscribers + ((event_name, handler),))

    def publish(self, event: Event, state: ShopState) -> Outcome:
        """
        Применяет подписчиков события по очереди (fold)
        Уведомления всех подписчиков собираются в один Outcome
        """
        matching = tuple(h for name, h in self.subscribers if name == event.name)

        def apply_handler(acc: Outcome, handler: Handler) -> Outcome:
            result = handler(event, acc.state)
            return Outcome(state=result.state, notices=acc.notices + result.notices)

        return reduce(apply_handler, matching, Outcome(state=state))


# ============ Конструкторы событий ============


def create_event(name: str, payload: dict) -> Event:
    """Создаёт событие с автоматической меткой времени"""
    return Event(
        id=str(uuid.uuid4()),
        ts=datetime.now().isoformat(),
        name=name,
        payload=payload,
    )


# ============ Вспомогательные переходы ============


def _rejected(state: ShopState, failure: Failure) -> Outcome:
    """Отказ: состояние не меняется, пользователь видит ошибку"""
    return Outcome(state=state, notices=((failure.message, Severity.ERROR),))


def _done(state: ShopState, event: Event, message: str) -> Outcome:
    return Outcome(
        state=replace(state, last_event=event.name),
        notices=((message, Severity.SUCCESS),),
    )


def _with_catalog(
    event: Event, state: ShopState, result: Either[Failure, Catalog], message: str
) -> Outcome:
    """
    Применяет новый каталог и сразу приводит корзину к новым остаткам
    """
    if result.is_left:
        return _rejected(state, result.value)

    catalog = result.value
    fitted = reconcile(state.cart, catalog)
    outcome = _done(replace(state, catalog=catalog, cart=fitted.value), event, message)

    if fitted.has_issue:
        return replace(
            outcome, notices=outcome.notices + ((fitted.issue.message, Severity.WARNING),)
        )
    return outcome


def _product_or_failure(state: ShopState, product_id: str):
    return state.catalog.find_product(product_id).to_either(
        Failure(ErrorKind.NOT_FOUND, f"Товар {product_id} не найден")
    )


# ============ Обработчики корзины ============


def handle_add_to_cart(event: Event, state: ShopState) -> Outcome:
    """ADD_TO_CART {product_id}: +1 шт. с проверкой остатка"""
    result = _product_or_failure(state, event.payload["product_id"]).bind(
        lambda p: add_line(state.cart, p)
    )
    if result.is_left:
        return _rejected(state, result.value)
    return _done(replace(state, cart=result.value), event, "Товар добавлен в корзину")


def handle_remove_from_cart(event: Event, state: ShopState) -> Outcome:
    """REMOVE_FROM_CART {product_id}"""
    cart = remove_line(state.cart, event.payload["product_id"])
    return Outcome(state=replace(state, cart=cart, last_event=event.name))


def handle_set_quantity(event: Event, state: ShopState) -> Outcome:
    """
    SET_QUANTITY {product_id, quantity}
    Превышение остатка не отменяет изменение: количество обрезается,
    пользователь получает ошибку с допустимым максимумом.
    """
    product_id = event.payload["product_id"]
    quantity = event.payload["quantity"]

    if quantity <= 0:
        cart = remove_line(state.cart, product_id)
        return Outcome(state=replace(state, cart=cart, last_event=event.name))

    found = _product_or_failure(state, product_id)
    if found.is_left:
        return _rejected(state, found.value)

    checked = set_quantity(state.cart, found.value, quantity)
    new_state = replace(state, cart=checked.value, last_event=event.name)
    if checked.has_issue:
        return Outcome(state=new_state, notices=((checked.issue.message, Severity.ERROR),))
    return Outcome(state=new_state)


# ============ Обработчики купонов корзины ============


def handle_select_coupon(event: Event, state: ShopState) -> Outcome:
    """SELECT_COUPON {code}: проверка применимости к текущей сумме"""
    found = find_coupon(state.coupons, event.payload["code"]).to_either(
        Failure(ErrorKind.NOT_FOUND, "Купон не найден")
    )
    amount = subtotal(state.cart, state.catalog)
    result = found.bind(lambda c: select_coupon(c, amount))

    if result.is_left:
        return _rejected(state, result.value)

    coupon = result.value
    outcome = _done(replace(state, selected_coupon=coupon), event, "Купон применён")
    if wastes_value(coupon, amount):
        return replace(
            outcome,
            notices=outcome.notices
            + (("Скидка купона больше суммы заказа: остаток скидки сгорит", Severity.WARNING),),
        )
    return outcome


def handle_clear_coupon(event: Event, state: ShopState) -> Outcome:
    """CLEAR_COUPON"""
    return _done(replace(state, selected_coupon=None), event, "Купон отменён")


def handle_complete_order(event: Event, state: ShopState) -> Outcome:
    """
    COMPLETE_ORDER {order_id}
    Корзина и купон сбрасываются в одном новом снимке
    """
    order_id = event.payload["order_id"]
    completion = complete_order(
        state.cart, state.catalog, state.selected_coupon, id_source=lambda: order_id
    )
    new_state = replace(
        state,
        cart=completion.cleared_cart,
        selected_coupon=completion.cleared_coupon,
        last_order=completion.order,
    )
    return _done(
        new_state,
        event,
        f"Заказ оформлен. Номер заказа: {order_id}, "
        f"сумма: {format_price(completion.order.total_after_discount)}",
    )


# ============ Обработчики администратора ============


def handle_add_product(event: Event, state: ShopState) -> Outcome:
    """ADD_PRODUCT {product_id, name, price, stock, tiers, description}"""
    p = event.payload
    result = create_product(
        name=p["name"],
        price=p["price"],
        stock=p["stock"],
        tiers=tuple(p.get("tiers", ())),
        description=p.get("description", ""),
        id_source=lambda: p["product_id"],
    ).bind(lambda product: add_product(state.catalog, product))
    return _with_catalog(event, state, result, "Товар добавлен")


def handle_update_product(event: Event, state: ShopState) -> Outcome:
    """UPDATE_PRODUCT {product_id, changes}"""
    result = update_product(
        state.catalog, event.payload["product_id"], **event.payload["changes"]
    )
    return _with_catalog(event, state, result, "Товар обновлён")


def handle_remove_product(event: Event, state: ShopState) -> Outcome:
    """REMOVE_PRODUCT {product_id}"""
    result = remove_product(state.catalog, event.payload["product_id"])
    return _with_catalog(event, state, result, "Товар удалён")


def handle_update_stock(event: Event, state: ShopState) -> Outcome:
    """UPDATE_STOCK {product_id, stock}"""
    result = update_stock(state.catalog, event.payload["product_id"], event.payload["stock"])
    return _with_catalog(event, state, result, "Остаток обновлён")


def handle_add_tier(event: Event, state: ShopState) -> Outcome:
    """ADD_TIER {product_id, tier}"""
    result = add_product_tier(state.catalog, event.payload["product_id"], event.payload["tier"])
    return _with_catalog(event, state, result, "Уровень скидки добавлен")


def handle_remove_tier(event: Event, state: ShopState) -> Outcome:
    """REMOVE_TIER {product_id, quantity}"""
    result = remove_product_tier(
        state.catalog, event.payload["product_id"], event.payload["quantity"]
    )
    return _with_catalog(event, state, result, "Уровень скидки удалён")


def handle_add_coupon(event: Event, state: ShopState) -> Outcome:
    """ADD_COUPON {name, code, discount_type, discount_value}"""
    p = event.payload
    result = create_coupon(
        p["name"], p["code"], p["discount_type"], p["discount_value"]
    ).bind(lambda coupon: add_coupon(state.coupons, coupon))
    if result.is_left:
        return _rejected(state, result.value)
    return _done(replace(state, coupons=result.value), event, "Купон добавлен")


def handle_remove_coupon(event: Event, state: ShopState) -> Outcome:
    """REMOVE_COUPON {code}: удалённый купон снимается и с корзины"""
    code = event.payload["code"]
    result = remove_coupon(state.coupons, code)
    if result.is_left:
        return _rejected(state, result.value)

    selected = state.selected_coupon
    if selected is not None and find_coupon(result.value, selected.code).is_none():
        selected = None
    return _done(
        replace(state, coupons=result.value, selected_coupon=selected),
        event,
        "Купон удалён",
    )


# ============ Шина магазина ============


def create_shop_event_bus() -> EventBus:
    """Создаёт предконфигурированную шину магазина"""
    bus = EventBus()
    bus = bus.subscribe("ADD_TO_CART", handle_add_to_cart)
    bus = bus.subscribe("REMOVE_FROM_CART", handle_remove_from_cart)
    bus = bus.subscribe("SET_QUANTITY", handle_set_quantity)
    bus = bus.subscribe("SELECT_COUPON", handle_select_coupon)
    bus = bus.subscribe("CLEAR_COUPON", handle_clear_coupon)
    bus = bus.subscribe("COMPLETE_ORDER", handle_complete_order)
    bus = bus.subscribe("ADD_PRODUCT", handle_add_product)
    bus = bus.subscribe("UPDATE_PRODUCT", handle_update_product)
    bus = bus.subscribe("REMOVE_PRODUCT", handle_remove_product)
    bus = bus.subscribe("UPDATE_STOCK", handle_update_stock)
    bus = bus.subscribe("ADD_TIER", handle_add_tier)
    bus = bus.subscribe("REMOVE_TIER", handle_remove_tier)
    bus = bus.subscribe("ADD_COUPON", handle_add_coupon)
    bus = bus.subscribe("REMOVE_COUPON", handle_remove_coupon)
    return bus


def apply_events(bus: EventBus, events: Tuple[Event, ...], state: ShopState) -> Outcome:
    """
    Применяет последовательность событий к состоянию
    Чистая функция: (events, initial_state) -> Outcome
    """

    def step(acc: Outcome, event: Event) -> Outcome:
        out = bus.publish(event, acc.state)
        return Outcome(state=out.state, notices=acc.notices + out.notices)

    return reduce(step, events, Outcome(state=state))
