import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from storefront.catalog import Catalog
from storefront.domain import Cart, CartLine, Coupon, DiscountTier, DiscountType, Product, Severity
from storefront.events import (
    EventBus,
    Outcome,
    ShopState,
    apply_events,
    create_event,
    create_shop_event_bus,
)


@pytest.fixture
def bus():
    return create_shop_event_bus()


@pytest.fixture
def state():
    return ShopState(
        catalog=Catalog(
            products=(
                Product(id="p1", name="Phone", price=10000, stock=3, discount_tiers=(DiscountTier(2, 0.1),)),
                Product(id="p0", name="Ghost", price=500, stock=0),
            )
        ),
        coupons=(
            Coupon(code="AMOUNT5000", name="5000", discount_type=DiscountType.AMOUNT, discount_value=5000),
            Coupon(code="PERCENT10", name="10%", discount_type=DiscountType.PERCENTAGE, discount_value=10),
        ),
    )


def publish(bus, state, event_name, **payload):
    return bus.publish(create_event(event_name, payload), state)


def severities(outcome):
    return [severity for _, severity in outcome.notices]


# ============ Шина ============


def test_subscribe_returns_new_bus():
    """Шина иммутабельна: подписка не меняет исходный объект"""
    bus = EventBus()
    extended = bus.subscribe("PING", lambda e, s: Outcome(state=s))
    assert bus.subscribers == ()
    assert len(extended.subscribers) == 1


def test_handlers_are_folded_in_order():
    def first(event, state):
        return Outcome(state=state, notices=(("первый", Severity.SUCCESS),))

    def second(event, state):
        return Outcome(state=state, notices=(("второй", Severity.WARNING),))

    bus = EventBus().subscribe("PING", first).subscribe("PING", second)
    outcome = bus.publish(create_event("PING", {}), ShopState())
    assert [m for m, _ in outcome.notices] == ["первый", "второй"]
    assert outcome.ok


def test_unknown_event_changes_nothing(bus, state):
    outcome = publish(bus, state, "NOTHING")
    assert outcome.state == state
    assert outcome.notices == ()


# ============ Корзина ============


def test_add_to_cart(bus, state):
    outcome = publish(bus, state, "ADD_TO_CART", product_id="p1")
    assert outcome.state.cart.lines == (CartLine("p1", 1),)
    assert severities(outcome) == [Severity.SUCCESS]
    assert outcome.state.last_event == "ADD_TO_CART"


def test_add_sold_out_product_is_rejected(bus, state):
    """Остаток 0: корзина прежняя, пользователь получает ошибку"""
    outcome = publish(bus, state, "ADD_TO_CART", product_id="p0")
    assert outcome.state is state
    assert severities(outcome) == [Severity.ERROR]
    assert not outcome.ok


def test_add_unknown_product_is_rejected(bus, state):
    outcome = publish(bus, state, "ADD_TO_CART", product_id="nope")
    assert outcome.state is state
    assert not outcome.ok


def test_set_quantity_clamps_with_error_notice(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    outcome = publish(bus, state, "SET_QUANTITY", product_id="p1", quantity=10)
    assert outcome.state.cart.lines == (CartLine("p1", 3),)
    assert severities(outcome) == [Severity.ERROR]


def test_set_quantity_zero_removes_line(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    outcome = publish(bus, state, "SET_QUANTITY", product_id="p1", quantity=0)
    assert outcome.state.cart == Cart()
    assert outcome.notices == ()


def test_remove_from_cart(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    outcome = publish(bus, state, "REMOVE_FROM_CART", product_id="p1")
    assert outcome.state.cart == Cart()


# ============ Купоны ============


def test_select_percentage_coupon_below_threshold(bus, state):
    """Пустая корзина: процентный купон недоступен"""
    outcome = publish(bus, state, "SELECT_COUPON", code="PERCENT10")
    assert outcome.state.selected_coupon is None
    assert not outcome.ok


def test_select_amount_coupon_warns_when_wasted(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    outcome = publish(bus, state, "SELECT_COUPON", code="amount5000")
    assert outcome.state.selected_coupon.code == "AMOUNT5000"
    assert severities(outcome) == [Severity.SUCCESS]

    cheap = ShopState(
        catalog=Catalog(products=(Product(id="c", name="Cheap", price=1000, stock=5),)),
        coupons=state.coupons,
        cart=Cart(lines=(CartLine("c", 1),)),
    )
    wasted = publish(bus, cheap, "SELECT_COUPON", code="AMOUNT5000")
    assert wasted.state.selected_coupon is not None
    assert severities(wasted) == [Severity.SUCCESS, Severity.WARNING]
    assert wasted.ok


def test_select_unknown_coupon(bus, state):
    outcome = publish(bus, state, "SELECT_COUPON", code="NOPE")
    assert outcome.state is state
    assert not outcome.ok


def test_clear_coupon(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    state = publish(bus, state, "SELECT_COUPON", code="PERCENT10").state
    outcome = publish(bus, state, "CLEAR_COUPON")
    assert outcome.state.selected_coupon is None


def test_removing_selected_coupon_deselects_it(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    state = publish(bus, state, "SELECT_COUPON", code="AMOUNT5000").state
    outcome = publish(bus, state, "REMOVE_COUPON", code="AMOUNT5000")
    assert [c.code for c in outcome.state.coupons] == ["PERCENT10"]
    assert outcome.state.selected_coupon is None


def test_add_coupon(bus, state):
    outcome = publish(
        bus, state, "ADD_COUPON",
        name="Лето", code="summer", discount_type=DiscountType.PERCENTAGE, discount_value=15,
    )
    assert outcome.state.coupons[-1].code == "SUMMER"

    dup = publish(
        bus, outcome.state, "ADD_COUPON",
        name="Ещё", code="SUMMER", discount_type=DiscountType.AMOUNT, discount_value=100,
    )
    assert dup.state is outcome.state
    assert not dup.ok


# ============ Заказ ============


def test_complete_order_resets_cart_and_coupon_together(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    state = publish(bus, state, "SELECT_COUPON", code="AMOUNT5000").state

    outcome = publish(bus, state, "COMPLETE_ORDER", order_id="ORD-7")
    assert outcome.state.cart == Cart()
    assert outcome.state.selected_coupon is None
    assert outcome.state.last_order.id == "ORD-7"
    # 2 * 10 000 * 0.9 - 5 000
    assert outcome.state.last_order.total_after_discount == 13000
    assert "ORD-7" in outcome.notices[0][0]


# ============ Администрирование ============


def test_lowering_stock_reconciles_cart(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state

    outcome = publish(bus, state, "UPDATE_STOCK", product_id="p1", stock=1)
    assert outcome.state.cart.lines == (CartLine("p1", 1),)
    assert severities(outcome) == [Severity.SUCCESS, Severity.WARNING]


def test_removing_product_drops_cart_line(bus, state):
    state = publish(bus, state, "ADD_TO_CART", product_id="p1").state
    outcome = publish(bus, state, "REMOVE_PRODUCT", product_id="p1")
    assert outcome.state.cart == Cart()
    assert outcome.state.catalog.find_product("p1").is_none()


def test_add_and_update_product(bus, state):
    added = publish(
        bus, state, "ADD_PRODUCT",
        product_id="p9", name="Tablet", price=70000, stock=5, tiers=(), description="",
    )
    assert added.state.catalog.find_product("p9").is_some()

    renamed = publish(bus, added.state, "UPDATE_PRODUCT", product_id="p9", changes={"name": "Phone"})
    assert renamed.state is added.state
    assert not renamed.ok


def test_tier_events(bus, state):
    outcome = publish(bus, state, "ADD_TIER", product_id="p1", tier=DiscountTier(3, 0.2))
    tiers = outcome.state.catalog.find_product("p1").value.discount_tiers
    assert [t.quantity for t in tiers] == [2, 3]

    outcome = publish(bus, outcome.state, "REMOVE_TIER", product_id="p1", quantity=2)
    tiers = outcome.state.catalog.find_product("p1").value.discount_tiers
    assert tiers == (DiscountTier(3, 0.2),)


def test_apply_events_replays_sequence(bus, state):
    events = (
        create_event("ADD_TO_CART", {"product_id": "p1"}),
        create_event("ADD_TO_CART", {"product_id": "p0"}),
        create_event("ADD_TO_CART", {"product_id": "p1"}),
    )
    outcome = apply_events(bus, events, state)
    assert outcome.state.cart.lines == (CartLine("p1", 2),)
    assert severities(outcome) == [Severity.SUCCESS, Severity.ERROR, Severity.SUCCESS]
