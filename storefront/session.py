import os
from typing import Callable, Optional, Tuple

from .cart import reconcile, remaining_stock, total_item_count
from .catalog import Catalog, new_product_id
from .constants import COUPONS_KEY, PRODUCTS_KEY
from .coupon import applicable_coupons
from .domain import CartTotals, Coupon, DiscountTier, DiscountType, LineRow, Product
from .events import EventBus, Outcome, ShopState, create_event, create_shop_event_bus
from .log import get_logger
from .order import timestamp_order_ids
from .ports import KeyValueStore, NotificationSink
from .pricing import cart_totals, line_rows, subtotal
from .storage import (
    coupon_from_dict,
    coupon_to_dict,
    load_cart,
    load_collection,
    load_seed,
    product_to_dict,
    save_cart,
    save_collection,
    valid_product_from_dict,
)

logger = get_logger(__name__)


class ShopSession:
    """
    Единственный владелец текущего снимка магазина.

    Все изменения идут через dispatch: шина возвращает новый ShopState,
    сессия заменяет снимок целиком, сохраняет изменившиеся коллекции
    и передаёт уведомления в приёмник. Читатели всегда видят целый,
    согласованный снимок.
    """

    def __init__(
        self,
        store: KeyValueStore,
        sink: NotificationSink,
        seed_path: Optional[str] = None,
        order_ids: Optional[Callable[[], str]] = None,
        product_ids: Callable[[], str] = new_product_id,
        bus: Optional[EventBus] = None,
    ):
        self.store = store
        self.sink = sink
        self.order_ids = order_ids or timestamp_order_ids()
        self.product_ids = product_ids
        self.bus = bus or create_shop_event_bus()
        self.state = self._load(seed_path)

    # ============ Загрузка и сохранение ============

    def _load(self, seed_path: Optional[str]) -> ShopState:
        seed_products: Tuple[Product, ...] = ()
        seed_coupons: Tuple[Coupon, ...] = ()
        if seed_path and os.path.exists(seed_path):
            seed_products, seed_coupons = load_seed(seed_path)

        catalog = Catalog(
            products=load_collection(
                self.store, PRODUCTS_KEY, valid_product_from_dict, seed_products
            )
        )
        coupons = load_collection(self.store, COUPONS_KEY, coupon_from_dict, seed_coupons)
        cart = reconcile(load_cart(self.store), catalog)
        if cart.has_issue:
            logger.warning("Сохранённая корзина приведена к текущим остаткам")

        logger.info(
            "Сессия загружена: товаров %d, купонов %d, позиций в корзине %d",
            len(catalog.products),
            len(coupons),
            len(cart.value.lines),
        )
        return ShopState(catalog=catalog, coupons=coupons, cart=cart.value)

    def _persist(self, before: ShopState, after: ShopState) -> None:
        """Ошибка записи не отменяет переход: снимок в памяти остаётся актуальным"""
        try:
            if after.catalog != before.catalog:
                save_collection(
                    self.store, PRODUCTS_KEY, [product_to_dict(p) for p in after.catalog.products]
                )
            if after.coupons != before.coupons:
                save_collection(self.store, COUPONS_KEY, [coupon_to_dict(c) for c in after.coupons])
            if after.cart != before.cart or after.catalog != before.catalog:
                save_cart(self.store, after.cart, after.catalog)
        except OSError as exc:
            logger.warning("Не удалось сохранить состояние магазина: %s", exc)

    # ============ Единая точка изменения ============

    def dispatch(self, event_name: str, **payload) -> Outcome:
        event = create_event(event_name, payload)
        before = self.state
        outcome = self.bus.publish(event, before)

        self.state = outcome.state
        self._persist(before, outcome.state)

        for message, severity in outcome.notices:
            self.sink.notify(message, severity)

        if outcome.ok:
            logger.info("%s: принято", event_name)
        else:
            logger.warning("%s: %s", event_name, outcome.notices[0][0])
        return outcome

    # ============ Корзина ============

    def add_to_cart(self, product_id: str) -> Outcome:
        return self.dispatch("ADD_TO_CART", product_id=product_id)

    def remove_from_cart(self, product_id: str) -> Outcome:
        return self.dispatch("REMOVE_FROM_CART", product_id=product_id)

    def set_quantity(self, product_id: str, quantity: int) -> Outcome:
        return self.dispatch("SET_QUANTITY", product_id=product_id, quantity=quantity)

    def select_coupon(self, code: str) -> Outcome:
        return self.dispatch("SELECT_COUPON", code=code)

    def clear_coupon(self) -> Outcome:
        return self.dispatch("CLEAR_COUPON")

    def complete_order(self) -> Outcome:
        return self.dispatch("COMPLETE_ORDER", order_id=self.order_ids())

    # ============ Администрирование ============

    def add_product(
        self,
        name: str,
        price: int,
        stock: int,
        tiers: Tuple[DiscountTier, ...] = (),
        description: str = "",
    ) -> Outcome:
        return self.dispatch(
            "ADD_PRODUCT",
            product_id=self.product_ids(),
            name=name,
            price=price,
            stock=stock,
            tiers=tiers,
            description=description,
        )

    def update_product(self, product_id: str, **changes) -> Outcome:
        return self.dispatch("UPDATE_PRODUCT", product_id=product_id, changes=changes)

    def remove_product(self, product_id: str) -> Outcome:
        return self.dispatch("REMOVE_PRODUCT", product_id=product_id)

    def update_stock(self, product_id: str, stock: int) -> Outcome:
        return self.dispatch("UPDATE_STOCK", product_id=product_id, stock=stock)

    def add_tier(self, product_id: str, tier: DiscountTier) -> Outcome:
        return self.dispatch("ADD_TIER", product_id=product_id, tier=tier)

    def remove_tier(self, product_id: str, quantity: int) -> Outcome:
        return self.dispatch("REMOVE_TIER", product_id=product_id, quantity=quantity)

    def add_coupon(
        self, name: str, code: str, discount_type: DiscountType, discount_value: int
    ) -> Outcome:
        return self.dispatch(
            "ADD_COUPON",
            name=name,
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
        )

    def remove_coupon(self, code: str) -> Outcome:
        return self.dispatch("REMOVE_COUPON", code=code)

    # ============ Чтение (без побочных эффектов) ============

    def totals(self) -> CartTotals:
        return cart_totals(self.state.cart, self.state.catalog, self.state.selected_coupon)

    def rows(self) -> Tuple[LineRow, ...]:
        return line_rows(self.state.cart, self.state.catalog)

    def remaining_stock(self, product: Product) -> int:
        return remaining_stock(product, self.state.cart)

    def item_count(self) -> int:
        return total_item_count(self.state.cart)

    def applicable_coupons(self) -> Tuple[Coupon, ...]:
        return applicable_coupons(
            self.state.coupons, subtotal(self.state.cart, self.state.catalog)
        )
