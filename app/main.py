import sys
import os
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.domain import DiscountTier, DiscountType, Severity
from storefront.money import format_price, format_rate
from storefront.notifications import NotificationCenter
from storefront.report import cart_summary, display_price, stock_badge, tier_summary
from storefront.search import iter_matching_products
from storefront.session import ShopSession
from storefront.settings import DATA_DIR, SEED_PATH
from storefront.storage import JsonFileStore


# ============ Инициализация ============
st.set_page_config(
    page_title="Storefront",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded",
)

if "notifications" not in st.session_state:
    st.session_state.notifications = NotificationCenter()

if "shop" not in st.session_state:
    st.session_state.shop = ShopSession(
        store=JsonFileStore(DATA_DIR),
        sink=st.session_state.notifications,
        seed_path=SEED_PATH,
    )

shop: ShopSession = st.session_state.shop
notifications: NotificationCenter = st.session_state.notifications

SEVERITY_WIDGETS = {
    Severity.ERROR: st.error,
    Severity.SUCCESS: st.success,
    Severity.WARNING: st.warning,
}


def show_notifications():
    """Показывает неистёкшие уведомления (каждое живёт 3 секунды)"""
    for n in notifications.active():
        SEVERITY_WIDGETS[n.severity](n.message)


def change_quantity(product_id: str, widget_key: str, previous: int):
    """Колбэк поля количества; после обрезки по складу поле возвращается к факту"""
    shop.set_quantity(product_id, int(st.session_state[widget_key]))
    st.session_state[widget_key] = previous


# ============ HEADER ============
st.title("🛒 Storefront")

# ============ SIDEBAR - Навигация ============
with st.sidebar:
    st.header("📂 Навигация")
    page = st.radio(
        "Выберите раздел:",
        ["🛍️ Магазин", "⚙️ Администрирование"],
        label_visibility="collapsed",
    )
    st.divider()
    st.metric("🛒 В корзине", f"{shop.item_count()} шт.")
    st.divider()
    show_notifications()


# ============ PAGE: МАГАЗИН ============
if page == "🛍️ Магазин":
    state = shop.state
    catalog_col, cart_col = st.columns([3, 2])

    with catalog_col:
        st.header("🏪 Каталог")
        term = st.text_input("🔍 Поиск товара", key="search_term")
        found = tuple(iter_matching_products(state.catalog.products, term))

        st.info(f"🔍 Найдено товаров: **{len(found)}**")
        if not found:
            st.warning(f"По запросу «{term}» ничего не найдено.")

        for p in found:
            remaining = shop.remaining_stock(p)
            with st.container():
                cols = st.columns([5, 2, 2])
                with cols[0]:
                    badge = " ⭐ BEST" if p.is_recommended else ""
                    st.markdown(f"**{p.name}**{badge}")
                    if p.description:
                        st.caption(p.description)
                    for line in tier_summary(p):
                        st.caption(f"🏷️ {line}")
                with cols[1]:
                    st.write(display_price(p, remaining))
                    st.caption(stock_badge(remaining))
                with cols[2]:
                    if st.button(
                        "➕ В корзину",
                        key=f"add_{p.id}",
                        disabled=remaining <= 0,
                    ):
                        shop.add_to_cart(p.id)
                        st.rerun()
                st.divider()

    with cart_col:
        st.header("🛒 Корзина")
        summary = cart_summary(shop.state)

        if not summary["rows"]:
            st.info("🛍️ Корзина пуста.")
        else:
            for row in summary["rows"]:
                cols = st.columns([4, 2, 3, 1])
                with cols[0]:
                    st.write(f"**{row['name']}**")
                    if row["to_next_tier"]:
                        st.caption(f"Ещё {row['to_next_tier']} шт. до следующей скидки")
                with cols[1]:
                    qty_key = f"qty_{row['product_id']}_{row['quantity']}"
                    st.number_input(
                        "Кол-во",
                        min_value=0,
                        value=row["quantity"],
                        key=qty_key,
                        label_visibility="collapsed",
                        on_change=change_quantity,
                        args=(row["product_id"], qty_key, row["quantity"]),
                    )
                with cols[2]:
                    st.write(format_price(row["total"]))
                    if row["rate_label"]:
                        st.caption(f"-{row['rate_label']}")
                with cols[3]:
                    if st.button("🗑️", key=f"remove_{row['product_id']}"):
                        shop.remove_from_cart(row["product_id"])
                        st.rerun()

            st.divider()

            # Купон
            st.subheader("🎟️ Купон")
            coupons = shop.state.coupons
            selected = shop.state.selected_coupon
            if selected is not None:
                st.success(f"Применён: {selected.name} ({selected.code})")

            if coupons:
                choice = st.selectbox(
                    "Купон",
                    coupons,
                    format_func=lambda c: f"{c.name} ({c.code})",
                    key="coupon_select",
                )
                ccols = st.columns(2)
                with ccols[0]:
                    if st.button("Применить", key="coupon_apply"):
                        shop.select_coupon(choice.code)
                        st.rerun()
                with ccols[1]:
                    if selected is not None and st.button("Отменить", key="coupon_clear"):
                        shop.clear_coupon()
                        st.rerun()

            st.divider()
            st.metric("Сумма без скидок", format_price(summary["total_before_discount"]))
            st.metric("Скидка", f"-{format_price(summary['total_discount'])}")
            st.markdown(f"### 💰 Итого: **{format_price(summary['total_after_discount'])}**")

            if st.button("✅ Оформить заказ", type="primary", use_container_width=True):
                shop.complete_order()
                st.balloons()
                st.rerun()


# ============ PAGE: АДМИНИСТРИРОВАНИЕ ============
elif page == "⚙️ Администрирование":
    st.header("⚙️ Администрирование")
    tab1, tab2 = st.tabs(["📦 Товары", "🎟️ Купоны"])

    with tab1:
        for p in shop.state.catalog.products:
            with st.expander(f"{p.name} — {format_price(p.price, show_symbol=False)}"):
                col1, col2, col3 = st.columns(3)
                with col1:
                    name = st.text_input("Название", p.name, key=f"name_{p.id}")
                with col2:
                    price = st.number_input("Цена", value=p.price, step=1000, key=f"price_{p.id}")
                with col3:
                    stock = st.number_input("Остаток", value=p.stock, step=1, key=f"stock_{p.id}")

                if st.button("💾 Сохранить", key=f"save_{p.id}"):
                    shop.update_product(p.id, name=name, price=int(price), stock=int(stock))
                    st.rerun()

                st.markdown("##### Скидки по количеству")
                for t in p.discount_tiers:
                    tcols = st.columns([4, 1])
                    with tcols[0]:
                        st.write(f"от {t.quantity} шт. — {format_rate(t.rate)}")
                    with tcols[1]:
                        if st.button("✖", key=f"tier_rm_{p.id}_{t.quantity}"):
                            shop.remove_tier(p.id, t.quantity)
                            st.rerun()

                tcols = st.columns(3)
                with tcols[0]:
                    tier_qty = st.number_input("Порог, шт.", min_value=1, value=10, key=f"tq_{p.id}")
                with tcols[1]:
                    tier_pct = st.number_input("Скидка, %", min_value=1, max_value=100, value=10, key=f"tr_{p.id}")
                with tcols[2]:
                    if st.button("➕ Уровень", key=f"tier_add_{p.id}"):
                        shop.add_tier(p.id, DiscountTier(quantity=int(tier_qty), rate=tier_pct / 100))
                        st.rerun()

                if st.button("🗑️ Удалить товар", key=f"del_{p.id}"):
                    shop.remove_product(p.id)
                    st.rerun()

        st.divider()
        st.subheader("➕ Новый товар")
        with st.form("new_product", clear_on_submit=True):
            name = st.text_input("Название")
            description = st.text_input("Описание")
            price = st.number_input("Цена", min_value=0, value=0, step=1000)
            stock = st.number_input("Остаток", min_value=0, value=0, step=1)
            if st.form_submit_button("Добавить"):
                shop.add_product(name, int(price), int(stock), description=description)
                st.rerun()

    with tab2:
        for c in shop.state.coupons:
            cols = st.columns([4, 3, 1])
            with cols[0]:
                st.write(f"**{c.name}** `{c.code}`")
            with cols[1]:
                if c.discount_type is DiscountType.AMOUNT:
                    st.write(f"-{format_price(c.discount_value)}")
                else:
                    st.write(f"-{c.discount_value}%")
            with cols[2]:
                if st.button("🗑️", key=f"coupon_rm_{c.code}"):
                    shop.remove_coupon(c.code)
                    st.rerun()

        st.divider()
        st.subheader("➕ Новый купон")
        with st.form("new_coupon", clear_on_submit=True):
            name = st.text_input("Название купона")
            code = st.text_input("Код (4-12 символов A-Z, 0-9)")
            kind = st.selectbox("Тип скидки", ["Сумма", "Процент"])
            value = st.number_input("Размер скидки", min_value=0, value=0, step=1)
            if st.form_submit_button("Добавить"):
                discount_type = DiscountType.AMOUNT if kind == "Сумма" else DiscountType.PERCENTAGE
                shop.add_coupon(name, code, discount_type, int(value))
                st.rerun()
