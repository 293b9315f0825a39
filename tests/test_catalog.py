import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from storefront.catalog import (
    Catalog,
    add_product,
    add_product_tier,
    create_product,
    remove_product,
    remove_product_tier,
    update_product,
    update_stock,
)
from storefront.domain import DiscountTier, ErrorKind, Product


@pytest.fixture
def catalog():
    return Catalog(
        products=(
            Product(id="p1", name="Phone", price=50000, stock=10, discount_tiers=(DiscountTier(5, 0.1),)),
            Product(id="p2", name="Laptop", price=300000, stock=3),
        )
    )


# ============ Создание товара ============


def test_create_product_normalizes_fields():
    result = create_product(
        "  Tablet ",
        120000,
        7,
        tiers=(DiscountTier(20, 0.2), DiscountTier(10, 0.1)),
        id_source=lambda: "p9",
    )
    assert result.is_right
    product = result.value
    assert product.id == "p9"
    assert product.name == "Tablet"
    assert [t.quantity for t in product.discount_tiers] == [10, 20]


@pytest.mark.parametrize(
    "name, price, stock, tiers",
    [
        ("", 1000, 1, ()),
        ("   ", 1000, 1, ()),
        ("x" * 101, 1000, 1, ()),
        ("Ok", 0, 1, ()),
        ("Ok", 10_000_001, 1, ()),
        ("Ok", 1000, -1, ()),
        ("Ok", 1000, 100_001, ()),
        ("Ok", 1000, 1, (DiscountTier(0, 0.1),)),
        ("Ok", 1000, 1, (DiscountTier(5, 0),)),
        ("Ok", 1000, 1, (DiscountTier(5, 1.5),)),
        ("Ok", 1000, 1, (DiscountTier(5, 0.1), DiscountTier(5, 0.2))),
    ],
)
def test_create_product_rejects_invalid_fields(name, price, stock, tiers):
    """Невалидный товар не создаётся даже частично"""
    result = create_product(name, price, stock, tiers=tiers)
    assert result.is_left
    assert result.value.kind is ErrorKind.INVALID_INPUT


def test_boundary_values_are_accepted():
    assert create_product("x" * 100, 10_000_000, 100_000).is_right
    assert create_product("y", 1, 0).is_right


# ============ Изменение каталога ============


def test_add_product_rejects_duplicate_name(catalog):
    twin = create_product(" Phone ", 1000, 1, id_source=lambda: "p3").value
    result = add_product(catalog, twin)
    assert result.is_left
    assert result.value.kind is ErrorKind.DUPLICATE_NAME
    assert len(catalog.products) == 2


def test_add_product(catalog):
    fresh = create_product("Mouse", 3000, 40, id_source=lambda: "p3").value
    result = add_product(catalog, fresh)
    assert result.value.find_product("p3").get_or_else(None) == fresh


def test_update_product_partial(catalog):
    result = update_product(catalog, "p2", price=280000)
    updated = result.value.find_product("p2").value
    assert updated.price == 280000
    assert updated.name == "Laptop"
    assert updated.stock == 3


def test_update_product_keeps_own_name(catalog):
    assert update_product(catalog, "p1", name="Phone", stock=4).is_right


def test_update_product_errors(catalog):
    assert update_product(catalog, "nope", price=1).value.kind is ErrorKind.NOT_FOUND
    assert update_product(catalog, "p1", name="Laptop").value.kind is ErrorKind.DUPLICATE_NAME
    assert update_product(catalog, "p1", price=-5).value.kind is ErrorKind.INVALID_INPUT


def test_remove_product(catalog):
    assert [p.id for p in remove_product(catalog, "p1").value.products] == ["p2"]
    assert remove_product(catalog, "nope").value.kind is ErrorKind.NOT_FOUND


def test_update_stock(catalog):
    assert update_stock(catalog, "p2", 0).value.find_product("p2").value.stock == 0
    assert update_stock(catalog, "p2", -1).value.kind is ErrorKind.INVALID_INPUT
    assert update_stock(catalog, "nope", 5).value.kind is ErrorKind.NOT_FOUND


def test_product_tiers(catalog):
    added = add_product_tier(catalog, "p1", DiscountTier(2, 0.05))
    assert [t.quantity for t in added.value.find_product("p1").value.discount_tiers] == [2, 5]

    dup = add_product_tier(catalog, "p1", DiscountTier(5, 0.3))
    assert dup.value.kind is ErrorKind.INVALID_INPUT

    removed = remove_product_tier(catalog, "p1", 5)
    assert removed.value.find_product("p1").value.discount_tiers == ()

    assert add_product_tier(catalog, "nope", DiscountTier(2, 0.05)).value.kind is ErrorKind.NOT_FOUND
