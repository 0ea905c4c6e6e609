from decimal import Decimal
from types import SimpleNamespace

import pytest

from food_court.crud import cart as cart_crud
from food_court.exceptions import NotFound, ValidationError
from food_court.models import OrderTypeEnum


def line(price, takeaway_price, quantity=1):
    return SimpleNamespace(price=Decimal(price), takeaway_price=Decimal(takeaway_price), quantity=quantity)


def test_dining_has_no_service_charge():
    totals = cart_crud.price_lines([line("120", "10"), line("130", "10")], OrderTypeEnum.dining)
    assert totals.subtotal == Decimal("250.00")
    assert totals.service_charge == Decimal("0.00")
    assert totals.total == Decimal("250.00")


def test_takeaway_adds_surcharge_per_unit():
    totals = cart_crud.price_lines([line("120", "10"), line("130", "10")], OrderTypeEnum.takeaway)
    assert totals.service_charge == Decimal("20.00")
    assert totals.total == Decimal("270.00")

    totals = cart_crud.price_lines([line("45.50", "5", quantity=3)], "takeaway")
    assert totals.subtotal == Decimal("136.50")
    assert totals.service_charge == Decimal("15.00")
    assert totals.total == totals.subtotal + totals.service_charge


@pytest.mark.asyncio
async def test_add_item_snapshots_menu_and_merges_quantity(db, seeded):
    cart = await cart_crud.add_item(db, "U1", "R001-FI001")
    assert cart.restaurant_id == "R001"
    assert len(cart.items) == 1
    item = cart.items[0]
    assert item.name == "Paneer Tikka"
    assert item.price == Decimal("120.00")
    assert item.takeaway_price == Decimal("10.00")
    assert item.restaurant_name == "Spice Hub"

    cart = await cart_crud.add_item(db, "U1", "R001-FI001", quantity=2)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3


@pytest.mark.asyncio
async def test_items_from_another_restaurant_are_rejected(db, seeded):
    await cart_crud.add_item(db, "U1", "R001-FI001")

    with pytest.raises(ValidationError, match="same food court"):
        await cart_crud.add_item(db, "U1", "R002-FI001")

    cart = await cart_crud.get_cart(db, "U1")
    assert [i.food_item_id for i in cart.items] == ["R001-FI001"]


@pytest.mark.asyncio
async def test_emptied_cart_can_switch_restaurant(db, seeded):
    await cart_crud.add_item(db, "U1", "R001-FI001")
    await cart_crud.remove_item(db, "U1", "R001-FI001")

    cart = await cart_crud.add_item(db, "U1", "R002-FI001")
    assert cart.restaurant_id == "R002"
    assert [i.name for i in cart.items] == ["Cutting Chai"]


@pytest.mark.asyncio
async def test_unknown_and_unavailable_items(db, seeded):
    with pytest.raises(NotFound):
        await cart_crud.add_item(db, "U1", "R001-FI404")

    seeded["dosa"].is_available = False
    await db.commit()
    with pytest.raises(ValidationError):
        await cart_crud.add_item(db, "U1", "R001-FI002")


@pytest.mark.asyncio
async def test_update_item_quantity_and_remove_on_zero(db, seeded):
    await cart_crud.add_item(db, "U1", "R001-FI001")
    await cart_crud.add_item(db, "U1", "R001-FI002")

    cart = await cart_crud.update_item(db, "U1", "R001-FI002", 4)
    assert {i.food_item_id: i.quantity for i in cart.items} == {"R001-FI001": 1, "R001-FI002": 4}

    cart = await cart_crud.update_item(db, "U1", "R001-FI001", 0)
    assert [i.food_item_id for i in cart.items] == ["R001-FI002"]

    with pytest.raises(NotFound):
        await cart_crud.update_item(db, "U1", "R001-FI001", 1)
    with pytest.raises(NotFound):
        await cart_crud.update_item(db, "U2", "R001-FI001", 1)


@pytest.mark.asyncio
async def test_missing_cart_reads_as_empty(db, seeded):
    cart = await cart_crud.get_cart(db, "nobody")
    assert cart.items == []
    assert cart.restaurant_id is None
