from decimal import Decimal

import pytest
from sqlalchemy import select

from bepawa.core.exceptions import BusinessLogicError, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.notifications.models import Notification
from bepawa.domain.orders.cart import CartService, apply_quantity, recompute_total
from bepawa.domain.orders.models import OrderStatus, OrderStatusHistory, PaymentStatus


@pytest.mark.unit
def test_update_quantity_recomputes_total():
    items = [{"id": "a", "price": 1000, "quantity": 2}]
    updated = apply_quantity(items, "a", 3)
    assert recompute_total(updated) == Decimal("3000.00")
    # original lines are untouched
    assert items[0]["quantity"] == 2


@pytest.mark.unit
def test_quantity_below_one_leaves_cart_unchanged():
    items = [{"id": "a", "price": 1000, "quantity": 2}]
    assert apply_quantity(items, "a", 0) == items


@pytest.mark.unit
def test_quantity_above_known_stock_is_rejected():
    with pytest.raises(ValidationError):
        apply_quantity([{"id": "a", "price": 10, "quantity": 1, "stock": 2}], "a", 3)


@pytest.mark.unit
def test_unknown_line_is_not_found():
    with pytest.raises(NotFoundError):
        apply_quantity([], "missing", 1)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_cart_row_is_created_lazily(db, make_profile):
    customer = await make_profile(UserRole.INDIVIDUAL)
    cart = await CartService(db).get_cart(customer)
    assert cart.status == OrderStatus.CART.value
    assert cart.order_number == f"CART-{customer.id}"
    assert cart.payment_status == PaymentStatus.UNPAID.value

    again = await CartService(db).get_cart(customer)
    assert again.id == cart.id


@pytest.mark.orders
@pytest.mark.asyncio
async def test_add_item_merges_lines_and_checks_stock(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(pharmacy, stock=5)

    service = CartService(db)
    await service.add_item(customer, product.id, 2)
    cart = await service.add_item(customer, product.id, 1)
    assert len(cart.items) == 1
    assert cart.items[0]["quantity"] == 3
    assert Decimal(str(cart.total_amount)) == Decimal("3000.00")

    with pytest.raises(ValidationError):
        await service.add_item(customer, product.id, 3)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_customer_cannot_add_unpublished_product(db, make_profile, make_product):
    wholesaler = await make_profile(UserRole.WHOLESALE)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(wholesaler)

    with pytest.raises(NotFoundError):
        await CartService(db).add_item(customer, product.id)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_checkout_places_order_records_history_and_notifies_seller(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(pharmacy, sell_price=Decimal("1000"))

    service = CartService(db)
    await service.add_item(customer, product.id, 2)
    order = await service.checkout(customer, shipping_address="Plot 12, Mikocheni")

    assert order.status == OrderStatus.PENDING.value
    assert order.payment_status == PaymentStatus.PENDING.value
    assert order.order_number.startswith("ORD-")
    assert order.pharmacy_id == pharmacy.id

    history = (await db.execute(
        select(OrderStatusHistory).where(OrderStatusHistory.order_id == order.id)
    )).scalars().all()
    assert [h.status for h in history] == ["pending"]

    notes = (await db.execute(select(Notification).where(Notification.user_id == pharmacy.id))).scalars().all()
    assert len(notes) == 1

    # the next cart is a fresh row
    fresh = await service.get_cart(customer)
    assert fresh.id != order.id
    assert fresh.items == []


@pytest.mark.orders
@pytest.mark.asyncio
async def test_empty_cart_cannot_be_checked_out(db, make_profile):
    customer = await make_profile(UserRole.INDIVIDUAL)
    with pytest.raises(BusinessLogicError):
        await CartService(db).checkout(customer)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_cart_api_round(client, make_profile, make_product, headers_for):
    pharmacy = await make_profile(UserRole.RETAIL)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(pharmacy)
    headers = headers_for(customer)

    response = await client.post("/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
    assert response.status_code == 201
    response = await client.patch(f"/api/v1/cart/items/{product.id}", json={"quantity": 3}, headers=headers)
    assert response.status_code == 200
    assert response.json()["total_amount"] == 3000.0

    response = await client.post("/api/v1/cart/checkout", json={}, headers=headers)
    assert response.status_code == 201
    assert response.json()["status"] == "pending"
