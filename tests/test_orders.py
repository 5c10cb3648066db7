from decimal import Decimal

import pytest
from sqlalchemy import select

from bepawa.core.exceptions import AuthorizationError, BusinessLogicError, NotFoundError
from bepawa.core.permissions import UserRole
from bepawa.domain.orders.cart import CartService
from bepawa.domain.orders.models import OrderStatus, PaymentStatus
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.orders.service import OrderService, to_minor_units
from bepawa.domain.products.models import InventoryMovement, Product


@pytest.fixture
async def placed_order(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(pharmacy, stock=10, min_stock_level=5, sell_price=Decimal("1500"))
    cart = CartService(db)
    await cart.add_item(customer, product.id, 4)
    order = await cart.checkout(customer)
    return {"pharmacy": pharmacy, "customer": customer, "product": product, "order": order}


@pytest.mark.orders
@pytest.mark.asyncio
async def test_carts_are_not_listed_as_orders(db, make_profile):
    customer = await make_profile(UserRole.INDIVIDUAL)
    cart = await CartService(db).get_cart(customer)
    service = OrderService(db)

    assert await service.list_visible(customer) == []
    with pytest.raises(NotFoundError):
        await service.get(cart.id, customer)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_seller_moves_order_forward_and_customer_is_notified(db, placed_order):
    service = OrderService(db)
    order = await service.update_status(
        placed_order["order"].id, OrderStatus.CONFIRMED, placed_order["pharmacy"], "Packed"
    )
    assert order.status == "confirmed"

    history = await service.status_history(order.id, placed_order["customer"])
    assert [h.status for h in history] == ["pending", "confirmed"]


@pytest.mark.orders
@pytest.mark.asyncio
async def test_customer_may_only_cancel_pending_orders(db, placed_order):
    service = OrderService(db)
    customer = placed_order["customer"]

    with pytest.raises(AuthorizationError):
        await service.update_status(placed_order["order"].id, OrderStatus.SHIPPED, customer)

    order = await service.update_status(placed_order["order"].id, OrderStatus.CANCELLED, customer)
    assert order.status == "cancelled"

    with pytest.raises(BusinessLogicError):
        await service.update_status(order.id, OrderStatus.CONFIRMED, placed_order["pharmacy"])


@pytest.mark.orders
@pytest.mark.asyncio
async def test_unrelated_seller_cannot_see_order(db, placed_order, make_profile):
    other = await make_profile(UserRole.RETAIL)
    with pytest.raises(NotFoundError):
        await OrderService(db).get(placed_order["order"].id, other)


@pytest.mark.orders
@pytest.mark.asyncio
async def test_mark_paid_deducts_stock_once(db, placed_order):
    service = OrderService(db)
    order = await service.mark_paid(placed_order["order"].id, 600000)
    assert order.payment_status == PaymentStatus.PAID.value
    assert order.status == OrderStatus.CONFIRMED.value

    # a redelivered webhook must not deduct twice
    await service.mark_paid(order.id, 600000)

    product = await db.get(Product, placed_order["product"].id)
    await db.refresh(product)
    assert product.stock == 6
    movements = (await db.execute(
        select(InventoryMovement).where(InventoryMovement.product_id == product.id)
    )).scalars().all()
    assert [(m.movement_type, m.quantity) for m in movements] == [("out", 4)]


@pytest.mark.orders
@pytest.mark.asyncio
async def test_orders_api_lists_for_both_parties(client, placed_order, headers_for):
    for party in ("customer", "pharmacy"):
        response = await client.get("/api/v1/orders", headers=headers_for(placed_order[party]))
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [placed_order["order"].id]


@pytest.mark.unit
def test_minor_units_round_half_up():
    assert to_minor_units(Decimal("6000")) == 600000
    assert to_minor_units(Decimal("12.345")) == 1235
    assert to_minor_units(None) == 0


@pytest.mark.orders
@pytest.mark.asyncio
async def test_payment_for_cancelled_order_keeps_stock(db, placed_order):
    service = OrderService(db)
    order_id = placed_order["order"].id
    product_id = placed_order["product"].id
    customer_id = placed_order["customer"].id
    await service.update_status(order_id, OrderStatus.CANCELLED, placed_order["customer"])

    order = await service.mark_paid(order_id, 600000)
    assert order.status == OrderStatus.CANCELLED.value
    assert order.payment_status == PaymentStatus.PAID.value

    product = await db.get(Product, product_id)
    await db.refresh(product)
    assert product.stock == 10
    movements = (await db.execute(
        select(InventoryMovement).where(InventoryMovement.product_id == product_id)
    )).scalars().all()
    assert movements == []

    notes = await NotificationService(db).list_for_user(customer_id)
    assert notes[0].title == "Refund pending"
    assert notes[0].metadata["refund_due"] is True


@pytest.mark.orders
@pytest.mark.asyncio
async def test_underpayment_leaves_order_untouched(db, placed_order):
    service = OrderService(db)
    order_id = placed_order["order"].id

    for amount in (1, None, 600001):
        with pytest.raises(BusinessLogicError) as excinfo:
            await service.mark_paid(order_id, amount)
        assert excinfo.value.error_code == "PAYMENT_AMOUNT_MISMATCH"

    order = await service.get(order_id, placed_order["customer"])
    assert order.status == OrderStatus.PENDING.value
    assert order.payment_status == PaymentStatus.PENDING.value
    product = await db.get(Product, placed_order["product"].id)
    assert product.stock == 10


@pytest.mark.orders
@pytest.mark.asyncio
async def test_same_status_is_rejected(db, placed_order):
    service = OrderService(db)
    order_id = placed_order["order"].id

    with pytest.raises(BusinessLogicError):
        await service.update_status(order_id, OrderStatus.PENDING, placed_order["pharmacy"])

    history = await service.status_history(order_id, placed_order["customer"])
    assert [h.status for h in history] == ["pending"]
