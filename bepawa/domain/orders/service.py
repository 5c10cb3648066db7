from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import AuthorizationError, BusinessLogicError, ErrorHandler, NotFoundError
from bepawa.core.permissions import Permissions, check_resource_access
from bepawa.domain.catalog.stock import derive_status
from bepawa.domain.catalog.visibility import visible_orders_predicate
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.orders.models import Order, OrderStatus, OrderStatusHistory, PaymentStatus
from bepawa.domain.orders.repository import OrderRepository
from bepawa.domain.products.models import MovementType
from bepawa.domain.products.repository import ProductRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)

# Orders in these states are settled
FINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

_NOTIFICATION_TYPES = {
    OrderStatus.CONFIRMED: "success",
    OrderStatus.SHIPPED: "info",
    OrderStatus.DELIVERED: "success",
    OrderStatus.CANCELLED: "warning",
}


def to_minor_units(amount: Any) -> int:
    """Order totals are stored in major units; payment providers report minor units"""
    value = Decimal(str(amount or 0)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = OrderRepository(db)

    async def list_visible(self, caller: Profile, status: Optional[str] = None, limit: int = 100) -> List[Order]:
        """Placed orders the caller takes part in; carts are never listed"""
        visibility = visible_orders_predicate(caller.role, caller.id)
        with ErrorHandler("fetch orders"):
            return await self.repo.list_visible(visibility, status=status, limit=limit)

    async def get(self, order_id: str, caller: Profile) -> Order:
        with ErrorHandler("fetch order"):
            order = await self.repo.get(order_id)
        if (
            not order
            or order.status == OrderStatus.CART.value
            or not visible_orders_predicate(caller.role, caller.id).matches(order)
        ):
            raise NotFoundError("Order not found")
        return order

    async def list_items(self, order_id: str, caller: Profile) -> List[Dict[str, Any]]:
        order = await self.get(order_id, caller)
        return list(order.items or [])

    async def status_history(self, order_id: str, caller: Profile) -> List[OrderStatusHistory]:
        await self.get(order_id, caller)
        with ErrorHandler("fetch order history"):
            return await self.repo.list_history(order_id)

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        caller: Profile,
        notes: Optional[str] = None,
    ) -> Order:
        order = await self.get(order_id, caller)
        current = OrderStatus(order.status)
        status = OrderStatus(status)

        if status is OrderStatus.CART:
            raise BusinessLogicError("Orders cannot be moved back to the cart")
        if current in FINAL_STATUSES or status is current:
            raise BusinessLogicError(f"Order is already {current.value}")

        is_seller = check_resource_access(
            caller.role, caller.id,
            [order.pharmacy_id, order.wholesaler_id],
            [Permissions.ORDERS_UPDATE_OWN, Permissions.ORDERS_UPDATE],
        )
        # Customers may withdraw an order the seller has not picked up yet
        is_customer_cancel = (
            order.user_id == caller.id
            and status is OrderStatus.CANCELLED
            and current is OrderStatus.PENDING
        )
        if not (is_seller or is_customer_cancel):
            raise AuthorizationError("You cannot change the status of this order")

        order.status = status.value
        self.repo.add_history({
            "order_id": order.id,
            "status": status.value,
            "changed_by": caller.id,
            "notes": notes,
        })
        if order.user_id != caller.id:
            await NotificationService(self.db).notify(
                order.user_id,
                f"Order {status.value}",
                f"Your order {order.order_number} is now {status.value}.",
                type=_NOTIFICATION_TYPES.get(status, "info"),
                action_url=f"/orders/{order.id}",
                metadata={"order_id": order.id, "status": status.value},
                commit=False,
            )
        with ErrorHandler("update order status"):
            await self.db.commit()
            await self.db.refresh(order)

        logger.info(f"Order {order.order_number}: {current.value} -> {status.value} by {caller.id}")
        return order

    async def mark_paid(self, order_id: str, amount_paid: Optional[int]) -> Order:
        """
        Settle a paid order: deduct stock for every line, confirm the order
        and tell the customer. Repeated deliveries for a paid order are no-ops.

        ``amount_paid`` is the captured amount in minor units. A payment that
        does not cover the order total exactly is refused and nothing changes.
        A payment for a cancelled order is recorded without touching stock so
        the customer can be refunded.
        """
        with ErrorHandler("fetch order"):
            order = await self.repo.get(order_id)
        if not order or order.status == OrderStatus.CART.value:
            raise NotFoundError("Order not found")
        if order.payment_status == PaymentStatus.PAID.value:
            logger.info(f"Order {order.order_number} already paid")
            return order

        expected = to_minor_units(order.total_amount)
        if amount_paid != expected:
            logger.warning(f"Order {order.order_number} paid {amount_paid}, expected {expected}")
            raise BusinessLogicError(
                "Paid amount does not match the order total",
                details={"order_id": order.id, "expected": expected, "paid": amount_paid},
                error_code="PAYMENT_AMOUNT_MISMATCH",
            )

        notifications = NotificationService(self.db)
        if order.status == OrderStatus.CANCELLED.value:
            logger.warning(f"Payment received for cancelled order {order.order_number}; refund due")
            order.payment_status = PaymentStatus.PAID.value
            await notifications.notify(
                order.user_id,
                "Refund pending",
                f"Order {order.order_number} was cancelled before your payment arrived. It will be refunded.",
                type="warning",
                action_url=f"/orders/{order.id}",
                metadata={"order_id": order.id, "refund_due": True},
                commit=False,
            )
            with ErrorHandler("record payment for cancelled order"):
                await self.db.commit()
                await self.db.refresh(order)
            return order

        products = ProductRepository(self.db)
        try:
            with ErrorHandler("settle paid order"):
                for item in order.items or []:
                    product = await products.get(item.get("id"), for_update=True)
                    if not product:
                        logger.warning(f"Product {item.get('id')} on {order.order_number} no longer exists")
                        continue
                    quantity = int(item.get("quantity") or 0)
                    if product.stock < quantity:
                        logger.warning(f"Stock for {product.id} short by {quantity - product.stock} on {order.order_number}")
                    product.stock = max((product.stock or 0) - quantity, 0)
                    product.status = derive_status(
                        product.stock, product.min_stock_level, product.expiry_date
                    ).value
                    products.add_movement({
                        "user_id": product.user_id,
                        "product_id": product.id,
                        "movement_type": MovementType.OUT.value,
                        "quantity": quantity,
                        "reason": f"Order {order.order_number}",
                        "created_by": order.user_id,
                    })

                order.payment_status = PaymentStatus.PAID.value
                if order.status == OrderStatus.PENDING.value:
                    order.status = OrderStatus.CONFIRMED.value
                    self.repo.add_history({
                        "order_id": order.id,
                        "status": OrderStatus.CONFIRMED.value,
                        "notes": "Payment received",
                    })
                await notifications.notify(
                    order.user_id,
                    "Payment received",
                    f"Payment for order {order.order_number} was received.",
                    type="success",
                    action_url=f"/orders/{order.id}",
                    metadata={"order_id": order.id},
                    commit=False,
                )
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        logger.info(f"Order {order.order_number} marked paid")
        return order
