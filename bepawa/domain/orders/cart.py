"""
Cart stored as an ``orders`` row with status ``cart``

Each customer has at most one such row. Line arithmetic lives in the pure
helpers below so every mutation recomputes ``total_amount`` the same way.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import BusinessLogicError, ErrorHandler, NotFoundError, ValidationError
from bepawa.domain.catalog.visibility import visible_products_predicate
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.orders.models import Order, OrderStatus, PaymentStatus
from bepawa.domain.orders.repository import OrderRepository
from bepawa.domain.products.repository import ProductRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)


def cart_order_number(user_id: str) -> str:
    return f"CART-{user_id}"


def generate_order_number() -> str:
    return f"ORD-{datetime.utcnow():%Y%m%d%H%M%S}-{secrets.token_hex(3).upper()}"


def recompute_total(items: List[Dict[str, Any]]) -> Decimal:
    """Sum of price * quantity over the lines, rounded to cents"""
    total = Decimal("0")
    for item in items or []:
        price = Decimal(str(item.get("price") or 0))
        quantity = int(item.get("quantity") or 0)
        total += price * quantity
    return total.quantize(Decimal("0.01"))


def apply_quantity(items: List[Dict[str, Any]], item_id: str, quantity: int) -> List[Dict[str, Any]]:
    """
    Return a copy of ``items`` with the line ``item_id`` set to ``quantity``.

    A quantity below one leaves the lines unchanged. A quantity above the
    line's known stock is rejected.
    """
    lines = [dict(item) for item in items or []]
    line = next((item for item in lines if item.get("id") == item_id), None)
    if line is None:
        raise NotFoundError("Item not in cart")
    if quantity < 1:
        return lines

    stock = line.get("stock")
    if stock is not None and quantity > int(stock):
        raise ValidationError(
            f"Only {stock} units of {line.get('name') or 'this item'} available",
            details={"item_id": item_id, "available": stock},
        )
    line["quantity"] = quantity
    return lines


class CartService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = OrderRepository(db)
        self.products = ProductRepository(db)

    async def get_cart(self, user: Profile) -> Order:
        """The caller's cart row, created on first use"""
        with ErrorHandler("fetch cart"):
            cart = await self.repo.get_cart(user.id)
            if cart is None:
                cart = self.repo.add(Order(
                    user_id=user.id,
                    order_number=cart_order_number(user.id),
                    status=OrderStatus.CART.value,
                    payment_status=PaymentStatus.UNPAID.value,
                    items=[],
                    total_amount=Decimal("0"),
                ))
                await self.db.commit()
                await self.db.refresh(cart)
        return cart

    async def _save(self, cart: Order, items: List[Dict[str, Any]]) -> Order:
        # JSON columns only track reassignment, never in-place mutation
        cart.items = items
        cart.total_amount = recompute_total(items)
        with ErrorHandler("update cart"):
            await self.db.commit()
            await self.db.refresh(cart)
        return cart

    async def add_item(self, user: Profile, product_id: str, quantity: int = 1) -> Order:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        with ErrorHandler("fetch product"):
            product = await self.products.get(product_id)
        if not product or not visible_products_predicate(user.role, user.id).matches(product):
            raise NotFoundError("Product not found")

        cart = await self.get_cart(user)
        items = [dict(item) for item in cart.items or []]
        existing = next((item for item in items if item.get("id") == product.id), None)
        wanted = quantity + (existing["quantity"] if existing else 0)
        if wanted > (product.stock or 0):
            raise ValidationError(
                f"Only {product.stock or 0} units of {product.name} available",
                details={"item_id": product.id, "available": product.stock or 0},
            )

        if existing:
            existing["quantity"] = wanted
            existing["stock"] = product.stock
        else:
            items.append({
                "id": product.id,
                "name": product.name,
                "price": float(product.sell_price or 0),
                "quantity": quantity,
                "stock": product.stock,
                "image": product.image_url,
                "seller_id": product.user_id,
                "pharmacy_id": product.pharmacy_id,
                "wholesaler_id": product.wholesaler_id,
            })
        return await self._save(cart, items)

    async def update_quantity(self, user: Profile, item_id: str, quantity: int) -> Order:
        cart = await self.get_cart(user)
        return await self._save(cart, apply_quantity(cart.items, item_id, quantity))

    async def remove_item(self, user: Profile, item_id: str) -> Order:
        cart = await self.get_cart(user)
        items = [dict(item) for item in cart.items or [] if item.get("id") != item_id]
        return await self._save(cart, items)

    async def clear(self, user: Profile) -> Order:
        cart = await self.get_cart(user)
        return await self._save(cart, [])

    async def checkout(
        self,
        user: Profile,
        shipping_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Turn the cart into a pending order, record history and notify sellers"""
        cart = await self.get_cart(user)
        items = [dict(item) for item in cart.items or []]
        if not items:
            raise BusinessLogicError("Cart is empty")

        pharmacies = {item.get("pharmacy_id") for item in items if item.get("pharmacy_id")}
        wholesalers = {item.get("wholesaler_id") for item in items if item.get("wholesaler_id")}
        sellers = {
            item.get("pharmacy_id") or item.get("wholesaler_id") or item.get("seller_id")
            for item in items
        }
        sellers.discard(None)

        cart.order_number = generate_order_number()
        cart.status = OrderStatus.PENDING.value
        cart.payment_status = PaymentStatus.PENDING.value
        cart.items = items
        cart.total_amount = recompute_total(items)
        cart.pharmacy_id = pharmacies.pop() if len(pharmacies) == 1 else None
        cart.wholesaler_id = wholesalers.pop() if len(wholesalers) == 1 else None
        cart.shipping_address = shipping_address
        cart.notes = notes

        self.repo.add_history({
            "order_id": cart.id,
            "status": OrderStatus.PENDING.value,
            "changed_by": user.id,
            "notes": "Order placed",
        })

        notifications = NotificationService(self.db)
        try:
            for seller_id in sorted(sellers):
                await notifications.notify(
                    seller_id,
                    "New order received",
                    f"Order {cart.order_number} for {cart.total_amount} is awaiting confirmation.",
                    type="info",
                    action_url=f"/orders/{cart.id}",
                    metadata={"order_id": cart.id},
                    commit=False,
                )
            with ErrorHandler("checkout"):
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(cart)
        logger.info(f"Order {cart.order_number} placed by {user.id}")
        return cart
