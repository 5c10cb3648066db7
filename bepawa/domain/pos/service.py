from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import ErrorHandler, InsufficientStockError, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.catalog.stock import derive_status
from bepawa.domain.pos.models import PosSale, PosSaleItem
from bepawa.domain.pos.repository import PosRepository
from bepawa.domain.products.models import MovementType
from bepawa.domain.products.repository import ProductRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("cash", "card", "mobile_money", "insurance")


class PosService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PosRepository(db)
        self.products = ProductRepository(db)

    async def create_sale(
        self,
        seller: Profile,
        sale: Mapping[str, Any],
        items: Sequence[Mapping[str, Any]],
    ) -> PosSale:
        """
        Record a counter sale.

        The sale, its lines, the stock decrements and the matching inventory
        movements are committed together. Any failure rolls all of them back.
        """
        if not items:
            raise ValidationError("A sale needs at least one item")
        payment_method = sale.get("payment_method") or "cash"
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unsupported payment method: {payment_method}")

        requested: Dict[str, int] = {}
        for item in items:
            quantity = int(item.get("quantity") or 0)
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than zero")
            requested[item["product_id"]] = requested.get(item["product_id"], 0) + quantity

        is_admin = UserRole.parse(seller.role) is UserRole.ADMIN
        try:
            with ErrorHandler("create pos sale"):
                products = {}
                for product_id, quantity in requested.items():
                    product = await self.products.get(product_id, for_update=True)
                    if not product or (product.user_id != seller.id and not is_admin):
                        raise NotFoundError(f"Product {product_id} not found")
                    if (product.stock or 0) < quantity:
                        raise InsufficientStockError(product.name, product.id, product.stock or 0, quantity)
                    products[product_id] = product

                lines: List[Dict[str, Any]] = []
                total = Decimal("0")
                for item in items:
                    product = products[item["product_id"]]
                    quantity = int(item["quantity"])
                    unit_price = Decimal(str(item["unit_price"])) if item.get("unit_price") is not None \
                        else Decimal(str(product.sell_price or 0))
                    line_total = (unit_price * quantity).quantize(Decimal("0.01"))
                    total += line_total
                    lines.append({
                        "product_id": product.id,
                        "quantity": quantity,
                        "unit_price": unit_price,
                        "total_price": line_total,
                    })

                sale_row = await self.repo.stage_sale({
                    "user_id": seller.id,
                    "total_amount": total,
                    "payment_method": payment_method,
                    "customer_name": sale.get("customer_name"),
                    **({"sale_date": sale["sale_date"]} if sale.get("sale_date") else {}),
                })
                for line in lines:
                    self.repo.stage_item({**line, "pos_sale_id": sale_row.id})

                for product_id, quantity in requested.items():
                    product = products[product_id]
                    product.stock = product.stock - quantity
                    product.status = derive_status(
                        product.stock, product.min_stock_level, product.expiry_date
                    ).value
                    self.products.add_movement({
                        "user_id": product.user_id,
                        "product_id": product.id,
                        "movement_type": MovementType.OUT.value,
                        "quantity": quantity,
                        "reason": f"POS sale {sale_row.id}",
                        "created_by": seller.id,
                    })

                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(sale_row)
        logger.info(f"POS sale {sale_row.id} recorded by {seller.id} for {total}")
        return sale_row

    async def list_sales(self, seller: Profile, limit: int = 100) -> List[PosSale]:
        with ErrorHandler("fetch pos sales"):
            return await self.repo.list_sales(seller.id, limit=limit)

    async def list_sale_items(self, sale_id: str, seller: Profile) -> List[PosSaleItem]:
        with ErrorHandler("fetch pos sale items"):
            sale = await self.repo.get_sale(sale_id)
            if not sale or sale.user_id != seller.id:
                raise NotFoundError("Sale not found")
            return await self.repo.list_items(sale_id)
