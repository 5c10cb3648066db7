"""
Periodic inventory scans

Each scan groups the affected products by owner and leaves one notification
per owner, so a seller with many low lines gets a single summary.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.domain.catalog.mappers import ProductView
from bepawa.domain.notifications.models import NotificationType
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.products.service import ProductService
from bepawa.infrastructure.database import task_session
from bepawa.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def _by_owner(products: List[ProductView]) -> Dict[str, List[ProductView]]:
    grouped: Dict[str, List[ProductView]] = defaultdict(list)
    for product in products:
        if product.user_id:
            grouped[product.user_id].append(product)
    return grouped


def _names(products: List[ProductView], limit: int = 5) -> str:
    names = ", ".join(p.name for p in products[:limit])
    if len(products) > limit:
        names += f" and {len(products) - limit} more"
    return names


async def notify_low_stock(db: AsyncSession) -> int:
    """Notify every owner with products at or below their minimum; returns owners notified"""
    products = await ProductService(db).list_low_stock()
    notifications = NotificationService(db)
    grouped = _by_owner(products)
    for owner_id, items in grouped.items():
        await notifications.notify(
            owner_id,
            "Low stock",
            f"{len(items)} product(s) need restocking: {_names(items)}.",
            type=NotificationType.WARNING.value,
            action_url="/inventory?stock=low-stock",
            metadata={"product_ids": [p.id for p in items]},
        )
    return len(grouped)


async def notify_expiring(db: AsyncSession, days: Optional[int] = None, today: Optional[date] = None) -> int:
    products = await ProductService(db).list_expiring(days=days, today=today)
    notifications = NotificationService(db)
    grouped = _by_owner(products)
    for owner_id, items in grouped.items():
        await notifications.notify(
            owner_id,
            "Products expiring soon",
            f"{len(items)} product(s) expire soon or have expired: {_names(items)}.",
            type=NotificationType.WARNING.value,
            action_url="/inventory?sort=expiry",
            metadata={"product_ids": [p.id for p in items]},
        )
    return len(grouped)


async def _run_low_stock() -> int:
    async with task_session() as db:
        return await notify_low_stock(db)


async def _run_expiring() -> int:
    async with task_session() as db:
        return await notify_expiring(db)


@celery_app.task(bind=True, max_retries=3)
def scan_low_stock(self):
    try:
        owners = asyncio.run(_run_low_stock())
        logger.info(f"Low stock scan notified {owners} owner(s)")
        return {"status": "success", "owners_notified": owners}
    except Exception as exc:
        logger.error(f"Low stock scan failed: {exc}")
        raise self.retry(exc=exc, countdown=2 ** self.request.retries * 60)


@celery_app.task(bind=True, max_retries=3)
def scan_expiring_products(self):
    try:
        owners = asyncio.run(_run_expiring())
        logger.info(f"Expiry scan notified {owners} owner(s)")
        return {"status": "success", "owners_notified": owners}
    except Exception as exc:
        logger.error(f"Expiry scan failed: {exc}")
        raise self.retry(exc=exc, countdown=2 ** self.request.retries * 60)
