from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import ErrorHandler, NotFoundError, ValidationError
from bepawa.domain.catalog.filters import sanitize_search_term
from bepawa.domain.customers.models import Customer, CustomerCommunication, CustomerStatus, CommunicationType
from bepawa.domain.customers.repository import CustomerRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)

TOP_CUSTOMERS = 5
RECENT_COMMUNICATIONS = 10

_CUSTOMER_FIELDS = {
    "name", "email", "phone", "address", "business_type", "total_orders",
    "total_spent", "last_order_date", "notes", "status",
}


def customer_analytics(
    customers: Sequence[Customer],
    communications: Sequence[CustomerCommunication],
) -> Dict[str, Any]:
    """Headline CRM figures computed from already-fetched rows"""
    ranked = sorted(customers, key=lambda c: Decimal(str(c.total_spent or 0)), reverse=True)
    top = [
        {
            "id": c.id,
            "name": c.name,
            "total_spent": float(c.total_spent or 0),
            "total_orders": c.total_orders or 0,
        }
        for c in ranked[:TOP_CUSTOMERS]
    ]

    growth: Dict[tuple, int] = {}
    for customer in customers:
        if not isinstance(customer.created_at, datetime):
            continue
        key = (customer.created_at.year, customer.created_at.month)
        growth[key] = growth.get(key, 0) + 1

    return {
        "total_customers": len(customers),
        "active_customers": sum(1 for c in customers if c.status == CustomerStatus.ACTIVE.value),
        "top_customers": top,
        "recent_communications": list(communications[:RECENT_COMMUNICATIONS]),
        "customer_growth": [
            {"month": datetime(year, month, 1).strftime("%b %Y"), "new_customers": count}
            for (year, month), count in sorted(growth.items())
        ],
    }


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CustomerRepository(db)

    async def list_customers(self, owner: Profile) -> List[Customer]:
        with ErrorHandler("fetch customers"):
            return await self.repo.list(owner.id)

    async def search(self, owner: Profile, term: str) -> List[Customer]:
        term = sanitize_search_term(term or "")
        if not term:
            return await self.list_customers(owner)
        with ErrorHandler("search customers"):
            return await self.repo.list(owner.id, search=term)

    async def get(self, customer_id: str, owner: Profile) -> Customer:
        with ErrorHandler("fetch customer"):
            customer = await self.repo.get(customer_id)
        if not customer or customer.user_id != owner.id:
            raise NotFoundError("Customer not found")
        return customer

    async def create(self, data: Mapping[str, Any], owner: Profile) -> Customer:
        customer_data = {k: v for k, v in data.items() if k in _CUSTOMER_FIELDS and v is not None}
        if not customer_data.get("name"):
            raise ValidationError("Customer name is required")
        if "status" in customer_data:
            customer_data["status"] = CustomerStatus(customer_data["status"]).value
        customer_data["user_id"] = owner.id
        with ErrorHandler("create customer"):
            return await self.repo.create(customer_data)

    async def update(self, customer_id: str, data: Mapping[str, Any], owner: Profile) -> Customer:
        customer = await self.get(customer_id, owner)
        update_data = {k: v for k, v in data.items() if k in _CUSTOMER_FIELDS}
        if update_data.get("status") is not None:
            update_data["status"] = CustomerStatus(update_data["status"]).value
        with ErrorHandler("update customer"):
            return await self.repo.update(customer, update_data)

    async def delete(self, customer_id: str, owner: Profile) -> None:
        customer = await self.get(customer_id, owner)
        with ErrorHandler("delete customer"):
            await self.repo.delete(customer)

    # ==================== Communications ====================

    async def list_communications(self, owner: Profile, customer_id: Optional[str] = None) -> List[CustomerCommunication]:
        with ErrorHandler("fetch communications"):
            return await self.repo.list_communications(owner.id, customer_id=customer_id)

    async def add_communication(self, data: Mapping[str, Any], owner: Profile) -> CustomerCommunication:
        await self.get(data["customer_id"], owner)
        with ErrorHandler("create communication"):
            return await self.repo.add_communication({
                "user_id": owner.id,
                "customer_id": data["customer_id"],
                "type": CommunicationType(data["type"]).value,
                "subject": data["subject"],
                "notes": data.get("notes"),
                "communication_date": data.get("communication_date") or datetime.utcnow(),
            })

    async def analytics(self, owner: Profile) -> Dict[str, Any]:
        customers = await self.list_customers(owner)
        communications = await self.list_communications(owner)
        return customer_analytics(customers, communications)
