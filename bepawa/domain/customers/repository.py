from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from bepawa.domain.customers.models import Customer, CustomerCommunication


class CustomerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Customer:
        customer = Customer(**data)
        self.db.add(customer)
        await self.db.commit()
        await self.db.refresh(customer)
        return customer

    async def get(self, customer_id: str) -> Optional[Customer]:
        result = await self.db.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalar_one_or_none()

    async def list(self, user_id: str, search: Optional[str] = None) -> List[Customer]:
        query = select(Customer).where(Customer.user_id == user_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Customer.name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
            ))
        result = await self.db.execute(query.order_by(Customer.created_at.desc()))
        return list(result.scalars().all())

    async def update(self, customer: Customer, update_data: dict) -> Customer:
        for key, value in update_data.items():
            if hasattr(customer, key) and value is not None:
                setattr(customer, key, value)
        await self.db.commit()
        await self.db.refresh(customer)
        return customer

    async def delete(self, customer: Customer) -> None:
        await self.db.delete(customer)
        await self.db.commit()

    async def add_communication(self, data: dict) -> CustomerCommunication:
        communication = CustomerCommunication(**data)
        self.db.add(communication)
        await self.db.commit()
        await self.db.refresh(communication)
        return communication

    async def list_communications(self, user_id: str, customer_id: Optional[str] = None) -> List[CustomerCommunication]:
        query = select(CustomerCommunication).where(CustomerCommunication.user_id == user_id)
        if customer_id:
            query = query.where(CustomerCommunication.customer_id == customer_id)
        result = await self.db.execute(query.order_by(CustomerCommunication.communication_date.desc()))
        return list(result.scalars().all())
