from sqlalchemy import Column, String, DateTime, Integer, Numeric, func

from bepawa.infrastructure.database import Base, gen_uuid


class PosSale(Base):
    __tablename__ = "pos_sales"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    sale_date = Column(DateTime, default=func.now(), index=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(32), nullable=False)
    customer_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=func.now())


class PosSaleItem(Base):
    __tablename__ = "pos_sale_items"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    pos_sale_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=func.now())
