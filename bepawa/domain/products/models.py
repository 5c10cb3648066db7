import enum

from sqlalchemy import Column, String, DateTime, Date, Boolean, Integer, Numeric, Text, func

from bepawa.domain.catalog.stock import StockStatus
from bepawa.infrastructure.database import Base, gen_uuid


class MovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=gen_uuid)

    # Ownership
    user_id = Column(String(36), nullable=True, index=True)
    wholesaler_id = Column(String(36), nullable=True, index=True)
    pharmacy_id = Column(String(36), nullable=True, index=True)

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    sku = Column(String(100), nullable=True, index=True)
    manufacturer = Column(String(255), nullable=True)
    supplier = Column(String(255), nullable=True)
    dosage_form = Column(String(100), nullable=True)
    strength = Column(String(100), nullable=True)
    pack_size = Column(String(100), nullable=True)
    batch_number = Column(String(100), nullable=True)

    # Stock and pricing
    stock = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=True)
    buy_price = Column(Numeric(12, 2), nullable=True)
    sell_price = Column(Numeric(12, 2), nullable=False, default=0)

    requires_prescription = Column(Boolean, nullable=False, default=False)
    expiry_date = Column(Date, nullable=True)
    image_url = Column(String(512), nullable=True)
    status = Column(String(16), nullable=False, default=StockStatus.OUT_OF_STOCK.value)

    # Visibility flags
    is_public_product = Column(Boolean, nullable=False, default=False)
    is_retail_product = Column(Boolean, nullable=False, default=False)
    is_wholesale_product = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    product_id = Column(String(36), nullable=False, index=True)
    movement_type = Column(String(16), nullable=False)
    quantity = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
