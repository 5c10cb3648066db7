from sqlalchemy import Column, String, DateTime, Boolean, Text, func

from bepawa.infrastructure.database import Base, gen_uuid


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    parent_category_id = Column(String(36), nullable=True, index=True)
    # Deleting a category only hides it; products keep their category text
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
