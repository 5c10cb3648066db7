from sqlalchemy import Column, String, DateTime, Boolean, Text, func

from bepawa.infrastructure.database import Base, gen_uuid


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, index=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)

    # Business identity (retail, wholesale, lab)
    business_name = Column(String(255), nullable=True)
    license_number = Column(String(128), nullable=True)
    tax_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
