import enum

from sqlalchemy import Column, String, DateTime, Integer, Numeric, Text, JSON, func

from bepawa.infrastructure.database import Base, gen_uuid


class CreditRequestStatus(str, enum.Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"


class CreditAccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CLOSED = "closed"


class CreditTransactionType(str, enum.Enum):
    CREDIT = "credit"
    PAYMENT = "payment"


class CreditRequest(Base):
    """A pharmacy asking a wholesaler for a trade credit line"""
    __tablename__ = "credit_requests"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    wholesaler_id = Column(String(36), nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    requested_amount = Column(Numeric(12, 2), nullable=False)
    business_type = Column(String(64), nullable=True)
    monthly_revenue = Column(Numeric(12, 2), nullable=True)
    years_in_business = Column(Integer, nullable=True)
    credit_purpose = Column(Text, nullable=True)
    documents = Column(JSON, nullable=True)
    status = Column(String(16), nullable=False, default=CreditRequestStatus.PENDING.value)
    reviewed_by = Column(String(36), nullable=True)
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class CreditAccount(Base):
    __tablename__ = "credit_accounts"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    wholesaler_id = Column(String(36), nullable=False, index=True)
    retailer_id = Column(String(36), nullable=False, index=True)
    credit_limit = Column(Numeric(12, 2), nullable=False, default=0)
    current_balance = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(16), nullable=False, default=CreditAccountStatus.ACTIVE.value)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    credit_account_id = Column(String(36), nullable=False, index=True)
    transaction_type = Column(String(16), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), nullable=True)
    transaction_date = Column(DateTime, default=func.now(), index=True)
