from decimal import Decimal
from typing import Any, List, Mapping, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    ConflictError,
    ErrorHandler,
    NotFoundError,
    ValidationError,
)
from bepawa.core.permissions import UserRole
from bepawa.domain.credit.models import (
    CreditAccount,
    CreditAccountStatus,
    CreditRequest,
    CreditRequestStatus,
    CreditTransaction,
    CreditTransactionType,
)
from bepawa.domain.credit.repository import CreditRepository
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.repository import ProfileRepository

logger = logging.getLogger(__name__)

_REVIEW_TRANSITIONS = {
    CreditRequestStatus.PENDING: {
        CreditRequestStatus.UNDER_REVIEW,
        CreditRequestStatus.APPROVED,
        CreditRequestStatus.REJECTED,
    },
    CreditRequestStatus.UNDER_REVIEW: {CreditRequestStatus.APPROVED, CreditRequestStatus.REJECTED},
    CreditRequestStatus.APPROVED: set(),
    CreditRequestStatus.REJECTED: set(),
}

_REQUEST_FIELDS = {
    "business_name",
    "business_type",
    "monthly_revenue",
    "years_in_business",
    "credit_purpose",
    "documents",
}

CENT = Decimal("0.01")


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def _is_admin(user: Profile) -> bool:
    return UserRole.parse(user.role) is UserRole.ADMIN


class CreditService:
    """
    Trade credit between wholesalers and the pharmacies they supply.

    A retail pharmacy applies to one wholesaler; approval opens (or raises)
    a credit account whose balance moves with each credit sale and repayment.
    Balances never exceed the limit and never drop below zero.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CreditRepository(db)
        self.profiles = ProfileRepository(db)

    # ==================== Requests ====================

    async def submit_request(self, data: Mapping[str, Any], retailer: Profile) -> CreditRequest:
        if UserRole.parse(retailer.role) is not UserRole.RETAIL:
            raise AuthorizationError("Only pharmacies apply for trade credit")
        wholesaler = await self.profiles.get(data["wholesaler_id"])
        if (
            not wholesaler
            or UserRole.parse(wholesaler.role) is not UserRole.WHOLESALE
            or not wholesaler.is_approved
        ):
            raise NotFoundError("Wholesaler not found")

        amount = _money(data["requested_amount"])
        if amount <= 0:
            raise ValidationError("Requested amount must be positive")

        request_data = {k: v for k, v in data.items() if k in _REQUEST_FIELDS}
        if request_data.get("monthly_revenue") is not None:
            request_data["monthly_revenue"] = _money(request_data["monthly_revenue"])
        request_data.update({
            "user_id": retailer.id,
            "wholesaler_id": wholesaler.id,
            "requested_amount": amount,
            "status": CreditRequestStatus.PENDING.value,
        })
        with ErrorHandler("create credit request"):
            request = await self.repo.create_request(request_data)

        await NotificationService(self.db).notify(
            wholesaler.id,
            "New credit application",
            f"{request.business_name} requested a credit line of {amount}",
            metadata={"credit_request_id": request.id},
        )
        logger.info(f"Credit request {request.id} submitted by {retailer.id} to {wholesaler.id}")
        return request

    async def list_mine(self, retailer: Profile) -> List[CreditRequest]:
        with ErrorHandler("fetch credit requests"):
            return await self.repo.list_requests(user_id=retailer.id)

    async def list_incoming(self, reviewer: Profile, status: Optional[str] = None) -> List[CreditRequest]:
        wholesaler_id = None if _is_admin(reviewer) else reviewer.id
        with ErrorHandler("fetch credit requests"):
            return await self.repo.list_requests(wholesaler_id=wholesaler_id, status=status)

    async def get_request(self, request_id: str, user: Profile) -> CreditRequest:
        with ErrorHandler("fetch credit request"):
            request = await self.repo.get_request(request_id)
        if not request or not (
            _is_admin(user) or user.id in (request.user_id, request.wholesaler_id)
        ):
            raise NotFoundError("Credit request not found")
        return request

    async def review(
        self,
        request_id: str,
        status: CreditRequestStatus,
        reviewer: Profile,
        review_notes: Optional[str] = None,
        credit_limit: Optional[Any] = None,
    ) -> CreditRequest:
        """
        Move a request through review.

        Approving opens an active account for the pair, or resets the limit of
        the existing one, in the same commit as the status change.
        """
        request = await self.get_request(request_id, reviewer)
        if not _is_admin(reviewer) and request.wholesaler_id != reviewer.id:
            raise NotFoundError("Credit request not found")

        current = CreditRequestStatus(request.status)
        status = CreditRequestStatus(status)
        if status not in _REVIEW_TRANSITIONS[current]:
            raise BusinessLogicError(f"Cannot move credit request from {current.value} to {status.value}")

        limit = _money(credit_limit) if credit_limit is not None else _money(request.requested_amount)
        if status is CreditRequestStatus.APPROVED and limit <= 0:
            raise ValidationError("Credit limit must be positive")

        notifications = NotificationService(self.db)
        try:
            with ErrorHandler("review credit request"):
                request.status = status.value
                request.reviewed_by = reviewer.id
                if review_notes is not None:
                    request.review_notes = review_notes

                if status is CreditRequestStatus.APPROVED:
                    account = await self.repo.find_account(request.wholesaler_id, request.user_id)
                    if account:
                        account.credit_limit = limit
                        account.status = CreditAccountStatus.ACTIVE.value
                    else:
                        self.repo.add_account({
                            "wholesaler_id": request.wholesaler_id,
                            "retailer_id": request.user_id,
                            "credit_limit": limit,
                            "current_balance": Decimal("0"),
                            "status": CreditAccountStatus.ACTIVE.value,
                        })
                    await notifications.notify(
                        request.user_id,
                        "Credit approved",
                        f"Your credit line of {limit} has been approved",
                        type="success",
                        metadata={"credit_request_id": request.id},
                        commit=False,
                    )
                elif status is CreditRequestStatus.REJECTED:
                    await notifications.notify(
                        request.user_id,
                        "Credit request declined",
                        review_notes or "Your credit request was not approved",
                        type="warning",
                        metadata={"credit_request_id": request.id},
                        commit=False,
                    )
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(request)
        logger.info(f"Credit request {request.id} moved to {status.value} by {reviewer.id}")
        return request

    # ==================== Accounts ====================

    async def list_accounts(self, user: Profile) -> List[CreditAccount]:
        with ErrorHandler("fetch credit accounts"):
            if _is_admin(user):
                return await self.repo.list_accounts()
            if UserRole.parse(user.role) is UserRole.WHOLESALE:
                return await self.repo.list_accounts(wholesaler_id=user.id)
            return await self.repo.list_accounts(retailer_id=user.id)

    async def get_account(self, account_id: str, user: Profile, for_update: bool = False) -> CreditAccount:
        with ErrorHandler("fetch credit account"):
            account = await self.repo.get_account(account_id, for_update=for_update)
        if not account or not (
            _is_admin(user) or user.id in (account.wholesaler_id, account.retailer_id)
        ):
            raise NotFoundError("Credit account not found")
        return account

    def _require_lender(self, account: CreditAccount, user: Profile) -> None:
        if account.wholesaler_id != user.id and not _is_admin(user):
            raise AuthorizationError("Only the lending wholesaler can change this account")

    async def create_account(self, data: Mapping[str, Any], wholesaler: Profile) -> CreditAccount:
        if UserRole.parse(wholesaler.role) is not UserRole.WHOLESALE:
            raise AuthorizationError("Only wholesalers open credit accounts")
        retailer = await self.profiles.get(data["retailer_id"])
        if not retailer or UserRole.parse(retailer.role) is not UserRole.RETAIL:
            raise NotFoundError("Pharmacy not found")
        limit = _money(data["credit_limit"])
        if limit <= 0:
            raise ValidationError("Credit limit must be positive")

        with ErrorHandler("check credit account"):
            existing = await self.repo.find_account(wholesaler.id, retailer.id)
        if existing:
            raise ConflictError("A credit account already exists for this pharmacy")

        account = self.repo.add_account({
            "wholesaler_id": wholesaler.id,
            "retailer_id": retailer.id,
            "credit_limit": limit,
            "current_balance": Decimal("0"),
            "status": CreditAccountStatus.ACTIVE.value,
        })
        with ErrorHandler("create credit account"):
            await self.db.commit()
            await self.db.refresh(account)
        return account

    async def update_account_status(
        self, account_id: str, status: CreditAccountStatus, user: Profile
    ) -> CreditAccount:
        account = await self.get_account(account_id, user)
        self._require_lender(account, user)
        status = CreditAccountStatus(status)
        if account.status == CreditAccountStatus.CLOSED.value:
            raise BusinessLogicError("Credit account is closed")
        if status is CreditAccountStatus.CLOSED and _money(account.current_balance) > 0:
            raise BusinessLogicError("Cannot close an account with an outstanding balance")

        account.status = status.value
        with ErrorHandler("update credit account"):
            await self.db.commit()
            await self.db.refresh(account)
        return account

    # ==================== Transactions ====================

    async def list_transactions(self, account_id: str, user: Profile) -> List[CreditTransaction]:
        await self.get_account(account_id, user)
        with ErrorHandler("fetch credit transactions"):
            return await self.repo.list_transactions(account_id)

    async def record_transaction(self, account_id: str, data: Mapping[str, Any], user: Profile) -> CreditTransaction:
        """Book a credit sale or a repayment and move the balance with it"""
        amount = _money(data["amount"])
        if amount <= 0:
            raise ValidationError("Amount must be positive")
        transaction_type = CreditTransactionType(data["transaction_type"])

        try:
            account = await self.get_account(account_id, user, for_update=True)
            if account.wholesaler_id != user.id:
                raise AuthorizationError("Only the lending wholesaler can record transactions")

            balance = _money(account.current_balance)
            if transaction_type is CreditTransactionType.CREDIT:
                if account.status != CreditAccountStatus.ACTIVE.value:
                    raise BusinessLogicError(f"Credit account is {account.status}")
                available = _money(account.credit_limit) - balance
                if amount > available:
                    raise BusinessLogicError(
                        "Credit limit exceeded",
                        details={"available": str(available), "requested": str(amount)},
                        error_code="CREDIT_LIMIT_EXCEEDED",
                    )
                account.current_balance = balance + amount
            else:
                if amount > balance:
                    raise BusinessLogicError(
                        "Payment exceeds the outstanding balance",
                        details={"balance": str(balance), "amount": str(amount)},
                    )
                account.current_balance = balance - amount

            with ErrorHandler("record credit transaction"):
                transaction = self.repo.add_transaction({
                    "credit_account_id": account.id,
                    "transaction_type": transaction_type.value,
                    "amount": amount,
                    "reference": data.get("reference"),
                    "notes": data.get("notes"),
                    "created_by": user.id,
                })
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(transaction)
        logger.info(f"Credit {transaction_type.value} of {amount} on account {account_id}")
        return transaction
