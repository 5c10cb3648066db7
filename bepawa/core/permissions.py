import enum
from typing import Dict, FrozenSet, Iterable, Optional


class UserRole(str, enum.Enum):
    """Account roles; the role decides which rows a caller may see"""
    INDIVIDUAL = "individual"
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    LAB = "lab"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value) -> Optional["UserRole"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class Permissions:
    """Permission constants for the marketplace"""

    # Catalog
    PRODUCTS_READ = "products:read"
    PRODUCTS_WRITE_OWN = "products:write:own"
    PRODUCTS_WRITE = "products:write"
    CATEGORIES_MANAGE = "categories:manage"

    # Orders and carts
    CART_MANAGE = "cart:manage"
    ORDERS_READ_OWN = "orders:read:own"
    ORDERS_UPDATE_OWN = "orders:update:own"
    ORDERS_UPDATE = "orders:update"

    # Procurement
    PROCUREMENT_MANAGE = "procurement:manage"

    # Trade credit between wholesalers and pharmacies
    CREDIT_REQUEST = "credit:request"
    CREDIT_MANAGE = "credit:manage"

    # Point of sale, customers, finance
    POS_MANAGE = "pos:manage"
    CUSTOMERS_MANAGE = "customers:manage"
    FINANCE_MANAGE = "finance:manage"

    # Appointments and prescriptions
    APPOINTMENTS_BOOK = "appointments:book"
    APPOINTMENTS_PROVIDE = "appointments:provide"
    PRESCRIPTIONS_UPLOAD = "prescriptions:upload"
    PRESCRIPTIONS_REVIEW = "prescriptions:review"

    # System
    PROFILES_APPROVE = "profiles:approve"
    ALERTS_MANAGE = "alerts:manage"
    AUDIT_READ = "audit:read"
    SYSTEM_ADMIN = "system:admin"


_BUSINESS = frozenset({
    Permissions.PRODUCTS_READ,
    Permissions.PRODUCTS_WRITE_OWN,
    Permissions.CART_MANAGE,
    Permissions.ORDERS_READ_OWN,
    Permissions.ORDERS_UPDATE_OWN,
    Permissions.PROCUREMENT_MANAGE,
    Permissions.POS_MANAGE,
    Permissions.CUSTOMERS_MANAGE,
    Permissions.FINANCE_MANAGE,
})

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.INDIVIDUAL: frozenset({
        Permissions.PRODUCTS_READ,
        Permissions.CART_MANAGE,
        Permissions.ORDERS_READ_OWN,
        Permissions.APPOINTMENTS_BOOK,
        Permissions.PRESCRIPTIONS_UPLOAD,
    }),
    UserRole.RETAIL: _BUSINESS | {
        Permissions.APPOINTMENTS_PROVIDE,
        Permissions.PRESCRIPTIONS_REVIEW,
        Permissions.CREDIT_REQUEST,
    },
    UserRole.WHOLESALE: _BUSINESS | {Permissions.CREDIT_MANAGE},
    UserRole.LAB: frozenset({
        Permissions.APPOINTMENTS_PROVIDE,
        Permissions.CUSTOMERS_MANAGE,
        Permissions.FINANCE_MANAGE,
    }),
    UserRole.ADMIN: frozenset({
        Permissions.SYSTEM_ADMIN,
        Permissions.PRODUCTS_READ,
        Permissions.PRODUCTS_WRITE,
        Permissions.ORDERS_UPDATE,
        Permissions.PROFILES_APPROVE,
        Permissions.CATEGORIES_MANAGE,
        Permissions.CREDIT_MANAGE,
        Permissions.ALERTS_MANAGE,
        Permissions.AUDIT_READ,
        Permissions.PRESCRIPTIONS_REVIEW,
    }),
}


def permissions_for(role) -> FrozenSet[str]:
    parsed = UserRole.parse(role)
    if parsed is None:
        return frozenset()
    return ROLE_PERMISSIONS[parsed]


def has_any_permission(role, required_permissions: Iterable[str]) -> bool:
    granted = permissions_for(role)
    if Permissions.SYSTEM_ADMIN in granted:
        return True
    return any(perm in granted for perm in required_permissions)


def check_resource_access(
    role,
    user_id: str,
    resource_owner_ids: Iterable[Optional[str]],
    required_permissions: Iterable[str]
) -> bool:
    """
    Check if the caller may act on a row owned by any of ``resource_owner_ids``.

    Permissions ending in ``:own`` only grant access when the caller is one of
    the owners; other permissions grant it outright.
    """
    granted = permissions_for(role)
    if Permissions.SYSTEM_ADMIN in granted:
        return True

    owners = {owner for owner in resource_owner_ids if owner}
    for permission in required_permissions:
        if permission not in granted:
            continue
        if permission.endswith(":own"):
            if user_id in owners:
                return True
        else:
            return True

    return False
