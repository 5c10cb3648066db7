"""
Role-scoped visibility

Pure functions deciding which rows of a shared table a caller may see. Each
returns a declarative ``VisibilityFilter`` that can be checked against an
in-memory row or compiled into a SQLAlchemy where-clause.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy import and_, false, or_, true

from bepawa.core.permissions import UserRole


def _read(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


@dataclass(frozen=True)
class Condition:
    """One field test: ``eq`` compares to ``value``, ``not_null`` checks presence"""
    field: str
    op: str = "eq"
    value: Any = None

    def matches(self, row: Any) -> bool:
        actual = _read(row, self.field)
        if self.op == "not_null":
            return actual is not None
        if self.op == "eq":
            return actual is not None and actual == self.value
        raise ValueError(f"Unsupported operator: {self.op}")

    def to_clause(self, model):
        column = getattr(model, self.field)
        if self.op == "not_null":
            return column.isnot(None)
        if self.op == "eq":
            return column == self.value
        raise ValueError(f"Unsupported operator: {self.op}")

    def describe(self) -> str:
        if self.op == "not_null":
            return f"{self.field}.not.is.null"
        value = str(self.value).lower() if isinstance(self.value, bool) else self.value
        return f"{self.field}.eq.{value}"


@dataclass(frozen=True)
class VisibilityFilter:
    """
    Disjunction of conjunctions over row fields.

    ``unrestricted`` admits every row; a filter with no groups and no
    ``unrestricted`` flag admits nothing.
    """
    groups: Tuple[Tuple[Condition, ...], ...] = ()
    unrestricted: bool = False

    @classmethod
    def allow_all(cls) -> "VisibilityFilter":
        return cls(unrestricted=True)

    @classmethod
    def deny_all(cls) -> "VisibilityFilter":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.groups

    def matches(self, row: Any) -> bool:
        if self.unrestricted:
            return True
        return any(all(cond.matches(row) for cond in group) for group in self.groups)

    def to_clause(self, model):
        if self.unrestricted:
            return true()
        if not self.groups:
            return false()
        return or_(*[
            and_(*[cond.to_clause(model) for cond in group])
            for group in self.groups
        ])

    def describe(self) -> str:
        """PostgREST-style rendering, used in log lines"""
        if self.unrestricted:
            return "*"
        if not self.groups:
            return "none"
        parts = []
        for group in self.groups:
            rendered = ",".join(cond.describe() for cond in group)
            parts.append(f"and({rendered})" if len(group) > 1 else rendered)
        return f"or({','.join(parts)})" if len(parts) > 1 else parts[0]


def _owned_by(field: str, caller_id: Optional[str]) -> Tuple[Tuple[Condition, ...], ...]:
    if not caller_id:
        return ()
    return ((Condition(field, "eq", caller_id),),)


def visible_products_predicate(role, caller_id: Optional[str]) -> VisibilityFilter:
    """Rows of ``products`` the caller may see."""
    parsed = UserRole.parse(role)

    if parsed is UserRole.ADMIN:
        return VisibilityFilter.allow_all()

    if parsed is UserRole.INDIVIDUAL:
        return VisibilityFilter(groups=(
            (
                Condition("is_public_product", "eq", True),
                Condition("is_retail_product", "eq", True),
            ),
        ))

    if parsed is UserRole.RETAIL:
        marketplace = (
            Condition("is_public_product", "eq", True),
            Condition("is_wholesale_product", "eq", True),
        )
        return VisibilityFilter(groups=(marketplace,) + _owned_by("user_id", caller_id))

    if parsed is UserRole.WHOLESALE:
        return VisibilityFilter(groups=_owned_by("user_id", caller_id))

    return VisibilityFilter.deny_all()


def legacy_retail_products_predicate(caller_id: Optional[str]) -> VisibilityFilter:
    """
    Storefront predicate the retail catalog page used before consolidation:
    any wholesaler-owned row, or the caller's own rows.
    """
    return VisibilityFilter(
        groups=((Condition("wholesaler_id", "not_null"),),) + _owned_by("user_id", caller_id)
    )


def visible_orders_predicate(role, caller_id: Optional[str]) -> VisibilityFilter:
    """Rows of ``orders`` the caller may see."""
    parsed = UserRole.parse(role)

    if parsed is UserRole.ADMIN:
        return VisibilityFilter.allow_all()
    if not caller_id:
        return VisibilityFilter.deny_all()

    if parsed is UserRole.INDIVIDUAL:
        return VisibilityFilter(groups=_owned_by("user_id", caller_id))
    if parsed is UserRole.RETAIL:
        return VisibilityFilter(
            groups=_owned_by("user_id", caller_id) + _owned_by("pharmacy_id", caller_id)
        )
    if parsed is UserRole.WHOLESALE:
        return VisibilityFilter(
            groups=_owned_by("user_id", caller_id) + _owned_by("wholesaler_id", caller_id)
        )

    return VisibilityFilter.deny_all()
