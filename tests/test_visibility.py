import pytest
from sqlalchemy import select

from bepawa.core.permissions import UserRole
from bepawa.domain.catalog.visibility import (
    Condition,
    VisibilityFilter,
    legacy_retail_products_predicate,
    visible_orders_predicate,
    visible_products_predicate,
)
from bepawa.domain.products.models import Product

CALLER = "retail-1"

ROWS = [
    {"id": "public-retail", "user_id": "r2", "pharmacy_id": "r2", "wholesaler_id": None,
     "is_public_product": True, "is_retail_product": True, "is_wholesale_product": False},
    {"id": "private-retail", "user_id": "r2", "pharmacy_id": "r2", "wholesaler_id": None,
     "is_public_product": False, "is_retail_product": True, "is_wholesale_product": False},
    {"id": "published-wholesale", "user_id": "w1", "pharmacy_id": None, "wholesaler_id": "w1",
     "is_public_product": True, "is_retail_product": False, "is_wholesale_product": True},
    {"id": "unpublished-wholesale", "user_id": "w1", "pharmacy_id": None, "wholesaler_id": "w1",
     "is_public_product": False, "is_retail_product": False, "is_wholesale_product": True},
    {"id": "own", "user_id": CALLER, "pharmacy_id": CALLER, "wholesaler_id": None,
     "is_public_product": False, "is_retail_product": True, "is_wholesale_product": False},
]


def _visible(predicate):
    return {row["id"] for row in ROWS if predicate.matches(row)}


@pytest.mark.unit
def test_individual_sees_public_retail_only():
    assert _visible(visible_products_predicate(UserRole.INDIVIDUAL, "u1")) == {"public-retail"}


@pytest.mark.unit
def test_individual_never_admits_unpublished_rows():
    predicate = visible_products_predicate("individual", "u1")
    for row in ROWS:
        if not row["is_public_product"]:
            assert not predicate.matches(row)


@pytest.mark.unit
def test_retail_sees_published_wholesale_and_own():
    assert _visible(visible_products_predicate("retail", CALLER)) == {"published-wholesale", "own"}


@pytest.mark.unit
def test_wholesale_sees_only_own_rows():
    assert _visible(visible_products_predicate("wholesale", "w1")) == {"published-wholesale", "unpublished-wholesale"}


@pytest.mark.unit
def test_admin_is_unrestricted():
    predicate = visible_products_predicate("admin", "a1")
    assert predicate.unrestricted
    assert _visible(predicate) == {row["id"] for row in ROWS}


@pytest.mark.unit
@pytest.mark.parametrize("role", ["lab", "pharmacist", None, ""])
def test_lab_and_unknown_roles_see_nothing(role):
    predicate = visible_products_predicate(role, "x")
    assert predicate.is_empty
    assert _visible(predicate) == set()


@pytest.mark.unit
def test_role_parsing_is_case_insensitive():
    assert visible_products_predicate("RETAIL", CALLER) == visible_products_predicate(UserRole.RETAIL, CALLER)


@pytest.mark.unit
def test_consolidated_and_legacy_retail_predicates_disagree():
    """The storefront once showed every wholesaler row, published or not."""
    consolidated = _visible(visible_products_predicate("retail", CALLER))
    legacy = _visible(legacy_retail_products_predicate(CALLER))

    assert "unpublished-wholesale" in legacy - consolidated
    assert consolidated != legacy


@pytest.mark.unit
def test_describe_renders_postgrest_style():
    assert visible_products_predicate("individual", "u1").describe() == \
        "and(is_public_product.eq.true,is_retail_product.eq.true)"
    assert visible_products_predicate("wholesale", "w1").describe() == "user_id.eq.w1"
    assert visible_products_predicate("admin", "a1").describe() == "*"
    assert visible_products_predicate("lab", "l1").describe() == "none"


@pytest.mark.unit
def test_condition_rejects_unknown_operator():
    with pytest.raises(ValueError):
        Condition("stock", "gt", 1).matches({"stock": 2})


@pytest.mark.unit
def test_orders_predicate_scopes_by_participant():
    order = {"user_id": "u1", "pharmacy_id": "r1", "wholesaler_id": None}
    assert visible_orders_predicate("individual", "u1").matches(order)
    assert not visible_orders_predicate("individual", "u2").matches(order)
    assert visible_orders_predicate("retail", "r1").matches(order)
    assert not visible_orders_predicate("wholesale", "w1").matches(order)
    assert visible_orders_predicate("admin", "a1").matches(order)
    assert not visible_orders_predicate("lab", "u1").matches(order)
    assert visible_orders_predicate("retail", None).is_empty


@pytest.mark.integration
@pytest.mark.asyncio
async def test_compiled_clause_agrees_with_in_memory_match(db):
    for row in ROWS:
        db.add(Product(name=row["id"], stock=1, **row))
    await db.commit()

    for role, caller in [("individual", "u1"), ("retail", CALLER), ("wholesale", "w1"), ("admin", "a1")]:
        predicate = visible_products_predicate(role, caller)
        result = await db.execute(select(Product.id).where(predicate.to_clause(Product)))
        assert set(result.scalars().all()) == _visible(predicate), role


@pytest.mark.unit
def test_deny_all_clause_is_false():
    clause = VisibilityFilter.deny_all().to_clause(Product)
    assert str(clause.compile(compile_kwargs={"literal_binds": True})) in ("false", "0")
