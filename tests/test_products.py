from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from bepawa.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.products.models import InventoryMovement
from bepawa.domain.products.service import ProductService


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_create_sets_flags_from_role(db, make_profile):
    wholesaler = await make_profile(UserRole.WHOLESALE)
    pharmacy = await make_profile(UserRole.RETAIL)
    service = ProductService(db)

    bulk = await service.create({"name": "Amoxicillin 250mg x1000", "stock": 200, "price": 90000,
                                 "is_public_product": False, "is_retail_product": True}, wholesaler)
    assert bulk.is_wholesale_product is True
    assert bulk.is_retail_product is False
    assert bulk.wholesaler_id == wholesaler.id
    assert bulk.price == 90000.0

    shelf = await service.create({"name": "ORS sachet", "stock": 3, "min_stock": 5}, pharmacy)
    assert shelf.is_retail_product and shelf.is_public_product
    assert shelf.pharmacy_id == pharmacy.id
    assert shelf.status.value == "low-stock"


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_individuals_cannot_list_products(db, make_profile):
    customer = await make_profile(UserRole.INDIVIDUAL)
    with pytest.raises(AuthorizationError):
        await ProductService(db).create({"name": "Anything"}, customer)


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_only_owner_or_admin_can_update(db, make_profile, make_product):
    owner = await make_profile(UserRole.RETAIL)
    rival = await make_profile(UserRole.RETAIL)
    admin = await make_profile(UserRole.ADMIN)
    product = await make_product(owner)
    service = ProductService(db)

    with pytest.raises(AuthorizationError):
        await service.update(product.id, {"name": "Hijacked"}, rival)

    updated = await service.update(product.id, {"stock": 0}, admin)
    assert updated.status.value == "out-of-stock"


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_update_stock_records_movement(db, make_profile, make_product):
    owner = await make_profile(UserRole.RETAIL)
    product = await make_product(owner, stock=10)
    service = ProductService(db)

    view = await service.update_stock(product.id, 4, "Damaged in transit", owner)
    assert view.stock == 4

    movements = (await db.execute(select(InventoryMovement))).scalars().all()
    assert len(movements) == 1
    assert movements[0].movement_type == "out"
    assert movements[0].quantity == 6

    with pytest.raises(ValidationError):
        await service.update_stock(product.id, -1, None, owner)


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_low_stock_compares_against_each_products_minimum(db, make_profile, make_product):
    owner = await make_profile(UserRole.RETAIL)
    await make_product(owner, name="Low", stock=20, min_stock_level=25)
    await make_product(owner, name="Fine", stock=20, min_stock_level=5)

    low = await ProductService(db).list_low_stock(owner.id)
    assert [p.name for p in low] == ["Low"]


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_expiring_window(db, make_profile, make_product):
    owner = await make_profile(UserRole.RETAIL)
    today = date(2026, 3, 1)
    await make_product(owner, name="Soon", expiry_date=today + timedelta(days=10))
    await make_product(owner, name="Later", expiry_date=today + timedelta(days=90))
    await make_product(owner, name="Never")

    expiring = await ProductService(db).list_expiring(owner.id, days=30, today=today)
    assert [p.name for p in expiring] == ["Soon"]


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_catalog_api_applies_role_and_filters(client, make_profile, make_product, headers_for):
    pharmacy = await make_profile(UserRole.RETAIL)
    wholesaler = await make_profile(UserRole.WHOLESALE)
    customer = await make_profile(UserRole.INDIVIDUAL)
    await make_product(pharmacy, name="Ibuprofen", sell_price=Decimal("2500"), stock=40)
    await make_product(pharmacy, name="Amoxicillin", sell_price=Decimal("4500"), stock=0)
    await make_product(wholesaler, name="Bulk gloves")

    response = await client.get("/api/v1/products", headers=headers_for(customer))
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Amoxicillin", "Ibuprofen"]

    response = await client.get(
        "/api/v1/products",
        params={"stock_filter": "out-of-stock", "max_price": 5000},
        headers=headers_for(customer),
    )
    assert [p["name"] for p in response.json()] == ["Amoxicillin"]


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_hidden_product_reads_as_not_found(db, make_profile, make_product):
    wholesaler = await make_profile(UserRole.WHOLESALE)
    customer = await make_profile(UserRole.INDIVIDUAL)
    product = await make_product(wholesaler)
    with pytest.raises(NotFoundError):
        await ProductService(db).get(product.id, customer)


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_unapproved_business_is_blocked(client, make_profile, headers_for):
    pharmacy = await make_profile(UserRole.RETAIL, approved=False)
    response = await client.post("/api/v1/products", json={"name": "ORS", "sell_price": 350}, headers=headers_for(pharmacy))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ACCOUNT_NOT_APPROVED"


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_missing_token_is_rejected(client):
    response = await client.get("/api/v1/products")
    assert response.status_code == 401


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_update_cannot_clear_required_fields(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    product = await make_product(pharmacy, name="Cetirizine")
    product_id = product.id

    with pytest.raises(ValidationError) as excinfo:
        await ProductService(db).update(product_id, {"name": None, "price": None}, pharmacy)
    assert excinfo.value.details["fields"] == ["name", "sell_price"]

    # nullable columns may still be cleared
    updated = await ProductService(db).update(product_id, {"description": None}, pharmacy)
    assert updated.name == "Cetirizine"


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_patch_with_null_required_field_is_422(client, make_profile, make_product, headers_for):
    pharmacy = await make_profile(UserRole.RETAIL)
    product = await make_product(pharmacy)
    product_id = product.id

    response = await client.patch(
        f"/api/v1/products/{product_id}", json={"name": None, "stock": None}, headers=headers_for(pharmacy)
    )
    assert response.status_code == 422

    response = await client.patch(
        f"/api/v1/products/{product_id}", json={"stock": 3}, headers=headers_for(pharmacy)
    )
    assert response.status_code == 200
    assert response.json()["stock"] == 3
