import pytest

from bepawa.core.exceptions import BusinessLogicError, ConflictError, NotFoundError
from bepawa.core.permissions import UserRole
from bepawa.domain.categories.service import CategoryService


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_categories_are_listed_by_name_and_soft_deleted(db):
    service = CategoryService(db)
    vitamins = await service.create({"name": "Vitamins", "description": "Supplements"})
    antibiotics = await service.create({"name": "Antibiotics"})
    await service.create({"name": "Multivitamins", "parent_category_id": vitamins.id})

    assert [c.name for c in await service.list()] == ["Antibiotics", "Multivitamins", "Vitamins"]

    await service.delete(antibiotics.id)
    assert [c.name for c in await service.list()] == ["Multivitamins", "Vitamins"]
    assert len(await service.list(include_inactive=True)) == 3
    assert (await service.get(antibiotics.id)).is_active is False


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_category_names_and_parents_are_checked(db):
    service = CategoryService(db)
    analgesics = await service.create({"name": "Analgesics"})

    with pytest.raises(ConflictError):
        await service.create({"name": " analgesics "})
    with pytest.raises(NotFoundError):
        await service.create({"name": "Opioids", "parent_category_id": "missing"})
    with pytest.raises(BusinessLogicError):
        await service.update(analgesics.id, {"parent_category_id": analgesics.id})

    renamed = await service.update(analgesics.id, {"name": "Pain relief", "description": "OTC"})
    assert renamed.name == "Pain relief"
    assert renamed.description == "OTC"

    # A deactivated name can be reused
    await service.delete(analgesics.id)
    assert (await service.create({"name": "Pain relief"})).is_active is True


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_only_admins_manage_categories(client, make_profile, headers_for):
    admin = await make_profile(UserRole.ADMIN)
    pharmacy = await make_profile(UserRole.RETAIL)

    response = await client.post("/api/v1/categories", json={"name": "Antimalarials"}, headers=headers_for(pharmacy))
    assert response.status_code == 403

    response = await client.post("/api/v1/categories", json={"name": "Antimalarials"}, headers=headers_for(admin))
    assert response.status_code == 201
    category_id = response.json()["id"]

    response = await client.get("/api/v1/categories", headers=headers_for(pharmacy))
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Antimalarials"]

    response = await client.delete(f"/api/v1/categories/{category_id}", headers=headers_for(admin))
    assert response.status_code == 204
    response = await client.get(f"/api/v1/categories/{category_id}", headers=headers_for(pharmacy))
    assert response.json()["is_active"] is False

    response = await client.get("/api/v1/categories")
    assert response.status_code == 401
