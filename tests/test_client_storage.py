import pytest

from bepawa.core.permissions import UserRole
from bepawa.infrastructure.redis import ClientStorage


@pytest.mark.unit
def test_keys_are_namespaced():
    assert ClientStorage.key("wishlist", "u1") == "bepawa_wishlist_u1"
    assert ClientStorage.key("cart", None) == "bepawa_cart_guest"
    with pytest.raises(ValueError):
        ClientStorage.key("session", "u1")


@pytest.mark.asyncio
async def test_get_set_and_corrupt_values(redis_client):
    storage = ClientStorage(redis_client)
    assert await storage.get("cart", "u1", default=[]) == []

    await storage.set("cart", "u1", [{"id": "p1", "quantity": 2}])
    assert await storage.get("cart", "u1") == [{"id": "p1", "quantity": 2}]
    assert await redis_client.ttl("bepawa_cart_u1") == -1

    await redis_client.set("bepawa_notifications_u1", b"{not json")
    assert await storage.get("notifications", "u1", default=[]) == []

    assert await storage.delete("cart", "u1") is True
    assert await storage.delete("cart", "u1") is False


@pytest.mark.asyncio
async def test_wishlist_toggle_returns_new_list(redis_client):
    storage = ClientStorage(redis_client)
    assert await storage.toggle_wishlist("u1", "p1") == ["p1"]
    assert await storage.toggle_wishlist("u1", "p2") == ["p1", "p2"]
    assert await storage.toggle_wishlist("u1", "p1") == ["p2"]
    assert await storage.wishlist("u2") == []


@pytest.mark.asyncio
async def test_client_storage_api(client, make_profile, headers_for):
    user = await make_profile(UserRole.INDIVIDUAL)
    headers = headers_for(user)

    response = await client.post("/api/v1/client-storage/wishlist/p9", headers=headers)
    assert response.json() == {"items": ["p9"]}
    response = await client.get("/api/v1/client-storage/wishlist", headers=headers)
    assert response.json() == {"items": ["p9"]}

    response = await client.put("/api/v1/client-storage/cart", json={"value": {"lines": 2}}, headers=headers)
    assert response.status_code == 200
    response = await client.get("/api/v1/client-storage/cart", headers=headers)
    assert response.json() == {"value": {"lines": 2}}

    response = await client.get("/api/v1/client-storage/secrets", headers=headers)
    assert response.status_code == 422
