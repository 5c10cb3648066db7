import pytest

from bepawa.core.permissions import UserRole, check_resource_access, has_any_permission, Permissions
from bepawa.core.security import create_access_token, verify_token

REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"


@pytest.mark.unit
def test_token_round_trip_checks_type():
    token = create_access_token("profile-1", {"role": "retail"})
    payload = verify_token(token, "access")
    assert payload["sub"] == "profile-1"
    assert verify_token(token, "refresh") is None
    assert verify_token("not-a-token") is None


@pytest.mark.unit
def test_own_permissions_require_ownership():
    assert check_resource_access("retail", "r1", ["r1"], [Permissions.PRODUCTS_WRITE_OWN])
    assert not check_resource_access("retail", "r1", ["r2", None], [Permissions.PRODUCTS_WRITE_OWN])
    assert check_resource_access("admin", "a1", ["r2"], [Permissions.PRODUCTS_WRITE_OWN])
    assert not has_any_permission("lab", [Permissions.CART_MANAGE])
    assert not has_any_permission("superuser", [Permissions.PRODUCTS_READ])


@pytest.mark.auth
@pytest.mark.asyncio
async def test_register_login_and_me(client):
    response = await client.post(REGISTER_URL, json={
        "email": "Asha@Bepawa.co.tz", "password": "pharmacy-pass", "role": "retail",
        "business_name": "Asha Pharmacy", "license_number": "PH-2231",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "asha@bepawa.co.tz"
    assert body["is_approved"] is False

    response = await client.post(LOGIN_URL, json={"email": "asha@bepawa.co.tz", "password": "pharmacy-pass"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["business_name"] == "Asha Pharmacy"


@pytest.mark.auth
@pytest.mark.asyncio
async def test_register_rejects_duplicates_and_admins(client):
    payload = {"email": "juma@bepawa.co.tz", "password": "password-123"}
    assert (await client.post(REGISTER_URL, json=payload)).status_code == 201

    response = await client.post(REGISTER_URL, json=payload)
    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT_ERROR"

    response = await client.post(REGISTER_URL, json={**payload, "email": "boss@bepawa.co.tz", "role": "admin"})
    assert response.status_code == 403


@pytest.mark.auth
@pytest.mark.asyncio
async def test_wrong_password(client, make_profile):
    profile = await make_profile(UserRole.INDIVIDUAL)
    response = await client.post(LOGIN_URL, json={"email": profile.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


@pytest.mark.auth
@pytest.mark.asyncio
async def test_admin_approves_business_account(client, make_profile, headers_for):
    admin = await make_profile(UserRole.ADMIN)
    wholesaler = await make_profile(UserRole.WHOLESALE, approved=False)
    customer = await make_profile(UserRole.INDIVIDUAL)

    response = await client.get("/api/v1/auth/profiles", params={"approved": False}, headers=headers_for(admin))
    assert [p["id"] for p in response.json()["profiles"]] == [wholesaler.id]

    url = f"/api/v1/auth/profiles/{wholesaler.id}/approval"
    assert (await client.post(url, json={"approved": True}, headers=headers_for(customer))).status_code == 403

    response = await client.post(url, json={"approved": True}, headers=headers_for(admin))
    assert response.status_code == 200
    assert response.json()["is_approved"] is True

    # individuals are approved at signup and cannot be moderated
    response = await client.post(
        f"/api/v1/auth/profiles/{customer.id}/approval", json={"approved": False}, headers=headers_for(admin)
    )
    assert response.status_code == 400


@pytest.mark.unit
def test_token_from_another_issuer_is_rejected():
    import jwt
    from bepawa.core.config import settings

    foreign = jwt.encode(
        {"sub": "profile-1", "token_type": "access", "iss": "someone-else"},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    assert verify_token(foreign) is None
