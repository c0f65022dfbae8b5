from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from jevah.auth.dependencies import get_current_user, resolve_user_from_token
from jevah.db.mongo import BLACKLISTED_TOKENS, USERS


async def register(client, email="miriam@jevah.io", password="Secret123!"):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "firstName": "Miriam", "lastName": "Adeyemi"},
    )


async def test_register_verify_login_logout(client, db):
    response = await register(client)
    assert response.status_code == 201
    assert "password" not in response.json()["user"]

    stored = await db[USERS].find_one({"email": "miriam@jevah.io"})
    assert stored["isEmailVerified"] is False

    response = await client.post("/api/auth/login", json={"email": "miriam@jevah.io", "password": "Secret123!"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Please verify your email before logging in"

    response = await client.post(
        "/api/auth/verify-email",
        json={"email": "miriam@jevah.io", "code": stored["verificationCode"].lower()},
    )
    assert response.status_code == 200
    assert response.json()["user"]["isEmailVerified"] is True

    response = await client.post("/api/auth/login", json={"email": "miriam@jevah.io", "password": "Secret123!"})
    assert response.status_code == 200
    token = response.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "miriam@jevah.io"

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 401


async def test_duplicate_registration_conflicts(client):
    assert (await register(client)).status_code == 201
    response = await register(client)
    assert response.status_code == 409
    assert response.json()["detail"] == "Email address is already registered"


async def test_wrong_password_counts_failed_attempt(client, db, make_user):
    user, _ = await make_user()
    response = await client.post("/api/auth/login", json={"email": user["email"], "password": "nope-nope"})
    assert response.status_code == 401
    assert (await db[USERS].find_one({"_id": user["_id"]}))["failedLoginAttempts"] == 1


async def test_artist_registration_requires_genre(client):
    response = await client.post(
        "/api/auth/artist/register",
        json={"email": "psalm@jevah.io", "password": "Secret123!", "artistName": "Psalm", "genre": []},
    )
    assert response.status_code == 422


async def test_artist_cannot_use_plain_registration(client):
    response = await client.post(
        "/api/auth/register", json={"email": "band@jevah.io", "password": "Secret123!", "role": "artist"}
    )
    assert response.status_code == 400


async def test_complete_profile_marks_kids(client, make_user):
    _, headers = await make_user()
    response = await client.post(
        "/api/auth/complete-profile",
        json={"age": 9, "hasConsentedToPrivacyPolicy": True},
        headers=headers,
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["isKid"] is True
    assert user["section"] == "kids"


async def test_complete_profile_requires_consent(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/auth/complete-profile", json={"age": 30}, headers=headers)
    assert response.status_code == 400


async def test_password_reset_flow(client, db, make_user):
    user, _ = await make_user()
    response = await client.post("/api/auth/forgot-password", json={"email": user["email"]})
    assert response.status_code == 200
    token = (await db[USERS].find_one({"_id": user["_id"]}))["resetPasswordToken"]

    response = await client.post(
        "/api/auth/reset-password",
        json={"email": user["email"], "token": token, "newPassword": "Fresh456!"},
    )
    assert response.status_code == 200

    response = await client.post("/api/auth/login", json={"email": user["email"], "password": "Fresh456!"})
    assert response.status_code == 200


@pytest.mark.parametrize("case", ["garbage", "blacklisted", "deleted", "missing"])
async def test_required_and_optional_auth_agree(db, make_user, case):
    user, headers = await make_user()
    token = headers["Authorization"].split()[1]
    if case == "garbage":
        token = "not-a-jwt"
    elif case == "blacklisted":
        await db[BLACKLISTED_TOKENS].insert_one({"token": token, "expiresAt": datetime.utcnow() + timedelta(hours=1)})
    elif case == "deleted":
        await db[USERS].delete_one({"_id": user["_id"]})
    else:
        token = None

    assert await resolve_user_from_token(token, db) is None
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user(token, db)
    assert excinfo.value.status_code == 401
    assert excinfo.value.headers == {"WWW-Authenticate": "Bearer"}
