from jevah.audit.services import AuditService


async def test_profile_hides_secrets(client, make_user):
    user, headers = await make_user()
    response = await client.get("/api/users/me", headers=headers)
    profile = response.json()["user"]
    assert profile["_id"] == str(user["_id"])
    assert profile["role"] == "learner"
    assert "password" not in profile
    assert "userActivities" not in profile


async def test_update_profile_merges_notification_preferences(client, db, make_user):
    user, headers = await make_user()
    response = await client.patch(
        "/api/users/me",
        json={"location": "Accra", "emailNotifications": {"mediaLikes": False}},
        headers=headers,
    )
    assert response.json()["user"]["location"] == "Accra"
    stored = await db["users"].find_one({"_id": user["_id"]})
    assert stored["emailNotifications"]["mediaLikes"] is False
    assert stored["emailNotifications"]["newFollowers"] is True

    response = await client.patch("/api/users/me", json={}, headers=headers)
    assert response.status_code == 400


async def test_admin_user_management(client, make_user):
    user, headers = await make_user()
    _, admin_headers = await make_user(role="admin", first_name="Admin")

    assert (await client.get("/api/users", headers=headers)).status_code == 403

    listing = await client.get("/api/users", params={"search": "grace"}, headers=admin_headers)
    assert listing.json()["pagination"]["total"] == 1

    url = f"/api/users/{user['_id']}/role"
    assert (await client.patch(url, json={"role": "overlord"}, headers=admin_headers)).status_code == 400
    response = await client.patch(url, json={"role": "vendor"}, headers=admin_headers)
    assert response.json()["user"]["role"] == "vendor"

    stats = (await client.get("/api/users/stats", headers=admin_headers)).json()["stats"]
    assert stats["totalUsers"] == 2
    assert stats["byRole"] == {"vendor": 1, "admin": 1}

    assert (await client.delete(f"/api/users/{user['_id']}", headers=admin_headers)).status_code == 200
    assert (await client.get(f"/api/users/{user['_id']}", headers=admin_headers)).status_code == 404


async def test_public_profile_search(client, make_user, verified_artist):
    await make_user(first_name="Miriam")
    response = await client.get("/api/user-profiles/search", params={"q": "psalms"})
    assert [u["firstName"] for u in response.json()["users"]] == ["David"]

    artist, _ = verified_artist
    response = await client.get("/api/user-profiles", params={"ids": f"{artist['_id']},"})
    assert response.json()["users"][0]["artistProfile"]["artistName"] == "David Psalms"

    response = await client.get("/api/user-profiles", params={"ids": "nope"})
    assert response.status_code == 400


async def test_activity_history(client, db, make_user):
    user, headers = await make_user()
    audit = AuditService(db)
    await audit.log_activity(user["_id"], "login", "auth")
    await audit.log_activity(user["_id"], "media_upload", "media", "abc")

    response = await client.get("/api/logs/me", params={"action": "media_upload"}, headers=headers)
    activities = response.json()["activities"]
    assert [a["resourceId"] for a in activities] == ["abc"]
