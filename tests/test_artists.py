from jevah.db.mongo import NOTIFICATIONS, USERS


async def test_follow_and_unfollow_update_counters(client, db, make_user, verified_artist):
    fan, headers = await make_user(first_name="Fan")
    artist, _ = verified_artist
    url = f"/api/artist/{artist['_id']}/follow"

    response = await client.post(url, headers=headers)
    assert response.status_code == 200
    assert response.json()["followerCount"] == 1

    stored_fan = await db[USERS].find_one({"_id": fan["_id"]})
    stored_artist = await db[USERS].find_one({"_id": artist["_id"]})
    assert stored_fan["following"] == [artist["_id"]]
    assert stored_fan["artistProfile"]["followingCount"] == 1
    assert stored_artist["followers"] == [fan["_id"]]
    assert await db[NOTIFICATIONS].count_documents({"user": artist["_id"]}) == 1

    status = await client.get(f"/api/artist/{artist['_id']}/follow-status", headers=headers)
    assert status.json()["following"] is True

    response = await client.post(url, headers=headers)
    assert response.status_code == 409

    response = await client.delete(url, headers=headers)
    assert response.status_code == 200
    assert response.json()["followerCount"] == 0
    assert (await db[USERS].find_one({"_id": fan["_id"]}))["artistProfile"]["followingCount"] == 0

    response = await client.delete(url, headers=headers)
    assert response.status_code == 400


async def test_artist_following_another_artist_counts_on_profile(client, db, make_user, verified_artist):
    artist, _ = verified_artist
    peer, peer_headers = await make_user(
        role="artist",
        first_name="Asaph",
        artistProfile={"artistName": "Asaph Choir", "followerCount": 0, "followingCount": 2, "isVerifiedArtist": True},
    )

    response = await client.post(f"/api/artist/{artist['_id']}/follow", headers=peer_headers)
    assert response.status_code == 200

    stored_peer = await db[USERS].find_one({"_id": peer["_id"]})
    assert stored_peer["artistProfile"]["followingCount"] == 3
    assert stored_peer["artistProfile"]["artistName"] == "Asaph Choir"
    assert "followingCount" not in stored_peer

async def test_cannot_follow_self_or_unverified(client, make_user, verified_artist):
    artist, artist_headers = verified_artist
    response = await client.post(f"/api/artist/{artist['_id']}/follow", headers=artist_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot follow yourself"

    plain, _ = await make_user(first_name="Plain")
    _, headers = await make_user(first_name="Fan")
    response = await client.post(f"/api/artist/{plain['_id']}/follow", headers=headers)
    assert response.status_code == 400


async def test_followers_listing(client, make_user, verified_artist):
    artist, _ = verified_artist
    for name in ("Ruth", "Naomi"):
        _, headers = await make_user(first_name=name)
        await client.post(f"/api/artist/{artist['_id']}/follow", headers=headers)

    response = await client.get(f"/api/artist/{artist['_id']}/followers", headers=headers)
    body = response.json()
    assert body["pagination"]["total"] == 2
    assert {u["firstName"] for u in body["users"]} == {"Ruth", "Naomi"}

    response = await client.get("/api/artist/following/me", headers=headers)
    assert response.json()["pagination"]["total"] == 1


async def test_admin_verifies_artist(client, make_user):
    _, admin_headers = await make_user(role="admin", first_name="Admin")
    artist, artist_headers = await make_user(
        role="artist", artistProfile={"artistName": "New Voice", "genre": ["gospel"], "isVerifiedArtist": False}
    )

    response = await client.post(f"/api/artist/{artist['_id']}/verify", headers=artist_headers)
    assert response.status_code == 403

    response = await client.post(f"/api/artist/{artist['_id']}/verify", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["isVerifiedArtist"] is True


async def test_profile_update_only_for_artists(client, make_user, verified_artist):
    _, headers = await make_user()
    response = await client.patch("/api/artist/profile", json={"bio": "Hi"}, headers=headers)
    assert response.status_code == 400

    _, artist_headers = verified_artist
    response = await client.patch("/api/artist/profile", json={"bio": "Worship leader"}, headers=artist_headers)
    assert response.status_code == 200
