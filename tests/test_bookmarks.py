async def test_bookmark_lifecycle(client, make_user, make_media):
    user, headers = await make_user()
    media = await make_media(user, title="Psalm 23 Reading")
    url = f"/api/bookmarks/{media['_id']}"

    response = await client.post(url, headers=headers)
    assert response.status_code == 201

    response = await client.post(url, headers=headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Media already bookmarked"

    status = await client.get(f"{url}/status", headers=headers)
    assert status.json()["isBookmarked"] is True

    listing = await client.get("/api/bookmarks", headers=headers)
    body = listing.json()
    assert body["pagination"]["total"] == 1
    assert body["bookmarks"][0]["media"]["title"] == "Psalm 23 Reading"

    assert (await client.delete(url, headers=headers)).status_code == 200
    assert (await client.delete(url, headers=headers)).status_code == 404


async def test_bookmark_unknown_media(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/bookmarks/64b7f0c2a1b2c3d4e5f60718", headers=headers)
    assert response.status_code == 404
