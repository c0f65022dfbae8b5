from jevah.db.mongo import MERCHANDISE, USERS


async def test_unsupported_content_type(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/content/playlist/64b7f0c2a1b2c3d4e5f60718/like", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported content type: playlist"


async def test_media_like_through_content_endpoint(client, make_user, make_media):
    owner, headers = await make_user()
    media = await make_media(owner, content_type="ebook")

    response = await client.post(f"/api/content/ebook/{media['_id']}/like", headers=headers)
    assert response.json() == {"success": True, "contentType": "ebook", "liked": True, "likeCount": 1}

    metadata = await client.get(f"/api/content/ebook/{media['_id']}/metadata", headers=headers)
    body = metadata.json()["metadata"]
    assert body["stats"]["likes"] == 1
    assert body["userInteraction"]["hasLiked"] is True
    assert body["userInteraction"]["hasBookmarked"] is False

    anonymous = await client.get(f"/api/content/ebook/{media['_id']}/metadata")
    assert anonymous.json()["metadata"]["userInteraction"] is None


async def test_merch_favorite_toggle(client, db, make_user):
    user, headers = await make_user()
    result = await db[MERCHANDISE].insert_one(
        {"title": "Scripture Mug", "price": 10, "stockQuantity": 5, "isAvailable": True, "viewCount": 0}
    )
    item_id = result.inserted_id
    url = f"/api/content/merch/{item_id}/like"

    response = await client.post(url, headers=headers)
    assert response.json()["liked"] is True
    assert response.json()["likeCount"] == 1
    assert (await db[USERS].find_one({"_id": user["_id"]}))["favoriteMerchandise"] == [item_id]

    metadata = await client.get(f"/api/content/merch/{item_id}/metadata", headers=headers)
    assert metadata.json()["metadata"]["userInteraction"]["hasLiked"] is True

    response = await client.post(url, headers=headers)
    assert response.json()["liked"] is False
    assert response.json()["likeCount"] == 0


async def test_artist_like_is_a_follow(client, make_user, verified_artist):
    _, headers = await make_user()
    artist, _ = verified_artist
    url = f"/api/content/artist/{artist['_id']}/like"

    response = await client.post(url, headers=headers)
    assert response.json()["liked"] is True
    assert response.json()["likeCount"] == 1

    response = await client.post(url, headers=headers)
    assert response.json()["liked"] is False

    metadata = await client.get(f"/api/content/artist/{artist['_id']}/metadata")
    assert metadata.json()["metadata"]["title"] == "David Psalms"


async def test_devotional_metadata(client, make_user):
    _, headers = await make_user()
    created = await client.post(
        "/api/devotionals", json={"title": "Daily Bread", "content": "Give us this day."}, headers=headers
    )
    devotional_id = created.json()["devotional"]["_id"]

    await client.post(f"/api/content/devotional/{devotional_id}/like", headers=headers)
    metadata = await client.get(f"/api/content/devotional/{devotional_id}/metadata", headers=headers)
    assert metadata.json()["metadata"]["stats"]["likes"] == 1


async def test_metadata_for_missing_content(client):
    response = await client.get("/api/content/media/64b7f0c2a1b2c3d4e5f60718/metadata")
    assert response.status_code == 404
    assert response.json()["detail"] == "Content not found"
