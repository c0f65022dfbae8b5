from datetime import datetime, timedelta

from jevah.db.mongo import MEDIA, MEDIA_INTERACTIONS, NOTIFICATIONS, USERS

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def upload(client, headers, **form):
    data = {"title": "Sunday Sermon", "contentType": "videos", "topics": "faith, hope"}
    data.update(form)
    files = {
        "file": ("sermon.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4"),
        "thumbnail": ("thumb.png", PNG, "image/png"),
    }
    return await client.post("/api/media/upload", data=data, files=files, headers=headers)


async def test_upload_stores_file_and_thumbnail(client, storage, make_user):
    _, headers = await make_user()
    response = await upload(client, headers)
    assert response.status_code == 201

    media = response.json()["media"]
    assert media["topics"] == ["faith", "hope"]
    assert media["viewCount"] == 0
    assert media["shareUrl"].endswith(media["_id"])
    assert len(storage.objects) == 2


async def test_upload_rejects_wrong_mime_type(client, storage, make_user):
    _, headers = await make_user()
    response = await client.post(
        "/api/media/upload",
        data={"title": "Hymn", "contentType": "music"},
        files={
            "file": ("hymn.mp4", b"\x00", "video/mp4"),
            "thumbnail": ("thumb.png", PNG, "image/png"),
        },
        headers=headers,
    )
    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]
    assert storage.objects == {}


async def test_downloadable_upload_requires_verified_artist(client, make_user, verified_artist):
    _, headers = await make_user()
    response = await upload(client, headers, isDownloadable="true")
    assert response.status_code == 403

    _, artist_headers = verified_artist
    response = await upload(client, artist_headers, isDownloadable="true")
    assert response.status_code == 201
    assert "downloadUrl" in response.json()["media"]


async def test_view_is_counted_once_per_user(client, db, make_user, make_media):
    owner, _ = await make_user(first_name="Owner")
    viewer, headers = await make_user(first_name="Viewer")
    media = await make_media(owner)
    url = f"/api/media/{media['_id']}/interact"

    response = await client.post(url, json={"interactionType": "view"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["viewCount"] == 1

    response = await client.post(url, json={"interactionType": "view"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "User has already viewed this media"

    assert (await db[MEDIA].find_one({"_id": media["_id"]}))["viewCount"] == 1
    assert await db[MEDIA_INTERACTIONS].count_documents({"media": media["_id"]}) == 1
    viewed = (await db[USERS].find_one({"_id": viewer["_id"]}))["viewedMedia"]
    assert viewed[0]["media"] == media["_id"]


async def test_interaction_must_fit_content_type(client, make_user, make_media):
    owner, headers = await make_user()
    media = await make_media(owner, content_type="music")
    response = await client.post(
        f"/api/media/{media['_id']}/interact", json={"interactionType": "read"}, headers=headers
    )
    assert response.status_code == 400


async def test_favorite_toggles_and_notifies_owner(client, db, make_user, make_media):
    owner, owner_headers = await make_user(first_name="Owner")
    _, fan_headers = await make_user(first_name="Fan")
    media = await make_media(owner)
    url = f"/api/media/{media['_id']}/action"

    response = await client.post(url, json={"actionType": "favorite"}, headers=fan_headers)
    assert response.json()["active"] is True
    assert response.json()["favoriteCount"] == 1
    assert await db[NOTIFICATIONS].count_documents({"user": owner["_id"]}) == 1

    response = await client.post(url, json={"actionType": "favorite"}, headers=fan_headers)
    assert response.json()["active"] is False
    assert response.json()["favoriteCount"] == 0

    response = await client.post(url, json={"actionType": "favorite"}, headers=owner_headers)
    assert response.status_code == 400


async def test_download_requires_downloadable_media(client, make_user, make_media, storage):
    owner, headers = await make_user()
    locked = await make_media(owner)
    response = await client.post(f"/api/media/{locked['_id']}/download", headers=headers)
    assert response.status_code == 403

    open_media = await make_media(owner, content_type="ebook", isDownloadable=True, fileObjectKey="media/ebook/x.pdf")
    response = await client.post(f"/api/media/{open_media['_id']}/download", headers=headers)
    assert response.status_code == 200
    assert response.json()["downloadUrl"].endswith("?signed=1")


async def test_delete_only_by_owner(client, db, make_user, make_media, storage):
    owner, owner_headers = await make_user(first_name="Owner")
    _, other_headers = await make_user(first_name="Other")
    media = await make_media(owner, fileObjectKey="media/videos/a.mp4")

    response = await client.delete(f"/api/media/{media['_id']}", headers=other_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/media/{media['_id']}", headers=owner_headers)
    assert response.status_code == 200
    assert await db[MEDIA].find_one({"_id": media["_id"]}) is None
    assert storage.deleted == ["media/videos/a.mp4"]


async def test_list_media_filters_by_type(client, make_user, make_media):
    owner, _ = await make_user()
    await make_media(owner, content_type="videos", title="Praise Night")
    await make_media(owner, content_type="music", title="Hallelujah")

    response = await client.get("/api/media", params={"contentType": "music"})
    body = response.json()
    assert body["pagination"]["total"] == 1
    assert body["media"][0]["title"] == "Hallelujah"

    response = await client.get("/api/media", params={"search": "praise"})
    assert [m["title"] for m in response.json()["media"]] == ["Praise Night"]


async def test_live_stream_lifecycle(client, make_user):
    _, headers = await make_user(role="content_creator")
    start = (datetime.utcnow() + timedelta(hours=2)).isoformat()
    response = await client.post(
        "/api/media/live/schedule", json={"title": "Evening Prayer", "scheduledStart": start}, headers=headers
    )
    assert response.status_code == 201
    media_id = response.json()["stream"]["_id"]

    response = await client.post(f"/api/media/live/{media_id}/go-live", headers=headers)
    assert response.status_code == 200
    assert response.json()["stream"]["isLive"] is True

    response = await client.patch(
        f"/api/media/live/{media_id}/viewers", json={"concurrentViewers": 12}, headers=headers
    )
    assert response.json()["peakViewers"] == 12

    response = await client.post(f"/api/media/live/{media_id}/end", headers=headers)
    assert response.json()["stream"]["liveStreamStatus"] == "ended"
