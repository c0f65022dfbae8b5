import pytest

from jevah.db.mongo import CONVERSATIONS, MEDIA


async def test_like_toggles_count(client, db, make_user, make_media):
    owner, _ = await make_user(first_name="Owner")
    _, headers = await make_user(first_name="Fan")
    media = await make_media(owner)
    url = f"/api/interactions/media/{media['_id']}/like"

    first = await client.post(url, headers=headers)
    assert first.json() == {"success": True, "liked": True, "likeCount": 1}

    second = await client.post(url, headers=headers)
    assert second.json()["liked"] is False
    assert second.json()["likeCount"] == 0

    third = await client.post(url, headers=headers)
    assert third.json()["likeCount"] == 1
    assert (await db[MEDIA].find_one({"_id": media["_id"]}))["likeCount"] == 1


async def test_like_unknown_media(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/interactions/media/64b7f0c2a1b2c3d4e5f60718/like", headers=headers)
    assert response.status_code == 404


async def test_like_rejects_malformed_id(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/interactions/media/not-an-id/like", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid media ID"


async def test_comment_validation_and_counts(client, db, make_user, make_media):
    owner, _ = await make_user(first_name="Owner")
    _, headers = await make_user(first_name="Reader")
    media = await make_media(owner)
    base = f"/api/interactions/media/{media['_id']}"

    response = await client.post(f"{base}/comment", json={"content": "   "}, headers=headers)
    assert response.status_code == 400

    response = await client.post(f"{base}/comment", json={"content": "x" * 1001}, headers=headers)
    assert response.status_code == 422

    response = await client.post(f"{base}/comment", json={"content": "Amen!"}, headers=headers)
    assert response.status_code == 201
    comment = response.json()["comment"]
    assert comment["user"]["firstName"] == "Reader"

    reply = await client.post(
        f"{base}/comment", json={"content": "Indeed", "parentCommentId": comment["_id"]}, headers=headers
    )
    assert reply.json()["comment"]["parentCommentId"] == comment["_id"]
    assert (await db[MEDIA].find_one({"_id": media["_id"]}))["commentCount"] == 2

    listing = await client.get(f"{base}/comments")
    assert listing.json()["pagination"]["total"] == 2


async def test_only_author_removes_comment(client, db, make_user, make_media):
    owner, owner_headers = await make_user(first_name="Owner")
    _, headers = await make_user(first_name="Reader")
    media = await make_media(owner)
    response = await client.post(
        f"/api/interactions/media/{media['_id']}/comment", json={"content": "Blessed"}, headers=headers
    )
    comment_id = response.json()["comment"]["_id"]

    response = await client.delete(f"/api/interactions/comments/{comment_id}", headers=owner_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/interactions/comments/{comment_id}", headers=headers)
    assert response.status_code == 200
    assert (await db[MEDIA].find_one({"_id": media["_id"]}))["commentCount"] == 0


async def test_comment_reaction_toggles(client, make_user, make_media):
    owner, headers = await make_user()
    media = await make_media(owner)
    response = await client.post(
        f"/api/interactions/media/{media['_id']}/comment", json={"content": "Glory"}, headers=headers
    )
    url = f"/api/interactions/comments/{response.json()['comment']['_id']}/reaction"

    response = await client.post(url, json={"reactionType": "heart"}, headers=headers)
    assert response.json()["reacted"] is True
    assert response.json()["count"] == 1

    response = await client.post(url, json={"reactionType": "heart"}, headers=headers)
    assert response.json()["reacted"] is False
    assert response.json()["count"] == 0


@pytest.mark.parametrize("reaction_type", ["a.b", "$set", "", "9lives", "x" * 21])
async def test_reaction_type_must_be_a_plain_word(client, make_user, make_media, reaction_type):
    owner, headers = await make_user()
    media = await make_media(owner)
    response = await client.post(
        f"/api/interactions/media/{media['_id']}/comment", json={"content": "Glory"}, headers=headers
    )
    url = f"/api/interactions/comments/{response.json()['comment']['_id']}/reaction"

    response = await client.post(url, json={"reactionType": reaction_type}, headers=headers)
    assert response.status_code == 422


async def test_share_returns_platform_links(client, make_user, make_media):
    owner, headers = await make_user()
    media = await make_media(owner)
    response = await client.post(
        f"/api/interactions/media/{media['_id']}/share", json={"platform": "whatsapp"}, headers=headers
    )
    body = response.json()
    assert body["shareCount"] == 1
    assert "whatsapp" in body["shareUrls"]


async def test_direct_messages(client, db, make_user):
    sender, sender_headers = await make_user(first_name="Sender")
    recipient, recipient_headers = await make_user(first_name="Recipient")

    response = await client.post(
        "/api/interactions/messages",
        json={"recipientId": str(recipient["_id"]), "content": "Shalom"},
        headers=sender_headers,
    )
    assert response.status_code == 201
    conversation_id = response.json()["message"]["conversation"]

    conversation = await db[CONVERSATIONS].find_one()
    assert conversation["unreadCount"][str(recipient["_id"])] == 1

    response = await client.get("/api/interactions/conversations", headers=recipient_headers)
    assert response.json()["conversations"][0]["unreadCount"] == 1

    response = await client.get(
        f"/api/interactions/conversations/{conversation_id}/messages", headers=recipient_headers
    )
    assert [m["content"] for m in response.json()["messages"]] == ["Shalom"]
    assert (await db[CONVERSATIONS].find_one())["unreadCount"][str(recipient["_id"])] == 0

    response = await client.post(
        "/api/interactions/messages",
        json={"recipientId": str(sender["_id"]), "content": "hi me"},
        headers=sender_headers,
    )
    assert response.status_code == 400
