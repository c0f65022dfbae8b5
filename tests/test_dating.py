import pytest

from jevah.db.mongo import DATING_MESSAGES, NOTIFICATIONS


def profile(looking_for, **extra):
    data = {
        "lookingFor": looking_for,
        "ageRange": {"min": 25, "max": 40},
        "location": {"city": "Lagos", "state": "Lagos", "country": "Nigeria"},
        "bio": "Choir member",
        "interests": ["worship", "hiking"],
        "photos": [],
        "mainPhoto": "https://cdn.jevah.test/dating/main.png",
        "faithLevel": "very_important",
        "denomination": "Baptist",
    }
    data.update(extra)
    return data


@pytest.fixture
async def couple(client, make_user):
    adam, adam_headers = await make_user(first_name="Adam", gender="male")
    eve, eve_headers = await make_user(first_name="Eve", gender="female")
    assert (await client.put("/api/dating/profile", json=profile("women"), headers=adam_headers)).status_code == 200
    assert (await client.put("/api/dating/profile", json=profile("men"), headers=eve_headers)).status_code == 200
    return (adam, adam_headers), (eve, eve_headers)


async def test_profile_upsert_keeps_single_document(client, make_user):
    _, headers = await make_user(gender="female")
    first = await client.put("/api/dating/profile", json=profile("men"), headers=headers)
    second = await client.put("/api/dating/profile", json=profile("both", bio="Updated"), headers=headers)
    assert first.json()["profile"]["_id"] == second.json()["profile"]["_id"]
    assert second.json()["profile"]["bio"] == "Updated"
    assert second.json()["profile"]["isActive"] is True


async def test_profile_validation(client, make_user):
    _, headers = await make_user()
    too_many = profile("men", photos=[f"https://cdn.jevah.test/{i}.png" for i in range(7)])
    assert (await client.put("/api/dating/profile", json=too_many, headers=headers)).status_code == 422

    bad_range = profile("men", ageRange={"min": 40, "max": 30})
    assert (await client.put("/api/dating/profile", json=bad_range, headers=headers)).status_code == 422


async def test_potential_matches_respect_audience(client, make_user, couple):
    (adam, adam_headers), (eve, _) = couple
    _, other_headers = await make_user(first_name="Martha", gender="female")
    await client.put("/api/dating/profile", json=profile("women"), headers=other_headers)

    response = await client.get("/api/dating/potential-matches", headers=adam_headers)
    names = [p["user"]["firstName"] for p in response.json()["profiles"]]
    assert names == ["Eve"]

    _, lonely_headers = await make_user()
    response = await client.get("/api/dating/potential-matches", headers=lonely_headers)
    assert response.status_code == 404


async def test_like_respond_and_message(client, db, couple):
    (adam, adam_headers), (eve, eve_headers) = couple

    response = await client.post(f"/api/dating/like/{eve['_id']}", headers=adam_headers)
    assert response.status_code == 201
    match_id = response.json()["match"]["_id"]
    assert await db[NOTIFICATIONS].count_documents({"user": eve["_id"], "type": "dating"}) == 1

    response = await client.post(f"/api/dating/like/{adam['_id']}", headers=eve_headers)
    assert response.status_code == 409

    response = await client.post(
        f"/api/dating/matches/{match_id}/messages", json={"content": "Hello"}, headers=adam_headers
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/dating/matches/{match_id}/respond", json={"response": "accepted"}, headers=adam_headers
    )
    assert response.status_code == 404

    response = await client.post(
        f"/api/dating/matches/{match_id}/respond", json={"response": "accepted"}, headers=eve_headers
    )
    assert response.json()["match"]["status"] == "accepted"

    response = await client.post(
        f"/api/dating/matches/{match_id}/messages", json={"content": "Hello Eve"}, headers=adam_headers
    )
    assert response.status_code == 201
    assert response.json()["message"]["receiver"] == str(eve["_id"])

    unread = await client.get("/api/dating/unread-count", headers=eve_headers)
    assert unread.json()["count"] == 1

    read = await client.post(f"/api/dating/matches/{match_id}/read", headers=eve_headers)
    assert read.json()["updated"] == 1
    assert await db[DATING_MESSAGES].count_documents({"isRead": False}) == 0

    matches = await client.get("/api/dating/matches", params={"status": "accepted"}, headers=eve_headers)
    assert matches.json()["matches"][0]["otherUser"]["firstName"] == "Adam"


async def test_outsider_cannot_read_match(client, make_user, couple):
    (_, adam_headers), (eve, _) = couple
    _, outsider_headers = await make_user(first_name="Outsider")
    response = await client.post(f"/api/dating/like/{eve['_id']}", headers=adam_headers)
    match_id = response.json()["match"]["_id"]

    response = await client.get(f"/api/dating/matches/{match_id}/messages", headers=outsider_headers)
    assert response.status_code == 403

    response = await client.post(
        f"/api/dating/matches/{match_id}/messages", json={"content": "Hi"}, headers=outsider_headers
    )
    assert response.status_code == 403


async def test_cannot_like_self_or_inactive(client, couple):
    (adam, adam_headers), (eve, eve_headers) = couple
    response = await client.post(f"/api/dating/like/{adam['_id']}", headers=adam_headers)
    assert response.status_code == 400

    assert (await client.delete("/api/dating/profile", headers=eve_headers)).status_code == 200
    response = await client.post(f"/api/dating/like/{eve['_id']}", headers=adam_headers)
    assert response.status_code == 404
