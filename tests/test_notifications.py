import pytest

from jevah.notifications.services import NotificationService


async def seed(db, user, count):
    service = NotificationService(db)
    return [await service.notify(user["_id"], f"Title {i}", f"Message {i}", "system") for i in range(count)]


async def test_list_and_unread_count(client, db, make_user):
    user, headers = await make_user()
    other, _ = await make_user(first_name="Other")
    await seed(db, user, 3)
    await seed(db, other, 1)

    response = await client.get("/api/notifications", params={"limit": 2}, headers=headers)
    body = response.json()
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["pages"] == 2
    assert len(body["notifications"]) == 2

    assert (await client.get("/api/notifications/unread-count", headers=headers)).json()["count"] == 3


async def test_mark_read_and_read_all(client, db, make_user):
    user, headers = await make_user()
    first, *_ = await seed(db, user, 3)

    response = await client.patch(f"/api/notifications/{first['_id']}/read", headers=headers)
    assert response.json()["notification"]["isRead"] is True

    unread = await client.get("/api/notifications", params={"unreadOnly": True}, headers=headers)
    assert unread.json()["pagination"]["total"] == 2

    response = await client.patch("/api/notifications/read-all", headers=headers)
    assert response.json()["updated"] == 2
    assert (await client.get("/api/notifications/unread-count", headers=headers)).json()["count"] == 0


async def test_cannot_touch_someone_elses_notification(client, db, make_user):
    owner, _ = await make_user()
    _, intruder_headers = await make_user(first_name="Intruder")
    (notification,) = await seed(db, owner, 1)

    response = await client.patch(f"/api/notifications/{notification['_id']}/read", headers=intruder_headers)
    assert response.status_code == 404
    response = await client.delete(f"/api/notifications/{notification['_id']}", headers=intruder_headers)
    assert response.status_code == 404


async def test_delete(client, db, make_user):
    user, headers = await make_user()
    (notification,) = await seed(db, user, 1)
    assert (await client.delete(f"/api/notifications/{notification['_id']}", headers=headers)).status_code == 200
    assert (await client.delete(f"/api/notifications/{notification['_id']}", headers=headers)).status_code == 404


async def test_admin_sends_notification(client, make_user):
    user, headers = await make_user()
    _, admin_headers = await make_user(role="admin", first_name="Admin")
    payload = {"userId": str(user["_id"]), "title": "Welcome", "message": "Glad you joined", "type": "system"}

    assert (await client.post("/api/notifications", json=payload, headers=headers)).status_code == 403

    response = await client.post("/api/notifications", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["notification"]["user"] == str(user["_id"])


@pytest.mark.parametrize("kind, expected", [("merchandise", 201), ("dating", 201), ("game", 201), ("merch", 422)])
async def test_notification_types(client, make_user, kind, expected):
    user, _ = await make_user()
    _, admin_headers = await make_user(role="admin", first_name="Admin")
    payload = {"userId": str(user["_id"]), "title": "Heads up", "message": "Something happened", "type": kind}

    response = await client.post("/api/notifications", json=payload, headers=admin_headers)
    assert response.status_code == expected
    if expected == 201:
        assert response.json()["notification"]["type"] == kind
