from jevah.db.mongo import MERCH_PURCHASES, MERCHANDISE, NOTIFICATIONS, USERS
from jevah.merchandise.services import trending_pipeline

ITEM = {
    "title": "Faith Over Fear Hoodie",
    "description": "Warm cotton hoodie",
    "price": 45.5,
    "stockQuantity": 3,
    "category": "clothing",
    "tags": ["faith", "winter"],
    "images": ["https://cdn.jevah.test/merch/hoodie.png"],
    "thumbnailUrl": "https://cdn.jevah.test/merch/hoodie-thumb.png",
}


async def create_item(client, headers, **overrides):
    response = await client.post("/api/merchandise", json={**ITEM, **overrides}, headers=headers)
    assert response.status_code == 201
    return response.json()["merchandise"]


async def test_create_requires_images(client, make_user):
    _, headers = await make_user(role="vendor")
    response = await client.post("/api/merchandise", json={**ITEM, "images": []}, headers=headers)
    assert response.status_code == 422


async def test_purchase_decrements_stock_and_records_order(client, db, make_user):
    seller, seller_headers = await make_user(role="vendor", first_name="Seller")
    buyer, buyer_headers = await make_user(first_name="Buyer")
    item = await create_item(client, seller_headers)
    url = f"/api/merchandise/{item['_id']}/purchase"

    response = await client.post(url, json={"quantity": 2}, headers=buyer_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["merchandise"]["stockQuantity"] == 1
    assert body["merchandise"]["purchaseCount"] == 2
    assert body["purchase"]["amount"] == 91.0
    assert body["purchase"]["status"] == "paid"

    assert await db[MERCH_PURCHASES].count_documents({"userId": buyer["_id"]}) == 1
    activities = (await db[USERS].find_one({"_id": buyer["_id"]}))["userActivities"]
    assert [a["action"] for a in activities] == ["merch_purchase"]
    assert await db[NOTIFICATIONS].count_documents({"user": seller["_id"], "type": "merchandise"}) == 1

    response = await client.post(url, json={"quantity": 1}, headers=buyer_headers)
    assert response.json()["merchandise"]["isAvailable"] is False

    response = await client.post(url, json={"quantity": 1}, headers=buyer_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Merchandise item is not available"

    purchases = await client.get("/api/merchandise/purchases/me", headers=buyer_headers)
    assert len(purchases.json()["purchases"]) == 2


async def test_purchase_validation(client, make_user):
    _, seller_headers = await make_user(role="vendor")
    _, buyer_headers = await make_user(first_name="Buyer")
    item = await create_item(client, seller_headers)
    url = f"/api/merchandise/{item['_id']}/purchase"

    response = await client.post(url, json={"quantity": 0}, headers=buyer_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Quantity must be greater than 0"

    response = await client.post(url, json={"quantity": 10}, headers=buyer_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient stock"


async def test_one_review_per_user(client, db, make_user):
    _, seller_headers = await make_user(role="vendor")
    _, first_headers = await make_user(first_name="First")
    _, second_headers = await make_user(first_name="Second")
    item = await create_item(client, seller_headers)
    url = f"/api/merchandise/{item['_id']}/review"

    response = await client.post(url, json={"rating": 5, "comment": "Love it"}, headers=first_headers)
    assert response.status_code == 201

    response = await client.post(url, json={"rating": 4}, headers=first_headers)
    assert response.status_code == 409

    response = await client.post(url, json={"rating": 2}, headers=second_headers)
    merchandise = response.json()["merchandise"]
    assert merchandise["rating"] == 3.5
    assert merchandise["totalRatings"] == 2

    response = await client.post(url, json={"rating": 6}, headers=second_headers)
    assert response.status_code == 422


async def test_only_seller_updates(client, make_user):
    _, seller_headers = await make_user(role="vendor", first_name="Seller")
    _, other_headers = await make_user(first_name="Other")
    item = await create_item(client, seller_headers)
    url = f"/api/merchandise/{item['_id']}"

    response = await client.put(url, json={"price": 1}, headers=other_headers)
    assert response.status_code == 404

    response = await client.put(url, json={"stockQuantity": 0}, headers=seller_headers)
    assert response.json()["merchandise"]["isAvailable"] is False

    assert (await client.delete(url, headers=other_headers)).status_code == 404
    assert (await client.delete(url, headers=seller_headers)).status_code == 200


async def test_search_filters_and_sorting(client, make_user):
    _, headers = await make_user(role="vendor")
    await create_item(client, headers)
    await create_item(client, headers, title="Psalms Journal", category="books", price=12, tags=["journal"])
    await create_item(client, headers, title="Sold Out Mug", category="home", stockQuantity=0)

    response = await client.get("/api/merchandise", params={"sortBy": "price", "sortOrder": "asc"}, headers=headers)
    assert [m["title"] for m in response.json()["merchandise"]] == ["Psalms Journal", "Faith Over Fear Hoodie"]

    response = await client.get("/api/merchandise", params={"search": "journal"}, headers=headers)
    assert response.json()["pagination"]["total"] == 1

    response = await client.get("/api/merchandise", params={"maxPrice": 20}, headers=headers)
    assert [m["title"] for m in response.json()["merchandise"]] == ["Psalms Journal"]

    response = await client.get("/api/merchandise", params={"category": "clothing"}, headers=headers)
    assert response.json()["merchandise"][0]["seller"]["firstName"] == "Grace"


async def test_view_counter_and_trending(client, db, make_user):
    _, headers = await make_user(role="vendor")
    quiet = await create_item(client, headers, title="Quiet Bookmark")
    popular = await create_item(client, headers, title="Popular Tee")
    for _ in range(3):
        await client.get(f"/api/merchandise/{popular['_id']}", headers=headers)

    assert (await db[MERCHANDISE].find_one({"title": "Popular Tee"}))["viewCount"] == 3

    response = await client.get("/api/merchandise/trending", headers=headers)
    titles = [m["title"] for m in response.json()["merchandise"]]
    assert titles.index("Popular Tee") < titles.index(quiet["title"])
    assert response.json()["merchandise"][0]["trendingScore"] > 0


def test_trending_pipeline_shape():
    pipeline = trending_pipeline(5)
    assert pipeline[0]["$match"] == {"isAvailable": True, "stockQuantity": {"$gt": 0}}
    assert pipeline[-1] == {"$limit": 5}
