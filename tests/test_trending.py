from datetime import datetime, timedelta

from jevah.trending.services import content_type_stats, media_score


def test_media_score_weights_and_recency():
    now = datetime(2024, 6, 1)
    fresh = {"viewCount": 10, "likeCount": 4, "createdAt": now}
    assert media_score(fresh, now, 7) == 3.0 + 1.0 + 10.0

    half_window = {"viewCount": 10, "likeCount": 4, "createdAt": now - timedelta(days=3.5)}
    assert media_score(half_window, now, 7) == 9.0

    stale = {"viewCount": 10, "createdAt": now - timedelta(days=30)}
    assert media_score(stale, now, 7) == 3.0


def test_content_type_stats():
    stats = content_type_stats([
        {"contentType": "ebook", "readCount": 4, "viewCount": 1},
        {"contentType": "ebook", "readCount": 6},
        {"viewCount": 2},
    ])
    assert stats["ebook"]["count"] == 2
    assert stats["ebook"]["totalReads"] == 10
    assert stats["other"]["totalViews"] == 2


async def test_creators_ranked_by_metric(client, make_user, make_media, verified_artist):
    artist, _ = verified_artist
    creator, _ = await make_user(role="content_creator", first_name="Lydia")
    listener, _ = await make_user(first_name="Listener")
    await make_media(artist, viewCount=50)
    await make_media(artist, content_type="music", listenCount=5)
    await make_media(creator, viewCount=80)
    await make_media(listener, viewCount=1000)

    response = await client.get("/api/trending/creators", params={"metric": "views"})
    creators = response.json()["creators"]
    assert [c["user"]["firstName"] for c in creators] == ["Lydia", "David"]
    assert creators[0]["stats"]["metricValue"] == 80
    assert creators[1]["contentTypeStats"]["music"]["totalListens"] == 5

    response = await client.get("/api/trending/most-listened-audio")
    assert [c["user"]["firstName"] for c in response.json()["creators"]] == ["David"]


async def test_unknown_metric(client):
    response = await client.get("/api/trending/creators", params={"metric": "downloads"})
    assert response.status_code == 400


async def test_trending_media_window(client, make_user, make_media):
    owner, _ = await make_user(role="content_creator")
    now = datetime.utcnow()
    await make_media(owner, title="Old Classic", viewCount=500, createdAt=now - timedelta(days=20))
    await make_media(owner, title="Quiet New", createdAt=now - timedelta(hours=1))
    await make_media(owner, title="Loud New", viewCount=40, likeCount=10, createdAt=now - timedelta(days=1))

    response = await client.get("/api/trending/media", params={"days": 7})
    media = response.json()["media"]
    assert [m["title"] for m in media] == ["Loud New", "Quiet New"]
    assert media[0]["uploadedBy"]["firstName"] == "Grace"
    assert "followers" not in media[0]["uploadedBy"]


async def test_live_timing_buckets(client, make_user, make_media):
    streamer, _ = await make_user(role="content_creator", first_name="Streamer")
    now = datetime.utcnow()
    await make_media(streamer, content_type="live", liveStreamStatus="live", isLive=True, concurrentViewers=25)
    await make_media(
        streamer, content_type="live", liveStreamStatus="scheduled", scheduledStart=now + timedelta(hours=3)
    )

    timing = (await client.get("/api/trending/live-timing")).json()["timing"]
    assert timing["currentlyLive"][0]["stats"]["currentLiveViews"] == 25
    assert timing["scheduledToday"][0]["stats"]["scheduledCount"] == 1
    assert timing["scheduledThisWeek"][0]["stats"]["scheduledCount"] == 1
    assert timing["recentlyEnded"] == []
