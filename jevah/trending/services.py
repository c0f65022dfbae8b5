import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from jevah.db.mongo import MEDIA, USERS
from jevah.errors import BadRequestError
from jevah.utils.mongodb_utils import AUTHOR_PROJECTION, serialize_document

logger = logging.getLogger(__name__)

# metric -> (media filter, counter summed per creator)
CREATOR_METRICS = {
    "views": ({}, "viewCount"),
    "ebook_reads": ({"contentType": "ebook"}, "readCount"),
    "audio_listens": ({"contentType": {"$in": ["audio", "music", "podcast"]}}, "listenCount"),
    "sermon_views": ({"contentType": "sermon"}, "viewCount"),
    "live_views": ({"contentType": "live"}, "viewCount"),
}

CREATOR_FILTER = {
    "$or": [
        {"role": {"$in": ["content_creator", "artist"]}},
        {"artistProfile.isVerifiedArtist": True},
    ]
}

MEDIA_WEIGHTS = {"viewCount": 0.3, "likeCount": 0.25, "shareCount": 0.2, "commentCount": 0.15}
# Points for a brand new item, decaying linearly to 0 at the end of the window
RECENCY_BONUS = 10.0


def content_type_stats(media: List[Dict[str, Any]]) -> Dict[str, Dict[str, int]]:
    stats: Dict[str, Dict[str, int]] = {}
    for item in media:
        bucket = stats.setdefault(
            item.get("contentType") or "other",
            {"count": 0, "totalViews": 0, "totalLikes": 0, "totalReads": 0, "totalListens": 0},
        )
        bucket["count"] += 1
        bucket["totalViews"] += item.get("viewCount", 0)
        bucket["totalLikes"] += item.get("likeCount", 0)
        bucket["totalReads"] += item.get("readCount", 0)
        bucket["totalListens"] += item.get("listenCount", 0)
    return stats


def media_score(item: Dict[str, Any], now: datetime, days: int) -> float:
    score = sum(item.get(field, 0) * weight for field, weight in MEDIA_WEIGHTS.items())
    created = item.get("createdAt")
    if created and days > 0:
        age_days = (now - created).total_seconds() / 86400
        score += RECENCY_BONUS * max(days - age_days, 0) / days
    return round(score, 2)


class TrendingService:
    def __init__(self, db):
        self.db = db

    def _format_creator(self, user: Dict[str, Any], media: List[Dict[str, Any]], stats: Dict[str, Any]) -> Dict[str, Any]:
        ended = [m["actualEnd"] for m in media if m.get("contentType") == "live" and m.get("actualEnd")]
        uploads = [m["createdAt"] for m in media if m.get("createdAt")]
        return {
            "user": user,
            "stats": {
                "totalViews": sum(m.get("viewCount", 0) for m in media),
                "totalLikes": sum(m.get("likeCount", 0) for m in media),
                "totalShares": sum(m.get("shareCount", 0) for m in media),
                "totalComments": sum(m.get("commentCount", 0) for m in media),
                "totalDownloads": sum(m.get("downloadCount", 0) for m in media),
                "followerCount": len(user.get("followers", [])),
                "followingCount": (user.get("artistProfile") or {}).get("followingCount", 0),
                **stats,
            },
            "contentTypeStats": content_type_stats(media),
            "recentActivity": {
                "lastLiveStream": max(ended) if ended else None,
                "lastUpload": max(uploads) if uploads else None,
            },
        }

    async def _media_by_owner(self, query: Dict[str, Any]) -> Dict[Any, List[Dict[str, Any]]]:
        grouped: Dict[Any, List[Dict[str, Any]]] = {}
        async for item in self.db[MEDIA].find(query, {"streamKey": 0}):
            grouped.setdefault(item.get("uploadedBy"), []).append(item)
        return grouped

    async def _users(self, ids, creators_only: bool = False) -> Dict[Any, Dict[str, Any]]:
        query: Dict[str, Any] = {"_id": {"$in": list(ids)}}
        if creators_only:
            query.update(CREATOR_FILTER)
        projection = {k: v for k, v in AUTHOR_PROJECTION.items() if not k.startswith("artistProfile.")}
        projection.update({"artistProfile": 1, "followers": 1})
        return {u["_id"]: u async for u in self.db[USERS].find(query, projection)}

    async def trending_creators(self, metric: str = "views", limit: int = 20) -> List[Dict[str, Any]]:
        if metric not in CREATOR_METRICS:
            raise BadRequestError(f"Unsupported metric: {metric}")
        media_filter, counter = CREATOR_METRICS[metric]

        by_owner = await self._media_by_owner(media_filter)
        users = await self._users(by_owner.keys(), creators_only=True)
        ranked = sorted(
            ((sum(m.get(counter, 0) for m in by_owner[uid]), uid) for uid in users),
            key=lambda pair: pair[0],
            reverse=True,
        )[:limit]
        results = [
            self._format_creator(users[uid], by_owner[uid], {"metric": metric, "metricValue": value})
            for value, uid in ranked
        ]
        return serialize_document(results)

    async def _live_bucket(self, query: Dict[str, Any], stat_name: str, stat) -> List[Dict[str, Any]]:
        by_owner = await self._media_by_owner({"contentType": "live", **query})
        users = await self._users(by_owner.keys())
        results = [self._format_creator(users[uid], by_owner[uid], {stat_name: stat(by_owner[uid])}) for uid in users]
        results.sort(key=lambda r: r["stats"][stat_name], reverse=True)
        return results

    async def live_stream_timing(self) -> Dict[str, Any]:
        now = datetime.utcnow()

        def viewers(streams):
            return sum(s.get("concurrentViewers", 0) for s in streams)

        def views(streams):
            return sum(s.get("viewCount", 0) for s in streams)

        timing = {
            "currentlyLive": await self._live_bucket({"liveStreamStatus": "live", "isLive": True}, "currentLiveViews", viewers),
            "recentlyEnded": await self._live_bucket(
                {"liveStreamStatus": "ended", "actualEnd": {"$gte": now - timedelta(days=1)}}, "totalLiveViews", views
            ),
            "scheduledToday": await self._live_bucket(
                {"liveStreamStatus": "scheduled", "scheduledStart": {"$gte": now, "$lte": now + timedelta(days=1)}},
                "scheduledCount",
                len,
            ),
            "scheduledThisWeek": await self._live_bucket(
                {"liveStreamStatus": "scheduled", "scheduledStart": {"$gte": now, "$lte": now + timedelta(days=7)}},
                "scheduledCount",
                len,
            ),
            "popularLiveStreamers": (await self._live_bucket({}, "totalLiveViews", views))[:20],
        }
        return serialize_document(timing)

    async def trending_media(self, content_type: Optional[str] = None, limit: int = 20, days: int = 7) -> List[Dict[str, Any]]:
        now = datetime.utcnow()
        query: Dict[str, Any] = {"createdAt": {"$gte": now - timedelta(days=days)}}
        query["contentType"] = content_type if content_type else {"$ne": "live"}

        media = await self.db[MEDIA].find(query, {"streamKey": 0}).to_list(length=None)
        for item in media:
            item["trendingScore"] = media_score(item, now, days)
        media.sort(key=lambda m: m["trendingScore"], reverse=True)
        top = media[:limit]

        owners = await self._users({m.get("uploadedBy") for m in top})
        for item in top:
            owner = owners.get(item.get("uploadedBy"))
            if owner:
                item["uploadedBy"] = {k: v for k, v in owner.items() if k != "followers"}
        logger.debug(f"Trending media computed: candidates={len(media)} returned={len(top)}")
        return serialize_document(top)
