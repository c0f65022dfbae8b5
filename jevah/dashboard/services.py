import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List

from jevah.audit.services import AuditService
from jevah.db.mongo import GAME_ACHIEVEMENTS, GAME_SESSIONS, MEDIA, MEDIA_INTERACTIONS, MERCH_PURCHASES, USERS
from jevah.errors import NotFoundError
from jevah.utils.mongodb_utils import paginate, parse_object_id, serialize_document

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=30)

SEVERITY_PENALTY = {"critical": 25, "high": 15, "medium": 10, "low": 5}


def security_score(activities: List[Dict[str, Any]]) -> int:
    """100 minus a penalty per security alert, floored at 0."""
    score = 100
    for activity in activities:
        if activity.get("action") == "security_alert":
            severity = (activity.get("metadata") or {}).get("severity", "low")
            score -= SEVERITY_PENALTY.get(severity, SEVERITY_PENALTY["low"])
    return max(score, 0)


def percent_change(current: int, previous: int) -> float:
    return round((current - previous) / previous * 100, 2) if previous else 0


def _average(total: int, count: int) -> float:
    return round(total / count, 2) if count else 0


class DashboardService:
    def __init__(self, db):
        self.db = db

    async def _user(self, user_oid) -> Dict[str, Any]:
        user = await self.db[USERS].find_one({"_id": user_oid})
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_user_dashboard(self, user_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        user = await self._user(user_oid)
        since = datetime.utcnow() - RECENT_WINDOW

        uploads = await self.db[MEDIA].find({"uploadedBy": user_oid}).to_list(length=None)
        dashboard = {
            "profile": self._profile_statistics(user, since),
            "content": await self._content_statistics(user, uploads, since),
            "engagement": self._engagement_statistics(user, uploads, since),
            "games": await self._games_statistics(user_oid, since),
            "payments": await self._payments_statistics(user_oid, since),
            "security": self._security_statistics(user, since),
            "generatedAt": datetime.utcnow(),
        }
        await AuditService(self.db).log_activity(user_oid, "dashboard_access", "dashboard")
        logger.info(f"Dashboard generated for user={user_oid}")
        return serialize_document(dashboard)

    def _profile_statistics(self, user: Dict[str, Any], since: datetime) -> Dict[str, Any]:
        activities = user.get("userActivities", [])
        end_date = user.get("subscriptionEndDate")
        days_remaining = max((end_date - datetime.utcnow()).days, 0) if end_date else None
        return {
            "basicInformation": {
                key: user.get(key)
                for key in (
                    "firstName", "lastName", "email", "role", "age", "location", "isKid", "section", "avatar",
                    "isProfileComplete", "hasConsentedToPrivacyPolicy", "isEmailVerified", "createdAt",
                )
            },
            "subscription": {
                "tier": user.get("subscriptionTier"),
                "status": user.get("subscriptionStatus"),
                "endDate": end_date,
                "isActive": user.get("subscriptionStatus") == "active",
                "daysRemaining": days_remaining,
            },
            "verification": {
                "isVerifiedCreator": user.get("isVerifiedCreator", False),
                "isVerifiedVendor": user.get("isVerifiedVendor", False),
                "isVerifiedChurch": user.get("isVerifiedChurch", False),
                "isVerifiedArtist": user.get("isVerifiedArtist", False),
                "artistProfile": user.get("artistProfile"),
            },
            "activity": {
                "lastLoginAt": user.get("lastLoginAt"),
                "totalActivities": len(activities),
                "recentActivities": sum(1 for a in activities if a["timestamp"] >= since),
            },
        }

    async def _content_statistics(self, user: Dict[str, Any], uploads, since: datetime) -> Dict[str, Any]:
        interactions = await self.db[MEDIA_INTERACTIONS].aggregate([
            {"$match": {"user": user["_id"], "isRemoved": {"$ne": True}}},
            {"$group": {"_id": "$interactionType", "count": {"$sum": 1}, "latest": {"$max": "$lastInteraction"}}},
        ]).to_list(length=None)
        recent_interactions = await self.db[MEDIA_INTERACTIONS].count_documents(
            {"user": user["_id"], "lastInteraction": {"$gte": since}}
        )
        library = user.get("library", [])
        downloads = user.get("offlineDownloads", [])
        return {
            "uploadedContent": {
                "total": len(uploads),
                "byContentType": dict(Counter(m.get("contentType") for m in uploads)),
                "recent": sum(1 for m in uploads if m.get("createdAt") and m["createdAt"] >= since),
                "totalViews": sum(m.get("viewCount", 0) for m in uploads),
                "totalLikes": sum(m.get("likeCount", 0) for m in uploads),
                "totalShares": sum(m.get("shareCount", 0) for m in uploads),
            },
            "interactions": {
                "total": sum(row["count"] for row in interactions),
                "byInteractionType": {row["_id"]: row["count"] for row in interactions},
                "recent": recent_interactions,
            },
            "library": {
                "total": len(library),
                "byContentType": dict(Counter(item.get("mediaType") for item in library)),
                "favorites": sum(1 for item in library if item.get("isFavorite")),
                "totalPlayCount": sum(item.get("playCount", 0) for item in library),
                "recentlyAdded": sorted(library, key=lambda item: item["addedAt"], reverse=True)[:5],
            },
            "offlineDownloads": {
                "total": len(downloads),
                "totalSize": sum(d.get("fileSize", 0) for d in downloads),
                "recent": sum(1 for d in downloads if d.get("downloadDate") and d["downloadDate"] >= since),
            },
        }

    def _engagement_statistics(self, user: Dict[str, Any], uploads, since: datetime) -> Dict[str, Any]:
        recent = [m for m in uploads if m.get("createdAt") and m["createdAt"] >= since]
        stats = {}
        for name, counter in (("views", "viewCount"), ("likes", "likeCount"), ("shares", "shareCount")):
            total = sum(m.get(counter, 0) for m in uploads)
            stats[name] = {
                "total": total,
                "recent": sum(m.get(counter, 0) for m in recent),
                "averagePerContent": _average(total, len(uploads)),
            }
        stats["followers"] = {
            "total": len(user.get("followers", [])),
            "following": (user.get("artistProfile") or {}).get("followingCount", 0),
        }
        return stats

    async def _games_statistics(self, user_oid, since: datetime) -> Dict[str, Any]:
        sessions = await self.db[GAME_SESSIONS].find({"userId": user_oid, "completed": True}).to_list(length=None)
        achievements = await self.db[GAME_ACHIEVEMENTS].find({"userId": user_oid}).to_list(length=None)
        return {
            "played": {
                "total": len(sessions),
                "uniqueGames": len({s["gameId"] for s in sessions}),
                "recent": sum(1 for s in sessions if s.get("completedAt") and s["completedAt"] >= since),
                "totalTimeSpent": sum(s.get("timeSpent", 0) for s in sessions),
                "averageScore": _average(sum(s.get("score", 0) for s in sessions), len(sessions)),
            },
            "achievements": {
                "total": len(achievements),
                "totalPoints": sum(a.get("points", 0) for a in achievements),
                "byAchievementType": dict(Counter(a["achievementType"] for a in achievements)),
            },
        }

    async def _payments_statistics(self, user_oid, since: datetime) -> Dict[str, Any]:
        purchases = await self.db[MERCH_PURCHASES].find({"userId": user_oid}).to_list(length=None)
        return {
            "merchandise": {
                "total": len(purchases),
                "totalSpent": round(sum(p.get("amount", 0) for p in purchases), 2),
                "recent": sum(1 for p in purchases if p["createdAt"] >= since),
                "byStatus": dict(Counter(p.get("status") for p in purchases)),
            },
        }

    def _security_statistics(self, user: Dict[str, Any], since: datetime) -> Dict[str, Any]:
        activities = user.get("userActivities", [])
        recent = [a for a in activities if a["timestamp"] >= since]
        alerts = sorted(
            (a for a in recent if a.get("action") == "security_alert"),
            key=lambda a: a["timestamp"],
            reverse=True,
        )
        return {
            "loginHistory": {
                "lastLoginAt": user.get("lastLoginAt"),
                "failedAttempts": user.get("failedLoginAttempts", 0),
                "recentLogins": sum(1 for a in recent if a.get("action") == "login"),
            },
            "securityScore": {
                "score": security_score(activities),
                "factors": {
                    "emailVerified": user.get("isEmailVerified", False),
                    "recentSecurityEvents": len(alerts),
                    "failedLogins": user.get("failedLoginAttempts", 0),
                },
            },
            "alerts": {
                "total": len(alerts),
                "bySeverity": dict(Counter((a.get("metadata") or {}).get("severity", "low") for a in alerts)),
                "recentAlerts": alerts[:5],
            },
        }

    async def get_activity_timeline(self, user_id, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        user = await self._user(parse_object_id(user_id, "user"))
        activities = sorted(user.get("userActivities", []), key=lambda a: a["timestamp"], reverse=True)
        start = (page - 1) * limit
        return {
            "activities": serialize_document(activities[start:start + limit]),
            "pagination": paginate(page, limit, len(activities)),
        }

    async def get_performance_metrics(self, user_id) -> Dict[str, Any]:
        """Compare the last 30 days of activity with the 30 days before."""
        user = await self._user(parse_object_id(user_id, "user"))
        now = datetime.utcnow()
        current_start, previous_start = now - RECENT_WINDOW, now - 2 * RECENT_WINDOW
        activities = user.get("userActivities", [])
        current = [a for a in activities if a["timestamp"] >= current_start]
        previous = [a for a in activities if previous_start <= a["timestamp"] < current_start]

        def metric(actions=None):
            cur = sum(1 for a in current if actions is None or a["action"] in actions)
            prev = sum(1 for a in previous if actions is None or a["action"] in actions)
            return {"current": cur, "previous": prev, "change": percent_change(cur, prev)}

        return {
            "engagement": metric(),
            "contentCreation": metric({"media_upload"}),
            "socialInteraction": metric({"follow", "unfollow", "comment", "like", "share"}),
        }
