import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from jevah.db.mongo import GAME_ACHIEVEMENTS, GAME_SESSIONS, GAMES, transaction
from jevah.errors import BadRequestError, NotFoundError, PermissionDeniedError
from jevah.games import models
from jevah.games.schemas import GameCreate, GameFilters
from jevah.notifications.services import NotificationService
from jevah.utils import email as mailer
from jevah.utils.mongodb_utils import attach_users, convert_pydantic_for_mongodb, paginate, parse_object_id, serialize_document, skip_for

logger = logging.getLogger(__name__)


def earned_achievements(
    game: Dict[str, Any],
    score: int,
    time_spent: int,
    completed: bool,
    completed_count: int,
    recent_scores: List[int],
) -> List[str]:
    """
    Achievement types unlocked by a finished session.

    ``completed_count`` includes the session being finished and
    ``recent_scores`` holds the latest completed scores, newest first.
    """
    earned = []
    max_score = game.get("maxScore") or 0
    time_limit = game.get("timeLimit")

    if completed_count == 1:
        earned.append(models.AchievementType.FIRST_PLAY.value)
    if max_score and score >= models.HIGH_SCORE_RATIO * max_score:
        earned.append(models.AchievementType.HIGH_SCORE.value)
    if max_score and score >= max_score:
        earned.append(models.AchievementType.PERFECT_SCORE.value)
    if completed and time_limit and time_spent <= models.SPEED_RUN_RATIO * time_limit:
        earned.append(models.AchievementType.SPEED_RUN.value)
    if completed:
        earned.append(models.AchievementType.COMPLETION.value)
    streak = recent_scores[: models.STREAK_LENGTH]
    if max_score and len(streak) == models.STREAK_LENGTH and all(s >= models.STREAK_RATIO * max_score for s in streak):
        earned.append(models.AchievementType.STREAK.value)
    return earned


class GameService:
    def __init__(self, db):
        self.db = db

    async def _get_game(self, game_id, session=None) -> Dict[str, Any]:
        game = await self.db[GAMES].find_one({"_id": parse_object_id(game_id, "game")}, session=session)
        if not game:
            raise NotFoundError("Game not found")
        return game

    async def create_game(self, data: GameCreate, user_id) -> Dict[str, Any]:
        now = datetime.utcnow()
        doc = {
            **convert_pydantic_for_mongodb(data.model_dump()),
            "playCount": 0,
            "averageScore": 0,
            "createdBy": parse_object_id(user_id, "user"),
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.db[GAMES].insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Game created: id={doc['_id']} title={doc['title']}")
        return serialize_document(doc)

    async def list_games(self, filters: Optional[GameFilters] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filters:
            for key, value in convert_pydantic_for_mongodb(filters.model_dump(exclude_none=True)).items():
                query[key] = value

        total = await self.db[GAMES].count_documents(query)
        cursor = (
            self.db[GAMES].find(query)
            .sort([("playCount", -1), ("averageScore", -1)])
            .skip(skip_for(page, limit))
            .limit(limit)
        )
        games = await cursor.to_list(length=limit)
        return {"games": serialize_document(games), "pagination": paginate(page, limit, total)}

    async def get_game(self, game_id) -> Dict[str, Any]:
        return serialize_document(await self._get_game(game_id))

    async def start_session(self, user: Dict[str, Any], game_id) -> Dict[str, Any]:
        game = await self._get_game(game_id)
        if not game.get("isActive"):
            raise BadRequestError("Game is not available")
        age = user.get("age")
        if age is not None and age > models.MAX_CHILD_AGE and game.get("ageGroup") != models.AgeGroup.TEEN.value:
            raise PermissionDeniedError("This game is designed for younger users")

        session_doc = {
            "userId": user["_id"],
            "gameId": game["_id"],
            "score": 0,
            "timeSpent": 0,
            "completed": False,
            "achievements": [],
            "startedAt": datetime.utcnow(),
        }
        result = await self.db[GAME_SESSIONS].insert_one(session_doc)
        session_doc["_id"] = result.inserted_id
        logger.info(f"Game session started: id={session_doc['_id']} game={game['_id']} user={user['_id']}")
        return serialize_document(session_doc)

    async def complete_session(
        self, user: Dict[str, Any], game_id, score: int, time_spent: int, completed: bool = True
    ) -> Dict[str, Any]:
        if score < 0 or time_spent < 0:
            raise BadRequestError("Score and time spent must be non-negative")
        game = await self._get_game(game_id)
        user_oid = user["_id"]

        open_session = await self.db[GAME_SESSIONS].find_one(
            {"userId": user_oid, "gameId": game["_id"], "completed": False},
            sort=[("startedAt", -1)],
        )
        if not open_session:
            raise NotFoundError("No active game session found")

        now = datetime.utcnow()
        async with transaction(self.db) as session:
            await self.db[GAME_SESSIONS].update_one(
                {"_id": open_session["_id"]},
                {"$set": {"score": score, "timeSpent": time_spent, "completed": completed, "completedAt": now}},
                session=session,
            )
            averages = await self.db[GAME_SESSIONS].aggregate(
                [
                    {"$match": {"gameId": game["_id"], "completed": True}},
                    {"$group": {"_id": None, "averageScore": {"$avg": "$score"}}},
                ],
                session=session,
            ).to_list(length=None)
            average = round(averages[0]["averageScore"] or 0, 2) if averages else 0
            await self.db[GAMES].update_one(
                {"_id": game["_id"]},
                {"$inc": {"playCount": 1}, "$set": {"averageScore": average, "updatedAt": now}},
                session=session,
            )

            history_query = {"userId": user_oid, "gameId": game["_id"], "completed": True}
            completed_count = await self.db[GAME_SESSIONS].count_documents(history_query, session=session)
            recent = await self.db[GAME_SESSIONS].find(history_query, session=session).sort("completedAt", -1).limit(
                models.STREAK_LENGTH
            ).to_list(length=models.STREAK_LENGTH)

            candidates = earned_achievements(game, score, time_spent, completed, completed_count, [s["score"] for s in recent])
            new_achievements = await self._award(user_oid, game["_id"], candidates, session)
            updated = await self.db[GAME_SESSIONS].find_one_and_update(
                {"_id": open_session["_id"]},
                {"$set": {"achievements": [a["achievementType"] for a in new_achievements]}},
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        logger.info(
            f"Game session completed: id={open_session['_id']} score={score} achievements={len(new_achievements)}"
        )
        await self._after_completion(user, game, score, new_achievements)
        return {"session": serialize_document(updated), "newAchievements": serialize_document(new_achievements)}

    async def _award(self, user_oid, game_oid, achievement_types: List[str], session=None) -> List[Dict[str, Any]]:
        awarded = []
        for achievement_type in achievement_types:
            name, description, points = models.ACHIEVEMENTS[achievement_type]
            doc = {
                "userId": user_oid,
                "gameId": game_oid,
                "achievementType": achievement_type,
                "achievementName": name,
                "description": description,
                "points": points,
                "earnedAt": datetime.utcnow(),
            }
            result = await self.db[GAME_ACHIEVEMENTS].update_one(
                {"userId": user_oid, "gameId": game_oid, "achievementType": achievement_type},
                {"$setOnInsert": doc},
                upsert=True,
                session=session,
            )
            if result.upserted_id is not None:
                doc["_id"] = result.upserted_id
                awarded.append(doc)
        return awarded

    async def _after_completion(self, user: Dict[str, Any], game: Dict[str, Any], score: int, achievements) -> None:
        notifications = NotificationService(self.db)
        for achievement in achievements:
            await notifications.notify(
                user["_id"],
                "Achievement unlocked",
                f"{achievement['achievementName']} in {game['title']} (+{achievement['points']} points)",
                "game",
                game["_id"],
            )
        if user.get("isKid") and user.get("email"):
            await mailer.send_game_completed_email(user["email"], user.get("firstName"), game["title"], score)

    async def get_sessions(self, user_id, game_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"userId": parse_object_id(user_id, "user")}
        if game_id:
            query["gameId"] = parse_object_id(game_id, "game")
        cursor = self.db[GAME_SESSIONS].find(query).sort("startedAt", -1).limit(limit)
        return serialize_document(await cursor.to_list(length=limit))

    async def get_achievements(self, user_id, game_id: Optional[str] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = {"userId": parse_object_id(user_id, "user")}
        if game_id:
            query["gameId"] = parse_object_id(game_id, "game")
        achievements = await self.db[GAME_ACHIEVEMENTS].find(query).sort("earnedAt", -1).to_list(length=None)
        return {
            "achievements": serialize_document(achievements),
            "totalPoints": sum(a.get("points", 0) for a in achievements),
        }

    async def get_leaderboard(self, game_id, limit: int = 10) -> List[Dict[str, Any]]:
        game = await self._get_game(game_id)
        rows = await self.db[GAME_SESSIONS].aggregate([
            {"$match": {"gameId": game["_id"], "completed": True}},
            {"$group": {
                "_id": "$userId",
                "bestScore": {"$max": "$score"},
                "totalPlays": {"$sum": 1},
                "averageScore": {"$avg": "$score"},
                "lastPlayed": {"$max": "$completedAt"},
            }},
            {"$sort": {"bestScore": -1, "totalPlays": -1}},
            {"$limit": limit},
        ]).to_list(length=None)

        await attach_users(self.db, rows, "_id", target="user")
        leaderboard = []
        for rank, row in enumerate(rows, start=1):
            leaderboard.append({
                "rank": rank,
                "userId": row["_id"],
                "user": row.get("user"),
                "bestScore": row["bestScore"],
                "totalPlays": row["totalPlays"],
                "averageScore": round(row["averageScore"] or 0, 2),
                "lastPlayed": row["lastPlayed"],
            })
        return serialize_document(leaderboard)

    async def get_user_stats(self, user_id) -> Dict[str, Any]:
        user_oid = parse_object_id(user_id, "user")
        sessions = await self.db[GAME_SESSIONS].find({"userId": user_oid, "completed": True}).to_list(length=None)
        achievements = await self.db[GAME_ACHIEVEMENTS].find({"userId": user_oid}).to_list(length=None)

        plays_by_game: Dict[Any, int] = {}
        for s in sessions:
            plays_by_game[s["gameId"]] = plays_by_game.get(s["gameId"], 0) + 1
        favorite = None
        if plays_by_game:
            favorite_id = max(plays_by_game, key=plays_by_game.get)
            favorite = await self.db[GAMES].find_one({"_id": favorite_id}, {"title": 1})

        return serialize_document({
            "totalGamesPlayed": len(sessions),
            "uniqueGames": len(plays_by_game),
            "totalTimeSpent": sum(s.get("timeSpent", 0) for s in sessions),
            "averageScore": round(sum(s.get("score", 0) for s in sessions) / len(sessions), 2) if sessions else 0,
            "bestScore": max((s.get("score", 0) for s in sessions), default=0),
            "achievementsCount": len(achievements),
            "totalPoints": sum(a.get("points", 0) for a in achievements),
            "favoriteGame": favorite,
        })
