import pytest

from jevah.db.mongo import GAME_ACHIEVEMENTS, GAMES, NOTIFICATIONS
from jevah.games.services import earned_achievements

GAME = {"title": "Bible Heroes Quiz", "gameType": "quiz", "ageGroup": "6-8", "maxScore": 100, "timeLimit": 300}


@pytest.fixture
async def game(client, make_user):
    _, admin_headers = await make_user(role="admin", first_name="Admin")
    response = await client.post("/api/games", json=GAME, headers=admin_headers)
    assert response.status_code == 201
    return response.json()["game"]


async def play(client, headers, game_id, score, time_spent=120):
    started = await client.post(f"/api/games/{game_id}/start", headers=headers)
    assert started.status_code == 201
    return await client.post(
        f"/api/games/{game_id}/complete", json={"score": score, "timeSpent": time_spent}, headers=headers
    )


def test_earned_achievements_first_perfect_run():
    game = {"maxScore": 100, "timeLimit": 300}
    earned = earned_achievements(game, 100, 150, True, 1, [100])
    assert earned == ["first_play", "high_score", "perfect_score", "speed_run", "completion"]


def test_earned_achievements_streak_needs_three_good_scores():
    game = {"maxScore": 100}
    assert "streak" in earned_achievements(game, 75, 10, True, 5, [75, 90, 70])
    assert "streak" not in earned_achievements(game, 75, 10, True, 5, [75, 90, 40])
    assert "streak" not in earned_achievements(game, 75, 10, True, 2, [75, 90])


def test_earned_achievements_abandoned_session():
    earned = earned_achievements({"maxScore": 100, "timeLimit": 60}, 10, 5, False, 2, [10])
    assert earned == []


async def test_only_admin_creates_games(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/games", json=GAME, headers=headers)
    assert response.status_code == 403


async def test_first_completion_awards_achievements(client, db, make_user, game):
    user, headers = await make_user()
    response = await play(client, headers, game["_id"], score=85)
    assert response.status_code == 200

    body = response.json()
    awarded = {a["achievementType"] for a in body["newAchievements"]}
    assert awarded == {"first_play", "high_score", "speed_run", "completion"}
    assert set(body["session"]["achievements"]) == awarded
    assert body["session"]["completed"] is True

    stored_game = await db[GAMES].find_one()
    assert stored_game["playCount"] == 1
    assert stored_game["averageScore"] == 85
    assert await db[NOTIFICATIONS].count_documents({"user": user["_id"], "type": "game"}) == 4


async def test_achievements_are_never_duplicated(client, db, make_user, game):
    user, headers = await make_user()
    await play(client, headers, game["_id"], score=85)
    response = await play(client, headers, game["_id"], score=90)

    assert response.json()["newAchievements"] == []
    assert await db[GAME_ACHIEVEMENTS].count_documents({"userId": user["_id"]}) == 4

    response = await play(client, headers, game["_id"], score=100)
    awarded = {a["achievementType"] for a in response.json()["newAchievements"]}
    assert awarded == {"perfect_score", "streak"}

    totals = (await client.get("/api/games/me/achievements", headers=headers)).json()
    assert totals["totalPoints"] == 10 + 25 + 30 + 20 + 50 + 40


async def test_complete_without_session(client, make_user, game):
    _, headers = await make_user()
    response = await client.post(
        f"/api/games/{game['_id']}/complete", json={"score": 10, "timeSpent": 10}, headers=headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "No active game session found"


async def test_negative_score_rejected(client, make_user, game):
    _, headers = await make_user()
    await client.post(f"/api/games/{game['_id']}/start", headers=headers)
    response = await client.post(
        f"/api/games/{game['_id']}/complete", json={"score": -1, "timeSpent": 10}, headers=headers
    )
    assert response.status_code == 400


async def test_older_users_limited_to_teen_games(client, make_user, game):
    _, headers = await make_user(age=30)
    response = await client.post(f"/api/games/{game['_id']}/start", headers=headers)
    assert response.status_code == 403

    _, kid_headers = await make_user(age=7, isKid=True)
    response = await client.post(f"/api/games/{game['_id']}/start", headers=kid_headers)
    assert response.status_code == 201


async def test_leaderboard_and_stats(client, make_user, game):
    _, first_headers = await make_user(first_name="Esther")
    _, second_headers = await make_user(first_name="Samuel")
    await play(client, first_headers, game["_id"], score=60)
    await play(client, first_headers, game["_id"], score=95)
    await play(client, second_headers, game["_id"], score=70)

    response = await client.get(f"/api/games/{game['_id']}/leaderboard")
    board = response.json()["leaderboard"]
    assert [row["rank"] for row in board] == [1, 2]
    assert board[0]["user"]["firstName"] == "Esther"
    assert board[0]["bestScore"] == 95
    assert board[0]["totalPlays"] == 2
    assert board[0]["averageScore"] == 77.5

    stats = (await client.get("/api/games/me/stats", headers=first_headers)).json()["stats"]
    assert stats["totalGamesPlayed"] == 2
    assert stats["bestScore"] == 95
    assert stats["favoriteGame"]["title"] == "Bible Heroes Quiz"


async def test_list_games_hides_inactive(client, make_user, game):
    _, admin_headers = await make_user(role="admin", first_name="Admin")
    await client.post("/api/games", json={**GAME, "title": "Retired", "isActive": False}, headers=admin_headers)

    response = await client.get("/api/games")
    assert [g["title"] for g in response.json()["games"]] == ["Bible Heroes Quiz"]
