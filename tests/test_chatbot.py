import httpx
import pytest

from jevah.chatbot import analysis
from jevah.chatbot.gemini import GeminiClient, GeminiError
from jevah.chatbot.services import ChatbotService
from jevah.db.mongo import CHAT_SESSIONS

REPLY = (
    "Remember that God loves you and walks with you. Read Psalm 23:1-4 and Philippians 4:6. "
    "I recommend a short evening prayer. Would you like a reading plan?"
)


def gemini_transport(status_code=200, text=REPLY):
    def handler(request):
        assert request.url.path.endswith(":generateContent")
        assert request.url.params["key"] == "test-key"
        return httpx.Response(status_code, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

    return httpx.MockTransport(handler)


@pytest.mark.parametrize(
    "message, expected",
    [
        ("What does the Bible say about patience?", "biblical_question"),
        ("I feel so much anxiety lately", "emotional_support"),
        ("My marriage is struggling", "relationship_counseling"),
        ("How should I pray?", "spiritual_guidance"),
        ("Hello there", "general_counseling"),
    ],
)
def test_classify_message(message, expected):
    assert analysis.classify_message(message) == expected


def test_parse_response_extracts_structure():
    parsed = analysis.parse_response(REPLY)
    assert parsed["bibleVerses"] == ["Psalm 23:1-4", "Philippians 4:6"]
    assert parsed["recommendations"] == ["recommend a short evening prayer"]
    assert parsed["followUpQuestions"] == ["Would you like a reading plan?"]
    assert parsed["emotionalSupport"].startswith("Remember that God loves")


def test_parse_response_defaults():
    parsed = analysis.parse_response("Peace be with you.")
    assert parsed["bibleVerses"] == []
    assert parsed["recommendations"] == analysis.DEFAULT_RECOMMENDATIONS
    assert parsed["followUpQuestions"] == analysis.DEFAULT_FOLLOW_UPS
    assert parsed["emotionalSupport"] == analysis.DEFAULT_SUPPORT


def test_prompt_keeps_last_turns_only():
    history = [{"role": "user", "content": f"turn {i}"} for i in range(15)]
    prompt = analysis.build_prompt({"firstName": "Ruth"}, "general_counseling", history, "hello")
    assert "turn 4" not in prompt
    assert "turn 5" in prompt and "turn 14" in prompt
    assert "User: Ruth" in prompt


async def test_fallback_reply_is_persisted(client, db, make_user):
    user, headers = await make_user()
    response = await client.post("/api/ai-chatbot/message", json={"message": "I am so worried"}, headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["messageType"] == "emotional_support"
    assert data["response"] == analysis.FALLBACK_RESPONSES["emotional_support"]
    assert "Psalm 34:18" in data["bibleVerses"]

    history = (await client.get("/api/ai-chatbot/history", headers=headers)).json()["messages"]
    assert [turn["role"] for turn in history] == ["user", "assistant"]

    stats = (await client.get("/api/ai-chatbot/stats", headers=headers)).json()["stats"]
    assert stats["messageCount"] == 2
    assert stats["topics"] == ["emotional_support"]

    assert (await client.delete("/api/ai-chatbot/history", headers=headers)).status_code == 200
    assert await db[CHAT_SESSIONS].count_documents({"userId": user["_id"]}) == 0
    assert (await client.get("/api/ai-chatbot/stats", headers=headers)).json()["stats"] is None


async def test_empty_message_rejected(client, make_user):
    _, headers = await make_user()
    response = await client.post("/api/ai-chatbot/message", json={"message": "   "}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Message is required"


async def test_reply_from_model(db, make_user):
    user, _ = await make_user()
    service = ChatbotService(db, GeminiClient(api_key="test-key", transport=gemini_transport()))
    result = await service.send_message(user, "Can you share a scripture for tonight?")
    assert result["response"] == REPLY
    assert result["messageType"] == "biblical_question"
    session = await db[CHAT_SESSIONS].find_one({"userId": user["_id"]})
    assert session["messages"][-1]["content"] == REPLY


async def test_model_failure_falls_back(db, make_user):
    user, _ = await make_user()
    service = ChatbotService(db, GeminiClient(api_key="test-key", transport=gemini_transport(status_code=500)))
    result = await service.send_message(user, "hello")
    assert result["response"] == analysis.FALLBACK_RESPONSES["general_counseling"]


async def test_empty_generation_is_an_error():
    client = GeminiClient(api_key="test-key", transport=gemini_transport(text="  "))
    with pytest.raises(GeminiError):
        await client.generate("prompt")
