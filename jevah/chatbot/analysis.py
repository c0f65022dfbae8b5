"""Message classification, prompt building and response parsing for the counselor bot."""
import re
from typing import Any, Dict, List

HISTORY_WINDOW = 10

MESSAGE_TYPE_KEYWORDS = [
    ("biblical_question", ("bible", "scripture", "verse")),
    ("emotional_support", ("depressed", "sad", "anxiety", "stress", "worried", "fear")),
    ("health_guidance", ("sick", "pain", "health", "medical", "doctor")),
    ("relationship_counseling", ("relationship", "marriage", "family", "friend", "love")),
    ("spiritual_guidance", ("pray", "prayer", "worship")),
]
DEFAULT_MESSAGE_TYPE = "general_counseling"

FALLBACK_RESPONSES = {
    "biblical_question": (
        "I understand you're seeking biblical guidance. God's Word is always available to guide us. "
        "Consider reading your Bible daily and praying for understanding. Remember, 'All Scripture is "
        "God-breathed and is useful for teaching, rebuking, correcting and training in righteousness' "
        "(2 Timothy 3:16)."
    ),
    "emotional_support": (
        "I hear that you're going through a difficult time. Please know that God loves you deeply and is "
        "always with you. As Psalm 34:18 says, 'The Lord is close to the brokenhearted and saves those who "
        "are crushed in spirit.' You are not alone in your struggles."
    ),
    "health_guidance": (
        "I understand you have health concerns. While I can offer spiritual support, please consult with "
        "healthcare professionals for medical advice. Remember that your body is a temple of the Holy "
        "Spirit (1 Corinthians 6:19-20), and God cares about your well-being."
    ),
    "relationship_counseling": (
        "Relationships can be challenging, but God provides wisdom for all our interactions. Remember to "
        "love others as Christ loved us (John 13:34) and to be patient, kind, and forgiving. Prayer and "
        "seeking God's guidance can help in any relationship situation."
    ),
    "spiritual_guidance": (
        "Spiritual growth is a journey that requires daily commitment. Spend time in prayer, read "
        "Scripture regularly, and connect with your church community. As James 4:8 says, 'Come near to "
        "God and he will come near to you.'"
    ),
    "general_counseling": (
        "I'm here to provide biblical guidance and spiritual support. God's Word offers wisdom for every "
        "situation in life. Remember that you are loved by God and He has a plan for your life "
        "(Jeremiah 29:11)."
    ),
}

DEFAULT_RECOMMENDATIONS = [
    "Spend time in prayer and meditation",
    "Read relevant Bible passages daily",
    "Connect with your church community",
]
DEFAULT_FOLLOW_UPS = ["How can I pray for you today?", "What specific guidance do you need?"]
DEFAULT_SUPPORT = "Remember that God loves you and is always with you. You are not alone in your struggles."

VERSE_PATTERN = re.compile(r"([1-3]?\s*[A-Za-z]+\s+\d+:\d+(?:-\d+)?)")
RECOMMENDATION_PATTERNS = [
    re.compile(rf"{verb}\s+(.+?)(?=\.|$)", re.IGNORECASE | re.MULTILINE)
    for verb in ("recommend", "suggest", "try", "consider")
]
QUESTION_PATTERN = re.compile(r"([^.!?]*\?)")
SUPPORT_PATTERNS = [
    re.compile(r"(?:remember|know|understand).*?(?:God|Jesus|Lord).*?(?:loves?|cares?|with you)", re.IGNORECASE),
    re.compile(r"(?:you are not alone|you are loved|you are precious)", re.IGNORECASE),
    re.compile(r"(?:hope|comfort|peace|strength).*?(?:in Christ|from God)", re.IGNORECASE),
]


def classify_message(message: str) -> str:
    lowered = message.lower()
    for message_type, keywords in MESSAGE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return message_type
    return DEFAULT_MESSAGE_TYPE


def system_prompt(user: Dict[str, Any], message_type: str) -> str:
    name = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
    return (
        "You are Jevah, an AI biblical counselor and spiritual guide for the Jevah Gospel Media Platform.\n"
        "Base every answer on biblical truth, show compassion, include relevant Bible verses with "
        "references, encourage prayer and faith, and never give medical advice.\n\n"
        f"User: {name}\n"
        f"Session type: {message_type}\n\n"
        "Response format:\n"
        "- A compassionate, biblical answer\n"
        "- 2-3 Bible verses with references\n"
        "- Practical spiritual recommendations\n"
        "- 1-2 follow-up questions\n"
        "- Words of emotional support"
    )


def build_prompt(user: Dict[str, Any], message_type: str, history: List[Dict[str, Any]], message: str) -> str:
    """Prompt for the model: system instructions, last turns, then the new message."""
    conversation = "\n".join(f"{turn['role']}: {turn['content']}" for turn in history[-HISTORY_WINDOW:])
    return (
        f"{system_prompt(user, message_type)}\n\n"
        f"Conversation history:\n{conversation}\n\n"
        f"Current user message: {message}\n\n"
        "Response:"
    )


def extract_bible_verses(text: str) -> List[str]:
    return [match.strip() for match in VERSE_PATTERN.findall(text)]


def extract_recommendations(text: str) -> List[str]:
    found = []
    for pattern in RECOMMENDATION_PATTERNS:
        found.extend(match.group(0).strip() for match in list(pattern.finditer(text))[:2])
    return found or list(DEFAULT_RECOMMENDATIONS)


def extract_follow_up_questions(text: str) -> List[str]:
    questions = [q.strip() for q in QUESTION_PATTERN.findall(text) if q.strip()]
    return questions[-2:] or list(DEFAULT_FOLLOW_UPS)


def extract_emotional_support(text: str) -> str:
    for pattern in SUPPORT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return DEFAULT_SUPPORT


def parse_response(text: str) -> Dict[str, Any]:
    return {
        "response": text,
        "bibleVerses": extract_bible_verses(text),
        "recommendations": extract_recommendations(text),
        "followUpQuestions": extract_follow_up_questions(text),
        "emotionalSupport": extract_emotional_support(text),
    }
