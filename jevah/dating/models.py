from enum import Enum


class LookingFor(str, Enum):
    MEN = "men"
    WOMEN = "women"
    BOTH = "both"


class FaithLevel(str, Enum):
    VERY_IMPORTANT = "very_important"
    IMPORTANT = "important"
    SOMEWHAT_IMPORTANT = "somewhat_important"
    NOT_IMPORTANT = "not_important"


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


class DatingMessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VOICE = "voice"
    GIFT = "gift"


# Which lookingFor values can include a user of a given gender
GENDER_AUDIENCE = {
    "male": [LookingFor.MEN.value, LookingFor.BOTH.value],
    "female": [LookingFor.WOMEN.value, LookingFor.BOTH.value],
}

MAX_PHOTOS = 6
