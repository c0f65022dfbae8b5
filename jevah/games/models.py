from enum import Enum


class GameType(str, Enum):
    QUIZ = "quiz"
    PUZZLE = "puzzle"
    MEMORY = "memory"
    WORD = "word"
    ADVENTURE = "adventure"
    TRIVIA = "trivia"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class AgeGroup(str, Enum):
    TODDLER = "3-5"
    YOUNG = "6-8"
    PRETEEN = "9-12"
    TEEN = "13+"


class AchievementType(str, Enum):
    FIRST_PLAY = "first_play"
    HIGH_SCORE = "high_score"
    PERFECT_SCORE = "perfect_score"
    SPEED_RUN = "speed_run"
    COMPLETION = "completion"
    STREAK = "streak"


ACHIEVEMENTS = {
    AchievementType.FIRST_PLAY.value: ("First Steps", "Played this game for the first time", 10),
    AchievementType.HIGH_SCORE.value: ("High Scorer", "Scored at least 80% of the maximum score", 25),
    AchievementType.PERFECT_SCORE.value: ("Perfect!", "Reached the maximum score", 50),
    AchievementType.SPEED_RUN.value: ("Speed Runner", "Finished in 70% of the time limit or less", 30),
    AchievementType.COMPLETION.value: ("Finisher", "Completed the game", 20),
    AchievementType.STREAK.value: ("On Fire", "Scored 70% or more three games in a row", 40),
}

HIGH_SCORE_RATIO = 0.8
SPEED_RUN_RATIO = 0.7
STREAK_RATIO = 0.7
STREAK_LENGTH = 3
# Users older than this only get games for the 13+ age group
MAX_CHILD_AGE = 12
