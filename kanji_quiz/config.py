import os

APP_TITLE = "Kanji Quiz"
USER_COOKIE = "kanji_uid"
PASSCODE_HEADER = "x-passcode"

DB_PATH = os.getenv("DB_PATH", "kanji_quiz.sqlite3")
PARENT_PASSCODE = os.getenv("PARENT_PASSCODE", "1234")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# feedback dwell, milliseconds
FEEDBACK_CORRECT_MS = int(os.getenv("FEEDBACK_CORRECT_MS", "2000"))
FEEDBACK_INCORRECT_MS = int(os.getenv("FEEDBACK_INCORRECT_MS", "2000"))

# 0 = every active question
QUESTION_COUNT_CHOICES = (5, 10, 15, 0)
DEFAULT_QUESTION_COUNT = 10

# in-memory games: idle ones are dropped after the TTL, and the registry is capped
GAME_TTL_SECONDS = int(os.getenv("GAME_TTL_SECONDS", "3600"))
MAX_GAMES = int(os.getenv("MAX_GAMES", "1000"))
