import logging
from datetime import datetime, timezone

from kanji_quiz.db.repo import Repo
from kanji_quiz.errors import ValidationError

logger = logging.getLogger(__name__)


def _count(data: dict, field: str) -> int:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must not be negative")
    return value


class LogService:
    def __init__(self, repo: Repo):
        self.repo = repo

    @staticmethod
    def now_str():
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds")

    def create_log(self, user_id: str, data: dict) -> dict:
        if not isinstance(data, dict):
            raise ValidationError("Log payload must be an object")
        score = _count(data, "score")
        total = _count(data, "totalQuestions")
        if score > total:
            raise ValidationError("score cannot exceed totalQuestions")

        log = self.repo.insert_log(user_id, score, total, self.now_str())
        logger.info("learning log %s: %s scored %d/%d", log["id"], user_id, score, total)
        return log

    def list_logs_by_user(self, user_id: str) -> list[dict]:
        return self.repo.select_logs_by_user(user_id)
