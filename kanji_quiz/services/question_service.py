import logging

from kanji_quiz.db.repo import Repo
from kanji_quiz.domain.questions import merge_question, validate_question
from kanji_quiz.errors import NotFoundError

logger = logging.getLogger(__name__)


class QuestionService:
    def __init__(self, repo: Repo):
        self.repo = repo

    def list_questions(self, requester_id: str, is_owner: bool) -> list[dict]:
        if is_owner:
            return self.repo.select_questions()
        return self.repo.select_questions(requester_id)

    def list_active_questions(self, requester_id: str) -> list[dict]:
        return self.repo.select_questions(requester_id, active_only=True)

    def get_question(self, question_id: int) -> dict:
        q = self.repo.get_question(question_id)
        if not q:
            raise NotFoundError("Quiz not found")
        return q

    def get_visible_question(self, question_id: int, requester_id: str, is_owner: bool) -> dict:
        """Like get_question, but a non-owner only finds global or own questions."""
        q = self.repo.get_question(question_id, None if is_owner else requester_id)
        if not q:
            raise NotFoundError("Quiz not found")
        return q

    def create_question(self, data: dict) -> dict:
        clean = validate_question(data)
        q = self.repo.insert_question(clean)
        logger.info("question %s created by %s", q["id"], q["ownerUserId"])
        return q

    def update_question(self, question_id: int, updates: dict) -> dict:
        existing = self.get_question(question_id)
        clean = validate_question(merge_question(existing, updates))
        q = self.repo.update_question(question_id, clean)
        if not q:
            # deleted between read and write
            raise NotFoundError("Quiz not found")
        logger.info("question %s updated", question_id)
        return q

    def delete_question(self, question_id: int) -> bool:
        if not self.repo.delete_question(question_id):
            raise NotFoundError("Quiz not found")
        logger.info("question %s deleted", question_id)
        return True
