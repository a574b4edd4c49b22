import logging
import random
import threading
import time

from kanji_quiz.config import DEFAULT_QUESTION_COUNT, GAME_TTL_SECONDS, MAX_GAMES, QUESTION_COUNT_CHOICES
from kanji_quiz.domain.session import QuizSession
from kanji_quiz.errors import NotFoundError, ValidationError
from kanji_quiz.services.log_service import LogService
from kanji_quiz.services.question_service import QuestionService

logger = logging.getLogger(__name__)


class GameService:
    """Keeps one in-memory quiz session per player.

    Games idle longer than ``ttl`` seconds are evicted when a new game starts,
    and the oldest ones go first once ``max_games`` is reached.
    """

    def __init__(
        self,
        questions: QuestionService,
        logs: LogService,
        session_factory=QuizSession,
        ttl: float = GAME_TTL_SECONDS,
        max_games: int = MAX_GAMES,
        clock=time.monotonic,
    ):
        self.questions = questions
        self.logs = logs
        self.session_factory = session_factory
        self.ttl = ttl
        self.max_games = max_games
        self.clock = clock
        self._games: dict[str, QuizSession] = {}
        self._seen: dict[str, float] = {}
        self._lock = threading.Lock()

    @staticmethod
    def pick(questions: list[dict], count: int) -> list[dict]:
        if count and len(questions) > count:
            return random.sample(questions, count)
        return questions

    def active_games(self) -> int:
        with self._lock:
            return len(self._games)

    def _evict(self, now: float) -> list[QuizSession]:
        # caller holds self._lock
        dropped = [uid for uid, seen in self._seen.items() if now - seen > self.ttl]
        excess = len(self._games) - len(dropped) - (self.max_games - 1)
        if excess > 0:
            live = sorted((seen, uid) for uid, seen in self._seen.items() if uid not in dropped)
            dropped.extend(uid for _, uid in live[:excess])

        sessions = []
        for uid in dropped:
            self._seen.pop(uid, None)
            session = self._games.pop(uid, None)
            if session:
                sessions.append(session)
        if sessions:
            logger.info("evicted %d idle games", len(sessions))
        return sessions

    def start_game(self, user_id: str, count=DEFAULT_QUESTION_COUNT) -> QuizSession:
        if count is None:
            count = DEFAULT_QUESTION_COUNT
        if isinstance(count, bool) or count not in QUESTION_COUNT_CHOICES:
            choices = ", ".join(str(c) for c in QUESTION_COUNT_CHOICES)
            raise ValidationError(f"count must be one of {choices}")

        session = self.session_factory()
        session.load(lambda: self.pick(self.questions.list_active_questions(user_id), count))

        with self._lock:
            previous = self._games.pop(user_id, None)
            self._seen.pop(user_id, None)
            stale = self._evict(self.clock())
            self._games[user_id] = session
            self._seen[user_id] = self.clock()
        for old in stale + ([previous] if previous else []):
            old.abandon()

        logger.info("game started for %s with %d questions", user_id, session.total_questions)
        return session

    def get_game(self, user_id: str) -> QuizSession:
        with self._lock:
            session = self._games.get(user_id)
            if session:
                self._seen[user_id] = self.clock()
        if not session:
            raise NotFoundError("No game in progress")
        return session

    def answer(self, user_id: str, kanji: str) -> QuizSession:
        if not isinstance(kanji, str) or not kanji:
            raise ValidationError("kanji is required")
        session = self.get_game(user_id)
        session.submit_answer(kanji)
        return session

    def finish_game(self, user_id: str) -> dict:
        session = self.get_game(user_id)
        log = session.finish(lambda payload: self.logs.create_log(user_id, payload))
        with self._lock:
            if self._games.get(user_id) is session:
                del self._games[user_id]
                self._seen.pop(user_id, None)
        return log

    def abandon_game(self, user_id: str):
        with self._lock:
            session = self._games.pop(user_id, None)
            self._seen.pop(user_id, None)
        if session:
            session.abandon()
