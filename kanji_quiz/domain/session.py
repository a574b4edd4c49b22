"""One play-through of a kanji quiz.

States run ``loading -> playing -> feedback -> complete``. Answers are only
accepted while ``playing``; after each answer the session dwells in
``feedback`` until the scheduler fires the advance. An empty question list
completes immediately with ``total_questions == 0``.
"""
import logging
import threading

from kanji_quiz.config import FEEDBACK_CORRECT_MS, FEEDBACK_INCORRECT_MS
from kanji_quiz.errors import InvalidStateError, UpstreamError

logger = logging.getLogger(__name__)

LOADING = "loading"
PLAYING = "playing"
FEEDBACK = "feedback"
COMPLETE = "complete"

CORRECT = "correct"
INCORRECT = "incorrect"


def timer_scheduler(delay: float, callback):
    t = threading.Timer(delay, callback)
    t.daemon = True
    t.start()
    return t


class QuizSession:
    def __init__(
        self,
        scheduler=timer_scheduler,
        correct_ms: int = FEEDBACK_CORRECT_MS,
        incorrect_ms: int = FEEDBACK_INCORRECT_MS,
        on_correct=None,
    ):
        self.scheduler = scheduler
        self.correct_ms = correct_ms
        self.incorrect_ms = incorrect_ms
        self.on_correct = on_correct

        self.state = LOADING
        self.questions: list[dict] = []
        self.current_index = 0
        self.score = 0
        self.feedback = None
        self.abandoned = False
        self.finishing = False
        self.finished = False

        self._lock = threading.RLock()
        self._token = 0

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self):
        if self.state in (PLAYING, FEEDBACK) and self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def load(self, fetch):
        """Fetch questions and start; a store failure starts with nothing."""
        try:
            questions = fetch()
        except UpstreamError as exc:
            logger.warning("question fetch failed, starting empty: %s", exc)
            questions = []
        return self.start(questions)

    def start(self, questions):
        with self._lock:
            if self.state != LOADING:
                raise InvalidStateError("Quiz already started.")
            self.questions = list(questions or [])
            self.state = PLAYING if self.questions else COMPLETE
            logger.debug("session started with %d questions", len(self.questions))
            return self.state

    def submit_answer(self, selected_kanji: str):
        """Score one answer. Returns the feedback, or None when not playing."""
        with self._lock:
            if self.abandoned or self.state != PLAYING:
                return None
            question = self.current_question
            if question is None:
                return None

            if selected_kanji == question["kanji"]:
                self.score += 1
                self.feedback = CORRECT
                delay_ms = self.correct_ms
            else:
                self.feedback = INCORRECT
                delay_ms = self.incorrect_ms
            self.state = FEEDBACK

            self._token += 1
            token = self._token
            feedback = self.feedback

        if feedback == CORRECT and self.on_correct:
            self.on_correct(question)
        self.scheduler(delay_ms / 1000.0, lambda: self._advance(token))
        return feedback

    def _advance(self, token: int):
        with self._lock:
            # stale timer: abandoned session or an older answer
            if self.abandoned or token != self._token or self.state != FEEDBACK:
                return
            self.feedback = None
            if self.current_index < len(self.questions) - 1:
                self.current_index += 1
                self.state = PLAYING
            else:
                self.state = COMPLETE

    def abandon(self):
        with self._lock:
            self.abandoned = True
            self._token += 1

    def result(self) -> dict:
        return {"score": self.score, "totalQuestions": self.total_questions}

    def finish(self, create_log):
        """Hand the result to ``create_log`` exactly once.

        A second caller, concurrent or later, gets InvalidStateError. If
        ``create_log`` fails the error reaches the caller and finish may be
        tried again.
        """
        with self._lock:
            if self.state != COMPLETE:
                raise InvalidStateError("Quiz is not complete yet.")
            if self.finishing or self.finished:
                raise InvalidStateError("Quiz already finished.")
            self.finishing = True
            payload = self.result()

        try:
            log = create_log(payload)
        except Exception:
            with self._lock:
                self.finishing = False
            raise

        with self._lock:
            self.finishing = False
            self.finished = True
        return log

    def to_dict(self) -> dict:
        with self._lock:
            q = self.current_question
            current = None
            if q is not None:
                current = {
                    "id": q["id"],
                    "options": list(q["options"]),
                    "imagePath": q["imagePath"],
                    "questionJa": q["questionJa"],
                    "questionEn": q["questionEn"],
                    "hintJa": q.get("hintJa"),
                    "hintEn": q.get("hintEn"),
                }
                if self.state == FEEDBACK:
                    current["kanji"] = q["kanji"]
            return {
                "state": self.state,
                "currentIndex": self.current_index,
                "score": self.score,
                "totalQuestions": self.total_questions,
                "feedback": self.feedback,
                "question": current,
            }
