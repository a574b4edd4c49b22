from functools import partial

import pytest
from fastapi.testclient import TestClient

from kanji_quiz.db.repo import Repo
from kanji_quiz.domain.session import QuizSession
from kanji_quiz.main import create_app
from kanji_quiz.services.log_service import LogService
from kanji_quiz.services.question_service import QuestionService

PASSCODE = "4321"


class FakeScheduler:
    """Collects scheduled callbacks so tests decide when time passes."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def fire_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


def make_question(**overrides):
    data = {
        "kanji": "木",
        "options": ["木", "山", "川"],
        "imagePath": "/images/kanji-tree.png",
        "questionJa": "これはなに？",
        "questionEn": "What is this?",
        "hintJa": "もり",
        "hintEn": "forest",
        "isActive": True,
        "isGlobal": False,
        "ownerUserId": "parent",
    }
    data.update(overrides)
    return data


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.sqlite3")


@pytest.fixture
def repo(db_path):
    r = Repo(db_path)
    r.init_db()
    return r


@pytest.fixture
def q_svc(repo):
    return QuestionService(repo)


@pytest.fixture
def log_svc(repo):
    return LogService(repo)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def client(db_path, scheduler):
    app = create_app(
        db_path=db_path,
        passcode=PASSCODE,
        session_factory=partial(QuizSession, scheduler=scheduler),
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def owner_headers():
    return {"x-passcode": PASSCODE}
