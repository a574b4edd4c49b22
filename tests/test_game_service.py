import threading
from functools import partial

import pytest

from kanji_quiz.domain.session import COMPLETE, PLAYING, QuizSession
from kanji_quiz.errors import InvalidStateError, NotFoundError, UpstreamError, ValidationError
from kanji_quiz.services.game_service import GameService

from conftest import make_question


@pytest.fixture
def game_svc(q_svc, log_svc, scheduler):
    return GameService(q_svc, log_svc, partial(QuizSession, scheduler=scheduler))


@pytest.fixture
def questions(q_svc):
    return [
        q_svc.create_question(make_question(kanji=k, options=[k, "口", "日"], isGlobal=True))
        for k in ("木", "山", "川")
    ]


def test_full_game_writes_log(game_svc, log_svc, scheduler, questions):
    session = game_svc.start_game("kid", 0)
    assert session.state == PLAYING
    assert [q["id"] for q in session.questions] == [q["id"] for q in questions]

    for q in questions:
        game_svc.answer("kid", q["kanji"])
        scheduler.fire_all()

    log = game_svc.finish_game("kid")
    assert (log["score"], log["totalQuestions"]) == (3, 3)
    assert log_svc.list_logs_by_user("kid") == [log]
    with pytest.raises(NotFoundError):
        game_svc.get_game("kid")


def test_count_limits_questions(game_svc, q_svc):
    for i in range(7):
        q_svc.create_question(make_question(isGlobal=True, questionEn=f"q{i}"))
    assert game_svc.start_game("kid", 5).total_questions == 5
    assert game_svc.start_game("kid", 10).total_questions == 7


def test_rejects_unknown_count(game_svc):
    with pytest.raises(ValidationError):
        game_svc.start_game("kid", 7)


def test_only_active_visible_questions(game_svc, q_svc, questions):
    q_svc.create_question(make_question(ownerUserId="someone-else"))
    q_svc.update_question(questions[0]["id"], {"isActive": False})
    ids = {q["id"] for q in game_svc.start_game("kid", 0).questions}
    assert ids == {questions[1]["id"], questions[2]["id"]}


def test_restart_abandons_previous(game_svc, scheduler, questions):
    first = game_svc.start_game("kid", 0)
    game_svc.answer("kid", "木")
    second = game_svc.start_game("kid", 0)
    scheduler.fire_all()
    assert first.abandoned
    assert first.current_index == 0
    assert game_svc.get_game("kid") is second


def test_store_failure_gives_empty_game(game_svc, q_svc, monkeypatch):
    def broken(requester_id):
        raise UpstreamError("Database error.")

    monkeypatch.setattr(q_svc, "list_active_questions", broken)
    session = game_svc.start_game("kid", 0)
    assert session.state == COMPLETE
    assert session.total_questions == 0


def test_finish_too_early(game_svc, questions):
    game_svc.start_game("kid", 0)
    with pytest.raises(InvalidStateError):
        game_svc.finish_game("kid")
    assert game_svc.get_game("kid").state == PLAYING


def test_answer_without_game(game_svc):
    with pytest.raises(NotFoundError):
        game_svc.answer("kid", "木")


def test_abandon_game(game_svc, questions):
    session = game_svc.start_game("kid", 0)
    game_svc.abandon_game("kid")
    assert session.abandoned
    with pytest.raises(NotFoundError):
        game_svc.get_game("kid")


def test_concurrent_finish_writes_one_log(game_svc, log_svc, scheduler, questions, monkeypatch):
    game_svc.start_game("kid", 0)
    for q in questions:
        game_svc.answer("kid", q["kanji"])
        scheduler.fire_all()

    entered, release = threading.Event(), threading.Event()
    create_log = log_svc.create_log

    def slow_create_log(user_id, data):
        entered.set()
        release.wait(5)
        return create_log(user_id, data)

    monkeypatch.setattr(log_svc, "create_log", slow_create_log)
    worker = threading.Thread(target=game_svc.finish_game, args=("kid",))
    worker.start()
    assert entered.wait(5)
    try:
        with pytest.raises(InvalidStateError):
            game_svc.finish_game("kid")
    finally:
        release.set()
        worker.join(5)

    assert len(log_svc.list_logs_by_user("kid")) == 1


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_idle_games_evicted(q_svc, log_svc, scheduler):
    clock = FakeClock()
    svc = GameService(q_svc, log_svc, partial(QuizSession, scheduler=scheduler), ttl=60, clock=clock)
    stale = svc.start_game("a", 0)
    clock.now = 30
    svc.start_game("b", 0)
    clock.now = 80
    svc.start_game("c", 0)

    assert svc.active_games() == 2
    assert stale.abandoned
    with pytest.raises(NotFoundError):
        svc.get_game("a")
    svc.get_game("b")


def test_registry_is_capped(q_svc, log_svc, scheduler):
    clock = FakeClock()
    svc = GameService(q_svc, log_svc, partial(QuizSession, scheduler=scheduler), max_games=3, clock=clock)
    for i, uid in enumerate(["a", "b", "c"]):
        clock.now = i
        svc.start_game(uid, 0)
    clock.now = 3
    svc.get_game("a")
    clock.now = 4
    svc.start_game("d", 0)

    assert svc.active_games() == 3
    with pytest.raises(NotFoundError):
        svc.get_game("b")
    for uid in ("a", "c", "d"):
        svc.get_game(uid)


def test_many_players_stay_bounded(q_svc, log_svc, scheduler):
    svc = GameService(q_svc, log_svc, partial(QuizSession, scheduler=scheduler), max_games=10)
    for i in range(50):
        svc.start_game(f"player-{i}", 0)
    assert svc.active_games() == 10
