from fastapi import APIRouter, Request, Response
from fastapi.responses import HTMLResponse

from kanji_quiz.config import DEFAULT_QUESTION_COUNT, PASSCODE_HEADER, QUESTION_COUNT_CHOICES
from kanji_quiz.errors import UnauthorizedError, ValidationError
from kanji_quiz.services.admin_service import AdminService
from kanji_quiz.services.game_service import GameService
from kanji_quiz.services.log_service import LogService
from kanji_quiz.services.question_service import QuestionService
from kanji_quiz.services.session_service import SessionService
from kanji_quiz.web.pages import admin_page_html, game_page_html, home_page_html


async def read_json(request: Request, allow_empty: bool = False) -> dict:
    if allow_empty and not await request.body():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be an object")
    return body


def parse_quiz_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("Invalid quiz ID")


def build_router(
    session_svc: SessionService,
    admin_svc: AdminService,
    q_svc: QuestionService,
    log_svc: LogService,
    game_svc: GameService,
):
    r = APIRouter()

    def is_owner(request: Request) -> bool:
        return admin_svc.is_owner(request.headers.get(PASSCODE_HEADER))

    def require_owner(request: Request):
        if not is_owner(request):
            raise UnauthorizedError("Unauthorized")

    @r.get("/favicon.ico")
    def favicon():
        return Response(status_code=204)

    # pages
    @r.get("/", response_class=HTMLResponse)
    def home(request: Request):
        resp = home_page_html(request, QUESTION_COUNT_CHOICES, DEFAULT_QUESTION_COUNT)
        session_svc.get_or_create(request, resp)
        return resp

    @r.get("/game", response_class=HTMLResponse)
    def game_page(request: Request):
        resp = game_page_html(request)
        session_svc.get_or_create(request, resp)
        return resp

    @r.get("/admin", response_class=HTMLResponse)
    def admin_page(request: Request):
        resp = admin_page_html(request)
        session_svc.get_or_create(request, resp)
        return resp

    # quizzes
    @r.get("/api/quizzes")
    def list_quizzes(request: Request, response: Response, scope: str = "all"):
        uid = session_svc.get_or_create(request, response)
        if scope == "active":
            return q_svc.list_active_questions(uid)
        if scope != "all":
            raise ValidationError("scope must be 'all' or 'active'")
        return q_svc.list_questions(uid, is_owner(request))

    @r.get("/api/quizzes/active")
    def list_active_quizzes(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        return q_svc.list_active_questions(uid)

    @r.get("/api/quizzes/{quiz_id}")
    def get_quiz(quiz_id: str, request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        return q_svc.get_visible_question(parse_quiz_id(quiz_id), uid, is_owner(request))

    @r.post("/api/quizzes", status_code=201)
    async def create_quiz(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        require_owner(request)
        body = await read_json(request)
        body["ownerUserId"] = uid
        return q_svc.create_question(body)

    @r.patch("/api/quizzes/{quiz_id}")
    async def update_quiz(quiz_id: str, request: Request):
        require_owner(request)
        qid = parse_quiz_id(quiz_id)
        body = await read_json(request)
        return q_svc.update_question(qid, body)

    @r.delete("/api/quizzes/{quiz_id}")
    def delete_quiz(quiz_id: str, request: Request):
        require_owner(request)
        return {"success": q_svc.delete_question(parse_quiz_id(quiz_id))}

    # logs
    @r.get("/api/logs")
    def list_logs(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        return log_svc.list_logs_by_user(uid)

    @r.post("/api/logs", status_code=201)
    async def create_log(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        body = await read_json(request)
        return log_svc.create_log(uid, body)

    # game
    @r.post("/api/game/start")
    async def game_start(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        body = await read_json(request, allow_empty=True)
        return game_svc.start_game(uid, body.get("count")).to_dict()

    @r.get("/api/game")
    def game_state(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        return game_svc.get_game(uid).to_dict()

    @r.post("/api/game/answer")
    async def game_answer(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        body = await read_json(request)
        return game_svc.answer(uid, body.get("kanji")).to_dict()

    @r.post("/api/game/finish", status_code=201)
    def game_finish(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        return game_svc.finish_game(uid)

    @r.delete("/api/game")
    def game_abandon(request: Request, response: Response):
        uid = session_svc.get_or_create(request, response)
        game_svc.abandon_game(uid)
        return {"ok": True}

    # admin
    @r.post("/api/admin/verify")
    async def admin_verify(request: Request):
        try:
            body = await read_json(request)
        except ValidationError:
            body = {}
        ok, msg = admin_svc.verify(body.get("passcode") or "")
        if not ok:
            raise UnauthorizedError(msg)
        return {"ok": True, "message": msg}

    @r.get("/health")
    def health():
        return {"ok": True}

    return r
