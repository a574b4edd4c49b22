import logging
from functools import partial

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kanji_quiz import config
from kanji_quiz.api.routes import build_router
from kanji_quiz.db.repo import Repo
from kanji_quiz.domain.session import QuizSession
from kanji_quiz.errors import QuizError
from kanji_quiz.services.admin_service import AdminService
from kanji_quiz.services.game_service import GameService
from kanji_quiz.services.log_service import LogService
from kanji_quiz.services.question_service import QuestionService
from kanji_quiz.services.session_service import SessionService

logger = logging.getLogger(__name__)


def create_app(
    db_path: str = None,
    passcode: str = None,
    session_factory=None,
) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=config.APP_TITLE)

    async def _handle_404(request: Request):
        path = request.url.path or ""

        # Keep API sane
        if path.startswith("/api"):
            return JSONResponse({"message": "Not found"}, status_code=404)

        # Redirect unknown pages home
        return RedirectResponse(url="/", status_code=303)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return await _handle_404(request)
        return JSONResponse({"message": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(HTTPException)
    async def fastapi_http_exception_handler(request: Request, exc: HTTPException):
        if exc.status_code == 404:
            return await _handle_404(request)
        return JSONResponse({"message": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError):
        return JSONResponse({"message": exc.message}, status_code=exc.status_code)

    repo = Repo(db_path or config.DB_PATH)
    repo.init_db()

    if session_factory is None:
        session_factory = partial(
            QuizSession,
            correct_ms=config.FEEDBACK_CORRECT_MS,
            incorrect_ms=config.FEEDBACK_INCORRECT_MS,
        )

    session_svc = SessionService()
    admin_svc = AdminService(passcode or config.PARENT_PASSCODE)
    q_svc = QuestionService(repo)
    log_svc = LogService(repo)
    game_svc = GameService(q_svc, log_svc, session_factory)

    app.include_router(build_router(session_svc, admin_svc, q_svc, log_svc, game_svc))
    logger.info("%s ready, database at %s", config.APP_TITLE, repo.db_path)
    return app
