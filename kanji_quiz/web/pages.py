from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from kanji_quiz.config import APP_TITLE

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def home_page_html(request: Request, count_choices, default_count):
    return templates.TemplateResponse(
        request,
        "home.html",
        {"title": APP_TITLE, "count_choices": count_choices, "default_count": default_count},
    )


def game_page_html(request: Request):
    return templates.TemplateResponse(request, "game.html", {"title": APP_TITLE})


def admin_page_html(request: Request):
    return templates.TemplateResponse(request, "admin.html", {"title": APP_TITLE})
