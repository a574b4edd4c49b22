"""ASGI entry point: ``uvicorn kanji_quiz.asgi:app``."""
from kanji_quiz.main import create_app

app = create_app()
