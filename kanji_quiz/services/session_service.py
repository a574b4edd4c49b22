import secrets

from fastapi import Request, Response

from kanji_quiz.config import USER_COOKIE


class SessionService:
    """Player identity carried in a long-lived cookie."""

    @staticmethod
    def new_user_id():
        return secrets.token_urlsafe(24)

    def get_or_create(self, request: Request, response: Response) -> str:
        uid = request.cookies.get(USER_COOKIE)
        if not uid:
            uid = self.new_user_id()
        response.set_cookie(USER_COOKIE, uid, httponly=True, samesite="lax", max_age=60 * 60 * 24 * 365)
        return uid
