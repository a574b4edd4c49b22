class QuizError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizError):
    """Input is malformed or breaks a question/log invariant."""
    status_code = 400


class NotFoundError(QuizError):
    status_code = 404


class InvalidStateError(QuizError):
    """Operation not allowed in the game's current state."""
    status_code = 409


class UpstreamError(QuizError):
    """The store failed; nothing local can recover it."""
    status_code = 503


class UnauthorizedError(QuizError):
    status_code = 401
