from typing import List, Optional


class GameError(Exception):
    """
    Base error of the game engine. Carries an HTTP-style status so the API
    layer can tell client mistakes (4xx) apart from server faults.
    """
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(GameError):
    status_code = 404


class ConflictError(GameError):
    """Stored state disagrees with the request; only a force flag resolves it."""
    status_code = 409


class NotReadyError(GameError):
    """The operation is valid, but not at this point of the season."""
    status_code = 400


class InvalidInputError(GameError):
    status_code = 400


class RosterValidationError(GameError):
    status_code = 400

    def __init__(self, errors: List[dict]):
        super().__init__("Team roster validation failed")
        self.errors = errors
