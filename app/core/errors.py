from typing import NoReturn

from fastapi import HTTPException


class MatchAppError(Exception):
    """Base class for errors raised by the room protocol."""
    status_code = 500
    message = "Unexpected error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AuthenticationRequired(MatchAppError):
    status_code = 401
    message = "User not authenticated"


class RoomNotJoinable(MatchAppError):
    # Unknown PIN and already-started rooms share this error on purpose.
    status_code = 404
    message = "Room not found or game already started"


class NotRoomParticipant(MatchAppError):
    status_code = 403
    message = "User is not a participant of this room"


class PersistenceError(MatchAppError):
    status_code = 500
    message = "Failed to write to the room store"


class PinCollision(PersistenceError):
    status_code = 409
    message = "PIN already in use"


class RoomConflict(PersistenceError):
    """Conditional room update lost against a concurrent writer."""
    status_code = 409
    message = "Room was modified concurrently"


class CatalogUnavailable(MatchAppError):
    status_code = 503
    message = "Movie catalog unavailable"


def raise_http_error(error: MatchAppError, detail: str = None) -> NoReturn:
    raise HTTPException(status_code=error.status_code, detail=detail or error.message)
