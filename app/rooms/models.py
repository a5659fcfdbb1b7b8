from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.movies.models import Movie

PIN_PATTERN = r"^\d{4}$"

class RoomStatus(str, Enum):
    WAITING = "waiting"   # Only the host is in the room
    READY = "ready"       # Both players joined, swiping can start

class Room(BaseModel):
    id: str
    pin: str = Field(..., pattern=PIN_PATTERN)
    host_user_id: str
    player2_user_id: Optional[str] = None
    movie_list: List[Movie] = []
    status: RoomStatus = RoomStatus.WAITING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_playing(self) -> bool:
        return bool(self.player2_user_id) or self.status == RoomStatus.READY

    def is_participant(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in (self.host_user_id, self.player2_user_id)

    def has_movie(self, movie_id: str) -> bool:
        return any(movie.id == movie_id for movie in self.movie_list)

class JoinRoomRequest(BaseModel):
    # PINs are strings: "0042" and "42" are different rooms
    pin: str = Field(..., pattern=PIN_PATTERN)
