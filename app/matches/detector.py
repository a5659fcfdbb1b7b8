import logging
from typing import Optional

from app.rooms.models import Room
from app.swipes.models import Swipe
from .models import Match

logger = logging.getLogger(__name__)


def both_liked(room: Room, host_swipe: Optional[Swipe], player2_swipe: Optional[Swipe]) -> bool:
    """A movie matches once the host and player 2 have both swiped right on it.

    Arrival order is irrelevant, and swipes by anyone other than the two
    participants never count.
    """
    if not room.player2_user_id or host_swipe is None or player2_swipe is None:
        return False
    if host_swipe.user_id != room.host_user_id or player2_swipe.user_id != room.player2_user_id:
        return False
    return host_swipe.liked and player2_swipe.liked


class MatchDetector:
    def __init__(self, store):
        self.store = store

    async def evaluate(self, room: Room, movie_id: str) -> Optional[Match]:
        """Insert the match for (room, movie) if both participants agree.

        Returns the match only when this call created it; an existing match
        is never duplicated.
        """
        match = await self.store.create_match_if(room, movie_id, both_liked)
        if match is not None:
            logger.info(f"Match in room {room.id} on movie {movie_id}")
        return match
