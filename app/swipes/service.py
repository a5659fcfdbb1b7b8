import logging

from ..core.errors import MatchAppError
from ..matches.detector import MatchDetector
from ..rooms.models import RoomStatus
from .models import Swipe, SwipeResult

logger = logging.getLogger(__name__)


class SwipeService:
    """Records swipes with at-most-once, best-effort delivery.

    record_swipe never raises and never retries: a failed write is logged and
    reported in the result, and the caller moves on to the next card. A lost
    swipe can keep a real match from ever being detected.
    """

    def __init__(self, store, detector: MatchDetector = None):
        self.store = store
        self.detector = detector or MatchDetector(store)

    async def record_swipe(self, room_id: str, user_id: str, movie_id: str, liked: bool) -> SwipeResult:
        try:
            room = await self.store.get_room(room_id)
            if room is None:
                return self._dropped(room_id, user_id, movie_id, "room not found")
            if not room.is_participant(user_id):
                return self._dropped(room_id, user_id, movie_id, "not a participant")
            if room.status != RoomStatus.READY:
                return self._dropped(room_id, user_id, movie_id, "room is not ready")
            if not room.has_movie(movie_id):
                return self._dropped(room_id, user_id, movie_id, "movie not in room")

            await self.store.put_swipe(Swipe(room_id=room_id, user_id=user_id, movie_id=movie_id, liked=liked))
            logger.info(f"User {user_id} swiped {'right' if liked else 'left'} on {movie_id} in room {room_id}")
        except MatchAppError as e:
            logger.error(f"Error recording swipe: {e.message}")
            return SwipeResult(recorded=False, reason=e.message)

        try:
            match = await self.detector.evaluate(room, movie_id)
        except MatchAppError as e:
            logger.error(f"Swipe recorded but match detection failed: {e.message}")
            return SwipeResult(recorded=True, reason=e.message)
        return SwipeResult(recorded=True, match=match)

    def _dropped(self, room_id: str, user_id: str, movie_id: str, reason: str) -> SwipeResult:
        logger.warning(f"Dropped swipe by {user_id} on {movie_id} in room {room_id}: {reason}")
        return SwipeResult(recorded=False, reason=reason)
