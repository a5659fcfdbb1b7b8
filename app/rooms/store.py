import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.matches.models import Match
from app.movies.models import Movie
from app.swipes.models import Swipe
from ..core.errors import PinCollision, RoomConflict
from .models import Room, RoomStatus

logger = logging.getLogger(__name__)

ROOMS = 'rooms'
ROOM_PINS = 'room_pins'
SWIPES = 'swipes'
MATCHES = 'matches'

RoomCallback = Callable[[Room], None]
MatchCallback = Callable[[Match], None]
# (room, host swipe, player2 swipe) -> should a match exist
MatchRule = Callable[[Room, Optional[Swipe], Optional[Swipe]], bool]


def swipe_key(room_id: str, user_id: str, movie_id: str) -> str:
    return f"{room_id}_{user_id}_{movie_id}"


def match_key(room_id: str, movie_id: str) -> str:
    return f"{room_id}_{movie_id}"


class RoomStore(ABC):
    """Persistence and change notification for rooms, swipes and matches.

    Watch callbacks may be invoked from a thread owned by the store, and a
    newly attached watcher first receives the current state (snapshot
    semantics). Each watch returns an object with an ``unsubscribe()`` method.
    """

    @abstractmethod
    async def find_room_by_pin(self, pin: str, status: Optional[RoomStatus] = None) -> Optional[Room]:
        ...

    @abstractmethod
    async def get_room(self, room_id: str) -> Optional[Room]:
        ...

    @abstractmethod
    async def insert_room(self, pin: str, host_user_id: str, movie_list: List[Movie]) -> Room:
        """Persist a waiting room; raises PinCollision if the PIN is taken."""

    @abstractmethod
    async def claim_player2(self, room_id: str, user_id: str) -> Room:
        """Set player2 and flip to ready, only if the room is still waiting.

        Raises RoomConflict when the condition no longer holds.
        """

    @abstractmethod
    async def reset_room(self, room_id: str) -> Room:
        """Back to waiting with no player2, dropping swipes and matches. Test tooling only."""

    @abstractmethod
    async def put_swipe(self, swipe: Swipe) -> Swipe:
        """Last write wins per (room, user, movie)."""

    @abstractmethod
    async def create_match_if(self, room: Room, movie_id: str, rule: MatchRule) -> Optional[Match]:
        """Atomically read both participants' swipes and create the match if `rule` agrees.

        Returns the match only when this call created it.
        """

    @abstractmethod
    async def list_matches(self, room_id: str) -> List[Match]:
        ...

    @abstractmethod
    def watch_room(self, room_id: str, callback: RoomCallback):
        ...

    @abstractmethod
    def watch_matches(self, room_id: str, callback: MatchCallback):
        ...


class _Subscription:
    def __init__(self, watchers: List, callback):
        self._watchers = watchers
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._watchers:
            self._watchers.remove(self._callback)


class InMemoryRoomStore(RoomStore):
    """Process-local store for development and tests.

    Every method runs to completion without awaiting, so check-and-set
    sequences are atomic on a single event loop.
    """

    def __init__(self):
        self.rooms: Dict[str, Room] = {}
        self.pins: Dict[str, str] = {}
        self.swipes: Dict[str, Swipe] = {}
        self.matches: Dict[str, Match] = {}
        self._room_watchers: Dict[str, List[RoomCallback]] = {}
        self._match_watchers: Dict[str, List[MatchCallback]] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def find_room_by_pin(self, pin: str, status: Optional[RoomStatus] = None) -> Optional[Room]:
        room_id = self.pins.get(pin)
        if room_id is None:
            return None
        room = self.rooms[room_id]
        if status is not None and room.status != status:
            return None
        return room.model_copy(deep=True)

    async def get_room(self, room_id: str) -> Optional[Room]:
        room = self.rooms.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def insert_room(self, pin: str, host_user_id: str, movie_list: List[Movie]) -> Room:
        if pin in self.pins:
            raise PinCollision(f"PIN {pin} already in use")

        now = self._now()
        room = Room(
            id=str(uuid.uuid4()),
            pin=pin,
            host_user_id=host_user_id,
            movie_list=[movie.model_copy() for movie in movie_list],
            status=RoomStatus.WAITING,
            created_at=now,
            updated_at=now
        )
        self.rooms[room.id] = room
        self.pins[pin] = room.id
        return room.model_copy(deep=True)

    async def claim_player2(self, room_id: str, user_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None or room.status != RoomStatus.WAITING or room.player2_user_id:
            raise RoomConflict(f"Room {room_id} is no longer waiting")

        room.player2_user_id = user_id
        room.status = RoomStatus.READY
        room.updated_at = self._now()
        self._notify_room(room)
        return room.model_copy(deep=True)

    async def reset_room(self, room_id: str) -> Room:
        room = self.rooms[room_id]
        room.player2_user_id = None
        room.status = RoomStatus.WAITING
        room.updated_at = self._now()
        self.swipes = {k: s for k, s in self.swipes.items() if s.room_id != room_id}
        self.matches = {k: m for k, m in self.matches.items() if m.room_id != room_id}
        self._notify_room(room)
        return room.model_copy(deep=True)

    async def put_swipe(self, swipe: Swipe) -> Swipe:
        stored = swipe.model_copy(update={'created_at': self._now()})
        self.swipes[swipe_key(swipe.room_id, swipe.user_id, swipe.movie_id)] = stored
        return stored

    async def create_match_if(self, room: Room, movie_id: str, rule: MatchRule) -> Optional[Match]:
        key = match_key(room.id, movie_id)
        if key in self.matches:
            return None

        host_swipe = self.swipes.get(swipe_key(room.id, room.host_user_id, movie_id))
        player2_swipe = None
        if room.player2_user_id:
            player2_swipe = self.swipes.get(swipe_key(room.id, room.player2_user_id, movie_id))

        if not rule(room, host_swipe, player2_swipe):
            return None

        match = Match(room_id=room.id, movie_id=movie_id, created_at=self._now())
        self.matches[key] = match
        self._notify_match(match)
        return match

    async def list_matches(self, room_id: str) -> List[Match]:
        return [m.model_copy() for m in self.matches.values() if m.room_id == room_id]

    def watch_room(self, room_id: str, callback: RoomCallback):
        watchers = self._room_watchers.setdefault(room_id, [])
        watchers.append(callback)
        if room_id in self.rooms:
            callback(self.rooms[room_id].model_copy(deep=True))
        return _Subscription(watchers, callback)

    def watch_matches(self, room_id: str, callback: MatchCallback):
        watchers = self._match_watchers.setdefault(room_id, [])
        watchers.append(callback)
        for match in list(self.matches.values()):
            if match.room_id == room_id:
                callback(match.model_copy())
        return _Subscription(watchers, callback)

    def _notify_room(self, room: Room) -> None:
        for callback in list(self._room_watchers.get(room.id, [])):
            try:
                callback(room.model_copy(deep=True))
            except Exception:
                logger.exception(f"Room watcher failed for room {room.id}")

    def _notify_match(self, match: Match) -> None:
        for callback in list(self._match_watchers.get(match.room_id, [])):
            try:
                callback(match.model_copy())
            except Exception:
                logger.exception(f"Match watcher failed for room {match.room_id}")
