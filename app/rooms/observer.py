import asyncio
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.matches.models import Match
from ..core.config import settings
from ..core.errors import MatchAppError
from .models import Room

logger = logging.getLogger(__name__)


class RoomEvent(BaseModel):
    kind: str                       # "ready" or "match"
    room: Room
    movie_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RoomObserver:
    """Client-side view of one room, kept current from push and poll.

    Waiting mode listens for room updates and polls the room every
    ``poll_interval`` seconds; both feed ``apply_room``. Once player 2 is in,
    the waiting resources are released and playing mode reads the existing
    matches, then listens for new ones; both feed ``apply_match``. Both
    transitions are idempotent, so the order or duplication of signals does
    not matter.

    Store callbacks may fire on a foreign thread and are marshalled onto the
    observer's loop. After ``close()`` no callback has any effect.
    """

    def __init__(self, store, room: Room, poll_interval: float = None):
        self.store = store
        self.room = room
        self.poll_interval = poll_interval if poll_interval is not None else settings.ROOM_POLL_INTERVAL
        self.matches: List[str] = []
        self.events: asyncio.Queue = asyncio.Queue()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscription = None
        self._poll_task: Optional[asyncio.Task] = None
        self._mode_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_playing(self) -> bool:
        return self.room.is_playing

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        if self.is_playing:
            await self._enter_playing()
        else:
            self._enter_waiting()

    async def close(self) -> None:
        self._closed = True
        self._release()
        if self._mode_task is not None and not self._mode_task.done():
            self._mode_task.cancel()
            try:
                await self._mode_task
            except asyncio.CancelledError:
                pass
        self._mode_task = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def apply_room(self, room: Room) -> None:
        """Room update from either the listener or the poll loop"""
        if self._closed or self.is_playing or room.id != self.room.id:
            return
        if not room.player2_user_id:
            return

        logger.info(f"Player 2 joined room {room.id}")
        self.room = room
        self._release()
        self.events.put_nowait(RoomEvent(kind="ready", room=room))
        self._mode_task = asyncio.ensure_future(self._enter_playing())

    def apply_match(self, match: Match) -> None:
        """Match from either the reconciliation read or the listener"""
        if self._closed or match.room_id != self.room.id:
            return
        if match.movie_id in self.matches:
            return

        logger.info(f"Match observed in room {match.room_id}: {match.movie_id}")
        self.matches.append(match.movie_id)
        self.events.put_nowait(RoomEvent(kind="match", room=self.room, movie_id=match.movie_id))

    def _enter_waiting(self) -> None:
        logger.info(f"Waiting for player 2 in room {self.room.id}")
        self._subscription = self.store.watch_room(self.room.id, self._threadsafe(self.apply_room))
        self._poll_task = asyncio.ensure_future(self._poll_room())

    async def _enter_playing(self) -> None:
        logger.info(f"Room {self.room.id} is playing, listening for matches")
        try:
            existing = await self.store.list_matches(self.room.id)
        except MatchAppError as e:
            # The match listener replays existing matches when it attaches
            logger.warning(f"Reading matches for room {self.room.id} failed: {e.message}")
            existing = []
        for match in existing:
            self.apply_match(match)
        if self._closed:
            return
        self._subscription = self.store.watch_matches(self.room.id, self._threadsafe(self.apply_match))

    async def _poll_room(self) -> None:
        while not self._closed and not self.is_playing:
            await asyncio.sleep(self.poll_interval)
            try:
                room = await self.store.get_room(self.room.id)
            except MatchAppError as e:
                logger.warning(f"Polling room {self.room.id} failed: {e.message}")
                continue
            if room is not None:
                self.apply_room(room)

    def _threadsafe(self, handler):
        loop = self._loop

        def dispatch(item):
            loop.call_soon_threadsafe(handler, item)

        return dispatch

    def _release(self) -> None:
        """Drop the current mode's subscription and poll timer"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._poll_task is not None:
            if self._poll_task is not asyncio.current_task():
                self._poll_task.cancel()
            self._poll_task = None
