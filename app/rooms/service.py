import logging
import random
from typing import Awaitable, Callable, List, Optional

from app.movies.models import Movie
from app.movies.service import get_popular_movies
from ..core.config import settings
from ..core.errors import (
    AuthenticationRequired, NotRoomParticipant, PersistenceError, PinCollision, RoomConflict, RoomNotJoinable,
)
from .models import Room, RoomStatus
from .pin import generate_pin, is_valid_pin

logger = logging.getLogger(__name__)

Catalog = Callable[[], Awaitable[List[Movie]]]


class RoomService:
    """Room lifecycle: create, join and look up two-player rooms.

    Room.status only ever moves waiting -> ready, through a conditional
    update in the store, so player2 is written at most once.
    """

    def __init__(self, store, catalog: Catalog = get_popular_movies,
                 rng: random.Random = None, create_attempts: int = None):
        self.store = store
        self.catalog = catalog
        self.rng = rng
        self.create_attempts = create_attempts or settings.ROOM_CREATE_ATTEMPTS

    async def create_room(self, host_user_id: Optional[str]) -> Room:
        if not host_user_id:
            logger.error("create_room: user not authenticated")
            raise AuthenticationRequired()

        movies = await self.catalog()

        for attempt in range(1, self.create_attempts + 1):
            pin = await generate_pin(self.store, self.rng)
            logger.info(f"create_room: generated PIN {pin} for host {host_user_id}")
            try:
                room = await self.store.insert_room(pin, host_user_id, movies)
            except PinCollision as e:
                # Another room took the PIN between the lookup and the insert
                logger.warning(f"create_room: PIN {pin} taken concurrently (attempt {attempt})")
                if attempt == self.create_attempts:
                    raise PersistenceError("Failed to create room") from e
                continue

            logger.info(f"create_room: room {room.id} created with PIN {room.pin}")
            return room

    async def join_room(self, pin: str, user_id: Optional[str]) -> Room:
        if not user_id:
            logger.error("join_room: user not authenticated")
            raise AuthenticationRequired()
        if not is_valid_pin(pin):
            raise RoomNotJoinable()

        logger.info(f"join_room: user {user_id} joining with PIN {pin}")
        room = await self.store.find_room_by_pin(pin, status=RoomStatus.WAITING)
        if room is None:
            logger.info(f"join_room: no waiting room for PIN {pin}")
            raise RoomNotJoinable()

        if room.host_user_id == user_id:
            # Host reloading their own room page
            return room

        try:
            joined = await self.store.claim_player2(room.id, user_id)
        except RoomConflict:
            fresh = await self.store.get_room(room.id)
            if fresh is None or fresh.status != RoomStatus.WAITING:
                logger.info(f"join_room: user {user_id} lost the join race for room {room.id}")
                raise RoomNotJoinable()
            raise

        logger.info(f"join_room: user {user_id} joined room {joined.id}")
        return joined

    async def get_room_by_pin(self, pin: str, user_id: Optional[str]) -> Room:
        """Share-link lookup: participants see their room, anyone sees an unclaimed one"""
        if not user_id:
            raise AuthenticationRequired()
        if not is_valid_pin(pin):
            raise RoomNotJoinable()

        room = await self.store.find_room_by_pin(pin)
        if room is None:
            raise RoomNotJoinable()
        if room.is_participant(user_id) or room.status == RoomStatus.WAITING:
            return room
        raise RoomNotJoinable()

    async def get_participant_room(self, pin: str, user_id: Optional[str]) -> Room:
        room = await self.get_room_by_pin(pin, user_id)
        if not room.is_participant(user_id):
            raise NotRoomParticipant()
        return room

    async def get_matched_movies(self, pin: str, user_id: Optional[str]) -> List[Movie]:
        """Matched movies in the room's card order"""
        room = await self.get_participant_room(pin, user_id)
        matched_ids = {match.movie_id for match in await self.store.list_matches(room.id)}
        return [movie for movie in room.movie_list if movie.id in matched_ids]
