import logging
from typing import List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from app.matches.models import Match
from app.movies.models import Movie
from app.swipes.models import Swipe
from ..core.errors import PersistenceError, PinCollision, RoomConflict
from ..core.firebase import get_db
from .models import Room, RoomStatus
from .store import (
    MATCHES, ROOMS, ROOM_PINS, SWIPES,
    MatchCallback, MatchRule, RoomCallback, RoomStore,
    match_key, swipe_key,
)

logger = logging.getLogger(__name__)


def room_from_snapshot(snapshot) -> Room:
    return Room(id=snapshot.id, **snapshot.to_dict())


def swipe_from_snapshot(snapshot) -> Optional[Swipe]:
    if not snapshot.exists:
        return None
    return Swipe(**snapshot.to_dict())


class FirestoreRoomStore(RoomStore):
    """Room store on Cloud Firestore.

    Collections: ``rooms`` (auto ids), ``room_pins`` (doc id = PIN, reserves
    the PIN), ``swipes`` (doc id = room_user_movie) and ``matches``
    (doc id = room_movie). Deterministic ids give last-write-wins swipes and
    create-once matches.
    """

    def __init__(self, db=None):
        self.db = db or get_db()

    async def find_room_by_pin(self, pin: str, status: Optional[RoomStatus] = None) -> Optional[Room]:
        query = self.db.collection(ROOMS).where(filter=FieldFilter('pin', '==', pin))
        if status is not None:
            query = query.where(filter=FieldFilter('status', '==', status.value))

        try:
            docs = list(query.limit(1).stream())
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to look up PIN {pin}: {e}") from e

        return room_from_snapshot(docs[0]) if docs else None

    async def get_room(self, room_id: str) -> Optional[Room]:
        try:
            snapshot = self.db.collection(ROOMS).document(room_id).get()
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to read room {room_id}: {e}") from e

        return room_from_snapshot(snapshot) if snapshot.exists else None

    async def insert_room(self, pin: str, host_user_id: str, movie_list: List[Movie]) -> Room:
        room_ref = self.db.collection(ROOMS).document()
        pin_ref = self.db.collection(ROOM_PINS).document(pin)

        room_data = {
            'pin': pin,
            'host_user_id': host_user_id,
            'player2_user_id': None,
            'movie_list': [movie.model_dump() for movie in movie_list],
            'status': RoomStatus.WAITING.value,
            'created_at': firestore.SERVER_TIMESTAMP,
            'updated_at': firestore.SERVER_TIMESTAMP
        }

        # Both writes fail together if the PIN was reserved in the meantime
        batch = self.db.batch()
        batch.create(pin_ref, {'room_id': room_ref.id, 'created_at': firestore.SERVER_TIMESTAMP})
        batch.create(room_ref, room_data)

        try:
            batch.commit()
        except google_exceptions.AlreadyExists as e:
            raise PinCollision(f"PIN {pin} already in use") from e
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to create room: {e}") from e

        return Room(
            id=room_ref.id,
            pin=pin,
            host_user_id=host_user_id,
            movie_list=movie_list,
            status=RoomStatus.WAITING
        )

    async def claim_player2(self, room_id: str, user_id: str) -> Room:
        room_ref = self.db.collection(ROOMS).document(room_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def claim(transaction):
            snapshot = room_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise RoomConflict(f"Room {room_id} disappeared")

            data = snapshot.to_dict()
            if data.get('status') != RoomStatus.WAITING.value or data.get('player2_user_id'):
                raise RoomConflict(f"Room {room_id} is no longer waiting")

            transaction.update(room_ref, {
                'player2_user_id': user_id,
                'status': RoomStatus.READY.value,
                'updated_at': firestore.SERVER_TIMESTAMP
            })
            data.update({'player2_user_id': user_id, 'status': RoomStatus.READY.value})
            data.pop('updated_at', None)
            return data

        try:
            data = claim(transaction)
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to join room {room_id}: {e}") from e

        return Room(id=room_id, **data)

    async def reset_room(self, room_id: str) -> Room:
        room_ref = self.db.collection(ROOMS).document(room_id)
        try:
            room_ref.update({
                'player2_user_id': None,
                'status': RoomStatus.WAITING.value,
                'updated_at': firestore.SERVER_TIMESTAMP
            })

            batch = self.db.batch()
            for collection in (SWIPES, MATCHES):
                docs = self.db.collection(collection).where(filter=FieldFilter('room_id', '==', room_id)).stream()
                for doc in docs:
                    batch.delete(doc.reference)
            batch.commit()
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to reset room {room_id}: {e}") from e

        return await self.get_room(room_id)

    async def put_swipe(self, swipe: Swipe) -> Swipe:
        swipe_ref = self.db.collection(SWIPES).document(swipe_key(swipe.room_id, swipe.user_id, swipe.movie_id))
        try:
            swipe_ref.set({
                'room_id': swipe.room_id,
                'user_id': swipe.user_id,
                'movie_id': swipe.movie_id,
                'liked': swipe.liked,
                'created_at': firestore.SERVER_TIMESTAMP
            })
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to record swipe: {e}") from e
        return swipe

    async def create_match_if(self, room: Room, movie_id: str, rule: MatchRule) -> Optional[Match]:
        swipes_ref = self.db.collection(SWIPES)
        match_ref = self.db.collection(MATCHES).document(match_key(room.id, movie_id))
        host_ref = swipes_ref.document(swipe_key(room.id, room.host_user_id, movie_id))
        player2_ref = None
        if room.player2_user_id:
            player2_ref = swipes_ref.document(swipe_key(room.id, room.player2_user_id, movie_id))

        transaction = self.db.transaction()

        @firestore.transactional
        def detect(transaction):
            # Reads lock the swipe docs, so a concurrent agreeing swipe waits for this commit
            if match_ref.get(transaction=transaction).exists:
                return None
            host_swipe = swipe_from_snapshot(host_ref.get(transaction=transaction))
            player2_swipe = None
            if player2_ref is not None:
                player2_swipe = swipe_from_snapshot(player2_ref.get(transaction=transaction))

            if not rule(room, host_swipe, player2_swipe):
                return None

            transaction.create(match_ref, {
                'room_id': room.id,
                'movie_id': movie_id,
                'created_at': firestore.SERVER_TIMESTAMP
            })
            return Match(room_id=room.id, movie_id=movie_id)

        try:
            return detect(transaction)
        except google_exceptions.AlreadyExists:
            return None
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to evaluate match for movie {movie_id}: {e}") from e

    async def list_matches(self, room_id: str) -> List[Match]:
        query = self.db.collection(MATCHES).where(filter=FieldFilter('room_id', '==', room_id))
        try:
            return [Match(**doc.to_dict()) for doc in query.stream()]
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to list matches for room {room_id}: {e}") from e

    def watch_room(self, room_id: str, callback: RoomCallback):
        def on_snapshot(doc_snapshots, changes, read_time):
            for snapshot in doc_snapshots:
                if snapshot.exists:
                    callback(room_from_snapshot(snapshot))

        logger.info(f"Listening for updates on room {room_id}")
        return self.db.collection(ROOMS).document(room_id).on_snapshot(on_snapshot)

    def watch_matches(self, room_id: str, callback: MatchCallback):
        def on_snapshot(query_snapshots, changes, read_time):
            for change in changes:
                if change.type.name == 'ADDED':
                    callback(Match(**change.document.to_dict()))

        logger.info(f"Listening for matches in room {room_id}")
        query = self.db.collection(MATCHES).where(filter=FieldFilter('room_id', '==', room_id))
        return query.on_snapshot(on_snapshot)
