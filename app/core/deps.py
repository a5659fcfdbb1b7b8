from functools import lru_cache

from fastapi import Depends

from app.rooms.firestore_store import FirestoreRoomStore
from app.rooms.service import RoomService
from app.rooms.store import InMemoryRoomStore, RoomStore
from app.swipes.service import SwipeService
from .config import settings


@lru_cache(maxsize=1)
def get_room_store() -> RoomStore:
    """Process-wide room store, chosen by ROOM_STORE_BACKEND"""
    if settings.ROOM_STORE_BACKEND == "memory":
        return InMemoryRoomStore()
    return FirestoreRoomStore()


def get_room_service(store: RoomStore = Depends(get_room_store)) -> RoomService:
    return RoomService(store)


def get_swipe_service(store: RoomStore = Depends(get_room_store)) -> SwipeService:
    return SwipeService(store)
