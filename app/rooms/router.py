from typing import List, Optional
from fastapi import APIRouter, Depends, status

from app.movies.models import Movie
from app.swipes.models import SwipeRequest, SwipeResult
from app.swipes.service import SwipeService
from ..core.auth import get_current_user_id
from ..core.deps import get_room_service, get_swipe_service
from ..core.errors import MatchAppError, PersistenceError, raise_http_error
from .models import JoinRoomRequest, Room
from .service import RoomService

router = APIRouter(prefix="/rooms", tags=["rooms"])

@router.post("", response_model=Room, status_code=status.HTTP_201_CREATED)
async def create_new_room(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: RoomService = Depends(get_room_service)
):
    """Start a multiplayer game: new waiting room with a fresh PIN"""
    try:
        return await service.create_room(user_id)
    except PersistenceError as e:
        raise_http_error(e, "Failed to create room")
    except MatchAppError as e:
        raise_http_error(e)

@router.post("/join", response_model=Room)
async def join_existing_room(
    request: JoinRoomRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: RoomService = Depends(get_room_service)
):
    try:
        return await service.join_room(request.pin, user_id)
    except PersistenceError as e:
        raise_http_error(e, "Failed to join room")
    except MatchAppError as e:
        raise_http_error(e)

@router.get("/{pin}", response_model=Room)
async def get_room(
    pin: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: RoomService = Depends(get_room_service)
):
    """Room behind a share link (/room/<pin>)"""
    try:
        return await service.get_room_by_pin(pin, user_id)
    except MatchAppError as e:
        raise_http_error(e)

@router.get("/{pin}/matches", response_model=List[Movie])
async def get_room_matches(
    pin: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: RoomService = Depends(get_room_service)
):
    """Movies both players liked, in card order"""
    try:
        return await service.get_matched_movies(pin, user_id)
    except MatchAppError as e:
        raise_http_error(e)

@router.post("/{room_id}/swipes", response_model=SwipeResult, status_code=status.HTTP_202_ACCEPTED)
async def record_swipe(
    room_id: str,
    swipe: SwipeRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: SwipeService = Depends(get_swipe_service)
):
    """
    Record a swipe. Best effort: always 202, check `recorded` if you care
    """
    if not user_id:
        return SwipeResult(recorded=False, reason="not authenticated")
    return await service.record_swipe(room_id, user_id, swipe.movie_id, swipe.liked)
