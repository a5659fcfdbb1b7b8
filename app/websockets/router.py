import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.rooms.observer import RoomObserver
from app.rooms.service import RoomService
from app.rooms.store import RoomStore
from app.swipes.service import SwipeService
from ..core.auth import get_websocket_user_id
from ..core.deps import get_room_service, get_room_store, get_swipe_service
from ..core.errors import MatchAppError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websockets"])


def event_message(event) -> dict:
    message = {"event": event.kind, "room": event.room.model_dump(mode="json")}
    if event.movie_id is not None:
        message["movie_id"] = event.movie_id
    return message


async def forward_events(websocket: WebSocket, observer: RoomObserver):
    while True:
        event = await observer.events.get()
        await websocket.send_json(event_message(event))


@router.websocket("/rooms/{pin}")
async def room_websocket(
    websocket: WebSocket,
    pin: str,
    user_id: Optional[str] = Depends(get_websocket_user_id),
    store: RoomStore = Depends(get_room_store),
    room_service: RoomService = Depends(get_room_service),
    swipe_service: SwipeService = Depends(get_swipe_service)
):
    """
    Live room channel: a `state` snapshot, then `ready` and `match` events.
    Accepts {"action": "swipe", "movie_id": ..., "liked": ...}
    """
    await websocket.accept()
    logger.info(f"WebSocket connection accepted for user {user_id} on PIN {pin}")

    try:
        room = await room_service.get_participant_room(pin, user_id)
    except MatchAppError as e:
        await websocket.send_json({"event": "error", "detail": e.message})
        await websocket.close(code=4000 + e.status_code)
        return

    observer = RoomObserver(store, room)
    sender = None
    try:
        try:
            await observer.start()
        except MatchAppError as e:
            logger.error(f"Could not observe room {room.id}: {e.message}")
            await websocket.send_json({"event": "error", "detail": e.message})
            await websocket.close(code=4000 + e.status_code)
            return

        await websocket.send_json({
            "event": "state",
            "room": observer.room.model_dump(mode="json"),
            "is_playing": observer.is_playing
        })
        sender = asyncio.ensure_future(forward_events(websocket, observer))

        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "detail": "Message must be JSON"})
                continue
            if not isinstance(data, dict):
                await websocket.send_json({"event": "error", "detail": "Message must be a JSON object"})
                continue

            action = data.get("action")
            logger.info(f"Received {action} from {user_id} in room {observer.room.id}")

            if action == "swipe":
                result = await swipe_service.record_swipe(
                    observer.room.id, user_id, str(data.get("movie_id")), bool(data.get("liked"))
                )
                await websocket.send_json({"event": "swipe", **result.model_dump(mode="json")})
            else:
                await websocket.send_json({"event": "error", "detail": f"Unknown action: {action}"})
    except WebSocketDisconnect:
        logger.info(f"User {user_id} left room {observer.room.id}")
    finally:
        if sender is not None:
            sender.cancel()
            try:
                await sender
            except (asyncio.CancelledError, WebSocketDisconnect):
                pass
        await observer.close()
