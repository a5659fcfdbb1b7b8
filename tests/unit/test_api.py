import asyncio
import unittest
from typing import Optional
from unittest.mock import AsyncMock, patch

from fastapi import Header, WebSocket, WebSocketDisconnect
from fastapi.testclient import TestClient

from app.core.auth import get_current_user_id, get_websocket_user_id
from app.core.deps import get_room_service, get_room_store
from app.core.errors import PersistenceError
from app.main import app
from app.rooms.service import RoomService
from app.rooms.store import InMemoryRoomStore
from app.swipes.service import SwipeService
from app.websockets.router import room_websocket
from tests.unit.fixtures import FRIEND, HOST, MOVIES, STRANGER, fixed_catalog


def header_user(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id


def websocket_user(websocket: WebSocket) -> Optional[str]:
    return websocket.headers.get("x-user-id")


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


class UnwatchableRoomStore(InMemoryRoomStore):
    def watch_room(self, room_id, callback):
        raise PersistenceError("watch unavailable")


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryRoomStore()
        app.dependency_overrides[get_room_store] = lambda: self.store
        app.dependency_overrides[get_room_service] = lambda: RoomService(self.store, catalog=fixed_catalog)
        app.dependency_overrides[get_current_user_id] = header_user
        app.dependency_overrides[get_websocket_user_id] = websocket_user
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def create_room(self):
        response = self.client.post("/rooms", headers=as_user(HOST))
        self.assertEqual(response.status_code, 201)
        return response.json()

    def ready_room(self):
        room = self.create_room()
        response = self.client.post("/rooms/join", json={"pin": room["pin"]}, headers=as_user(FRIEND))
        self.assertEqual(response.status_code, 200)
        return response.json()


class RoomApiTests(ApiTestCase):
    def test_root(self):
        self.assertEqual(self.client.get("/").status_code, 200)

    def test_create_room(self):
        room = self.create_room()
        self.assertEqual(room["status"], "waiting")
        self.assertIsNone(room["player2_user_id"])
        self.assertRegex(room["pin"], r"^\d{4}$")
        self.assertEqual([m["id"] for m in room["movie_list"]], [m.id for m in MOVIES])

    def test_create_room_unauthenticated(self):
        response = self.client.post("/rooms")
        self.assertEqual(response.status_code, 401)

    def test_join_room(self):
        room = self.ready_room()
        self.assertEqual(room["status"], "ready")
        self.assertEqual(room["player2_user_id"], FRIEND)

        response = self.client.post("/rooms/join", json={"pin": room["pin"]}, headers=as_user(STRANGER))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Room not found or game already started")

    def test_join_rejects_malformed_pin(self):
        response = self.client.post("/rooms/join", json={"pin": "12a4"}, headers=as_user(FRIEND))
        self.assertEqual(response.status_code, 422)

    def test_share_link(self):
        room = self.ready_room()
        self.assertEqual(self.client.get(f"/rooms/{room['pin']}", headers=as_user(HOST)).status_code, 200)
        self.assertEqual(self.client.get(f"/rooms/{room['pin']}", headers=as_user(STRANGER)).status_code, 404)
        self.assertEqual(self.client.get("/rooms/0000", headers=as_user(HOST)).status_code, 404)

    def test_swipes_and_matches_view(self):
        room = self.ready_room()
        url = f"/rooms/{room['id']}/swipes"

        first = self.client.post(url, json={"movie_id": "42", "liked": True}, headers=as_user(HOST))
        self.assertEqual(first.status_code, 202)
        self.assertEqual(first.json(), {"recorded": True, "reason": None, "match": None})

        second = self.client.post(url, json={"movie_id": "42", "liked": True}, headers=as_user(FRIEND))
        self.assertEqual(second.json()["match"]["movie_id"], "42")

        response = self.client.get(f"/rooms/{room['pin']}/matches", headers=as_user(FRIEND))
        self.assertEqual([m["id"] for m in response.json()], ["42"])

        response = self.client.get(f"/rooms/{room['pin']}/matches", headers=as_user(STRANGER))
        self.assertEqual(response.status_code, 404)

    def test_failed_swipe_is_not_an_error(self):
        room = self.ready_room()
        response = self.client.post(f"/rooms/{room['id']}/swipes", json={"movie_id": "42", "liked": True},
                                    headers=as_user(STRANGER))
        self.assertEqual(response.status_code, 202)
        self.assertFalse(response.json()["recorded"])


class MovieApiTests(ApiTestCase):
    def test_trailer_missing(self):
        with patch("app.movies.router.get_movie_trailer", AsyncMock(return_value=None)):
            response = self.client.get("/movies/42/trailer")
        self.assertEqual(response.json(), {
            "movie_id": "42", "trailer_url": None, "message": "No trailer available for this movie."
        })

    def test_trailer_found(self):
        with patch("app.movies.router.get_movie_trailer",
                   AsyncMock(return_value="https://www.youtube.com/watch?v=abc123")):
            response = self.client.get("/movies/42/trailer")
        self.assertEqual(response.json()["trailer_url"], "https://www.youtube.com/watch?v=abc123")
        self.assertIsNone(response.json()["message"])

    def test_popular_movies(self):
        with patch("app.movies.router.get_popular_movies", AsyncMock(return_value=list(MOVIES))):
            response = self.client.get("/movies/popular")
        self.assertEqual([m["id"] for m in response.json()], ["42", "7", "99"])


class RoomWebSocketTests(ApiTestCase):
    def test_swipe_over_websocket_reports_match(self):
        room = self.ready_room()
        asyncio.run(SwipeService(self.store).record_swipe(room["id"], FRIEND, "42", True))

        with self.client.websocket_connect(f"/ws/rooms/{room['pin']}", headers=as_user(HOST)) as ws:
            state = ws.receive_json()
            self.assertEqual(state["event"], "state")
            self.assertTrue(state["is_playing"])

            ws.send_json({"action": "swipe", "movie_id": "42", "liked": True})
            messages = [ws.receive_json(), ws.receive_json()]

        by_event = {message["event"]: message for message in messages}
        self.assertEqual(set(by_event), {"swipe", "match"})
        self.assertTrue(by_event["swipe"]["recorded"])
        self.assertEqual(by_event["match"]["movie_id"], "42")

    def test_host_sees_friend_join(self):
        room = self.create_room()

        with self.client.websocket_connect(f"/ws/rooms/{room['pin']}", headers=as_user(HOST)) as ws:
            state = ws.receive_json()
            self.assertFalse(state["is_playing"])

            response = self.client.post("/rooms/join", json={"pin": room["pin"]}, headers=as_user(FRIEND))
            self.assertEqual(response.status_code, 200)

            event = ws.receive_json()
            self.assertEqual(event["event"], "ready")
            self.assertEqual(event["room"]["player2_user_id"], FRIEND)

    def test_non_participant_is_turned_away(self):
        room = self.ready_room()
        with self.client.websocket_connect(f"/ws/rooms/{room['pin']}", headers=as_user(STRANGER)) as ws:
            message = ws.receive_json()
        self.assertEqual(message["event"], "error")

    def test_malformed_messages_get_error_reply(self):
        room = self.ready_room()

        with self.client.websocket_connect(f"/ws/rooms/{room['pin']}", headers=as_user(HOST)) as ws:
            self.assertEqual(ws.receive_json()["event"], "state")

            ws.send_text("not json")
            self.assertEqual(ws.receive_json()["event"], "error")
            ws.send_json(["swipe", "42"])
            self.assertEqual(ws.receive_json()["event"], "error")

            # The connection is still usable afterwards
            ws.send_json({"action": "swipe", "movie_id": "7", "liked": False})
            reply = ws.receive_json()
        self.assertEqual(reply["event"], "swipe")
        self.assertTrue(reply["recorded"])

    def test_observer_failure_is_reported(self):
        self.store = UnwatchableRoomStore()
        room = self.create_room()

        with self.client.websocket_connect(f"/ws/rooms/{room['pin']}", headers=as_user(HOST)) as ws:
            message = ws.receive_json()
        self.assertEqual(message, {"event": "error", "detail": "watch unavailable"})


class RoomWebSocketCleanupTests(unittest.IsolatedAsyncioTestCase):
    async def test_failed_event_send_is_collected_on_disconnect(self):
        store = InMemoryRoomStore()
        rooms = RoomService(store, catalog=fixed_catalog)
        swipes = SwipeService(store)
        room = await rooms.create_room(HOST)
        room = await rooms.join_room(room.pin, FRIEND)
        for user_id in (HOST, FRIEND):
            await swipes.record_swipe(room.id, user_id, "42", True)

        async def send_json(message):
            if message["event"] == "match":
                raise WebSocketDisconnect(code=1006)

        async def receive_json():
            await asyncio.sleep(0.05)
            raise WebSocketDisconnect(code=1000)

        websocket = AsyncMock()
        websocket.send_json.side_effect = send_json
        websocket.receive_json.side_effect = receive_json

        await room_websocket(websocket, room.pin, HOST, store, rooms, swipes)

        sent = [call.args[0]["event"] for call in websocket.send_json.call_args_list]
        self.assertEqual(sent, ["state", "match"])
        self.assertEqual(store._match_watchers[room.id], [])


if __name__ == "__main__":
    unittest.main()
