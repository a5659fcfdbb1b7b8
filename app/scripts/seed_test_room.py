# app/scripts/seed_test_room.py
"""Seed a fixed-PIN room for manual two-player testing.

    python -m app.scripts.seed_test_room setup <host_uid>
    python -m app.scripts.seed_test_room play <friend_uid>

`setup` creates room 9999 for the host, or resets it (no player 2, no swipes,
no matches) if it already exists. `play` joins as the friend and swipes right
on every movie, pausing between swipes.
"""
import argparse
import asyncio
import logging

from app.core.deps import get_room_store
from app.core.logging_config import setup_logging
from app.movies.models import Movie
from app.rooms.service import RoomService
from app.swipes.service import SwipeService

logger = logging.getLogger(__name__)

TEST_PIN = "9999"
THINK_TIME = 0.5

TEST_MOVIES = [
    Movie(id="840464", title="Greenland 2", poster_url="https://image.tmdb.org/t/p/w500/z2tqCJLsw6uEJ8nJV8BsQXGa3dr.jpg",
          rating=6.5, year=2026, description="Test Movie 1"),
    Movie(id="1368166", title="The Housemaid", poster_url="https://image.tmdb.org/t/p/w500/cWsBscZzwu5brg9YjNkGewRUvJX.jpg",
          rating=7.2, year=2025, description="Test Movie 2"),
]


async def setup_room(store, host_user_id: str):
    existing = await store.find_room_by_pin(TEST_PIN)
    if existing:
        logger.info(f"Room {TEST_PIN} exists, resetting")
        return await store.reset_room(existing.id)

    room = await store.insert_room(TEST_PIN, host_user_id, TEST_MOVIES)
    logger.info(f"Room created: {room.id}")
    return room


async def simulate_friend(store, friend_user_id: str, think_time: float = THINK_TIME):
    room = await RoomService(store).join_room(TEST_PIN, friend_user_id)
    logger.info(f"Friend joined room {room.id}")

    swipes = SwipeService(store)
    for movie in room.movie_list:
        result = await swipes.record_swipe(room.id, friend_user_id, movie.id, True)
        logger.info(f"Friend liked: {movie.title} (recorded={result.recorded})")
        await asyncio.sleep(think_time)
    logger.info("Friend finished swiping")
    return room


def main():
    parser = argparse.ArgumentParser(description="Seed the fixed-PIN test room")
    parser.add_argument("command", choices=["setup", "play"])
    parser.add_argument("user_id", help="host uid for setup, friend uid for play")
    args = parser.parse_args()

    setup_logging()
    store = get_room_store()
    if args.command == "setup":
        asyncio.run(setup_room(store, args.user_id))
    else:
        asyncio.run(simulate_friend(store, args.user_id))


if __name__ == "__main__":
    main()
