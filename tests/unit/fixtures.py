import asyncio
from typing import List

from app.movies.models import Movie
from app.rooms.store import InMemoryRoomStore, _Subscription

HOST = "host-uid"
FRIEND = "friend-uid"
STRANGER = "stranger-uid"

MOVIES = [
    Movie(id="42", title="The Answer", poster_url="https://image.tmdb.org/t/p/w500/answer.jpg",
          description="Deep Thought thinks it over.", rating=7.5, year=2005),
    Movie(id="7", title="Seven Samurai", poster_url="https://image.tmdb.org/t/p/w500/samurai.jpg",
          description="Farmers hire samurai.", rating=8.6, year=1954),
    Movie(id="99", title="Red Balloons", poster_url="https://image.tmdb.org/t/p/w500/balloons.jpg",
          description="A lot of balloons.", rating=5.1, year=1999),
]


async def fixed_catalog() -> List[Movie]:
    return [movie.model_copy() for movie in MOVIES]


class FixedRng:
    """Stands in for random.Random: yields the given values, repeating the last"""

    def __init__(self, *values):
        self.values = list(values)

    def randint(self, a, b):
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class SilentRoomStore(InMemoryRoomStore):
    """In-memory store whose room notifications never arrive"""

    def watch_room(self, room_id, callback):
        return _Subscription([], callback)


async def settle(rounds: int = 5):
    for _ in range(rounds):
        await asyncio.sleep(0)
