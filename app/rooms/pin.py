import random
import re

PIN_MIN = 1000
PIN_MAX = 9999

_PIN_RE = re.compile(r"^\d{4}$")


def is_valid_pin(value: str) -> bool:
    return isinstance(value, str) and bool(_PIN_RE.match(value))


def draw_pin(rng: random.Random = None) -> str:
    rng = rng or random
    return str(rng.randint(PIN_MIN, PIN_MAX))


async def generate_pin(store, rng: random.Random = None) -> str:
    """Draw 4-digit PINs until one is not held by any room.

    The lookup and the later insert are not atomic; the store rejects a PIN
    that was taken in between (see RoomStore.insert_room).
    """
    while True:
        pin = draw_pin(rng)
        if await store.find_room_by_pin(pin) is None:
            return pin
