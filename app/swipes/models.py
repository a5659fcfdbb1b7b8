from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.matches.models import Match

class Swipe(BaseModel):
    room_id: str
    user_id: str
    movie_id: str
    liked: bool             # Right swipe = True, left swipe = False
    created_at: Optional[datetime] = None

class SwipeRequest(BaseModel):
    movie_id: str
    liked: bool

class SwipeResult(BaseModel):
    """Outcome of a best-effort swipe write. Callers are free to ignore it."""
    recorded: bool
    reason: Optional[str] = None
    match: Optional[Match] = None
