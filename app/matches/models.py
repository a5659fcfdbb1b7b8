from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class Match(BaseModel):
    room_id: str
    movie_id: str
    created_at: Optional[datetime] = None
