from pydantic import BaseModel
from typing import Optional

class TMDBMovie(BaseModel):
    id: int
    title: str
    overview: str = ""
    poster_path: Optional[str] = None
    vote_average: float = 0.0
    release_date: Optional[str] = None

class Movie(BaseModel):
    id: str
    title: str
    poster_url: str = ""
    description: str = ""
    rating: float = 0.0
    year: Optional[int] = None

class TrailerResponse(BaseModel):
    movie_id: str
    trailer_url: Optional[str]
    message: Optional[str] = None
