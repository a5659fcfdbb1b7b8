from fastapi import APIRouter
from typing import List
from .models import Movie, TrailerResponse
from .service import get_popular_movies, get_movie_trailer

router = APIRouter(prefix="/movies", tags=["movies"])

NO_TRAILER_MESSAGE = "No trailer available for this movie."

@router.get("/popular", response_model=List[Movie])
async def popular_movies():
    """
    Current movie catalog, used for practice (single player) swiping
    Never fails: falls back to a fixed local list
    """
    return await get_popular_movies()

@router.get("/{movie_id}/trailer", response_model=TrailerResponse)
async def movie_trailer(movie_id: str):
    """Trailer link for a movie card"""
    trailer_url = await get_movie_trailer(movie_id)
    return TrailerResponse(
        movie_id=movie_id,
        trailer_url=trailer_url,
        message=None if trailer_url else NO_TRAILER_MESSAGE
    )
