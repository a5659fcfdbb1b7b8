import logging
from typing import Dict, List, Optional

import httpx

from app.movies.fallback import get_fallback_movies
from app.movies.models import Movie, TMDBMovie
from ..core.config import settings
from ..core.errors import CatalogUnavailable

logger = logging.getLogger(__name__)

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="


def _tmdb_request_args() -> Dict:
    """Headers and base params for TMDB; bearer token wins over the v3 key"""
    headers = {"accept": "application/json"}
    params = {"language": "en-US"}
    if settings.TMDB_TOKEN:
        headers["Authorization"] = f"Bearer {settings.TMDB_TOKEN}"
    elif settings.TMDB_API_KEY:
        params["api_key"] = settings.TMDB_API_KEY
    return {"headers": headers, "params": params}


def _release_year(release_date: Optional[str]) -> Optional[int]:
    if not release_date:
        return None
    try:
        return int(release_date[:4])
    except ValueError:
        return None


def to_movie(raw: TMDBMovie) -> Movie:
    return Movie(
        id=str(raw.id),
        title=raw.title,
        poster_url=f"{settings.TMDB_IMAGE_BASE_URL}{raw.poster_path}" if raw.poster_path else "",
        description=raw.overview,
        rating=raw.vote_average,
        year=_release_year(raw.release_date)
    )


async def fetch_popular_movies() -> List[Movie]:
    """Fetch page one of TMDB popular movies; raises CatalogUnavailable on any failure"""
    if not settings.tmdb_configured:
        raise CatalogUnavailable("TMDB credentials missing")

    request_args = _tmdb_request_args()
    request_args["params"]["page"] = 1

    try:
        async with httpx.AsyncClient(timeout=settings.TMDB_TIMEOUT) as client:
            response = await client.get(f"{settings.TMDB_BASE_URL}/movie/popular", **request_args)
    except httpx.HTTPError as e:
        raise CatalogUnavailable(f"Failed to fetch from TMDB: {e}") from e

    if response.status_code != 200:
        raise CatalogUnavailable(f"TMDB responded with {response.status_code}")

    movies = [to_movie(TMDBMovie(**item)) for item in response.json().get("results", [])]
    # Cards without a poster can't be rendered
    return [movie for movie in movies if movie.poster_url]


async def get_popular_movies() -> List[Movie]:
    """Current catalog, or the local fallback list when TMDB is unreachable or unconfigured"""
    try:
        return await fetch_popular_movies()
    except CatalogUnavailable as e:
        logger.warning(f"{e.message}, falling back to local movie list")
        return get_fallback_movies()


async def get_movie_trailer(movie_id: str) -> Optional[str]:
    """YouTube trailer URL for a movie, or None if there is none or TMDB can't be reached"""
    if not settings.tmdb_configured:
        return None

    try:
        async with httpx.AsyncClient(timeout=settings.TMDB_TIMEOUT) as client:
            response = await client.get(
                f"{settings.TMDB_BASE_URL}/movie/{movie_id}/videos",
                **_tmdb_request_args()
            )
    except httpx.HTTPError as e:
        logger.error(f"Error fetching trailer for movie {movie_id}: {e}")
        return None

    if response.status_code != 200:
        return None

    for video in response.json().get("results", []):
        if video.get("site") == "YouTube" and video.get("type") == "Trailer":
            return f"{YOUTUBE_WATCH_URL}{video['key']}"
    return None
