
import random
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable, Optional

from fastapi import FastAPI, Request, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import ncs_client
from .config import settings
from .envelope import enum_entries, enum_names, fail, lookup, ok
from .errors import CatalogError, CatalogValidationError, ProviderError
from .logger import logger

ENDPOINTS = {
    "GET /health": "Health check",
    "GET /api/songs?page=0": "Get latest songs with pagination",
    "GET /api/search?q=query&genre=House&mood=Happy&page=0": "Search with filters",
    "GET /api/genre/House?page=0": "Get songs by specific genre",
    "GET /api/mood/Happy?page=0": "Get songs by specific mood",
    "GET /api/genres": "Get all available genres",
    "GET /api/moods": "Get all available moods",
    "GET /api/advanced-search?q=beat&genre=House": "Advanced search with multiple filters",
    "GET /api/random?count=5": "Get random songs",
    "GET /api/docs": "This documentation",
}

EXAMPLES = {
    "House music only": "/api/genre/House",
    "Search for 'beat' in House genre": "/api/search?q=beat&genre=House",
    "Happy mood songs": "/api/mood/Happy",
    "Complex search": "/api/advanced-search?q=music&genre=Electronic&mood=Energetic",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"NCS API Server starting on http://{settings.HOST}:{settings.PORT}")
    for route in ENDPOINTS:
        logger.info(f"   {route}")
    yield
    logger.info("NCS API Server shutting down")


app = FastAPI(title="ncs-api", version="1.0.0", lifespan=lifespan)

# Prometheus metrics – add middleware BEFORE app starts
if settings.METRICS_ENABLED:
    try:
        from prometheus_fastapi_instrumentator import Instrumentator
        if not getattr(app.state, "metrics_instrumented", False):
            Instrumentator().instrument(app).expose(app, endpoint="/metrics")
            app.state.metrics_instrumented = True
    except Exception as e:
        logger.warning(f"Metrics disabled: {e}")

# Read per request so RATE_LIMIT can change without rebuilding the limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[lambda: settings.RATE_LIMIT])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content=fail("Rate limit exceeded. Please try again later."),
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    return JSONResponse(status_code=exc.status_code, content=fail(exc.message, **exc.context))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:]) or "request"
        problems.append(f"{field}: {err.get('msg')}")
    return JSONResponse(status_code=400, content=fail("Invalid parameters - " + "; ".join(problems)))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Server error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=fail("Internal server error"))


async def _from_provider(call: Awaitable[Any], action: str, **context: Any) -> Any:
    """Await a catalog call, turning any failure into a ProviderError."""
    try:
        return await call
    except Exception as e:
        logger.exception(f"Error {action}: {e}")
        raise ProviderError(str(e), **context) from e


def _build_filter(query: Optional[str], genre: Optional[str], mood: Optional[str]):
    # Unknown genre/mood names are dropped, not rejected
    return ncs_client.SearchFilter(
        query=query or None,
        genre=lookup("Genre", genre),
        mood=lookup("Mood", mood),
    )


@app.get("/health")
@limiter.exempt
def health():
    return {
        "status": "OK",
        "message": "NCS API Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


@app.get("/api/songs")
async def list_songs(page: int = Query(default=0, ge=0, description="0-based page index")):
    songs = await _from_provider(ncs_client.fetch_latest(page), "fetching songs")
    return ok(songs, page=page)


@app.get("/api/search")
async def search(
    q: Optional[str] = Query(default=None, description="Free-text query"),
    genre: Optional[str] = Query(default=None, description="Genre name, see /api/genres"),
    mood: Optional[str] = Query(default=None, description="Mood name, see /api/moods"),
    page: int = Query(default=0, ge=0, description="0-based page index"),
):
    if not q and not genre and not mood:
        raise CatalogValidationError(
            "At least one filter is required: query (q), genre, or mood",
            availableGenres=enum_names("Genre"),
            availableMoods=enum_names("Mood"),
        )

    search_filter = _build_filter(q, genre, mood)
    results = await _from_provider(
        ncs_client.search(search_filter, page),
        "searching",
        filters={"query": q or None, "genre": genre or None, "mood": mood or None},
    )
    return ok(
        results,
        filters={
            "query": search_filter.query,
            "genre": search_filter.genre.name if search_filter.genre is not None else None,
            "mood": search_filter.mood.name if search_filter.mood is not None else None,
        },
        page=page,
    )


@app.get("/api/genre/{genre_name}")
async def songs_by_genre(genre_name: str, page: int = Query(default=0, ge=0, description="0-based page index")):
    member = lookup("Genre", genre_name)
    if member is None:
        raise CatalogValidationError(
            f'Genre "{genre_name}" not found',
            availableGenres=enum_names("Genre"),
        )

    results = await _from_provider(
        ncs_client.search(ncs_client.SearchFilter(genre=member), page),
        f"fetching {genre_name} songs",
        genre=genre_name,
    )
    return ok(results, genre=genre_name, page=page)


@app.get("/api/mood/{mood_name}")
async def songs_by_mood(mood_name: str, page: int = Query(default=0, ge=0, description="0-based page index")):
    member = lookup("Mood", mood_name)
    if member is None:
        raise CatalogValidationError(
            f'Mood "{mood_name}" not found',
            availableMoods=enum_names("Mood"),
        )

    results = await _from_provider(
        ncs_client.search(ncs_client.SearchFilter(mood=member), page),
        f"fetching {mood_name} songs",
        mood=mood_name,
    )
    return ok(results, mood=mood_name, page=page)


@app.get("/api/genres")
async def list_genres():
    entries = enum_entries("Genre")
    if entries is None:
        return ok([], message="Genres not available in this NCS library version")
    return ok(entries)


@app.get("/api/moods")
async def list_moods():
    entries = enum_entries("Mood")
    if entries is None:
        return ok([], message="Moods not available in this NCS library version")
    return ok(entries)


@app.get("/api/advanced-search")
async def advanced_search(
    q: Optional[str] = Query(default=None),
    genre: Optional[str] = Query(default=None),
    mood: Optional[str] = Query(default=None),
    page: int = Query(default=0, ge=0, description="0-based page index"),
):
    search_filter = _build_filter(q, genre, mood)
    if search_filter.is_empty():
        raise CatalogValidationError(
            "At least one search parameter is required",
            example="/api/advanced-search?q=beat&genre=House&mood=Happy",
        )

    echoed = search_filter.model_dump(mode="json", exclude_none=True)
    results = await _from_provider(
        ncs_client.search(search_filter, page), "in advanced search", searchFilter=echoed
    )
    return ok(
        results,
        searchFilter=echoed,
        page=page,
    )


@app.get("/api/random")
async def random_songs(count: int = Query(default=10, ge=1, description="Number of songs")):
    songs = await _from_provider(ncs_client.fetch_latest(0), "fetching random songs")
    shuffled = list(songs)
    random.shuffle(shuffled)
    return ok(shuffled[:count], requested=count)


@app.get("/api/docs")
async def api_docs():
    return ok(
        ENDPOINTS,
        message="NCS API Documentation",
        endpoints=ENDPOINTS,
        examples=EXAMPLES,
        availableGenres=enum_names("Genre"),
        availableMoods=enum_names("Mood"),
    )


def run():
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
