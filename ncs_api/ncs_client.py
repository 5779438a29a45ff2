
import re
from enum import IntEnum
from typing import Dict, List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel

from .config import settings
from .logger import logger
from .schemas import Artist, Song

# ncs.io filter ids, as used by the genre/mood selects of /music-search
class Genre(IntEnum):
    AlternativeDance = 31
    Bass = 33
    Chill = 1
    DrumAndBass = 2
    Drumstep = 14
    Dubstep = 3
    EDM = 4
    ElectroHouse = 5
    Electronic = 6
    FutureBass = 10
    FutureHouse = 18
    GlitchHop = 7
    Hardstyle = 8
    House = 9
    IndieDance = 11
    MelodicDubstep = 12
    Phonk = 38
    Trap = 13
    Techno = 37
    Trance = 36


class Mood(IntEnum):
    Angry = 1
    Chasing = 2
    Dark = 3
    Dreamy = 4
    Eccentric = 5
    Elegant = 6
    Epic = 7
    Euphoric = 8
    Fear = 9
    Funny = 10
    Glamorous = 11
    Gloomy = 12
    Happy = 13
    Heavy = 14
    Hopeful = 15
    LaidBack = 16
    Mysterious = 17
    Peaceful = 18
    Quirky = 19
    Relaxing = 20
    Restless = 21
    Romantic = 22
    Sad = 23
    Scary = 24
    Sexy = 25
    Suspense = 26
    Weird = 27


class SearchFilter(BaseModel):
    query: Optional[str] = None
    genre: Optional[Genre] = None
    mood: Optional[Mood] = None

    def is_empty(self) -> bool:
        return not (self.query or self.genre is not None or self.mood is not None)


class NCSError(Exception):
    pass


HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/115.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
}

_DATE_RE = re.compile(r"\b\d{1,2} [A-Z][a-z]{2} \d{4}\b")


async def _get_html(path: str, params: Dict[str, object]) -> str:
    url = urljoin(settings.NCS_BASE_URL.rstrip("/") + "/", path.lstrip("/"))
    try:
        async with httpx.AsyncClient(
            timeout=settings.REQUESTS_TIMEOUT, headers=HEADERS, follow_redirects=True
        ) as client:
            r = await client.get(url, params=params)
            r.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise NCSError(f"NCS returned HTTP {e.response.status_code} for {url}") from e
    except httpx.HTTPError as e:
        raise NCSError(f"Could not reach NCS at {url}: {e}") from e
    return r.text


def _parse_artists(anchor, base_url: str) -> List[Artist]:
    raw_html = anchor.get("data-artist") or ""
    links = BeautifulSoup(raw_html, "html.parser").find_all("a")
    if links:
        return [
            Artist(
                name=a.get_text(strip=True),
                url=urljoin(base_url, a["href"]) if a.get("href") else None,
            )
            for a in links
            if a.get_text(strip=True)
        ]
    # Plain-text fallback: "Artist A, Artist B"
    raw = anchor.get("data-artistraw") or BeautifulSoup(raw_html, "html.parser").get_text()
    return [Artist(name=n.strip()) for n in raw.split(",") if n.strip()]


def _song_url(container, anchor, base_url: str) -> Optional[str]:
    if container is None:
        return None
    for a in container.find_all("a", href=True):
        href = a["href"]
        if a is anchor or href.startswith("javascript") or href.startswith("#"):
            continue
        if "/artist/" in href:
            continue
        return urljoin(base_url, href)
    return None


def parse_songs(html: str, base_url: Optional[str] = None) -> List[Song]:
    """Extract songs from an ncs.io listing or search results page.

    Each playable track is rendered with an ``a.player-play`` anchor whose
    ``data-*`` attributes hold the track metadata; the surrounding card (or
    table row on search pages) links to the track page and may show the
    release date.
    """
    base_url = base_url or settings.NCS_BASE_URL
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as e:
        raise NCSError(f"Could not parse NCS page: {e}") from e

    songs: List[Song] = []
    for anchor in soup.select("a.player-play"):
        name = (anchor.get("data-track") or "").strip()
        if not name:
            continue
        container = anchor.find_parent("tr") or anchor.find_parent(
            "div", class_="item"
        )
        date = None
        if container is not None:
            m = _DATE_RE.search(container.get_text(" ", strip=True))
            if m:
                date = m.group(0)
        songs.append(
            Song(
                name=name,
                url=_song_url(container, anchor, base_url),
                artists=_parse_artists(anchor, base_url),
                genre=(anchor.get("data-genre") or "").strip() or None,
                coverUrl=anchor.get("data-cover") or None,
                previewUrl=anchor.get("data-url") or None,
                releaseDate=date,
                trackId=anchor.get("data-tid") or None,
            )
        )
    return songs


async def fetch_latest(page: int = 0) -> List[Song]:
    """Latest releases; ``page`` is 0-based, ncs.io pages start at 1."""
    html = await _get_html("/music", {"page": page + 1})
    songs = parse_songs(html)
    logger.info(f"NCS latest page={page} returned {len(songs)} songs")
    return songs


async def search(search_filter: SearchFilter, page: int = 0) -> List[Song]:
    params = {
        "q": search_filter.query or "",
        "genre": int(search_filter.genre) if search_filter.genre is not None else "",
        "mood": int(search_filter.mood) if search_filter.mood is not None else "",
        "page": page + 1,
    }
    html = await _get_html("/music-search", params)
    songs = parse_songs(html)
    logger.info(
        f"NCS search query='{search_filter.query or ''}' genre={search_filter.genre!r} "
        f"mood={search_filter.mood!r} page={page} returned {len(songs)} songs"
    )
    return songs
