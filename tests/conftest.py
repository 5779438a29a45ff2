import pytest

from ncs_api.main import limiter
from ncs_api.schemas import Artist, Song


@pytest.fixture(autouse=True)
def no_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def songs():
    return [
        Song(
            name=f"Track {i}",
            url=f"https://ncs.io/track{i}",
            artists=[Artist(name=f"Artist {i}", url=f"https://ncs.io/artist/{i}/artist-{i}")],
            genre="House",
            previewUrl=f"https://ncsmusic.s3.eu-west-1.amazonaws.com/tracks/{i}.mp3",
            trackId=f"tid-{i}",
        )
        for i in range(8)
    ]
