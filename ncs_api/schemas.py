
from pydantic import BaseModel
from typing import List, Optional

class Artist(BaseModel):
    name: str
    url: Optional[str] = None

class Song(BaseModel):
    name: str
    url: Optional[str] = None
    artists: List[Artist] = []
    genre: Optional[str] = None
    coverUrl: Optional[str] = None
    previewUrl: Optional[str] = None
    releaseDate: Optional[str] = None
    trackId: Optional[str] = None

class EnumEntry(BaseModel):
    name: str
    value: int
