"""Band repertoire song model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SongLinkType(Enum):
    YOUTUBE = "youtube"
    SPOTIFY = "spotify"
    APPLE_MUSIC = "apple_music"
    OTHER = "other"


@dataclass(frozen=True, eq=True)
class SongLink:
    url: str
    type: SongLinkType = field(default=SongLinkType.OTHER)
    title: str | None = field(default=None)


@dataclass(frozen=True, eq=True)
class Song:
    """A song in a band's repertoire.

    Attributes:
        id: Stable song id.
        band_id: Owning band.
        title: Song title.
        created_by: Member who added the song.
        bpm: Tempo in beats per minute, when known.
        key: Musical key (e.g. "Am").
        structure: Free-form arrangement ("Verse/Chorus/...").
    """

    id: str
    band_id: str
    title: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    lyrics: str | None = field(default=None)
    chords: str | None = field(default=None)
    bpm: int | None = field(default=None)
    key: str | None = field(default=None)
    notes: str | None = field(default=None)
    structure: str | None = field(default=None)
    links: tuple[SongLink, ...] = field(default=())


SONG_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "lyrics", "chords", "bpm", "key", "notes", "structure", "links"}
)
