"""
Track records - Immutable value objects built from Last.fm responses

Recent and top tracks share the Track base; the subclasses carry the one
field that only their listing provides. WidgetPayload is what the renderer
receives.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from lastfm_embed.images import ImageVariant


@dataclass(frozen=True)
class TrackImages:
    medium: str
    large: str


@dataclass(frozen=True)
class Track:
    name: str
    artist_name: str
    url: str
    images: TrackImages

    kind = "track"


@dataclass(frozen=True)
class RecentTrack(Track):
    now_playing: bool = False

    kind = "recent"


@dataclass(frozen=True)
class TopTrack(Track):
    play_count: int = 0

    kind = "top"


TrackRecord = Union[RecentTrack, TopTrack]


@dataclass(frozen=True)
class AlbumInfo:
    title: str
    artist_name: str
    url: str
    images: Tuple[ImageVariant, ...] = ()


@dataclass(frozen=True)
class TrackInfo:
    """Enrichment result of track.getinfo; album is None when Last.fm has none"""
    album: Optional[AlbumInfo] = None


@dataclass(frozen=True)
class WidgetPayload:
    title: str
    thumbnails: Tuple[str, ...] = ()
    tracks: Tuple[TrackRecord, ...] = field(default_factory=tuple)
