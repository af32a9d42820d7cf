"""
Last.FM API Client - Fetches recent tracks, top tracks and track info for embeds
"""
import requests
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from lastfm_embed.errors import ConfigurationError, UpstreamError
from lastfm_embed.images import image_variants, resolve_image
from lastfm_embed.logging_utils import redact
from lastfm_embed.models import AlbumInfo, RecentTrack, TopTrack, TrackImages, TrackInfo
from lastfm_embed.response_cache import CachedResponse, ResponseCache
from lastfm_embed.retry_helper import retry_with_backoff

logger = logging.getLogger(__name__)


def _track_images(raw_images: Any) -> TrackImages:
    variants = image_variants(raw_images)
    return TrackImages(
        medium=resolve_image(variants, "medium"),
        large=resolve_image(variants, "large"),
    )


def _listing(data: Dict[str, Any], root: str) -> List[Dict[str, Any]]:
    """Pull the track array out of a list response.

    Last.fm returns a bare object instead of a one-element list when exactly
    one track exists.
    """
    section = data.get(root) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        raise UpstreamError(f"Last.fm response missing '{root}'")
    tracks = section.get("track", [])
    if isinstance(tracks, dict):
        tracks = [tracks]
    return tracks


def parse_recent_track(track_data: Dict[str, Any]) -> RecentTrack:
    """
    Map one user.getrecenttracks entry.

    The artist is an object of the form {"#text": name, "mbid": ...}; a track
    that is playing right now carries {"@attr": {"nowplaying": "true"}}.
    """
    attr = track_data.get("@attr") or {}
    now_playing = attr.get("nowplaying")
    return RecentTrack(
        name=track_data["name"],
        artist_name=track_data["artist"]["#text"],
        url=track_data["url"],
        images=_track_images(track_data.get("image")),
        now_playing=bool(now_playing) and str(now_playing).lower() != "false",
    )


def parse_top_track(track_data: Dict[str, Any]) -> TopTrack:
    """
    Map one user.gettoptracks entry.

    Unlike recent tracks, the artist here is {"name": ..., "url": ..., "mbid": ...}
    and the play count arrives as a decimal string.
    """
    play_count = int(track_data.get("playcount", 0))
    if play_count < 0:
        raise ValueError(f"negative playcount for {track_data.get('name')!r}")
    return TopTrack(
        name=track_data["name"],
        artist_name=track_data["artist"]["name"],
        url=track_data["url"],
        images=_track_images(track_data.get("image")),
        play_count=play_count,
    )


def parse_track_info(data: Dict[str, Any]) -> TrackInfo:
    """Map a track.getinfo body; tracks without album data get album=None"""
    track = data.get("track") or {}
    album = track.get("album") if isinstance(track, dict) else None
    if not isinstance(album, dict):
        return TrackInfo(album=None)
    return TrackInfo(
        album=AlbumInfo(
            title=album.get("title", ""),
            artist_name=album.get("artist", ""),
            url=album.get("url", ""),
            images=image_variants(album.get("image")),
        )
    )


def _info_cacheable(response: CachedResponse) -> bool:
    return response.ok and bool(response.payload) and "error" not in response.payload


class LastFMClient:
    """Client for the three Last.FM calls the embed needs"""

    BASE_URL = "https://ws.audioscrobbler.com/2.0/"

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        cache: Optional[ResponseCache] = None,
        timeout: float = 10.0,
        max_retries: int = 1,
        retry_initial_delay: float = 0.5,
    ):
        """
        Initialize Last.FM client

        Args:
            api_key: Last.FM API key
            session: Optional requests session (one is created if omitted)
            cache: Response cache used for track.getinfo lookups
            timeout: Per-request timeout in seconds
            max_retries: Retries for list calls on 5xx/transport failures
            retry_initial_delay: Delay before the first retry in seconds
        """
        if not api_key:
            raise ConfigurationError("Last.FM API key is not configured")

        self.api_key = api_key
        self.session = session or requests.Session()
        self.cache = cache
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay

    def _build_url(self, params: Sequence[Tuple[str, Any]]) -> str:
        """Encode the query in the given order; the result doubles as a cache key"""
        return requests.Request("GET", self.BASE_URL, params=list(params)).prepare().url

    def _request_listing(self, url: str) -> Dict[str, Any]:
        logger.debug(f"GET {redact(url)}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Last.FM request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UpstreamError(
                f"Last.FM returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Last.FM returned invalid JSON", status_code=response.status_code) from e

        if isinstance(data, dict) and "error" in data:
            raise UpstreamError(
                f"Last.FM error {data.get('error')}: {data.get('message', 'unknown')}",
                status_code=response.status_code,
            )
        return data

    def _get_listing(self, url: str) -> Dict[str, Any]:
        fetch = retry_with_backoff(
            max_retries=self.max_retries,
            initial_delay=self.retry_initial_delay,
            exceptions=(UpstreamError,),
        )(self._request_listing)
        return fetch(url)

    def _fetch(self, url: str) -> CachedResponse:
        logger.debug(f"GET {redact(url)}")
        response = self.session.get(url, timeout=self.timeout)
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return CachedResponse(status_code=response.status_code, payload=payload)

    def get_recent_tracks(self, user: str, limit: int) -> List[RecentTrack]:
        """
        Get a user's recently played tracks, newest first

        Args:
            user: Last.FM username
            limit: Passed through to Last.FM unchanged

        Returns:
            List of RecentTrack in upstream order (a now-playing track may
            appear on top of `limit` scrobbles)

        Raises:
            UpstreamError: If Last.FM fails after retries
        """
        url = self._build_url([
            ("method", "user.getrecenttracks"),
            ("user", user),
            ("api_key", self.api_key),
            ("limit", limit),
            ("format", "json"),
        ])
        data = self._get_listing(url)
        tracks = [parse_recent_track(t) for t in _listing(data, "recenttracks")]
        logger.info(f"Retrieved {len(tracks)} recent tracks for {user}")
        return tracks

    def get_top_tracks(self, user: str, limit: int, period: str) -> List[TopTrack]:
        """
        Get a user's most played tracks for a period

        Args:
            user: Last.FM username
            limit: Passed through to Last.FM unchanged
            period: A validated period literal

        Returns:
            List of TopTrack in upstream (rank) order

        Raises:
            UpstreamError: If Last.FM fails after retries
        """
        url = self._build_url([
            ("method", "user.gettoptracks"),
            ("user", user),
            ("api_key", self.api_key),
            ("limit", limit),
            ("period", period),
            ("format", "json"),
        ])
        data = self._get_listing(url)
        tracks = [parse_top_track(t) for t in _listing(data, "toptracks")]
        logger.info(f"Retrieved {len(tracks)} top tracks for {user} ({period})")
        return tracks

    def track_info_url(self, track: str, artist: str) -> str:
        return self._build_url([
            ("method", "track.getinfo"),
            ("track", track),
            ("artist", artist),
            ("api_key", self.api_key),
            ("format", "json"),
        ])

    def get_track_info(self, track: str, artist: str) -> Optional[TrackInfo]:
        """
        Get album details for a track, through the response cache

        Failures are never raised: any transport error, non-2xx status or
        Last.FM error body yields None.
        """
        url = self.track_info_url(track, artist)
        try:
            if self.cache is not None:
                response = self.cache.get_or_fetch(url, lambda: self._fetch(url), _info_cacheable)
            else:
                response = self._fetch(url)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Track info request failed for {artist} - {track}: {e}")
            return None

        if not response.ok:
            logger.warning(f"Track info for {artist} - {track} returned {response.status_code}")
            return None

        if "error" in response.payload:
            logger.warning(
                f"Track info error for {artist} - {track}: {response.payload.get('message', 'unknown')}"
            )
            return None

        return parse_track_info(response.payload)

    def close(self) -> None:
        self.session.close()
