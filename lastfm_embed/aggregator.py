"""
Track Aggregator - Builds the widget payload for one embed request

Validation happens up front so that bad input never reaches Last.fm. Top-track
listings usually carry only the placeholder artwork, so their thumbnails are
backfilled one track at a time from track.getinfo until four are collected.
"""
import logging
from typing import List, Sequence

from lastfm_embed.errors import InvalidLimitError, InvalidTypeError, MissingParameterError
from lastfm_embed.images import FALLBACK_ARTWORK_URL, is_placeholder, resolve_image
from lastfm_embed.lastfm_client import LastFMClient
from lastfm_embed.logging_utils import stage_timer
from lastfm_embed.models import TopTrack, WidgetPayload
from lastfm_embed.periods import DEFAULT_PERIOD, validate_period

logger = logging.getLogger(__name__)

MODES = ("recently", "frequently")
MAX_THUMBNAILS = 4
MAX_TRACKS = 100
DEFAULT_LIMIT = "100"


def parse_limit(raw: str) -> int:
    """
    Parse the limit query value.

    Args:
        raw: Decimal string such as "25"

    Returns:
        Positive integer

    Raises:
        InvalidLimitError: If the value is not a positive decimal integer
    """
    text = str(raw).strip()
    if not text.isdigit() or not text.isascii():
        raise InvalidLimitError(f"invalid limit: {raw!r}")
    limit = int(text)
    if limit <= 0:
        raise InvalidLimitError(f"invalid limit: {raw!r}")
    return limit


class TrackAggregator:
    """Chooses recent vs. top tracks and assembles title, thumbnails and tracks"""

    def __init__(self, client: LastFMClient):
        self.client = client

    def build(self, mode: str, user: str, limit: int, period: str = DEFAULT_PERIOD) -> WidgetPayload:
        """
        Build the payload for an embed.

        Args:
            mode: "recently" or "frequently"
            user: Last.fm username
            limit: Number of tracks to request (the payload holds at most 100)
            period: Aggregation window, only used for "frequently"

        Returns:
            WidgetPayload with title, up to 4 thumbnails and the track list

        Raises:
            InputError: For a bad mode, user, limit or period (before any call)
            UpstreamError: If the listing call fails
        """
        if not user:
            raise MissingParameterError("user is required")
        if mode not in MODES:
            raise InvalidTypeError(f"invalid type: {mode!r}")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidLimitError(f"invalid limit: {limit!r}")

        if mode == "recently":
            return self._build_recent(user, limit)

        period = validate_period(period)
        return self._build_top(user, limit, period)

    def _build_recent(self, user: str, limit: int) -> WidgetPayload:
        with stage_timer("Recent tracks fetch", logger):
            tracks = self.client.get_recent_tracks(user, limit)

        thumbnails = [track.images.medium for track in tracks[:MAX_THUMBNAILS]]
        return WidgetPayload(
            title=f"Recently Played by {user}",
            thumbnails=tuple(thumbnails),
            tracks=tuple(tracks[:min(limit, MAX_TRACKS)]),
        )

    def _build_top(self, user: str, limit: int, period: str) -> WidgetPayload:
        with stage_timer("Top tracks fetch", logger):
            tracks = self.client.get_top_tracks(user, limit, period)

        with stage_timer("Thumbnail backfill", logger):
            thumbnails = self.collect_thumbnails(tracks)

        return WidgetPayload(
            title=f"Top Tracks by {user} ({period})",
            thumbnails=tuple(thumbnails),
            tracks=tuple(tracks[:min(limit, MAX_TRACKS)]),
        )

    def collect_thumbnails(self, tracks: Sequence[TopTrack]) -> List[str]:
        """
        Walk tracks in order and gather up to four thumbnails.

        A concrete listing image is used as is. A placeholder triggers one
        track info lookup; the album's large image replaces it when there is
        one, otherwise the fixed fallback artwork is used.
        """
        thumbnails: List[str] = []
        for track in tracks:
            if len(thumbnails) >= MAX_THUMBNAILS:
                break

            if not is_placeholder(track.images.large):
                thumbnails.append(track.images.large)
                continue

            info = self.client.get_track_info(track.name, track.artist_name)
            if info is not None and info.album is not None and info.album.images:
                thumbnails.append(resolve_image(info.album.images, "large"))
            else:
                logger.debug(f"No album art for {track.artist_name} - {track.name}, using fallback")
                thumbnails.append(FALLBACK_ARTWORK_URL)

        return thumbnails
