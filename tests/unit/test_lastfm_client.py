"""Unit tests for the Last.fm client.

Coverage:
- Wire parameters for the three calls
- Mapping of recent vs. top track shapes
- List-call failure policy (raise, retry on 5xx)
- Track info failure policy (absorb, return None) and caching
"""

import sys
from pathlib import Path

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from lastfm_embed.errors import ConfigurationError, UpstreamError
from lastfm_embed.images import DEFAULT_IMAGES
from lastfm_embed.lastfm_client import (
    LastFMClient,
    parse_recent_track,
    parse_top_track,
    parse_track_info,
)
from lastfm_embed.models import RecentTrack, TopTrack
from tests.fixtures.lastfm_payloads import (
    FakeSession,
    info_payload,
    make_response,
    query,
    recent_payload,
    recent_track,
    route_sequence,
    top_payload,
    top_track,
)


# =============================================================================
# Parsers
# =============================================================================

class TestParsers:
    """Test the per-shape mapping functions."""

    def test_parse_recent_track(self):
        track = parse_recent_track(recent_track(3, asset="cover3"))

        assert isinstance(track, RecentTrack)
        assert track.kind == "recent"
        assert track.name == "Song 3"
        assert track.artist_name == "Artist 3"
        assert track.url.endswith("/Artist+3/_/Song+3")
        assert track.images.medium.endswith("/64s/cover3.png")
        assert track.images.large.endswith("/174s/cover3.png")
        assert track.now_playing is False

    def test_parse_recent_track_now_playing(self):
        assert parse_recent_track(recent_track(0, now_playing=True)).now_playing is True

    def test_parse_recent_track_without_images(self):
        raw = recent_track(0)
        raw["image"] = []

        track = parse_recent_track(raw)

        assert track.images.medium == DEFAULT_IMAGES["medium"]
        assert track.images.large == DEFAULT_IMAGES["large"]

    def test_parse_top_track(self):
        track = parse_top_track(top_track(0, asset="cover0", name="Hit", artist="Band", playcount=42))

        assert isinstance(track, TopTrack)
        assert track.kind == "top"
        assert track.name == "Hit"
        assert track.artist_name == "Band"
        assert track.play_count == 42
        assert track.images.large.endswith("/174s/cover0.png")

    def test_parse_top_track_rejects_negative_playcount(self):
        raw = top_track(0)
        raw["playcount"] = "-1"

        with pytest.raises(ValueError):
            parse_top_track(raw)

    def test_parse_track_info(self):
        info = parse_track_info(info_payload("albumart"))

        assert info.album is not None
        assert info.album.title == "Album"
        assert info.album.artist_name == "Artist"
        assert ("large", "https://lastfm.freetls.fastly.net/i/u/174s/albumart.png") in info.album.images

    def test_parse_track_info_without_album(self):
        assert parse_track_info(info_payload(None)).album is None
        assert parse_track_info({}).album is None


# =============================================================================
# List calls
# =============================================================================

class TestListCalls:
    """Test user.getrecenttracks and user.gettoptracks."""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            LastFMClient(api_key="")

    def test_recent_tracks_wire_parameters(self, client, session):
        session.routes["user.getrecenttracks"] = make_response(200, recent_payload(2))

        client.get_recent_tracks("alice", 5)

        params = query(session.calls[0])
        assert session.calls[0].startswith("https://ws.audioscrobbler.com/2.0/?")
        assert params == {
            "method": "user.getrecenttracks",
            "user": "alice",
            "api_key": "test-key",
            "limit": "5",
            "format": "json",
        }

    def test_recent_tracks_keep_upstream_order(self, client, session):
        session.routes["user.getrecenttracks"] = make_response(200, recent_payload(3, now_playing_first=True))

        tracks = client.get_recent_tracks("alice", 3)

        assert [t.name for t in tracks] == ["Song 0", "Song 1", "Song 2"]
        assert [t.now_playing for t in tracks] == [True, False, False]

    def test_single_track_object_is_normalized(self, client, session):
        payload = recent_payload(1)
        payload["recenttracks"]["track"] = payload["recenttracks"]["track"][0]
        session.routes["user.getrecenttracks"] = make_response(200, payload)

        tracks = client.get_recent_tracks("alice", 1)

        assert len(tracks) == 1

    def test_top_tracks_wire_parameters_keep_period_verbatim(self, client, session):
        session.routes["user.gettoptracks"] = make_response(200, top_payload([top_track(0)]))

        client.get_top_tracks("bob", 10, "6month ")

        params = query(session.calls[0])
        assert params["method"] == "user.gettoptracks"
        assert params["period"] == "6month "
        assert params["limit"] == "10"
        assert params["format"] == "json"

    def test_top_tracks_mapping(self, client, session):
        session.routes["user.gettoptracks"] = make_response(
            200, top_payload([top_track(0, playcount=12), top_track(1, playcount=7)])
        )

        tracks = client.get_top_tracks("bob", 2, "3month")

        assert [(t.artist_name, t.play_count) for t in tracks] == [("Artist 0", 12), ("Artist 1", 7)]

    def test_list_http_error_raises(self, client, session):
        session.routes["user.gettoptracks"] = make_response(404, {"error": 6, "message": "User not found"})

        with pytest.raises(UpstreamError) as excinfo:
            client.get_top_tracks("nobody", 10, "overall")

        assert excinfo.value.status_code == 404

    def test_list_error_body_raises(self, client, session):
        session.routes["user.getrecenttracks"] = make_response(200, {"error": 6, "message": "User not found"})

        with pytest.raises(UpstreamError):
            client.get_recent_tracks("nobody", 10)

    def test_list_missing_root_raises(self, client, session):
        session.routes["user.getrecenttracks"] = make_response(200, {"unexpected": {}})

        with pytest.raises(UpstreamError):
            client.get_recent_tracks("alice", 10)

    def test_list_transport_error_raises(self, client, session):
        session.routes["user.getrecenttracks"] = requests.exceptions.ConnectionError("down")

        with pytest.raises(UpstreamError) as excinfo:
            client.get_recent_tracks("alice", 10)

        assert excinfo.value.status_code is None

    def test_list_5xx_is_retried(self, cache):
        session = FakeSession({
            "user.getrecenttracks": route_sequence(
                make_response(503, {}),
                make_response(200, recent_payload(1)),
            )
        })
        client = LastFMClient("k", session=session, cache=cache, max_retries=2, retry_initial_delay=0.0)

        tracks = client.get_recent_tracks("alice", 1)

        assert len(tracks) == 1
        assert len(session.calls) == 2

    def test_list_4xx_is_not_retried(self, cache):
        session = FakeSession({"user.gettoptracks": make_response(400, {"error": 6})})
        client = LastFMClient("k", session=session, cache=cache, max_retries=3, retry_initial_delay=0.0)

        with pytest.raises(UpstreamError):
            client.get_top_tracks("bob", 1, "overall")

        assert len(session.calls) == 1

    def test_list_calls_bypass_cache(self, client, session, cache):
        session.routes["user.getrecenttracks"] = make_response(200, recent_payload(1))

        client.get_recent_tracks("alice", 1)
        client.get_recent_tracks("alice", 1)

        assert len(session.calls) == 2
        assert cache.size() == 0


# =============================================================================
# Track info
# =============================================================================

class TestTrackInfo:
    """Test track.getinfo enrichment lookups."""

    def test_wire_parameters(self, client, session):
        session.routes["track.getinfo"] = make_response(200, info_payload())

        client.get_track_info("Song", "Artist")

        assert query(session.calls[0]) == {
            "method": "track.getinfo",
            "track": "Song",
            "artist": "Artist",
            "api_key": "test-key",
            "format": "json",
        }
        assert session.calls[0] == client.track_info_url("Song", "Artist")

    def test_returns_album(self, client, session):
        session.routes["track.getinfo"] = make_response(200, info_payload("albumart"))

        info = client.get_track_info("Song", "Artist")

        assert info.album.title == "Album"

    def test_same_track_is_fetched_once(self, client, session):
        session.routes["track.getinfo"] = make_response(200, info_payload())

        client.get_track_info("Song", "Artist")
        client.get_track_info("Song", "Artist")

        assert len(session.calls_for("track.getinfo")) == 1

    def test_non_2xx_returns_none_and_is_not_cached(self, client, session, cache):
        session.routes["track.getinfo"] = make_response(500, {"error": 16})

        assert client.get_track_info("Song", "Artist") is None
        assert client.get_track_info("Song", "Artist") is None
        assert len(session.calls) == 2
        assert cache.size() == 0

    def test_error_body_returns_none(self, client, session):
        session.routes["track.getinfo"] = make_response(200, {"error": 6, "message": "Track not found"})

        assert client.get_track_info("Song", "Artist") is None

    def test_transport_error_returns_none(self, client, session):
        session.routes["track.getinfo"] = requests.exceptions.Timeout("slow")

        assert client.get_track_info("Song", "Artist") is None

    def test_invalid_json_has_no_album(self, client, session):
        session.routes["track.getinfo"] = make_response(200, None)

        info = client.get_track_info("Song", "Artist")

        assert info is not None
        assert info.album is None

    def test_works_without_cache(self, session):
        session.routes["track.getinfo"] = make_response(200, info_payload())
        client = LastFMClient("k", session=session)

        client.get_track_info("Song", "Artist")
        client.get_track_info("Song", "Artist")

        assert len(session.calls) == 2

    def test_close_closes_session(self, client, session):
        client.close()

        assert session.closed
