import logging
from typing import Optional

import requests

from lastfm_embed.aggregator import TrackAggregator
from lastfm_embed.config_loader import Config
from lastfm_embed.errors import ConfigurationError
from lastfm_embed.lastfm_client import LastFMClient
from lastfm_embed.models import WidgetPayload
from lastfm_embed.response_cache import ResponseCache, build_response_cache

logger = logging.getLogger(__name__)


class EmbedService:
    """
    Process-wide wiring for embed requests.

    The HTTP session and the response cache live as long as the process; a
    client and aggregator are built per request around them.
    """

    def __init__(
        self,
        config: Config,
        session: Optional[requests.Session] = None,
        cache: Optional[ResponseCache] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else build_response_cache(config)
        logger.info(f"Embed service ready (cache backend: {type(self.cache).__name__})")

    def ensure_configured(self) -> None:
        if not self.config.lastfm_api_key:
            raise ConfigurationError("LASTFM_API_KEY is not set")

    def _client(self) -> LastFMClient:
        return LastFMClient(
            api_key=self.config.lastfm_api_key,
            session=self.session,
            cache=self.cache,
            timeout=self.config.lastfm_timeout_seconds,
            max_retries=self.config.lastfm_max_retries,
            retry_initial_delay=self.config.lastfm_retry_initial_delay,
        )

    def build_widget(self, mode: str, user: str, limit: int, period: str) -> WidgetPayload:
        """Validate configuration, then aggregate tracks for one embed."""
        self.ensure_configured()
        return TrackAggregator(self._client()).build(mode, user, limit, period)

    def close(self) -> None:
        self.session.close()
