"""
Configuration Loader - Manages YAML configuration and environment variables
"""
import yaml
import os
import logging
from typing import Any

logger = logging.getLogger(__name__)

CACHE_BACKENDS = ('memory', 'sqlite')


class Config:
    """Configuration manager for the embed service"""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = config_path
        self.config = self._load_config()
        self._validate_config()

    def _load_config(self) -> dict:
        """Load configuration from YAML file (a missing file means defaults)"""
        if not os.path.exists(self.config_path):
            logger.info(f"No configuration file at {self.config_path}, using defaults")
            return {}

        with open(self.config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")
        return data

    def _validate_config(self):
        """Validate optional configuration fields"""
        for section in ('lastfm', 'cache', 'logging'):
            value = self.config.get(section)
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"Configuration section must be a mapping: {section}")

        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(
                f"cache.backend must be one of {', '.join(CACHE_BACKENDS)} (got {self.cache_backend!r})"
            )

        numeric_fields = [
            ('lastfm', 'timeout_seconds', self.lastfm_timeout_seconds),
            ('lastfm', 'max_retries', self.lastfm_max_retries),
            ('lastfm', 'retry_initial_delay', self.lastfm_retry_initial_delay),
            ('cache', 'max_size', self.cache_max_size),
            ('cache', 'expiry_seconds', self.cache_expiry_seconds),
        ]
        for section, field, value in numeric_fields:
            if value < 0:
                raise ValueError(f"{section}.{field} must be non-negative in {self.config_path}")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        if section not in self.config or not self.config[section]:
            return default
        return self.config[section].get(key, default)

    @property
    def lastfm_api_key(self) -> str:
        """Get Last.FM API key (with environment variable override)"""
        value = os.getenv('LASTFM_API_KEY') or self.get('lastfm', 'api_key', '') or ''
        if str(value).startswith('YOUR_'):
            return ''
        return str(value)

    @property
    def lastfm_timeout_seconds(self) -> float:
        """Get per-request timeout for Last.FM calls"""
        return float(self.get('lastfm', 'timeout_seconds', 10))

    @property
    def lastfm_max_retries(self) -> int:
        """Get retry budget for the list calls"""
        return int(self.get('lastfm', 'max_retries', 1))

    @property
    def lastfm_retry_initial_delay(self) -> float:
        """Get delay before the first list call retry"""
        return float(self.get('lastfm', 'retry_initial_delay', 0.5))

    @property
    def cache_backend(self) -> str:
        """Get response cache substrate (memory or sqlite)"""
        return str(self.get('cache', 'backend', 'memory')).lower()

    @property
    def cache_max_size(self) -> int:
        """Get maximum entries held by the memory cache"""
        return int(self.get('cache', 'max_size', 1024))

    @property
    def cache_db_path(self) -> str:
        """Get SQLite cache database path"""
        return self.get('cache', 'db_path', 'data/response_cache.db')

    @property
    def cache_expiry_seconds(self) -> int:
        """Get SQLite cache entry lifetime (0 = never expires)"""
        return int(self.get('cache', 'expiry_seconds', 86400))

    @property
    def log_level(self) -> str:
        return os.getenv('LOG_LEVEL') or self.get('logging', 'level', 'INFO')

    @property
    def log_file(self):
        return os.getenv('LOG_FILE') or self.get('logging', 'file')
