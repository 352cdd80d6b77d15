"""
Loads and handles config from config.yml
Deployment overrides (user agent, host, port) are loaded from .env / environment
"""
import logging
import os
from datetime import timedelta
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HN_SNAPSHOT_CONFIG"


class UpstreamConfig(BaseModel):
    """Where ids and items come from."""
    base_url: str = "https://hacker-news.firebaseio.com/v0"
    list_name: str = "topstories"  # topstories, newstories, beststories
    display_url_base: str = "https://news.ycombinator.com/item?id="
    user_agent: str = "hn-snapshot/1.0"
    request_timeout: float = Field(default=5.0, gt=0)

    @property
    def id_list_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.list_name}.json"

    def item_url(self, item_id: int) -> str:
        return f"{self.base_url.rstrip('/')}/item/{item_id}.json"

    def display_url(self, item_id: int) -> str:
        return f"{self.display_url_base}{item_id}"


class RetryConfig(BaseModel):
    """Bounded retry policy for per-item fetches."""
    max_attempts: int = Field(default=5, ge=1)
    backoff_min: float = Field(default=0.0, ge=0)
    backoff_max: float = Field(default=5.0, ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "RetryConfig":
        if self.backoff_max < self.backoff_min:
            raise ValueError("backoff_max must be >= backoff_min")
        return self


class PipelineConfig(BaseModel):
    top_n: int = Field(default=50, ge=0)
    recency_window_hours: Optional[float] = Field(default=24.0, gt=0)  # None disables the filter
    max_concurrency: int = Field(default=32, ge=1)

    @property
    def recency_window(self) -> Optional[timedelta]:
        if self.recency_window_hours is None:
            return None
        return timedelta(hours=self.recency_window_hours)


class RefreshConfig(BaseModel):
    interval_seconds: float = Field(default=20.0, gt=0)
    dump_path: Optional[str] = None  # JSON dump of every published snapshot


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 9060
    page_title: str = "HN Top Stories"


class Config(BaseModel):
    upstream: UpstreamConfig = UpstreamConfig()
    retry: RetryConfig = RetryConfig()
    pipeline: PipelineConfig = PipelineConfig()
    refresh: RefreshConfig = RefreshConfig()
    server: ServerConfig = ServerConfig()


def _get_config_path() -> Optional[str]:
    """Get the path to config.yml, handling different working directories."""
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return env_path

    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    return None


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Environment wins over config.yml for deployment-specific values."""
    user_agent = os.getenv("HN_SNAPSHOT_USER_AGENT")
    if user_agent:
        data.setdefault("upstream", {})["user_agent"] = user_agent

    host = os.getenv("HN_SNAPSHOT_HOST")
    if host:
        data.setdefault("server", {})["host"] = host

    port = os.getenv("HN_SNAPSHOT_PORT")
    if port:
        data.setdefault("server", {})["port"] = port

    return data


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and overrides from .env."""
    load_dotenv()

    config_path = path or _get_config_path()
    data: Dict[str, Any] = {}

    if config_path is None:
        logger.warning("No resources/config.yml found, using defaults")
    else:
        with open(config_path, 'r') as file:
            data = yaml.safe_load(file) or {}
        logger.info(f"Loaded config from {config_path}")

    return Config.model_validate(_apply_env_overrides(data))
