"""Runtime settings and backend wiring."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_FUNCTIONS_URL = "http://localhost:54321/functions/v1"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    """Configuration for a GENOVA process."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    functions_url: str = DEFAULT_FUNCTIONS_URL
    api_key: Optional[str] = None
    request_timeout: float = 30.0
    log_level: str = "INFO"
    port: int = 8000
    debug: bool = False
    onboarding_idle_timeout: float = 3600.0

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings from a parsed config mapping."""
        settings = cls()
        if data.get("data_dir"):
            settings.data_dir = Path(data["data_dir"])
        settings.functions_url = data.get("functions_url", settings.functions_url)
        settings.api_key = data.get("api_key", settings.api_key)
        settings.request_timeout = float(data.get("request_timeout", settings.request_timeout))
        settings.log_level = str(data.get("log_level", settings.log_level)).upper()
        settings.port = int(data.get("port", settings.port))
        settings.debug = bool(data.get("debug", settings.debug))
        settings.onboarding_idle_timeout = float(
            data.get("onboarding_idle_timeout", settings.onboarding_idle_timeout)
        )
        return settings


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from an optional YAML file, then apply environment overrides.

    The file is taken from ``path`` or the ``GENOVA_CONFIG`` environment
    variable. Environment variables always win over file values.
    """
    config_path = path or os.environ.get("GENOVA_CONFIG")
    data: dict = {}
    if config_path:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    settings = Settings.from_dict(data)

    if os.environ.get("GENOVA_DATA_DIR"):
        settings.data_dir = Path(os.environ["GENOVA_DATA_DIR"])
    if os.environ.get("GENOVA_FUNCTIONS_URL"):
        settings.functions_url = os.environ["GENOVA_FUNCTIONS_URL"]
    if os.environ.get("GENOVA_API_KEY"):
        settings.api_key = os.environ["GENOVA_API_KEY"]
    if os.environ.get("GENOVA_REQUEST_TIMEOUT"):
        settings.request_timeout = float(os.environ["GENOVA_REQUEST_TIMEOUT"])
    if os.environ.get("GENOVA_LOG_LEVEL"):
        settings.log_level = os.environ["GENOVA_LOG_LEVEL"].upper()
    if os.environ.get("PORT"):
        settings.port = int(os.environ["PORT"])
    if os.environ.get("DEBUG"):
        settings.debug = os.environ["DEBUG"].lower() == "true"
    if os.environ.get("GENOVA_ONBOARDING_IDLE_TIMEOUT"):
        settings.onboarding_idle_timeout = float(os.environ["GENOVA_ONBOARDING_IDLE_TIMEOUT"])

    return settings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for CLI and server entrypoints."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_backend(settings: Settings):
    """Wire the local record store, change feed, blob storage and action client."""
    from .backend import Backend

    return Backend.local(
        settings.data_dir,
        functions_url=settings.functions_url,
        api_key=settings.api_key,
        timeout=settings.request_timeout,
    )
