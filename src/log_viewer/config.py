"""Configuration loader for the live log viewer.

Settings come from an optional JSON options file (default
/data/options.json, overridable with LOG_VIEWER_OPTIONS), then from
LOG_VIEWER_<FIELD> environment variables, which win. Invalid values are
logged and ignored so a typo never prevents startup.
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

OPTIONS_PATH = "/data/options.json"
ENV_PREFIX = "LOG_VIEWER_"

# Fields that must be >= 1 / > 0 respectively
_CAPACITY_FIELDS = {"log_capacity", "latency_window", "port"}
_POSITIVE_FIELDS = {
    "poll_interval_seconds",
    "request_timeout_seconds",
    "reconnect_interval_seconds",
    "reconnect_max_backoff_seconds",
}


@dataclass
class AppConfig:
    """Runtime configuration for the viewer service."""

    # Upstream endpoints
    stream_url: str = "http://127.0.0.1:8080/events"
    metrics_url: str = "http://127.0.0.1:8080/metrics"

    # Polling and reconnection
    poll_interval_seconds: float = 2.0
    request_timeout_seconds: float = 5.0
    reconnect_interval_seconds: float = 3.0
    reconnect_max_backoff_seconds: float = 30.0

    # Bounded state
    log_capacity: int = 800
    latency_window: int = 200

    # Web server
    host: str = "0.0.0.0"
    port: int = 8099

    log_level: str = "info"

    def set_option(self, name: str, raw) -> None:
        """Coerce and validate one setting. Raises ValueError when invalid."""
        current = getattr(self, name)
        if isinstance(current, bool) or not isinstance(current, (int, float, str)):
            raise ValueError(f"{name} is not configurable")
        if isinstance(current, str):
            value = str(raw)
        elif isinstance(raw, bool):
            raise ValueError(f"{name} must be a number")
        elif isinstance(current, int):
            if isinstance(raw, float) and not raw.is_integer():
                raise ValueError(f"{name} must be an integer")
            value = int(raw)
        else:
            value = float(raw)

        if name in _CAPACITY_FIELDS and value < 1:
            raise ValueError(f"{name} must be >= 1")
        if name in _POSITIVE_FIELDS and value <= 0:
            raise ValueError(f"{name} must be > 0")
        setattr(self, name, value)

    def _apply(self, source: str, values: dict) -> None:
        names = {f.name for f in fields(self)}
        for name, raw in values.items():
            if name not in names:
                continue
            try:
                self.set_option(name, raw)
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring %s from %s: %s", name, source, e)

    @classmethod
    def load(cls, path: str | None = None, environ: dict | None = None) -> "AppConfig":
        """Load configuration from the options file and the environment."""
        config = cls()
        environ = os.environ if environ is None else environ

        # 1. Options file
        opts_path = Path(path or environ.get(f"{ENV_PREFIX}OPTIONS", OPTIONS_PATH))
        if opts_path.exists():
            try:
                data = json.loads(opts_path.read_text())
                if not isinstance(data, dict):
                    raise ValueError("options must be a JSON object")
                config._apply(str(opts_path), data)
                logger.info("Loaded options from %s", opts_path)
            except (json.JSONDecodeError, ValueError, OSError) as e:
                logger.error("Failed to parse options: %s, using defaults", e)

        # 2. Environment overrides
        env_values = {}
        for f in fields(config):
            key = f"{ENV_PREFIX}{f.name.upper()}"
            if key in environ:
                env_values[f.name] = environ[key]
        config._apply("environment", env_values)

        return config
