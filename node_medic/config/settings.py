"""
Application settings.

Every setting can come from a command-line flag, an environment variable, or
the optional YAML file, with precedence flags > environment > file > defaults.

    --eth-url             ETH_URL             eth-url             http://localhost:8545
    --max-seconds-behind  MAX_SECONDS_BEHIND  max-seconds-behind  60
    --min-peers           MIN_PEERS           min-peers           3
    --request-timeout     REQUEST_TIMEOUT     request-timeout     5.0
    --poll-interval       POLL_INTERVAL       poll-interval       0 (evaluate per request)
    --listen-host         LISTEN_HOST         listen-host         0.0.0.0
    --listen-port         LISTEN_PORT         listen-port         8080
    --log-level           LOG_LEVEL           log-level           INFO
    --log-format          LOG_FORMAT          log-format          json
    --config              MEDIC_CONFIG                            config.yaml
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import httpx
import yaml

from node_medic.config.env import load_medic_env, read_env
from node_medic.core.exceptions import ConfigError
from node_medic.health.evaluator import Thresholds
from node_medic.medic_logging import get_logger
from node_medic.medic_logging.logger import LOG_FORMATS, LOG_LEVELS

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_KEY = "medic-config"

DEFAULTS: dict[str, Any] = {
    "eth-url": "http://localhost:8545",
    "max-seconds-behind": 60,
    "min-peers": 3,
    "request-timeout": 5.0,
    "poll-interval": 0.0,
    "listen-host": "0.0.0.0",
    "listen-port": 8080,
    "log-level": "INFO",
    "log-format": "json",
}

HELP: dict[str, str] = {
    "eth-url": "URL of the Ethereum client JSON-RPC endpoint",
    "max-seconds-behind": "Maximum number of seconds the latest block may lag wall-clock time",
    "min-peers": "Minimum number of connected peers",
    "request-timeout": "Timeout in seconds for every request to the node",
    "poll-interval": "Seconds between background evaluations; 0 evaluates on each /ready request",
    "listen-host": "Address the probe server binds to",
    "listen-port": "Port the probe server binds to",
    "log-level": "Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    "log-format": "json or console",
}


@dataclass(frozen=True)
class Settings:
    """Resolved configuration; read once at startup, never mutated."""

    eth_url: str = DEFAULTS["eth-url"]
    max_seconds_behind: int = DEFAULTS["max-seconds-behind"]
    min_peers: int = DEFAULTS["min-peers"]
    request_timeout_sec: float = DEFAULTS["request-timeout"]
    poll_interval_sec: float = DEFAULTS["poll-interval"]
    listen_host: str = DEFAULTS["listen-host"]
    listen_port: int = DEFAULTS["listen-port"]
    log_level: str = DEFAULTS["log-level"]
    log_format: str = DEFAULTS["log-format"]
    config_file: str | None = None

    def thresholds(self) -> Thresholds:
        return Thresholds(
            max_seconds_behind=self.max_seconds_behind,
            min_peers=self.min_peers,
        )

    @property
    def polling(self) -> bool:
        return self.poll_interval_sec > 0


def build_parser() -> argparse.ArgumentParser:
    """Flags default to None so only explicitly passed values take precedence."""
    parser = argparse.ArgumentParser(
        prog="node-medic",
        description="Readiness probe sidecar for Ethereum execution clients.",
    )
    for key, help_text in HELP.items():
        parser.add_argument(f"--{key}", dest=key.replace("-", "_"), default=None, help=help_text)
    parser.add_argument(
        "--config",
        dest="config",
        default=None,
        help=f"Optional YAML config file (default: {DEFAULT_CONFIG_FILE})",
    )
    return parser


def read_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    """
    Load the YAML config file. A missing optional file yields {}.

    Raises ConfigError if a required file is missing, or if the file cannot be
    read or does not contain a mapping.
    """
    if not path.is_file():
        if required:
            raise ConfigError(f"config file not found: {path}")
        logger.info("config_file_not_found", path=str(path))
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping, got {type(data).__name__}")
    unknown = sorted(str(k) for k in data if k not in DEFAULTS)
    if unknown:
        logger.warning("config_file_unknown_keys", path=str(path), keys=unknown)
    logger.info("config_file_loaded", path=str(path))
    return {k: v for k, v in data.items() if k in DEFAULTS}


def _coerce(key: str, value: Any, kind: Callable[[Any], Any]) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{key}: expected {kind.__name__}, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected {kind.__name__}, got {value!r}") from e


def validate_eth_url(url: str) -> str:
    url = url.strip()
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"eth-url: invalid URL {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"eth-url: expected http(s)://host[:port], got {url!r}")
    return url


def load_settings(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Resolve settings from flags, environment, YAML file and defaults.

    argv: command-line arguments (None reads sys.argv[1:]; [] ignores flags).
    environ: environment mapping (None loads .env and reads os.environ).

    Raises ConfigError on invalid values; argparse exits on unknown flags.
    """
    args = build_parser().parse_args(argv)
    if environ is None:
        load_medic_env()
    env_values = read_env([*DEFAULTS, CONFIG_ENV_KEY], environ)

    env_config = env_values.pop(CONFIG_ENV_KEY, None)
    config_arg = args.config or env_config
    config_path = Path(config_arg or DEFAULT_CONFIG_FILE)
    file_values = read_config_file(config_path, required=config_arg is not None)

    flag_values = {
        key: getattr(args, key.replace("-", "_"))
        for key in DEFAULTS
        if getattr(args, key.replace("-", "_")) is not None
    }

    merged: dict[str, Any] = {**DEFAULTS, **file_values, **env_values, **flag_values}

    max_seconds_behind = _coerce("max-seconds-behind", merged["max-seconds-behind"], int)
    min_peers = _coerce("min-peers", merged["min-peers"], int)
    request_timeout = _coerce("request-timeout", merged["request-timeout"], float)
    poll_interval = _coerce("poll-interval", merged["poll-interval"], float)
    listen_port = _coerce("listen-port", merged["listen-port"], int)

    if max_seconds_behind < 0:
        raise ConfigError("max-seconds-behind must be >= 0")
    if min_peers < 0:
        raise ConfigError("min-peers must be >= 0")
    if request_timeout <= 0:
        raise ConfigError("request-timeout must be positive")
    if poll_interval < 0:
        raise ConfigError("poll-interval must be >= 0")
    if not (0 < listen_port < 65536):
        raise ConfigError("listen-port must be between 1 and 65535")

    log_level = str(merged["log-level"]).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"log-level must be one of {', '.join(LOG_LEVELS)}, got {merged['log-level']!r}"
        )
    log_format = str(merged["log-format"]).strip().lower()
    if log_format not in LOG_FORMATS:
        raise ConfigError(
            f"log-format must be one of {', '.join(LOG_FORMATS)}, got {merged['log-format']!r}"
        )

    return Settings(
        eth_url=validate_eth_url(str(merged["eth-url"])),
        max_seconds_behind=max_seconds_behind,
        min_peers=min_peers,
        request_timeout_sec=request_timeout,
        poll_interval_sec=poll_interval,
        listen_host=str(merged["listen-host"]).strip(),
        listen_port=listen_port,
        log_level=log_level,
        log_format=log_format,
        config_file=str(config_path) if config_path.is_file() else None,
    )
