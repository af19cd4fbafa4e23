"""
Main entrypoint: resolve settings, configure logging, serve /ready with uvicorn.

Config precedence: flags > env (and .env) > config.yaml > defaults. Examples:

    python main.py --eth-url http://geth:8545 --max-seconds-behind 30 --min-peers 5
    ETH_URL=http://reth:8545 POLL_INTERVAL=10 python main.py

Exits with status 2 on invalid configuration. If the listening port cannot be
bound, uvicorn reports it and exits with status 1. Node failures never stop
the process; they only turn /ready into 503.
"""

import sys

from node_medic.core.exceptions import ConfigError
from node_medic.medic_logging import bind_endpoint, configure_structlog, get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the probe server in the main thread."""
    from node_medic.config.settings import load_settings

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(2)

    configure_structlog(settings.log_level, settings.log_format)
    log = bind_endpoint("main", settings.eth_url)
    log.info(
        "main_settings_loaded",
        config_file=settings.config_file,
        max_seconds_behind=settings.max_seconds_behind,
        min_peers=settings.min_peers,
        request_timeout_sec=settings.request_timeout_sec,
        poll_interval_sec=settings.poll_interval_sec,
    )

    from node_medic.api_server.server import create_app
    import uvicorn

    app = create_app(settings)
    log.info("main_server_starting", host=settings.listen_host, port=settings.listen_port)
    # uvicorn logs a failed bind and exits with status 1 itself
    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
