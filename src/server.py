"""HTTP server runner for the Orders API.

Configures logging, then serves ``app:app`` with uvicorn. In-flight
requests get ``SHUTDOWN_TIMEOUT`` seconds to finish on SIGINT/SIGTERM.

Usage:
    python src/server.py                    # Bind to SERVER_HOST:SERVER_PORT
    python src/server.py --port 8080        # Override the port
    python src/server.py --reload           # Reload on code changes
"""

import argparse

import uvicorn

from ordering.config import Settings
from ordering.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser(settings):
    parser = argparse.ArgumentParser(description="Orders API server")
    parser.add_argument("--host", default=settings.server_host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.server_port, help="Listen port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    return parser


def main(argv=None):
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    configure_logging(settings)
    logger.info("server_starting", host=args.host, port=args.port, env=settings.env)

    uvicorn.run(
        "app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        timeout_graceful_shutdown=settings.shutdown_timeout,
        log_config=None,
    )


if __name__ == "__main__":
    main()
