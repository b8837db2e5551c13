import argparse
import logging

from aiohttp import web

import config
from server import create_app, SERVER_OPTIONS

# Global logger setup for the application
logger = logging.getLogger()  # Get root logger


def setup_logging():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(config.LOG_FILE, mode='a'),
        ]
    )
    logger.info(f"Logging setup complete. Log file: {config.LOG_FILE}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fire N concurrent copies of an HTTP request at a target.")
    parser.add_argument("--host", default=config.SERVER_HOST, help="Interface to listen on")
    parser.add_argument("--port", type=int, default=config.SERVER_PORT, help="Port to listen on")
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.REQUEST_TIMEOUT_SECONDS,
        help="Per outbound request timeout in seconds",
    )
    parser.add_argument(
        "--max-count",
        type=int,
        default=config.MAX_FIRE_COUNT,
        help=f"Largest {config.COUNT_HEADER} accepted",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging()
    app = create_app(timeout_seconds=args.timeout, max_fire_count=args.max_count)
    logger.info(f"Server starting on {args.host}:{args.port}, route {config.FIRE_ROUTE}")
    web.run_app(app, host=args.host, port=args.port, print=None, **SERVER_OPTIONS)
    logger.info("Server stopped.")


if __name__ == "__main__":
    main()
