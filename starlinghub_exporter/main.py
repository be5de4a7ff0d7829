# ABOUTME: Main entry point for the Starling Hub Prometheus exporter
# ABOUTME: Parses flags, builds config and collector, and runs the aiohttp server
import argparse
import sys
from typing import Optional

from aiohttp import web

from starlinghub_exporter import __version__
from starlinghub_exporter.collector import StarlingHubCollector
from starlinghub_exporter.config import AppConfig, ConfigInvalid, build_config, parse_listen_address
from starlinghub_exporter.exporter import create_app
from starlinghub_exporter.logger import get_logger


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line flags. Unset flags are None so lower-precedence sources apply."""
    parser = argparse.ArgumentParser(
        prog='starlinghub-exporter',
        description='Starling Hub Prometheus Exporter'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=__version__,
        help='Print version information and exit'
    )
    parser.add_argument(
        '--web.listen-address',
        dest='listen_address',
        help='Address to listen on for telemetry (default: :9112)'
    )
    parser.add_argument(
        '--web.telemetry-path',
        dest='telemetry_path',
        help='Path under which to expose metrics (default: /metrics)'
    )
    parser.add_argument(
        '--key',
        help='Starling Hub API key (env: STARLINGHUB_KEY)'
    )
    parser.add_argument(
        '--url',
        help='Starling Hub API url, e.g. http://hub.local:3080/api/connect/v1 (env: STARLINGHUB_URL)'
    )
    parser.add_argument(
        '--config',
        help='Path to optional YAML config file'
    )
    parser.add_argument(
        '--upstream.timeout',
        dest='timeout_seconds',
        type=float,
        help='Timeout in seconds for each Starling Hub request (default: 10)'
    )
    parser.add_argument(
        '--log.level',
        dest='log_level',
        help='Log level (default: INFO)'
    )
    parser.add_argument(
        '--log.file',
        dest='log_file',
        help='Write logs to a daily rotated file instead of stderr'
    )

    return parser.parse_args(argv)


def load(args: argparse.Namespace) -> AppConfig:
    cli_values = {
        'url': args.url,
        'key': args.key,
        'listen_address': args.listen_address,
        'telemetry_path': args.telemetry_path,
        'timeout_seconds': args.timeout_seconds,
        'log_level': args.log_level,
        'log_file': args.log_file,
    }
    return build_config(cli_values, config_path=args.config)


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point. Parses CLI arguments, builds the collector, and starts the server.

    Exits 1 on invalid configuration or when the listener cannot be started.
    """
    args = parse_args(argv)

    try:
        config = load(args)
    except ConfigInvalid as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    logger = get_logger(config)

    try:
        collector = StarlingHubCollector(
            config.url,
            config.key,
            logger=logger,
            timeout_seconds=config.timeout_seconds
        )
    except ConfigInvalid as e:
        logger.error(f"can't create exporter: {e}")
        sys.exit(1)

    app = create_app(config, collector)
    host, port = parse_listen_address(config.listen_address)

    logger.info(f"Starting Starling Hub exporter {__version__}")
    logger.info(f"Listening on {config.listen_address}")
    logger.info(f"Serving metrics at path: {config.telemetry_path}")

    try:
        web.run_app(
            app,
            host=host,
            port=port,
            handler_cancellation=True,
            print=None
        )
    except OSError as e:
        logger.error(f"Listener failed on {config.listen_address}: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
