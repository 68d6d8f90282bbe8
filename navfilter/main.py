"""Entry point for the navigation filtering proxy."""

import argparse
from typing import List, Optional

from navfilter.config import FilterConfig
from navfilter.errors import NavFilterError
from navfilter.logger import FilterLogger
from navfilter.navigation import build_navigation_filter
from navfilter.server import ProxyServer
from navfilter.settings_store import JsonFileSettingsStore


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by the proxy and the dashboard."""
    parser.add_argument(
        "--store-path",
        default="config/settings.json",
        help="Path to the JSON settings store holding the lists",
    )
    parser.add_argument(
        "--block-page-url",
        default=None,
        help="Interstitial page blocked navigations are sent to",
    )
    parser.add_argument(
        "--classifier-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the classifier (default: 8)",
    )
    parser.add_argument("--model", default=None, help="Zero-shot classification model")
    parser.add_argument(
        "--access-log",
        default="logs/access.log",
        help="Path to access log file",
    )
    parser.add_argument(
        "--error-log",
        default="logs/error.log",
        help="Path to error log file",
    )


def build_config(args: argparse.Namespace) -> FilterConfig:
    return FilterConfig.from_env(
        block_page_url=args.block_page_url,
        classifier_timeout=args.classifier_timeout,
        classifier_model=args.model,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="HTTP proxy with allow-list, blocklist and AI navigation filtering"
    )
    parser.add_argument(
        "--host", default="0.0.0.0", help="IP address to listen on (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port", type=int, default=8080, help="Port to listen on (default: 8080)"
    )
    add_common_arguments(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logger = FilterLogger(args.access_log, args.error_log)
    try:
        config = build_config(args)
    except NavFilterError as exc:
        raise SystemExit(f"Invalid configuration: {exc.message}")
    if not config.api_key:
        logger.warning("No classifier API key set; unlisted sites will be allowed")
    navigation_filter = build_navigation_filter(
        config, JsonFileSettingsStore(args.store_path), logger
    )
    server = ProxyServer(
        host=args.host,
        port=args.port,
        navigation_filter=navigation_filter,
        logger=logger,
    )
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
