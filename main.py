from dotenv import load_dotenv
import argparse
import logging
import os
import sys

# Load environment variables from .env file
load_dotenv()

from telnetexp import __version__
from telnetexp.app import create_app, setup_logging
from telnetexp.errors import LoadError
from telnetexp.models.config import load_config

logger = logging.getLogger("telnetexp")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="telnet-exporter",
        description="Scrape any metric from remote systems via Telnet"
    )
    parser.add_argument("-l", "--listen-address",
                        default=os.getenv("LISTEN_ADDRESS", "[::]:9342"),
                        help="Address to listen on (env: LISTEN_ADDRESS)")
    parser.add_argument("--metrics-path",
                        default=os.getenv("METRICS_PATH", "/metrics"),
                        help="Path under which to expose metrics (env: METRICS_PATH)")
    parser.add_argument("-c", "--config-file",
                        default=os.getenv("CONFIG_FILE", "telnet-exporter.yml"),
                        help="Configuration file (env: CONFIG_FILE)")
    parser.add_argument("--log-level",
                        default=os.getenv("LOG_LEVEL", "info"),
                        help="Log level (env: LOG_LEVEL)")
    return parser.parse_args(argv)


def split_listen_address(address: str):
    """'[::]:9342', '0.0.0.0:9342', ':9342' → (host, port)"""
    host, _, port = address.rpartition(":")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level, os.getenv("LOG_FORMAT", "console"))

    try:
        config = load_config(args.config_file)
    except LoadError as e:
        logger.error(f"Could not load configuration: {e}")
        sys.exit(1)

    host, port = split_listen_address(args.listen_address)
    logger.info(
        f"Starting telnet-exporter {__version__} "
        f"(config-file={args.config_file}, metrics-path={args.metrics_path}, address={args.listen_address})"
    )

    app = create_app(config, metrics_path=args.metrics_path)

    import uvicorn
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="warning",  # HTTP 요청 로그 숨기기
        access_log=False
    )


if __name__ == "__main__":
    main()
