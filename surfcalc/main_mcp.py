import argparse
import asyncio
import sys

from surfcalc.config import get_settings
from surfcalc.exceptions import ConfigurationError
from surfcalc.logger import Logger, session_logger

logger: Logger = session_logger


def build_parser(default_host: str, default_port: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="surfcalc MCP Server - surface calculus via Model Context Protocol"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=default_host,
        help=f"Host address to bind to (default: {default_host}, or SURFCALC_MCP_HOST env var)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=default_port,
        help=f"Port number to listen on (default: {default_port}, or SURFCALC_MCP_PORT env var)",
    )
    return parser


def main(argv=None) -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error("FATAL: Invalid configuration", error=e.message, details=e.details)
        return 1

    args = build_parser(settings.mcp_host, settings.mcp_port).parse_args(argv)

    from surfcalc.mcp_server.mcp_server import main as serve

    try:
        logger.info("=" * 70)
        logger.info("STARTING SURFCALC MCP SERVER")
        logger.info("=" * 70)
        logger.info(
            "Configuration",
            host=args.host,
            port=args.port,
            transport="HTTP Streamable",
        )
        logger.info(f"MCP endpoint: http://{args.host}:{args.port}/mcp")
        logger.info("=" * 70)
        asyncio.run(serve(host=args.host, port=args.port))
        logger.info("MCP server shutdown complete")
    except KeyboardInterrupt:
        logger.info("Shutdown complete")
    except Exception as e:
        logger.error("Failed to start server", error=str(e), error_type=type(e).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
