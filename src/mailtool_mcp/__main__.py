"""Process entrypoint: load config, serve on stdio until interrupted."""

from __future__ import annotations

import asyncio
import logging
import sys

from contracts import ConfigurationError
from src.mailtool_mcp.config import load_config
from src.mailtool_mcp.server import create_server

logger = logging.getLogger("mailtool-mcp")


def main() -> int:
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Refusing to start: {e}")
        return 1

    server = create_server(config)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
