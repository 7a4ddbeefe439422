"""codecoach JSON-lines server entry point.

Usage: python -m codecoach.server

Reads JSON requests from stdin (one per line), writes JSON responses to stdout.
All logging goes to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from codecoach.config.settings import Settings, configure_logging

from .handler import ServerHandler
from .protocol import Notification, ProtocolError, Request, Response

logger = logging.getLogger("codecoach.server")


async def handle_line(handler: ServerHandler, line_str: str) -> Response:
    """Answer one request line; any failure becomes an error response."""
    try:
        request = Request.from_line(line_str)
    except ProtocolError as e:
        return Response(id=0, error=str(e))

    try:
        result = await handler.dispatch({"method": request.method, "params": request.params})
        return Response(id=request.id, result=result)
    except ValueError as e:
        logger.warning("%s failed: %s", request.method, e)
        return Response(id=request.id, error=str(e))
    except Exception as e:
        logger.exception("%s raised unexpectedly", request.method)
        return Response(id=request.id, error=str(e))


async def serve(settings: Optional[Settings] = None) -> None:
    loop = asyncio.get_running_loop()

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_notification(notification: Notification) -> None:
        write_line(notification.to_json_line())

    handler = ServerHandler(settings=settings, write_notification=write_notification)
    logger.info("ready")

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while True:
        line = await reader.readline()
        if not line:
            break  # stdin closed

        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str:
            continue

        resp = await handle_line(handler, line_str)
        write_line(resp.to_json_line())


def main() -> None:
    settings = Settings.load()
    configure_logging(settings.log_level)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
