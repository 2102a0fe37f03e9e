"""HTTP entry point for the documentation MCP server.

Serves the FastMCP SSE transport plus JSON health routes through Uvicorn.
"""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
import uvicorn

from tokdocs.__about__ import __version__
from tokdocs.mcp.tools import mcp
from tokdocs.shared.config import get_config
from tokdocs.shared.utils.logger import configure_root_logger, set_log_level, setup_logger

logger = setup_logger(__name__)

DEFAULT_HOST = "0.0.0.0"  # nosec B104
DEFAULT_PORT = 8080


async def health_check(_request: Request) -> JSONResponse:
    """Return service health."""
    return JSONResponse({"status": "healthy", "service": "tokdocs-mcp", "version": __version__})


def create_app():
    """Build the SSE app with ``/health`` and ``/`` routes added."""
    sse_app = mcp.sse_app()
    sse_app.routes.append(Route("/health", endpoint=health_check))
    sse_app.routes.append(Route("/", endpoint=health_check))
    return sse_app


def main(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Run the MCP server over SSE until the process is stopped."""
    level = set_log_level(get_config().get("log_level"))
    configure_root_logger(level)
    logger.info("Starting TikTok docs MCP server (SSE)")
    app = create_app()

    logger.info("Starting Uvicorn server on port %d", port)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=logging.getLevelName(level).lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
