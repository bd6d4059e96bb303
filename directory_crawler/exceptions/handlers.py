import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import CrawlConfigError, RenderError

logger = logging.getLogger(__name__)


async def render_error_handler(_request: Request, exc: RenderError) -> JSONResponse:
    logger.error("Render error: %s (url=%s, status=%s)", exc.message, exc.url, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Render error: {exc.message}"},
    )


async def crawl_config_error_handler(_request: Request, exc: CrawlConfigError) -> JSONResponse:
    logger.warning("Invalid crawl configuration: %s", exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message},
    )
