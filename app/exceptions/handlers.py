import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import ContentGenerationError, InvalidUrlError

logger = logging.getLogger(__name__)


async def invalid_url_error_handler(_request: Request, exc: InvalidUrlError) -> JSONResponse:
    logger.info("Rejected URL: %s", exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message},
    )


async def content_generation_error_handler(_request: Request, exc: ContentGenerationError) -> JSONResponse:
    logger.error("Content generation error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Content generation error: {exc.message}"},
    )
