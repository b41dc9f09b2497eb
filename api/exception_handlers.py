"""Map repository outcomes to HTTP responses with a ``{"detail": ...}`` body."""

import logging

from fastapi import Request, status
from starlette.responses import JSONResponse

from db.exceptions import EntityNotFoundError, ValidationRejectedError

logger = logging.getLogger(__name__)


async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def validation_rejected_handler(request: Request, exc: ValidationRejectedError) -> JSONResponse:
    """A domain rule refused the request; nothing was written."""
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.reason}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.reason})
