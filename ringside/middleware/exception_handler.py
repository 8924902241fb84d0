"""Exception handler for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import RingsideException

logger = logging.getLogger(__name__)


async def ringside_exception_handler(request: Request, exc: RingsideException) -> JSONResponse:
    """
    Convert a RingsideException into its JSON body and HTTP status.

    Client errors (4xx) are logged at INFO; anything else at ERROR.
    """
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"RingsideException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
