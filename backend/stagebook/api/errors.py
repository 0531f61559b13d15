"""
Maps engine errors to HTTP responses.

Body shape: {"error": {"code": ..., "message": ..., "details": {...}}}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stagebook.core.exceptions import SchedulingError, StorageFailure
from stagebook.core.logging import get_logger

logger = get_logger(__name__)


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    if isinstance(exc, StorageFailure):
        logger.error("request_storage_failure", code=exc.code, details=exc.details)
    else:
        logger.info("request_rejected", code=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
