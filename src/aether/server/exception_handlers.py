from fastapi import FastAPI
from fastapi.responses import JSONResponse

from aether.main.exceptions import EXCEPTION_MAP
from aether.main.logging import get_logger
from aether.main.models import GeneralError

logger = get_logger(__name__)


def add_exception_handlers(app: FastAPI):
    for exception, (status_code, error_message, error_code) in EXCEPTION_MAP.items():

        def handler(
            request,
            exc,
            status_code=status_code,
            error_message=error_message,
            error_code=error_code,
        ):
            message = error_message or exc.message or str(exc)

            if status_code >= 500:
                logger.error(
                    f"{request.method} {request.url.path} failed: {exc}",
                    extra={"error_code": error_code.value, "path": request.url.path},
                )
            elif status_code in (401, 403):
                logger.info(
                    f"Access denied: {request.method} {request.url.path} - {exc}",
                    extra={"error_code": error_code.value, "path": request.url.path},
                )

            # Server-side details stay in the logs
            details = exc.details if status_code < 500 else None

            return JSONResponse(
                status_code=status_code,
                content=GeneralError(
                    message=message, error_code=error_code, details=details or None
                ).model_dump(mode="json"),
            )

        app.add_exception_handler(exception, handler)
