import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.models.schemas.responses import ErrorResponse


class AppException(Exception):
    def __init__(self, status_code: int = 500, message: str = "an internal error just occurred"):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class BadRequestException(AppException):
    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message)


class ExceptionHandler:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle_exception(self, e: Exception, request_id: str) -> JSONResponse:
        if isinstance(e, AppException):
            self.logger.error(f"Application error: {e.message}", extra={"request_id": request_id})
            return JSONResponse(
                status_code=e.status_code,
                content=ErrorResponse(success=False, errorMessage=e.message).model_dump(),
            )
        if isinstance(e, ValueError):
            self.logger.error(f"Value error: {str(e)}", extra={"request_id": request_id})
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=ErrorResponse(
                    success=False, errorMessage=f"validation error: {e}"
                ).model_dump(),
            )
        tb_str = traceback.format_exc()
        self.logger.error(
            f"Internal error - Type: {type(e).__name__}, Message: {str(e)}\nTraceback:\n{tb_str}",
            extra={"request_id": request_id},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                success=False, errorMessage="an internal error just occurred"
            ).model_dump(),
        )


def add_exception_handlers(app: FastAPI, logger: logging.Logger) -> None:
    handler = ExceptionHandler(logger)

    @app.exception_handler(AppException)
    async def _app_exception_handler(request: Request, exc: AppException):
        return handler.handle_exception(exc, request.headers.get("x-github-delivery", ""))

    @app.exception_handler(ValueError)
    async def _value_error_handler(request: Request, exc: ValueError):
        return handler.handle_exception(exc, request.headers.get("x-github-delivery", ""))
