# middleware/error_handler.py
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError, ConnectionFailure
import logging
import traceback
from typing import Callable
from duroos.errors import NotFoundError

logger = logging.getLogger(__name__)


def error_body(message: str, error: str, path: str) -> dict:
    return {"success": False, "message": message, "error": error, "path": path}


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Turns exceptions that escape the routers into the JSON error envelope.
    Routes that already caught their own errors never get here.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        path = str(request.url.path)
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except NotFoundError as e:
            return JSONResponse(status_code=404, content=error_body(str(e), "Not Found", path))

        except ValueError as e:
            logger.warning(f"Validation error on {request.url}: {str(e)}")
            return JSONResponse(status_code=400, content=error_body(str(e), "Validation Error", path))

        except (ConnectionError, ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Connection error on {request.url}: {str(e)}")
            return JSONResponse(
                status_code=503,
                content=error_body("Database connection error", "Service Unavailable", path),
            )

        except PyMongoError as e:
            logger.error(f"Database error on {request.url}: {str(e)}")
            return JSONResponse(
                status_code=500,
                content=error_body("Database operation failed", "Internal Server Error", path),
            )

        except Exception as e:
            logger.error(f"Unexpected error on {request.url}: {str(e)}")
            logger.error(f"Traceback: {traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content=error_body("An unexpected error occurred", "Internal Server Error", path),
            )
