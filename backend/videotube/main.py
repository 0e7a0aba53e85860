"""FastAPI application entrypoint for the VideoTube backend.

Sets up the application, middleware, error handlers and routes and provides
a lifespan context manager that initializes the database on startup and
disposes the engine on shutdown.
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from api.routes.users import router as users_router
from config.config import settings
from core.errors import ApiError, InternalError, ValidationError
from core.logging import logger
from db.session import engine, initialize_database
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context to run startup and shutdown routines.

    On startup this creates the metadata tables, retrying a few times if the
    database isn't ready yet.

    Yields:
        None: Control is returned to FastAPI while the app is running.
    """

    logger.info("Starting up")

    max_retries = 5
    for attempt in range(max_retries):
        try:
            await initialize_database()
            break
        except Exception as e:
            # NOTE: the database container may come up after the API.
            if attempt < max_retries - 1:
                logger.warning(
                    "Database connection attempt {} failed: {}. Retrying..",
                    attempt + 1,
                    e,
                )
                await asyncio.sleep(2)
            else:
                logger.exception(
                    "Failed to create database tables after {} attempts", max_retries
                )
                raise

    yield

    logger.info("Shutting down")
    await engine.dispose()


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError("Invalid request", errors=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routes."""
    app = FastAPI(title="VideoTube API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    async def root():
        """Return a simple health check / landing response."""
        return JSONResponse({"message": "VideoTube Backend"})

    app.include_router(users_router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
