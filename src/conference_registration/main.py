#!/usr/bin/env python3
"""Conference Registration API server"""

import logging
import traceback

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from conference_registration.config import config
from conference_registration.errors import RegistrationError, StoreUnavailable, Unknown
from conference_registration.logging_config import setup_logging
from conference_registration.routers.admin import router as admin_router
from conference_registration.routers.health import health
from conference_registration.routers.registration import router as registration_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Conference Registration",
    description="Conference registration API - accepts registrations with payment receipt and abstract uploads",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config["allowed_origins"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(health)
app.include_router(registration_router)
app.include_router(admin_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "API is running"


@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError):
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {exc.status_code} "
        f"{type(exc).__name__}: {exc.message}",
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(OperationalError)
async def database_error_handler(request: Request, exc: OperationalError):
    logger.error(f"{request.method} {request.url.path} -> database unavailable: {exc}")
    error = StoreUnavailable("Database not ready")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        content = {"success": False, "message": "Route not found"}
    elif isinstance(exc.detail, str):
        content = {"success": False, "message": exc.detail}
    else:
        content = {"success": False, "detail": exc.detail}
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    content = Unknown().to_dict()
    if config["environment"] != "production":
        content["error"] = str(exc)
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=500, content=content)


def run():
    port = config["port"]
    logger.info(f"Starting Conference Registration API on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            log_level=config["log_level"].lower(),
            log_config=None,
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise


if __name__ == "__main__":
    run()
