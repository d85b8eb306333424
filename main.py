#!/usr/bin/env python3
"""
Single entry point for the Rentify backend
Combines the property site API and the lead-qualification webhooks into one FastAPI application
"""

import logging
import os
import time
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

import config
from config import Config
from errors import ApiError, NotFoundError, server_error_body
from routers import (
    analytics_api,
    applications_api,
    auth_api,
    config_api,
    leads_api,
    messages_api,
    properties_api,
    upload_api,
    viewings_api,
    webhook_api,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

START_TIME = time.time()

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    429: "TOO_MANY_REQUESTS",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response


# Create FastAPI app
app = FastAPI(
    title="Rentify Backend",
    description="Property rental site API with SMS, WhatsApp and voice lead qualification",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=Config.SESSION_SECRET,
    max_age=Config.SESSION_MAX_AGE,
    https_only=config.IS_PRODUCTION,
)
if config.LOG_REQUESTS:
    app.add_middleware(RequestLoggingMiddleware)


# ---------------------------
# Error handlers
# ---------------------------
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err['loc'][1:]) or err['loc'][0]}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "code": "VALIDATION_ERROR", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Endpoint not found", "code": "NOT_FOUND"},
        )
    default_code = "INTERNAL_ERROR" if exc.status_code >= 500 else "BAD_REQUEST"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": str(exc.detail),
            "code": HTTP_ERROR_CODES.get(exc.status_code, default_code),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=server_error_body(exc, show_details=config.IS_DEVELOPMENT))


# ---------------------------
# Health
# ---------------------------
@app.get("/")
async def root():
    return {
        "message": "Rentify Backend is running",
        "services": [
            "Properties API",
            "Messages API",
            "Applications API",
            "Admin Auth",
            "Lead Webhooks (SMS, WhatsApp, Voice)",
            "Analytics API",
            "Leads API",
            "Viewings API",
            "Agent Configuration API",
        ],
    }


@app.get("/health")
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "uptime": round(time.time() - START_TIME, 2),
    }


# Register all routers
app.include_router(auth_api.router)
app.include_router(properties_api.router)
app.include_router(upload_api.router)
app.include_router(messages_api.router)
app.include_router(applications_api.router)
app.include_router(webhook_api.router)
app.include_router(analytics_api.router)
app.include_router(leads_api.router)
app.include_router(viewings_api.router)
app.include_router(config_api.router)


# Uploaded images and documents
@app.get("/uploads/{file_path:path}", include_in_schema=False)
async def serve_upload(file_path: str):
    root = os.path.realpath(config.UPLOAD_DIR)
    path = os.path.realpath(os.path.join(root, file_path))
    if not path.startswith(root + os.sep) or not os.path.isfile(path):
        raise NotFoundError("File not found")
    return FileResponse(path)


if __name__ == "__main__":
    logger.info(f"🚀 Starting Rentify backend on {config.BACKEND_HOST}:{config.PORT} ({config.ENVIRONMENT})")
    uvicorn.run(
        "main:app",
        host=config.BACKEND_HOST,
        port=config.PORT,
        reload=config.IS_DEVELOPMENT,
        proxy_headers=True,
        forwarded_allow_ips=config.FORWARDED_ALLOW_IPS,
    )
