"""
FastAPI application bootstrap with: \n
- Lifespan-managed schema creation and notification dispatcher shutdown \n
- CORS configured for the frontend \n
- Workflow error mapping to ``{"success": false, "message": ...}`` \n
- The bimbingan router under ``/api/bimbingan`` \n

Environment contract (from `settings`): \n
- FRONTEND_URL: allowed CORS origin. \n
- UPLOAD_DIR: root directory of stored uploads. \n
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from simta.api.fast_api import router
from simta.api.uploads import discard_upload, upload_dir
from simta.database.config.config import settings
from simta.database.config.connection_engine import connection_engine, metadata
from simta.notifications.dispatcher import get_dispatcher, set_dispatcher
from simta.workflow.errors import WorkflowError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)
"""Module logger."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: create missing tables, ensure the upload directory exists,
      start the notification dispatcher.
    - On shutdown: drain and stop the dispatcher.
    """
    metadata.create_all(connection_engine)
    os.makedirs(upload_dir(), exist_ok=True)
    get_dispatcher()
    logger.info("SIMTA bimbingan service started")

    try:
        yield
    finally:
        dispatcher = set_dispatcher(None)
        if dispatcher is not None:
            dispatcher.shutdown(wait=True)
        logger.info("SIMTA bimbingan service stopped")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(title="SIMTA Bimbingan", lifespan=lifespan)
"""Instantiates the FastAPI application object."""

# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------
# Error mapping
# -----------------------
@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    """
    Translate a `WorkflowError` into its HTTP status and delete any upload the
    workflow rejected.
    """
    for path in exc.cleanup_paths:
        discard_upload(path)
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("%s %s failed with a database error", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Terjadi kesalahan pada server"})


# -----------------------
# API routes
# -----------------------
app.include_router(router)


@app.get("/api/health")
def health():
    return {"success": True, "message": "SIMTA API is running"}
