"""
User Directory API Server
Core functionality: user CRUD over a non-persistent demo API, reconciled with a local snapshot
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from user_directory.api.routes import health, users
from user_directory.config.settings import ALLOWED_ORIGINS
from user_directory.models.directory import DirectoryState
from user_directory.services.reconciliation_service import ReconciliationService, get_reconciliation_service
from user_directory.utils.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: initial reconciliation on startup"""
    result = await users.reconcile(app.state.directory, app.state.reconciliation_service)
    if result.success:
        logger.info(f"Directory loaded with {result.count} users")
    else:
        logger.warning(f"Initial load failed: {result.error}")
    yield
    logger.info("Directory shut down")


def create_app(service: Optional[ReconciliationService] = None) -> FastAPI:
    """Build the FastAPI application around a reconciliation service"""
    app = FastAPI(
        title="User Directory",
        description="User directory API reconciling a demo REST backend with a local snapshot",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.directory = DirectoryState()
    app.state.reconciliation_service = service or get_reconciliation_service()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    setup_error_handling(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])

    return app
