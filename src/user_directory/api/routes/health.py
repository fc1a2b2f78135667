"""
Health check API route
"""

from datetime import datetime
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
async def health_check(request: Request):
    """Health check - reports configuration and directory load state, never calls the remote API"""
    service = request.app.state.reconciliation_service
    state = request.app.state.directory

    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "user_api": service.gateway.collection_url,
        "snapshot": str(service.store.path),
        "directory": {
            "loaded": state.loaded,
            "loading": state.loading,
            "users": len(state.users),
            "notice": state.notice
        }
    }
