"""
User directory API routes - the view/controller shell over the reconciliation service.

The shell owns the DirectoryState (collection plus loading/error/notice flags).
Every surfaced error is kept on the state as a dismissible message.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from user_directory.models.directory import DirectoryState
from user_directory.models.user import UserCreateRequest, UserListResponse, UserUpdateRequest
from user_directory.services.base_service import ServiceResult
from user_directory.services.reconciliation_service import ReconciliationService
from user_directory.utils.validation import validate_user_form

router = APIRouter()
logger = logging.getLogger(__name__)

STATUS_BY_ERROR_TYPE = {
    "NOT_FOUND": 404,
    "REMOTE_FAILURE": 502,
    "LOAD_FAILED": 503,
}


def get_directory_state(request: Request) -> DirectoryState:
    return request.app.state.directory


def get_service(request: Request) -> ReconciliationService:
    return request.app.state.reconciliation_service


def _render(state: DirectoryState) -> UserListResponse:
    return UserListResponse(
        users=[user.to_payload() for user in state.users],
        count=len(state.users),
        loading=state.loading,
        error=state.error,
        notice=state.notice
    )


def _raise_for_result(state: DirectoryState, result: ServiceResult):
    """Record a failed result on the state and turn it into an HTTP error"""
    if result.success:
        return
    state.error = result.error
    raise HTTPException(status_code=STATUS_BY_ERROR_TYPE.get(result.error_type, 500), detail=result.error)


async def reconcile(state: DirectoryState, service: ReconciliationService) -> ServiceResult:
    """Run a full reconciliation and replace the in-memory collection with its result"""
    state.loading = True
    state.error = None
    try:
        result = await service.load_all()
    finally:
        state.loading = False

    state.users[:] = result.data or []
    state.loaded = result.success
    state.notice = result.notice
    if not result.success:
        state.error = result.error
    return result


async def _ensure_loaded(state: DirectoryState, service: ReconciliationService):
    if not state.loaded:
        _raise_for_result(state, await reconcile(state, service))


@router.get("", response_model=UserListResponse)
async def list_users(
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
):
    """List users, reconciling on first use"""
    await _ensure_loaded(state, service)
    return _render(state)


@router.post("/reload", response_model=UserListResponse)
async def reload_users(
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
):
    """Re-run reconciliation against the remote API"""
    _raise_for_result(state, await reconcile(state, service))
    return _render(state)


@router.delete("/messages", response_model=UserListResponse)
async def dismiss_messages(state: DirectoryState = Depends(get_directory_state)):
    """Dismiss the current error and notice"""
    state.dismiss_messages()
    return _render(state)


@router.delete("/snapshot")
async def clear_snapshot(
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
):
    """Forget local edits: drop the snapshot and the in-memory collection"""
    if not await service.store.clear():
        raise HTTPException(status_code=500, detail="Failed to clear snapshot")
    state.reset()
    logger.info("Snapshot cleared")
    return {"cleared": True}


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
) -> Dict[str, Any]:
    """Get user details"""
    result = await service.get(state.users, user_id)
    _raise_for_result(state, result)
    return result.data[0].to_payload()


@router.post("", status_code=201)
async def create_user(
    request: UserCreateRequest,
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
) -> Dict[str, Any]:
    """Create a new user"""
    validate_user_form(request)
    await _ensure_loaded(state, service)

    result = await service.create(state.users, request)
    _raise_for_result(state, result)
    state.notice = result.notice
    return result.data[0].to_payload()


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
) -> Dict[str, Any]:
    """Update user details"""
    validate_user_form(request)
    await _ensure_loaded(state, service)

    result = await service.update(state.users, user_id, request)
    _raise_for_result(state, result)
    state.notice = result.notice
    return result.data[0].to_payload()


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    state: DirectoryState = Depends(get_directory_state),
    service: ReconciliationService = Depends(get_service)
):
    """Delete a user; the collection is untouched when the remote delete fails"""
    await _ensure_loaded(state, service)

    result = await service.delete(state.users, user_id)
    _raise_for_result(state, result)
    return {"deleted": user_id, "count": len(state.users)}
