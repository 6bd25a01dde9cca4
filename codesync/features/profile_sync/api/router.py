"""
Admin routes for bulk profile synchronization.

Start returns immediately with a sync id; clients then poll the status
endpoint until the job reaches a terminal state.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from codesync.auth.api_key import require_admin_api_key
from codesync.features.profile_sync.api.schemas import (
    ActiveSyncResponse,
    SyncCancelResponse,
    SyncStartResponse,
    SyncStatusResponse,
)
from codesync.features.profile_sync.domain.errors import (
    SyncJobAlreadyRunningError,
    SyncJobAlreadyTerminalError,
    SyncJobNotFoundError,
)
from codesync.features.profile_sync.services.controller import SyncJobController
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Terminal snapshots never change again
TERMINAL_CACHE_CONTROL = "private, max-age=3600"

router = APIRouter(
    prefix="/admin/sync",
    tags=["Profile Sync"],
    dependencies=[Depends(require_admin_api_key)],
)


def get_sync_controller(request: Request) -> SyncJobController:
    controller = getattr(request.app.state, "sync_controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile sync engine is not available",
        )
    return controller


@router.post(
    "/start",
    response_model=SyncStartResponse,
    summary="Start a profile sync",
)
async def start_sync(controller: SyncJobController = Depends(get_sync_controller)):
    try:
        sync_id = await controller.start(trigger="manual")
    except SyncJobAlreadyRunningError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(e), "activeSyncId": e.active_sync_id},
        ) from e

    return SyncStartResponse(
        success=True, sync_id=sync_id, message="Profile synchronization started"
    )


@router.get(
    "/status/{sync_id}",
    response_model=SyncStatusResponse,
    summary="Get the status of a profile sync",
)
async def get_sync_status(
    sync_id: str,
    response: Response,
    controller: SyncJobController = Depends(get_sync_controller),
):
    try:
        snapshot = await controller.get_status(sync_id)
    except SyncJobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    if snapshot.is_terminal:
        response.headers["Cache-Control"] = TERMINAL_CACHE_CONTROL

    return SyncStatusResponse.from_snapshot(snapshot)


@router.post(
    "/cancel/{sync_id}",
    response_model=SyncCancelResponse,
    summary="Request cancellation of a profile sync",
)
async def cancel_sync(
    sync_id: str,
    controller: SyncJobController = Depends(get_sync_controller),
):
    try:
        newly_requested = await controller.cancel(sync_id)
    except SyncJobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except SyncJobAlreadyTerminalError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    message = (
        "Cancellation requested"
        if newly_requested
        else "Cancellation already requested"
    )
    return SyncCancelResponse(success=True, message=message, cancelled=True)


@router.get("/active", response_model=ActiveSyncResponse, summary="Get the running sync, if any")
async def get_active_sync(controller: SyncJobController = Depends(get_sync_controller)):
    snapshot = await controller.active_job()
    if snapshot is None:
        return ActiveSyncResponse(active=False)
    return ActiveSyncResponse(active=True, sync_id=snapshot.id)
