# =======================================================================================
# gatekeeper/api/routes/sync.py - Synchronization Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.schemas import EntriesResponse, SyncPushRequest, SyncPushResponse, User
from ...services.sync_service import SyncService
from ...utils.validators import parse_since
from ..dependencies import get_current_user, get_sync_service

router = APIRouter()


@router.post("/sync/push", response_model=SyncPushResponse)
def push_entries(
    request: SyncPushRequest,
    user: User = Depends(get_current_user),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Upload offline entries; each one is accepted or rejected on its own."""
    return sync_service.push(request.entries, user)


@router.get("/sync/pull", response_model=EntriesResponse)
def pull_entries(
    since: Optional[str] = Query(None, description="RFC 3339 timestamp; only newer changes are returned"),
    user: User = Depends(get_current_user),
    sync_service: SyncService = Depends(get_sync_service),
):
    return sync_service.pull(user, since=parse_since(since))
