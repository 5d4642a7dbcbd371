# =======================================================================================
# gatekeeper/api/routes/supervisor.py - Supervisor Review, Export and Password Reset
# =======================================================================================
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from ...models.enums import Role
from ...models.schemas import EntriesResponse, MessageResponse, ResetPasswordRequest, User
from ...services.export_service import ExportService
from ...services.sync_service import SyncService
from ...services.user_service import UserService
from ..dependencies import get_export_service, get_sync_service, get_user_service, require_roles

router = APIRouter(prefix="/supervisor")
supervisor_or_admin = require_roles(Role.SUPERVISOR, Role.ADMIN)
audit = logging.getLogger("gatekeeper.audit")


@router.get("/entries", response_model=EntriesResponse)
def list_entries(
    user: User = Depends(supervisor_or_admin),
    sync_service: SyncService = Depends(get_sync_service),
):
    """Entries the caller may review: all for Admin, managed operators' for Supervisors."""
    entries = sync_service.list_visible(user)
    return EntriesResponse(entries=entries, count=len(entries))


@router.get("/export")
def export_entries(
    user: User = Depends(supervisor_or_admin),
    sync_service: SyncService = Depends(get_sync_service),
    export_service: ExportService = Depends(get_export_service),
):
    entries = sync_service.list_visible(user)
    filename = export_service.export_filename()
    audit.info("CSV export by %s: %d entries", user.username, len(entries))
    return Response(
        content=export_service.entries_to_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    request: ResetPasswordRequest,
    user: User = Depends(supervisor_or_admin),
    user_service: UserService = Depends(get_user_service),
):
    user_service.reset_password(user, request.user_id, request.new_password)
    return MessageResponse(message="Password reset successfully")
