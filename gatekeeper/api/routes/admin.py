# =======================================================================================
# gatekeeper/api/routes/admin.py - User and Checkpoint Administration Endpoints
# =======================================================================================
from typing import List
from fastapi import APIRouter, Depends, status
from ...models.enums import Role
from ...models.schemas import (
    Checkpoint,
    CreateCheckpointRequest,
    CreateUserRequest,
    DeleteUserRequest,
    MessageResponse,
    UpdateUserRequest,
    User,
)
from ...services.user_service import UserService
from ..dependencies import get_user_service, require_roles

router = APIRouter(prefix="/admin")
admin_only = require_roles(Role.ADMIN)


# ---- users ----

@router.get("/users", response_model=List[User])
def list_users(
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    return user_service.list_users(admin)


@router.post("/users/create", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    return user_service.create_user(admin, request)


@router.put("/users/update", response_model=User)
def update_user(
    request: UpdateUserRequest,
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    return user_service.update_user(admin, request)


@router.delete("/users/delete", response_model=MessageResponse)
def delete_user(
    request: DeleteUserRequest,
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    user_service.delete_user(admin, request.user_id)
    return MessageResponse(message="User deleted successfully")


# ---- checkpoints ----

@router.get("/checkpoints", response_model=List[Checkpoint])
def list_checkpoints(
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    return user_service.list_checkpoints(admin)


@router.post("/checkpoints/create", response_model=Checkpoint, status_code=status.HTTP_201_CREATED)
def create_checkpoint(
    request: CreateCheckpointRequest,
    admin: User = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
):
    return user_service.create_checkpoint(admin, request)
