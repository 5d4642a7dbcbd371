# =======================================================================================
# gatekeeper/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..models.enums import Role
from ..models.schemas import User
from ..services import AccessControlService, AuthService, ExportService, SyncService, UserService
from ..utils.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service

def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service

def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service

def get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer token to the user's current record; 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authorization header required")
    return auth_service.resolve_user(credentials.credentials)


def require_roles(*roles: Role):
    """Dependency factory that lets only the given roles through (403 otherwise)."""
    def dependency(user: User = Depends(get_current_user)) -> User:
        AccessControlService.require_role(user, *roles)
        return user
    return dependency
