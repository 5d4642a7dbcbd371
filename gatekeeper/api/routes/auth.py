# =======================================================================================
# gatekeeper/api/routes/auth.py - Login and Token Refresh Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import LoginRequest, LoginResponse, RefreshRequest, RefreshResponse
from ...services.auth_service import AuthService
from ..dependencies import get_auth_service

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    return auth_service.login(request.username, request.password)


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: RefreshRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access token."""
    return auth_service.refresh(request.refresh_token)
