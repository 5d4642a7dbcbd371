# =======================================================================================
# gatekeeper/services/__init__.py - Services Package
# =======================================================================================
from .access_control import AccessControlService
from .auth_service import AuthService
from .credentials import CredentialVerifier
from .export_service import ExportService
from .sync_service import SyncService
from .token_service import TokenService
from .user_service import UserService

__all__ = [
    "AccessControlService", "AuthService", "CredentialVerifier", "ExportService",
    "SyncService", "TokenService", "UserService",
]
