# =======================================================================================
# gatekeeper/services/user_service.py - User and Checkpoint Management Service
# =======================================================================================
import logging
import uuid
from typing import List
from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import Role
from ..models.schemas import (
    Checkpoint,
    CreateCheckpointRequest,
    CreateUserRequest,
    UpdateUserRequest,
    User,
)
from ..store import DirectoryStore
from ..utils.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from .access_control import AccessControlService
from .credentials import CredentialVerifier

logger = logging.getLogger(__name__)
audit = logging.getLogger("gatekeeper.audit")


class UserService:
    """Handles administrative user/checkpoint operations and password resets."""

    def __init__(self, store: DirectoryStore, access: AccessControlService, credentials: CredentialVerifier):
        self.store = store
        self.access = access
        self.credentials = credentials

    # ----------------- helpers -----------------
    def _get_user_or_404(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _validate_checkpoints(self, checkpoint_ids: List[str]) -> None:
        unknown = [cid for cid in checkpoint_ids if self.store.get_checkpoint(cid) is None]
        if unknown:
            raise ValidationError(f"Unknown checkpoint(s): {', '.join(unknown)}")

    @staticmethod
    def _new_user_id() -> str:
        return f"user-{uuid.uuid4().hex[:12]}"

    # ----------------- users -----------------
    def list_users(self, requester: User) -> List[User]:
        self.access.require_admin(requester)
        return self.store.list_users()

    def create_user(self, requester: User, request: CreateUserRequest) -> User:
        """Create an account, store its password digest and link it to its supervisor."""
        self.access.require_admin(requester)
        self.credentials.validate_password_strength(request.password)
        self._validate_checkpoints(request.allowed_checkpoints)
        self.access.validate_supervisor_link(request.role, request.supervisor_id)

        if self.store.get_user_by_username(request.username) is not None:
            raise ConflictError("Username already exists")

        digest = self.credentials.hash_password(request.password)
        user = self.store.create_user(
            User(
                user_id=self._new_user_id(),
                username=request.username,
                role=request.role,
                allowed_checkpoints=request.allowed_checkpoints,
                supervisor_id=request.supervisor_id,
            )
        )

        try:
            self.store.store_password_hash(user.user_id, digest)
        except SQLAlchemyError as e:
            # No account without a credential record.
            logger.error("Failed to store credentials for %s: %s", user.username, e)
            self.store.delete_user(user.user_id)
            raise InternalError("Failed to store user credentials") from e

        self.access.reconcile_relationships(None, user)
        audit.info("User created by %s: %s (role: %s)", requester.username, user.username, user.role.value)
        return self.store.get_user(user.user_id) or user

    def update_user(self, requester: User, request: UpdateUserRequest) -> User:
        """Change role, checkpoint allowlist or supervisor; omitted fields stay as they are."""
        self.access.require_admin(requester)
        target = self._get_user_or_404(request.user_id)
        provided = request.model_fields_set

        role = request.role if request.role is not None else target.role

        allowed = target.allowed_checkpoints
        if request.allowed_checkpoints is not None:
            self._validate_checkpoints(request.allowed_checkpoints)
            allowed = request.allowed_checkpoints

        if "supervisor_id" in provided:
            supervisor_id = request.supervisor_id
            self.access.validate_supervisor_link(role, supervisor_id, target.user_id)
        elif role == Role.GATE_OPERATOR:
            supervisor_id = target.supervisor_id
        else:
            supervisor_id = None

        updated = self.store.update_user(
            target.model_copy(
                update={"role": role, "allowed_checkpoints": allowed, "supervisor_id": supervisor_id}
            )
        )
        self.access.reconcile_relationships(target, updated)
        audit.info("User updated by %s: %s", requester.username, updated.username)
        return self.store.get_user(updated.user_id) or updated

    def delete_user(self, requester: User, user_id: str) -> None:
        """Remove an account, its credential record and any links pointing at it."""
        self.access.require_admin(requester)
        self.access.ensure_not_self_delete(requester, user_id)
        target = self._get_user_or_404(user_id)

        if not self.store.delete_user(user_id):
            raise NotFoundError("User not found")

        self.access.reconcile_relationships(target, None)
        try:
            self.store.delete_password_hash(user_id)
        except SQLAlchemyError as e:
            logger.warning("Failed to remove credential record for %s: %s", user_id, e)
        audit.info("User deleted by %s: %s", requester.username, target.username)

    # ----------------- passwords -----------------
    def reset_password(self, requester: User, user_id: str, new_password: str) -> None:
        """Strength is checked before anything is read or written."""
        self.access.require_role(requester, Role.ADMIN, Role.SUPERVISOR)
        self.credentials.validate_password_strength(new_password)

        target = self._get_user_or_404(user_id)
        self.access.authorize_password_reset(requester, target)

        self.store.store_password_hash(target.user_id, self.credentials.hash_password(new_password))
        audit.info("Password reset by %s for user: %s", requester.username, target.username)

    # ----------------- checkpoints -----------------
    def list_checkpoints(self, requester: User) -> List[Checkpoint]:
        self.access.require_admin(requester)
        return self.store.list_checkpoints()

    def create_checkpoint(self, requester: User, request: CreateCheckpointRequest) -> Checkpoint:
        self.access.require_admin(requester)
        checkpoint = self.store.create_checkpoint(
            Checkpoint(checkpoint_id=request.checkpoint_id, name=request.name, location=request.location)
        )
        audit.info("Checkpoint created by %s: %s", requester.username, checkpoint.checkpoint_id)
        return checkpoint
