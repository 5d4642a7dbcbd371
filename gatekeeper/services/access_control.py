# =======================================================================================
# gatekeeper/services/access_control.py - Core Authorization Logic
# =======================================================================================
import logging
from typing import Iterable, List, Optional
from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import PushRejection, Role
from ..models.schemas import Entry, User
from ..store import DirectoryStore
from ..utils.exceptions import AuthorizationError, ValidationError

logger = logging.getLogger(__name__)


class AccessControlService:
    """
    Decides what a user may read and write, and keeps the supervisor/operator
    relationship consistent.

    Every decision matches the three roles explicitly and denies anything
    else, so an unrecognized role never gains access by falling through.
    """

    def __init__(self, store: DirectoryStore):
        self.store = store

    # ------------------------------------------------------------------
    # Read visibility
    # ------------------------------------------------------------------
    @staticmethod
    def can_view_entry(entry: Entry, requester: User) -> bool:
        role = requester.role
        if role == Role.ADMIN:
            return True
        if role == Role.SUPERVISOR:
            return entry.logging_user_id in requester.managed_operators
        if role == Role.GATE_OPERATOR:
            return entry.logging_user_id == requester.user_id
        return False

    @classmethod
    def visible_entries(cls, entries: Iterable[Entry], requester: User) -> List[Entry]:
        """
        Admin: everything. Supervisor: entries logged by managed operators
        (none when nobody is managed). GateOperator: own entries only.
        """
        if requester.role == Role.SUPERVISOR and not requester.managed_operators:
            return []
        return [e for e in entries if cls.can_view_entry(e, requester)]

    # ------------------------------------------------------------------
    # Write authorization (sync push)
    # ------------------------------------------------------------------
    @staticmethod
    def can_access_checkpoint(user: User, checkpoint_id: str) -> bool:
        """An empty allowlist means every checkpoint for Admin/Supervisor, none for operators."""
        role = user.role
        if role == Role.ADMIN:
            return True
        if role == Role.SUPERVISOR:
            return not user.allowed_checkpoints or checkpoint_id in user.allowed_checkpoints
        if role == Role.GATE_OPERATOR:
            return checkpoint_id in user.allowed_checkpoints
        return False

    @classmethod
    def authorize_push(
        cls, entry: Entry, requester: User, existing: Optional[Entry] = None
    ) -> Optional[PushRejection]:
        """Return None when the entry may be persisted, else the rejection reason."""
        if entry.logging_user_id != requester.user_id:
            return PushRejection.FOREIGN_AUTHOR

        role = requester.role
        if role == Role.GATE_OPERATOR:
            if not cls.can_access_checkpoint(requester, entry.checkpoint_id):
                return PushRejection.CHECKPOINT_NOT_ALLOWED
        elif role not in (Role.ADMIN, Role.SUPERVISOR):
            return PushRejection.UNKNOWN_ROLE

        if existing is not None and existing.logging_user_id != requester.user_id:
            return PushRejection.RECORD_OWNED_BY_OTHER
        return None

    # ------------------------------------------------------------------
    # Management authorization
    # ------------------------------------------------------------------
    @staticmethod
    def require_role(user: User, *allowed: Role) -> None:
        if user.role not in allowed:
            raise AuthorizationError("Insufficient permissions")

    def require_admin(self, user: User) -> None:
        self.require_role(user, Role.ADMIN)

    @staticmethod
    def authorize_password_reset(requester: User, target: User) -> None:
        """Admins reset anyone; Supervisors only operators they manage."""
        role = requester.role
        if role == Role.ADMIN:
            return
        if role == Role.SUPERVISOR:
            if target.user_id != requester.user_id and target.user_id in requester.managed_operators:
                return
            raise AuthorizationError("You can only reset passwords for operators you manage")
        raise AuthorizationError("Insufficient permissions")

    @staticmethod
    def ensure_not_self_delete(requester: User, target_user_id: str) -> None:
        if requester.user_id == target_user_id:
            raise ValidationError("Cannot delete your own account")

    # ------------------------------------------------------------------
    # Supervisor <-> operator relationship
    # ------------------------------------------------------------------
    def validate_supervisor_link(self, role: Role, supervisor_id: Optional[str], user_id: Optional[str] = None) -> None:
        """A supervisor_id is only valid on an operator and must name an existing Supervisor."""
        if supervisor_id is None:
            return
        if role != Role.GATE_OPERATOR:
            raise ValidationError("Only gate operators can be assigned a supervisor")
        if user_id is not None and supervisor_id == user_id:
            raise ValidationError("A user cannot supervise themselves")
        supervisor = self.store.get_user(supervisor_id)
        if supervisor is None or supervisor.role != Role.SUPERVISOR:
            raise ValidationError("supervisor_id must reference an existing supervisor")

    def reconcile_relationships(self, before: Optional[User], after: Optional[User]) -> None:
        """
        Single maintenance point for the relationship, called after every
        user create/update/delete. `after` is None for a deletion.

        Only the operator -> supervisor edge is stored, so the one repair
        needed is unlinking operators from a supervisor who was deleted or
        lost the Supervisor role. Failures are logged; the primary mutation
        has already been committed.
        """
        was_supervisor = before is not None and before.role == Role.SUPERVISOR
        still_supervisor = after is not None and after.role == Role.SUPERVISOR
        if not was_supervisor or still_supervisor:
            return

        try:
            cleared = self.store.clear_supervisor_links(before.user_id)
        except SQLAlchemyError as e:
            logger.warning(
                "Failed to unlink operators from former supervisor %s: %s", before.user_id, e
            )
            return
        if cleared:
            logger.info("Unlinked %d operator(s) from former supervisor %s", cleared, before.user_id)
