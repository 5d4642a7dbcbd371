# =======================================================================================
# gatekeeper/services/sync_service.py - Push/Pull Delta Synchronization
# =======================================================================================
import logging
from datetime import datetime
from typing import Any, List, Optional
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..models.enums import PushRejection
from ..models.schemas import EntriesResponse, Entry, SyncPushResponse, User
from ..store import DirectoryStore
from ..time_utils import utcnow
from ..utils.exceptions import RecordOwnershipError
from .access_control import AccessControlService

logger = logging.getLogger(__name__)


class SyncService:
    """
    Reconciles offline client state with the server.

    Stateless between calls. Conflicts resolve last-write-wins on the
    server-assigned updated_at; there is no version token, so two pushes of
    one record_id overwrite each other in the order the server receives them.
    """

    def __init__(self, store: DirectoryStore, access: AccessControlService):
        self.store = store
        self.access = access

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------
    @staticmethod
    def _record_id_of(raw: Any, index: int) -> str:
        if isinstance(raw, dict):
            rid = raw.get("record_id")
            if isinstance(rid, str) and rid:
                return rid
        return f"index:{index}"

    def _apply(self, incoming: Entry, existing: Optional[Entry]) -> Entry:
        """Stamp server timestamps and persist; identical content is a no-op."""
        now = utcnow()
        if existing is None:
            stored = incoming.model_copy(update={"created_at": now, "updated_at": now})
            return self.store.upsert_entry(stored)

        if incoming.same_content(existing):
            return existing

        # updated_at never moves backwards for a record.
        updated_at = max(now, existing.updated_at) if existing.updated_at else now
        stored = incoming.model_copy(
            update={"created_at": existing.created_at or now, "updated_at": updated_at}
        )
        return self.store.upsert_entry(stored)

    def push(self, raw_entries: List[Any], requester: User) -> SyncPushResponse:
        """Authorize and persist each entry independently, in submission order."""
        accepted = 0
        rejected_ids: List[str] = []

        for index, raw in enumerate(raw_entries):
            record_id = self._record_id_of(raw, index)
            try:
                incoming = Entry.model_validate(raw)
            except PydanticValidationError as e:
                logger.warning(
                    "Entry %s from %s rejected: %s (%s)",
                    record_id, requester.username, PushRejection.MALFORMED.value,
                    e.errors()[0].get("msg", "invalid"),
                )
                rejected_ids.append(record_id)
                continue

            try:
                existing = self.store.get_entry(incoming.record_id)
                reason = self.access.authorize_push(incoming, requester, existing)
                if reason is not None:
                    self._log_rejection(requester, incoming, reason)
                    rejected_ids.append(incoming.record_id)
                    continue
                self._apply(incoming, existing)
            except RecordOwnershipError:
                # Another user wrote this record_id after the ownership read.
                self._log_rejection(requester, incoming, PushRejection.RECORD_OWNED_BY_OTHER)
                rejected_ids.append(incoming.record_id)
                continue
            except SQLAlchemyError as e:
                logger.error("Failed to persist entry %s: %s", incoming.record_id, e)
                self._log_rejection(requester, incoming, PushRejection.STORE_FAILURE)
                rejected_ids.append(incoming.record_id)
                continue

            accepted += 1

        rejected = len(rejected_ids)
        logger.info("Sync push from %s: %d accepted, %d rejected", requester.username, accepted, rejected)
        return SyncPushResponse(
            success=rejected == 0,
            accepted=accepted,
            rejected=rejected,
            rejected_ids=rejected_ids,
        )

    @staticmethod
    def _log_rejection(requester: User, entry: Entry, reason: PushRejection) -> None:
        if reason == PushRejection.FOREIGN_AUTHOR:
            logger.warning(
                "User %s attempted to push entry %s for user %s",
                requester.username, entry.record_id, entry.logging_user_id,
            )
        elif reason == PushRejection.CHECKPOINT_NOT_ALLOWED:
            logger.warning(
                "User %s attempted to push entry %s for unauthorized checkpoint %s",
                requester.username, entry.record_id, entry.checkpoint_id,
            )
        else:
            logger.warning("Entry %s from %s rejected: %s", entry.record_id, requester.username, reason.value)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------
    def pull(self, requester: User, since: Optional[datetime] = None) -> EntriesResponse:
        """Entries changed after `since` (all when omitted) that the requester may see."""
        entries = self.store.list_entries(since=since)
        visible = self.access.visible_entries(entries, requester)
        logger.info("Sync pull for %s: %d entries", requester.username, len(visible))
        return EntriesResponse(entries=visible, count=len(visible))

    def list_visible(self, requester: User) -> List[Entry]:
        return self.access.visible_entries(self.store.list_entries(), requester)
