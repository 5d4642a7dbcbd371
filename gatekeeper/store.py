# =======================================================================================
# gatekeeper/store.py - Directory Store (Users, Checkpoints, Entries, Credentials)
# =======================================================================================
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Mapping, Optional
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.engine import Connection

from .database import DatabaseManager
from .models.enums import Role
from .models.schemas import Checkpoint, Entry, User
from .time_utils import from_storage, to_storage, utcnow
from .utils.exceptions import ConflictError, RecordOwnershipError

logger = logging.getLogger(__name__)


class DirectoryStore(ABC):
    """
    Persistence boundary for the access-control and sync services.

    Only the operator -> supervisor edge is stored; managed_operators on a
    loaded Supervisor is always computed from it.
    """

    # ---------- users ----------
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def list_users(self) -> List[User]: ...

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    @abstractmethod
    def update_user(self, user: User) -> User: ...

    @abstractmethod
    def delete_user(self, user_id: str) -> bool: ...

    @abstractmethod
    def list_managed_operator_ids(self, supervisor_id: str) -> List[str]: ...

    @abstractmethod
    def clear_supervisor_links(self, supervisor_id: str) -> int: ...

    @abstractmethod
    def touch_last_login(self, user_id: str, when: datetime) -> None: ...

    # ---------- checkpoints ----------
    @abstractmethod
    def get_checkpoint(self, checkpoint_id: str) -> Optional[Checkpoint]: ...

    @abstractmethod
    def list_checkpoints(self) -> List[Checkpoint]: ...

    @abstractmethod
    def create_checkpoint(self, checkpoint: Checkpoint) -> Checkpoint: ...

    # ---------- entries ----------
    @abstractmethod
    def get_entry(self, record_id: str) -> Optional[Entry]: ...

    @abstractmethod
    def list_entries(self, since: Optional[datetime] = None) -> List[Entry]: ...

    @abstractmethod
    def upsert_entry(self, entry: Entry) -> Entry: ...

    # ---------- credentials ----------
    @abstractmethod
    def store_password_hash(self, user_id: str, password_hash: str) -> None: ...

    @abstractmethod
    def get_password_hash(self, user_id: str) -> Optional[str]: ...

    @abstractmethod
    def delete_password_hash(self, user_id: str) -> None: ...

    @abstractmethod
    def ping(self) -> bool: ...


class SqlDirectoryStore(DirectoryStore):
    """DirectoryStore over SQLAlchemy Core using plain text() queries."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_user(row: Mapping[str, Any], managed: List[str]) -> User:
        return User(
            user_id=row["user_id"],
            username=row["username"],
            role=Role(row["role"]),
            allowed_checkpoints=json.loads(row["allowed_checkpoints"] or "[]"),
            supervisor_id=row["supervisor_id"],
            managed_operators=managed,
            last_login=from_storage(row["last_login"]),
            created_at=from_storage(row["created_at"]),
        )

    @staticmethod
    def _row_to_entry(row: Mapping[str, Any]) -> Entry:
        return Entry(
            record_id=row["record_id"],
            checkpoint_id=row["checkpoint_id"],
            entry_type=row["entry_type"],
            logging_user_id=row["logging_user_id"],
            client_timestamp=from_storage(row["client_timestamp"]),
            created_at=from_storage(row["created_at"]),
            updated_at=from_storage(row["updated_at"]),
            status=row["status"],
            payload=json.loads(row["payload"] or "{}"),
        )

    @staticmethod
    def _entry_params(entry: Entry) -> dict:
        return {
            "rid": entry.record_id,
            "cp": entry.checkpoint_id,
            "et": entry.entry_type.value,
            "uid": entry.logging_user_id,
            "cts": to_storage(entry.client_timestamp),
            "ca": to_storage(entry.created_at),
            "ua": to_storage(entry.updated_at),
            "st": entry.status.value,
            "pl": json.dumps(entry.payload, sort_keys=True, default=str),
        }

    def _managed_ids(self, conn: Connection, supervisor_id: str) -> List[str]:
        rows = conn.execute(
            text("""
                SELECT user_id FROM users
                WHERE supervisor_id = :sid AND role = :role
                ORDER BY user_id
            """),
            {"sid": supervisor_id, "role": Role.GATE_OPERATOR.value},
        ).all()
        return [r[0] for r in rows]

    def _load_user(self, conn: Connection, row) -> Optional[User]:
        if row["role"] not in Role._value2member_map_:
            logger.warning("User %s has unrecognized role %r; treating as absent", row["user_id"], row["role"])
            return None
        managed = self._managed_ids(conn, row["user_id"]) if row["role"] == Role.SUPERVISOR.value else []
        return self._row_to_user(row, managed)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text("SELECT * FROM users WHERE user_id = :uid"), {"uid": user_id}
            ).mappings().first()
            return self._load_user(conn, row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text("SELECT * FROM users WHERE username = :u"), {"u": username}
            ).mappings().first()
            return self._load_user(conn, row) if row else None

    def list_users(self) -> List[User]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                text("SELECT * FROM users ORDER BY username")
            ).mappings().all()
            users = [self._load_user(conn, row) for row in rows]
            return [u for u in users if u is not None]

    def create_user(self, user: User) -> User:
        created_at = user.created_at or utcnow()
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    text("""
                        INSERT INTO users (user_id, username, role, allowed_checkpoints,
                                           supervisor_id, last_login, created_at)
                        VALUES (:uid, :username, :role, :cps, :sid, :ll, :ca)
                    """),
                    {
                        "uid": user.user_id,
                        "username": user.username,
                        "role": user.role.value,
                        "cps": json.dumps(user.allowed_checkpoints),
                        "sid": user.supervisor_id,
                        "ll": to_storage(user.last_login),
                        "ca": to_storage(created_at),
                    },
                )
        except IntegrityError as e:
            raise ConflictError("Username already exists") from e
        return user.model_copy(update={"created_at": created_at})

    def update_user(self, user: User) -> User:
        with self.db.get_connection() as conn:
            conn.execute(
                text("""
                    UPDATE users
                    SET role = :role, allowed_checkpoints = :cps, supervisor_id = :sid
                    WHERE user_id = :uid
                """),
                {
                    "uid": user.user_id,
                    "role": user.role.value,
                    "cps": json.dumps(user.allowed_checkpoints),
                    "sid": user.supervisor_id,
                },
            )
            row = conn.execute(
                text("SELECT * FROM users WHERE user_id = :uid"), {"uid": user.user_id}
            ).mappings().first()
            loaded = self._load_user(conn, row) if row else None
            return loaded or user

    def delete_user(self, user_id: str) -> bool:
        with self.db.get_connection() as conn:
            result = conn.execute(
                text("DELETE FROM users WHERE user_id = :uid"), {"uid": user_id}
            )
            return result.rowcount > 0

    def list_managed_operator_ids(self, supervisor_id: str) -> List[str]:
        with self.db.get_connection() as conn:
            return self._managed_ids(conn, supervisor_id)

    def clear_supervisor_links(self, supervisor_id: str) -> int:
        with self.db.get_connection() as conn:
            result = conn.execute(
                text("UPDATE users SET supervisor_id = NULL WHERE supervisor_id = :sid"),
                {"sid": supervisor_id},
            )
            return result.rowcount

    def touch_last_login(self, user_id: str, when: datetime) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                text("UPDATE users SET last_login = :ll WHERE user_id = :uid"),
                {"uid": user_id, "ll": to_storage(when)},
            )

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------
    def get_checkpoint(self, checkpoint_id: str) -> Optional[Checkpoint]:
        row = self.db.fetch_one(
            "SELECT checkpoint_id, name, location FROM checkpoints WHERE checkpoint_id = :cid",
            {"cid": checkpoint_id},
        )
        return Checkpoint(**row) if row else None

    def list_checkpoints(self) -> List[Checkpoint]:
        rows = self.db.fetch_all(
            "SELECT checkpoint_id, name, location FROM checkpoints ORDER BY checkpoint_id"
        )
        return [Checkpoint(**row) for row in rows]

    def create_checkpoint(self, checkpoint: Checkpoint) -> Checkpoint:
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    text("""
                        INSERT INTO checkpoints (checkpoint_id, name, location)
                        VALUES (:cid, :name, :loc)
                    """),
                    {"cid": checkpoint.checkpoint_id, "name": checkpoint.name, "loc": checkpoint.location},
                )
        except IntegrityError as e:
            raise ConflictError("Checkpoint already exists") from e
        return checkpoint

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------
    def get_entry(self, record_id: str) -> Optional[Entry]:
        row = self.db.fetch_one(
            "SELECT * FROM entries WHERE record_id = :rid", {"rid": record_id}
        )
        return self._row_to_entry(row) if row else None

    def list_entries(self, since: Optional[datetime] = None) -> List[Entry]:
        if since is None:
            rows = self.db.fetch_all("SELECT * FROM entries ORDER BY updated_at, record_id")
        else:
            rows = self.db.fetch_all(
                "SELECT * FROM entries WHERE updated_at > :since ORDER BY updated_at, record_id",
                {"since": to_storage(since)},
            )
        return [self._row_to_entry(row) for row in rows]

    def upsert_entry(self, entry: Entry) -> Entry:
        """
        Write the entry as given, keyed by record_id. The caller owns the
        timestamps. An existing row is only replaced when logging_user_id
        matches; otherwise RecordOwnershipError is raised and nothing changes.
        """
        params = self._entry_params(entry)
        update_sql = text("""
            UPDATE entries
            SET checkpoint_id = :cp, entry_type = :et, logging_user_id = :uid,
                client_timestamp = :cts, created_at = :ca, updated_at = :ua,
                status = :st, payload = :pl
            WHERE record_id = :rid AND logging_user_id = :uid
        """)
        insert_sql = text("""
            INSERT INTO entries (record_id, checkpoint_id, entry_type, logging_user_id,
                                 client_timestamp, created_at, updated_at, status, payload)
            VALUES (:rid, :cp, :et, :uid, :cts, :ca, :ua, :st, :pl)
        """)
        with self.db.get_connection() as conn:
            if conn.execute(update_sql, params).rowcount:
                return entry
        try:
            with self.db.get_connection() as conn:
                conn.execute(insert_sql, params)
        except IntegrityError as e:
            logger.debug("Entry %s inserted concurrently; retrying as update", entry.record_id)
            with self.db.get_connection() as conn:
                if not conn.execute(update_sql, params).rowcount:
                    raise RecordOwnershipError() from e
        return entry

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------
    def store_password_hash(self, user_id: str, password_hash: str) -> None:
        params = {"uid": user_id, "ph": password_hash, "ua": to_storage(utcnow())}
        with self.db.get_connection() as conn:
            updated = conn.execute(
                text("UPDATE credentials SET password_hash = :ph, updated_at = :ua WHERE user_id = :uid"),
                params,
            ).rowcount
            if not updated:
                conn.execute(
                    text("INSERT INTO credentials (user_id, password_hash, updated_at) VALUES (:uid, :ph, :ua)"),
                    params,
                )

    def get_password_hash(self, user_id: str) -> Optional[str]:
        row = self.db.fetch_one(
            "SELECT password_hash FROM credentials WHERE user_id = :uid", {"uid": user_id}
        )
        return row["password_hash"] if row else None

    def delete_password_hash(self, user_id: str) -> None:
        self.db.execute_query("DELETE FROM credentials WHERE user_id = :uid", {"uid": user_id})

    def ping(self) -> bool:
        try:
            self.db.fetch_one("SELECT 1")
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", e)
            return False
