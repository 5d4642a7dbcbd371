# =======================================================================================
# gatekeeper/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from ..time_utils import ensure_utc
from .enums import EntryStatus, EntryType, HealthStatus, Role, TokenType


def _unique(values: List[str]) -> List[str]:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out

# ========== Domain ==========

class User(BaseModel):
    """An account. managed_operators is derived from operators' supervisor_id."""
    user_id: str
    username: str
    role: Role
    allowed_checkpoints: List[str] = Field(default_factory=list)
    supervisor_id: Optional[str] = None
    managed_operators: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("allowed_checkpoints", "managed_operators")
    @classmethod
    def _dedupe(cls, values: List[str]) -> List[str]:
        return _unique(values)

class Checkpoint(BaseModel):
    checkpoint_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    location: str = Field("", max_length=200)

class Entry(BaseModel):
    """A logged passage at a checkpoint. record_id is the client-generated sync key."""
    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field(..., min_length=1, max_length=128)
    checkpoint_id: str = Field(..., min_length=1, max_length=64)
    entry_type: EntryType
    logging_user_id: str = Field(..., min_length=1, max_length=64)
    client_timestamp: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("client_timestamp", "client_ts")
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status: EntryStatus = EntryStatus.ACTIVE
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("client_timestamp", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def same_content(self, other: "Entry") -> bool:
        """Compare everything except the server-owned timestamps."""
        return (
            self.checkpoint_id == other.checkpoint_id
            and self.entry_type == other.entry_type
            and self.logging_user_id == other.logging_user_id
            and self.client_timestamp == other.client_timestamp
            and self.status == other.status
            and self.payload == other.payload
        )

class Claims(BaseModel):
    """Identity carried by an access or refresh token."""
    user_id: str
    username: str
    role: Role
    token_type: TokenType
    expires_at: datetime

# ========== Auth ==========

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)

class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: User

class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)

class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

# ========== Sync ==========

class SyncPushRequest(BaseModel):
    # Items are validated one by one so a malformed entry only rejects itself.
    entries: List[Any] = Field(default_factory=list)

class SyncPushResponse(BaseModel):
    success: bool
    accepted: int
    rejected: int
    rejected_ids: List[str] = Field(default_factory=list)
    message: str = "Sync completed"

class EntriesResponse(BaseModel):
    entries: List[Entry]
    count: int

# ========== Admin ==========

class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    role: Role
    allowed_checkpoints: List[str] = Field(default_factory=list)
    supervisor_id: Optional[str] = None

    @field_validator("allowed_checkpoints")
    @classmethod
    def _dedupe(cls, values: List[str]) -> List[str]:
        return _unique(values)

class UpdateUserRequest(BaseModel):
    """Omitted fields are left alone; an explicit null supervisor_id unlinks the operator."""
    user_id: str = Field(..., min_length=1)
    role: Optional[Role] = None
    allowed_checkpoints: Optional[List[str]] = None
    supervisor_id: Optional[str] = None

class DeleteUserRequest(BaseModel):
    user_id: str = Field(..., min_length=1)

class CreateCheckpointRequest(Checkpoint):
    pass

# ========== Supervisor ==========

class ResetPasswordRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)

class MessageResponse(BaseModel):
    message: str

# ========== Health ==========

class HealthResponse(BaseModel):
    status: HealthStatus
    timestamp: int
    version: str
    database: bool
