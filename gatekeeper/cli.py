# =======================================================================================
# gatekeeper/cli.py - Operations Commands
# =======================================================================================
# Commands (after `pip install -e .`):
# - gatekeeper init-db
#   Create all tables that do not exist yet.
# - gatekeeper seed [--password password1]
#   Load the demo checkpoints and one user per role. Existing rows are kept.
# - gatekeeper create-admin --username root --password "S3curePass"
#   Create an additional administrator.
# - gatekeeper serve [--host 0.0.0.0] [--port 8080] [--reload]
#   Run the API with uvicorn.
import uuid
from typing import List, Tuple

import click

from .config import config
from .database import DatabaseManager
from .logging_config import setup_logging
from .models.enums import Role
from .models.schemas import Checkpoint, User
from .services.credentials import CredentialVerifier
from .store import DirectoryStore, SqlDirectoryStore
from .utils.exceptions import ConflictError, WeakPasswordError

SEED_CHECKPOINTS: List[Checkpoint] = [
    Checkpoint(checkpoint_id="CP-EAST-MAIN", name="East Main Gate", location="Sector 1"),
    Checkpoint(checkpoint_id="CP-WEST-GATE", name="West Gate", location="Sector 4"),
    Checkpoint(checkpoint_id="CP-NORTH-01", name="North Checkpoint 1", location="Sector 2"),
    Checkpoint(checkpoint_id="CP-SOUTH-01", name="South Checkpoint 1", location="Sector 3"),
]

# Supervisors come before the operators that reference them.
SEED_USERS: List[User] = [
    User(user_id="user-admin", username="admin", role=Role.ADMIN),
    User(
        user_id="user-supervisor-john",
        username="supervisor_john",
        role=Role.SUPERVISOR,
        allowed_checkpoints=["CP-EAST-MAIN", "CP-NORTH-01"],
    ),
    User(
        user_id="user-op-east",
        username="op_east",
        role=Role.GATE_OPERATOR,
        allowed_checkpoints=["CP-EAST-MAIN"],
        supervisor_id="user-supervisor-john",
    ),
    User(
        user_id="user-op-west",
        username="op_west",
        role=Role.GATE_OPERATOR,
        allowed_checkpoints=["CP-WEST-GATE"],
    ),
]


def _open_store() -> DirectoryStore:
    setup_logging(config.LOG_LEVEL)
    db = DatabaseManager(config)
    db.init_schema()
    return SqlDirectoryStore(db)


def _verifier(password: str) -> CredentialVerifier:
    credentials = CredentialVerifier(min_length=config.PASSWORD_MIN_LENGTH)
    try:
        credentials.validate_password_strength(password)
    except WeakPasswordError as e:
        raise click.BadParameter(e.message, param_hint="--password")
    return credentials


def seed_directory(store: DirectoryStore, credentials: CredentialVerifier, password: str) -> Tuple[int, int]:
    """Insert the demo checkpoints and users that are missing; returns (checkpoints, users) created."""
    checkpoints_created = 0
    for checkpoint in SEED_CHECKPOINTS:
        if store.get_checkpoint(checkpoint.checkpoint_id) is None:
            store.create_checkpoint(checkpoint)
            checkpoints_created += 1

    users_created = 0
    digest = credentials.hash_password(password)
    for user in SEED_USERS:
        if store.get_user_by_username(user.username) is not None:
            continue
        store.create_user(user)
        store.store_password_hash(user.user_id, digest)
        users_created += 1
    return checkpoints_created, users_created


@click.group()
def cli():
    """GateKeeper operations."""


@cli.command("init-db")
def init_db():
    """Create the database schema."""
    _open_store()
    click.echo(f"PASS Schema ready at {config.DB_URL}")


@cli.command("seed")
@click.option("--password", default="password1", show_default=True, help="Password for every seeded user")
def seed(password):
    """
    Load demo data: four checkpoints, an admin, a supervisor managing one
    operator, and an unmanaged operator.

    SECURITY: change the seeded passwords before exposing the service.
    """
    credentials = _verifier(password)
    store = _open_store()
    checkpoints, users = seed_directory(store, credentials, password)
    click.echo(f"PASS Created {checkpoints} checkpoint(s) and {users} user(s)")
    for user in SEED_USERS:
        click.echo(f"  {user.username:<16} {user.role.value}")


@cli.command("create-admin")
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(username, password):
    """Create an administrator account."""
    credentials = _verifier(password)
    store = _open_store()
    user = User(user_id=f"user-{uuid.uuid4().hex[:12]}", username=username, role=Role.ADMIN)
    try:
        store.create_user(user)
    except ConflictError as e:
        raise click.ClickException(e.message)
    store.store_password_hash(user.user_id, credentials.hash_password(password))
    click.echo(f"PASS Created admin {username} ({user.user_id})")


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Port (defaults to API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "gatekeeper.main:app",
        host=host or config.API_HOST,
        port=port or config.API_PORT,
        reload=reload,
    )


if __name__ == "__main__":
    cli()
