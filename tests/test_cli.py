"""
Operations commands run against a throwaway SQLite file.
"""

import pytest
from click.testing import CliRunner

from gatekeeper import cli as cli_module
from gatekeeper.database import DatabaseManager
from gatekeeper.store import SqlDirectoryStore


@pytest.fixture
def file_config(monkeypatch, tmp_path, test_config):
    test_config.DB_URL = f"sqlite:///{tmp_path / 'gatekeeper.db'}"
    monkeypatch.setattr(cli_module, "config", test_config)
    return test_config


def _store(settings):
    return SqlDirectoryStore(DatabaseManager(settings))


def test_seed_is_idempotent(file_config):
    runner = CliRunner()

    first = runner.invoke(cli_module.cli, ["seed"])
    assert first.exit_code == 0, first.output
    assert "Created 4 checkpoint(s) and 4 user(s)" in first.output

    second = runner.invoke(cli_module.cli, ["seed"])
    assert second.exit_code == 0, second.output
    assert "Created 0 checkpoint(s) and 0 user(s)" in second.output

    store = _store(file_config)
    assert store.get_user("user-supervisor-john").managed_operators == ["user-op-east"]
    assert [c.checkpoint_id for c in store.list_checkpoints()] == [
        "CP-EAST-MAIN", "CP-NORTH-01", "CP-SOUTH-01", "CP-WEST-GATE",
    ]


def test_seed_rejects_weak_password(file_config):
    result = CliRunner().invoke(cli_module.cli, ["seed", "--password", "abc"])
    assert result.exit_code != 0


def test_create_admin(file_config):
    runner = CliRunner()
    result = runner.invoke(cli_module.cli, ["create-admin", "--username", "root", "--password", "rootpass1"])
    assert result.exit_code == 0, result.output

    user = _store(file_config).get_user_by_username("root")
    assert user is not None
    assert user.role.value == "ADMIN"

    duplicate = runner.invoke(cli_module.cli, ["create-admin", "--username", "root", "--password", "rootpass1"])
    assert duplicate.exit_code != 0


def test_init_db(file_config):
    result = CliRunner().invoke(cli_module.cli, ["init-db"])
    assert result.exit_code == 0, result.output
    assert _store(file_config).list_users() == []
