"""Operator CLI tests.

Learn: click's CliRunner invokes commands in-process. Each command runs
its own event loop via asyncio.run, so these tests are plain sync tests
pointed at a throwaway SQLite file.
"""

import pytest
from click.testing import CliRunner

from plannora.cli.main import main
from plannora.db import engine as engine_module
from plannora.db.engine import Database


@pytest.fixture()
def runner(tmp_path, monkeypatch):
    db = Database(url=f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(engine_module, "database", db)
    return CliRunner()


def test_create_and_list_users(runner):
    assert runner.invoke(main, ["init-db"]).exit_code == 0

    result = runner.invoke(
        main,
        ["create-user", "-n", "Operator", "-e", "Ops@Example.com", "--password", "secret-pw-1"],
    )
    assert result.exit_code == 0, result.output
    assert "Created user ops@example.com" in result.output

    result = runner.invoke(main, ["list-users"])
    assert result.exit_code == 0
    assert "ops@example.com" in result.output
    assert "1 user(s)" in result.output
    assert "secret-pw-1" not in result.output


def test_create_user_duplicate_fails(runner):
    runner.invoke(main, ["init-db"])
    args = ["create-user", "-n", "Dup", "-e", "dup@example.com", "--password", "secret-pw-1"]
    assert runner.invoke(main, args).exit_code == 0

    result = runner.invoke(main, args)
    assert result.exit_code == 1
    assert "User already exists" in result.output


def test_create_user_rejects_bad_email(runner):
    result = runner.invoke(
        main, ["create-user", "-n", "Bad", "-e", "nope", "--password", "secret-pw-1"]
    )
    assert result.exit_code == 2


def test_list_users_empty(runner):
    runner.invoke(main, ["init-db"])
    result = runner.invoke(main, ["list-users"])
    assert result.exit_code == 0
    assert "No users registered." in result.output
