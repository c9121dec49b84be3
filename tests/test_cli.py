"""
tests/test_cli.py -- The admin CLI in main.py.

Each test points --db at a fresh SQLite file under tmp_path and drives
main() with an argv list, checking exit codes and printed output.
"""

from __future__ import annotations

import pytest

from auth.models import UserRole
from auth.store import UserStore
from main import main


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _create_admin(db_url: str, username: str = "root", email: str = "root@x.com") -> int:
    return main(
        [
            "--db", db_url,
            "create-admin", username,
            "--email", email,
            "--first-name", "Ops",
            "--last-name", "Team",
            "--phone", "0000000000",
            "--dob", "1980-02-29",
            "--password", "Adm1n!",
        ]
    )


def test_create_admin(db_url, capsys):
    assert _create_admin(db_url) == 0
    assert "Created admin 'root'" in capsys.readouterr().out

    store = UserStore(db_url)
    try:
        user = store.get_by_username("root")
    finally:
        store.close()
    assert user.role is UserRole.ADMIN
    assert user.is_active is True
    assert user.hashed_password != "Adm1n!"


def test_create_admin_duplicate_username(db_url, capsys):
    _create_admin(db_url)
    capsys.readouterr()
    assert _create_admin(db_url, email="other@x.com") == 1
    assert "[!] Username is already taken!" in capsys.readouterr().out


def test_create_admin_rejects_bad_date(db_url):
    with pytest.raises(SystemExit):
        main(["--db", db_url, "create-admin", "root", "--email", "r@x.com", "--first-name", "a",
              "--last-name", "b", "--phone", "1", "--dob", "29/02/1980", "--password", "x"])


def test_list_users(db_url, capsys):
    main(["--db", db_url, "list-users"])
    assert "No users registered." in capsys.readouterr().out

    _create_admin(db_url)
    capsys.readouterr()
    assert main(["--db", db_url, "list-users"]) == 0
    out = capsys.readouterr().out
    assert "root" in out
    assert "ADMIN" in out
    assert "active" in out


def test_deactivate_and_activate(db_url, capsys):
    _create_admin(db_url)

    assert main(["--db", db_url, "deactivate", "root"]) == 0
    store = UserStore(db_url)
    try:
        assert store.get_by_username("root").is_active is False
    finally:
        store.close()

    assert main(["--db", db_url, "activate", "root"]) == 0
    store = UserStore(db_url)
    try:
        assert store.get_by_username("root").is_active is True
    finally:
        store.close()
    assert "'root' activated." in capsys.readouterr().out


def test_deactivate_unknown_user(db_url, capsys):
    assert main(["--db", db_url, "deactivate", "nobody"]) == 1
    assert "[!] User not found!" in capsys.readouterr().out
