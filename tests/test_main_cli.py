from pathlib import Path

import main
from main import _parse_args
from registration.database import Database


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "0.0.0.0", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 8080


def test_clear_users_subcommand_accepts_yes_flag() -> None:
    args = _parse_args(["clear-users", "--yes"])
    assert args.command == "clear-users"
    assert args.yes is True


def test_init_db_creates_database(monkeypatch, tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "cli" / "users.sqlite3"
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(db_path))

    main.main(["init-db"])

    assert db_path.exists()
    assert "Database initialisation complete." in capsys.readouterr().out


def test_list_users_prints_newest_first(monkeypatch, tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(db_path))
    database = Database(db_path)
    database.initialize()
    database.create_user("older", "older@example.com", 30)
    database.create_user("newer", "newer@example.com", 31)

    main.main(["list-users"])

    output = capsys.readouterr().out
    assert "2 user(s) found:" in output
    assert output.index("newer") < output.index("older")


def test_clear_users_with_confirmation_flag(monkeypatch, tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(db_path))
    database = Database(db_path)
    database.initialize()
    database.create_user("gone", "gone@example.com", 30)

    main.main(["clear-users", "--yes"])

    assert "Deleted 1 user(s)." in capsys.readouterr().out
    assert database.count_users() == 0


def test_clear_users_can_be_aborted(monkeypatch, tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(db_path))
    database = Database(db_path)
    database.initialize()
    database.create_user("kept", "kept@example.com", 30)
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    main.main(["clear-users"])

    assert "Aborted." in capsys.readouterr().out
    assert database.count_users() == 1


def test_serve_applies_cli_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(tmp_path / "users.sqlite3"))
    captured = {}

    def fake_serve(*, settings, database):
        captured["settings"] = settings
        captured["database"] = database

    monkeypatch.setattr(main, "_serve", fake_serve)

    main.main(["--port", "4000"])

    assert captured["settings"].port == 4000
    assert captured["settings"].host == "127.0.0.1"
    assert captured["database"].path == (tmp_path / "users.sqlite3").resolve()
