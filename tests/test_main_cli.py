import sys
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main
from main import _parse_args
from userhub.database import Database


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_config_option_precedes_subcommand() -> None:
    args = _parse_args(["--config", "/etc/userhub.yaml", "create-user", "Ada", "ada@example.com"])
    assert args.config == "/etc/userhub.yaml"
    assert args.command == "create-user"
    assert args.name == "Ada"

    implicit = _parse_args(["--config=/etc/userhub.yaml"])
    assert implicit.command == "serve"
    assert implicit.config == "/etc/userhub.yaml"


def _isolate(monkeypatch, tmp_path: Path) -> Path:
    db_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("USERHUB_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("USERHUB_DB_PATH", str(db_path))
    return db_path


def test_create_user_command_inserts_row(monkeypatch, tmp_path, capsys) -> None:
    db_path = _isolate(monkeypatch, tmp_path)

    assert main.main(["create-user", " Test User ", "test@example.com"]) == 0
    assert "Created user #1: Test User <test@example.com>" in capsys.readouterr().out

    users = Database(db_path).list_users()
    assert [(user.name, user.email) for user in users] == [("Test User", "test@example.com")]


def test_create_user_command_requires_values(monkeypatch, tmp_path, capsys) -> None:
    _isolate(monkeypatch, tmp_path)
    assert main.main(["create-user", "  ", "test@example.com"]) == 1
    assert "required" in capsys.readouterr().err


def test_show_users_prints_cards(monkeypatch, tmp_path, capsys) -> None:
    _isolate(monkeypatch, tmp_path)
    requested = []

    def fake_get(url, timeout):
        requested.append(url)
        return httpx.Response(
            200,
            json=[
                {
                    "id": 1,
                    "name": "Test User",
                    "email": "test@example.com",
                    "created_at": "2024-03-04T21:05:00Z",
                    "updated_at": "",
                }
            ],
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(main.httpx, "get", fake_get)

    assert main.main(["show-users", "--service-url", "http://users.internal/"]) == 0
    output = capsys.readouterr().out

    assert requested == ["http://users.internal/api/go/users"]
    assert "1 user(s) found:" in output
    assert "Id: 1" in output
    assert "Created: Mar 4, 2024, 09:05 PM" in output
    assert "Updated: N/A" in output


def test_show_users_reports_unreachable_service(monkeypatch, tmp_path, capsys) -> None:
    _isolate(monkeypatch, tmp_path)

    def fake_get(url, timeout):
        raise httpx.ConnectError("connection refused", request=httpx.Request("GET", url))

    monkeypatch.setattr(main.httpx, "get", fake_get)

    assert main.main(["show-users"]) == 1
    assert "Failed to contact user service" in capsys.readouterr().err
