from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userhub.config import ServiceConfig, load_service_config, resolve_config_path


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_service_config(tmp_path / "absent.yaml")

    assert config.host == "0.0.0.0"
    assert config.port == 8000
    assert config.log_level == "INFO"
    assert config.database_path.name == "userhub.sqlite3"


def test_yaml_values_and_relative_database_path(tmp_path: Path) -> None:
    config_path = tmp_path / "service.yaml"
    config_path.write_text(
        "service:\n"
        "  host: 127.0.0.1\n"
        "  port: 9090\n"
        "  database_path: data/users.sqlite3\n"
        "  log_level: debug\n"
        "  busy_timeout: 1.5\n",
        encoding="utf-8",
    )

    config = load_service_config(config_path)

    assert config.host == "127.0.0.1"
    assert config.port == 9090
    assert config.log_level == "DEBUG"
    assert config.busy_timeout == 1.5
    assert config.database_path == (tmp_path / "data" / "users.sqlite3").resolve()


def test_environment_overrides(tmp_path: Path) -> None:
    base = ServiceConfig.from_dict({})
    overridden = base.with_env_overrides(
        {
            "USERHUB_DB_PATH": str(tmp_path / "env.sqlite3"),
            "USERHUB_HOST": "10.0.0.5",
            "USERHUB_PORT": "8443",
            "USERHUB_LOG_LEVEL": "warning",
        }
    )

    assert overridden.database_path == (tmp_path / "env.sqlite3").resolve()
    assert overridden.host == "10.0.0.5"
    assert overridden.port == 8443
    assert overridden.log_level == "WARNING"
    assert base.host == "0.0.0.0"


@pytest.mark.parametrize(
    "data",
    [{"log_level": "chatty"}, {"port": 0}, {"port": 70000}],
)
def test_invalid_values_are_rejected(data) -> None:
    with pytest.raises(ValueError):
        ServiceConfig.from_dict(data)


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "service.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_service_config(config_path)


def test_resolve_config_path(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.yaml"
    assert resolve_config_path(str(explicit)) == explicit.resolve()
    assert resolve_config_path(None).parts[-2:] == ("config", "service.yaml")
