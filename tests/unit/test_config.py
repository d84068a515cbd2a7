from datetime import timedelta
from pathlib import Path

import pytest

from ecsctl.config import (
    deep_merge,
    get_default_config,
    load_config,
    load_dotenv_config,
    load_env_config,
    parse_duration,
)
from ecsctl.exceptions import ValidationError


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("ECSCTL_HOME", str(home))
    for name in (
        "ECSCTL_REGISTRY",
        "ECSCTL_LOGS_DIR",
        "ECSCTL_LOG_SINCE",
        "ECSCTL_POLL_INTERVAL",
        "ECSCTL_PAGE_SIZE",
        "ECSCTL_RELAY",
        "ECSCTL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.mark.parametrize(
    "text, expected",
    [
        ("10m", timedelta(minutes=10)),
        ("90s", timedelta(seconds=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("250ms", timedelta(milliseconds=250)),
        ("1.5h", timedelta(minutes=90)),
        ("45", timedelta(seconds=45)),
        (120, timedelta(minutes=2)),
    ],
)
def test_parse_duration(text, expected) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "ten minutes", "10x", "m10", "10m junk", -5])
def test_parse_duration_rejects_garbage(text) -> None:
    with pytest.raises(ValidationError):
        parse_duration(text)


def test_defaults_live_under_home(isolated_home: Path) -> None:
    config = load_config()

    assert config["registry_path"] == isolated_home / "config.yaml"
    assert config["logs_dir"] == isolated_home / "logs"
    assert config["logs"]["since"] == timedelta(minutes=10)
    assert config["logs"]["poll_interval"] == 1.0
    assert config["collector"]["page_size"] is None
    assert config["relay"]["executable"] == "session-manager-plugin"


def test_precedence_file_dotenv_env_cli(
    tmp_path: Path, isolated_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    isolated_home.mkdir(parents=True)
    (isolated_home / "settings.yaml").write_text(
        "logs:\n  since: 5m\n  poll_interval: 2\nrelay:\n  executable: from-file\n"
    )
    (tmp_path / ".env").write_text("ECSCTL_RELAY=from-dotenv\nECSCTL_LOG_SINCE=30m\n")
    monkeypatch.setenv("ECSCTL_LOG_SINCE", "1h")
    monkeypatch.setenv("ECSCTL_REGISTRY", str(tmp_path / "env-registry.yaml"))

    config = load_config({"registry_path": tmp_path / "cli.yaml"})

    assert config["logs"]["poll_interval"] == 2.0
    assert config["relay"]["executable"] == "from-dotenv"
    assert config["logs"]["since"] == timedelta(hours=1)
    assert config["registry_path"] == tmp_path / "cli.yaml"


def test_cli_none_values_do_not_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("ECSCTL_REGISTRY", str(tmp_path / "env.yaml"))

    config = load_config({"registry_path": None})

    assert config["registry_path"] == tmp_path / "env.yaml"


def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECSCTL_PAGE_SIZE", "lots")
    with pytest.raises(ValidationError, match="page_size"):
        load_config()

    monkeypatch.setenv("ECSCTL_PAGE_SIZE", "50")
    monkeypatch.setenv("ECSCTL_POLL_INTERVAL", "0")
    with pytest.raises(ValidationError, match="poll_interval"):
        load_config()


def test_env_and_dotenv_loaders_use_dotted_keys(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("ECSCTL_PAGE_SIZE", "25")
    (tmp_path / "custom.env").write_text("ECSCTL_LOG_LEVEL=debug\nUNRELATED=1\n")

    assert load_env_config() == {"collector": {"page_size": "25"}}
    assert load_dotenv_config(tmp_path / "custom.env") == {"logging": {"level": "debug"}}


def test_broken_settings_file_is_ignored(isolated_home: Path) -> None:
    isolated_home.mkdir(parents=True)
    (isolated_home / "settings.yaml").write_text("logs: [unclosed\n")

    assert load_config()["logs"]["since"] == timedelta(minutes=10)


def test_deep_merge_does_not_mutate_defaults() -> None:
    defaults = get_default_config()
    merged = dict(defaults)
    deep_merge(merged, {"logs": {"since": "1m"}})

    assert merged["logs"]["since"] == "1m"
    assert defaults["logs"]["since"] == "10m"
    assert merged["logs"]["poll_interval"] == 1.0
