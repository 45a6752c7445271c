import json
import logging
from pathlib import Path

import pytest

from furniture_estimator import config
from furniture_estimator.resources import default_app_settings_json, resource_path


def test_app_environment_from_env_uses_defaults() -> None:
    env = config.AppEnvironment.from_env()

    assert env.log_level == "INFO"
    assert env.strict_formulas is False
    assert env.settings_path is None


def test_app_environment_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(config.LOG_LEVEL_ENV_VAR, " warning ")
    monkeypatch.setenv(config.STRICT_ENV_VAR, "on")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(tmp_path / "settings.json"))

    env = config.AppEnvironment.from_env()

    assert env.log_level == "WARNING"
    assert env.strict_formulas is True
    assert env.settings_path == tmp_path / "settings.json"


@pytest.mark.parametrize(
    "raw,expected",
    [("1", True), ("TRUE", True), ("no", False), ("0", False), ("2", True), ("", False), ("maybe", False)],
)
def test_env_flag_parsing(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("FURNITURE_TEST_FLAG", raw)

    assert config._env_flag("FURNITURE_TEST_FLAG") is expected


def test_describe_runtime_environment() -> None:
    info = config.describe_runtime_environment()

    assert info == {
        "log_level": "INFO",
        "strict_formulas": "False",
        "settings_path": "",
        "hourly_rate": "50",
        "overhead_rate": "0.2",
    }


def test_load_default_params_uses_packaged_settings() -> None:
    assert config.load_default_params() == config.EstimationParams(hourly_rate=50.0, overhead_rate=0.2)


def test_override_settings_merge(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "settings.json"
    override.write_text(json.dumps({"pricing_defaults": {"params": {"overhead_rate": 0.35}}}), encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    settings = config.load_app_settings(reload=True)

    assert settings["pricing_defaults"]["params"] == {"hourly_rate": 50, "overhead_rate": 0.35}
    assert config.load_default_params().overhead_rate == pytest.approx(0.35)


def test_missing_override_is_ignored(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(tmp_path / "nowhere.json"))

    with caplog.at_level(logging.WARNING, logger="furniture_estimator.config"):
        settings = config.load_app_settings(reload=True)

    assert settings["pricing_defaults"]["params"]["hourly_rate"] == 50
    assert "does not exist" in caplog.text


def test_malformed_override_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "settings.json"
    override.write_text("{oops", encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    with pytest.raises(config.ConfigError, match="Failed to load override settings"):
        config.load_app_settings(reload=True)


def test_invalid_params_in_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "settings.json"
    override.write_text(json.dumps({"pricing_defaults": {"params": {"hourly_rate": -5}}}), encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    with pytest.raises(config.ConfigError, match="hourly_rate"):
        config.load_default_params()


def test_load_named_config_errors() -> None:
    with pytest.raises(config.ConfigError, match="Unsupported version"):
        config.load_named_config("params", version=2)
    with pytest.raises(config.ConfigError, match="Missing configuration section"):
        config.load_named_config("nonexistent")


def test_load_default_rates_applies_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    override = tmp_path / "settings.json"
    override.write_text(json.dumps({"rate_overrides": {"equipment": {"Edge Bander": 95}}}), encoding="utf-8")
    monkeypatch.setenv(config.APP_SETTINGS_ENV_VAR, str(override))

    rates = config.load_default_rates()

    assert rates.equipment_rate("edge_bander") == pytest.approx(95.0)
    assert rates.material_price("plywood") == pytest.approx(50.0)


def test_save_named_config_writes_version(tmp_path: Path) -> None:
    path = config.save_named_config({"hourly_rate": 65}, tmp_path / "params.json")

    assert json.loads(path.read_text(encoding="utf-8")) == {"version": 1, "data": {"hourly_rate": 65}}


def test_resources_resolve_packaged_files() -> None:
    assert default_app_settings_json().name == "app_settings.json"
    with pytest.raises(FileNotFoundError):
        resource_path("missing.json")


def test_configure_logging_sets_level() -> None:
    root = logging.getLogger()
    previous = root.level
    try:
        config.configure_logging("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
