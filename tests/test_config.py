"""Tests for flashcount.config."""

import stat
from pathlib import Path

import pytest

from flashcount.config import (
    DEFAULT_CONFIG,
    Settings,
    create_default_config,
    get_config_path,
    load_config,
    load_settings,
    merge_config,
    save_config,
    settings_from_config,
)
from flashcount.dates import MonthPolicy
from flashcount.domain.errors import ConfigurationError


class TestConfigPath:
    """Tests for get_config_path."""

    def test_honours_xdg_config_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should place the config under XDG_CONFIG_HOME."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_config_path() == tmp_path / "flashcount" / "config.toml"

    def test_falls_back_to_dot_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should use ~/.config when XDG_CONFIG_HOME is unset."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert get_config_path() == tmp_path / ".config" / "flashcount" / "config.toml"


class TestConfigFile:
    """Tests for create_default_config, load_config and save_config."""

    def test_create_default_config(self, tmp_path: Path) -> None:
        """Should write the defaults readable only by the owner."""
        path = tmp_path / "nested" / "config.toml"

        create_default_config(path)

        assert load_config(path) == DEFAULT_CONFIG
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_save_then_load(self, tmp_path: Path) -> None:
        """Should persist edits."""
        path = tmp_path / "config.toml"
        create_default_config(path)
        config = load_config(path)
        config["calendar"]["week_start"] = "sunday"

        save_config(config, path)

        assert load_config(path)["calendar"]["week_start"] == "sunday"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should raise FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Should raise ConfigurationError for a file that is not TOML."""
        path = tmp_path / "config.toml"
        path.write_text("[calendar\nweek_start = ", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)


class TestSettings:
    """Tests for merge_config, settings_from_config and load_settings."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """Should fall back to defaults when there is no config file."""
        assert load_settings(tmp_path / "missing.toml") == Settings()

    def test_defaults_round_trip(self) -> None:
        """Should turn the default config into default settings."""
        assert settings_from_config(merge_config({})) == Settings()

    def test_partial_override(self, tmp_path: Path) -> None:
        """Should keep defaults for keys a file leaves out."""
        path = tmp_path / "config.toml"
        path.write_text(
            '[calendar]\nweek_start = "sunday"\nmonth_policy = "overflow"\n\n[report]\ntop_share_threshold = 0.5\n',
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.week_start == 6
        assert settings.month_policy is MonthPolicy.OVERFLOW
        assert settings.thresholds.top_share == 0.5
        assert settings.thresholds.period_change == 0.10
        assert settings.currency_symbol == "¥"

    def test_merge_does_not_touch_defaults(self) -> None:
        """Should not mutate DEFAULT_CONFIG."""
        merge_config({"display": {"currency_symbol": "$"}})

        assert DEFAULT_CONFIG["display"]["currency_symbol"] == "¥"

    @pytest.mark.parametrize(
        "section,key,value",
        [
            ("calendar", "week_start", "someday"),
            ("calendar", "month_policy", "round"),
            ("recurring", "max_catchup", 0),
            ("recurring", "max_catchup", "many"),
            ("report", "top_share_threshold", 1.5),
            ("report", "period_change_threshold", True),
        ],
    )
    def test_rejects_bad_values(self, section: str, key: str, value: object) -> None:
        """Should raise ConfigurationError for out-of-range or mistyped values."""
        with pytest.raises(ConfigurationError):
            settings_from_config(merge_config({section: {key: value}}))

    @pytest.mark.parametrize("section", ["calendar", "recurring", "report", "display"])
    def test_rejects_section_that_is_not_a_table(self, section: str) -> None:
        """Should raise ConfigurationError when a section is a plain value."""
        with pytest.raises(ConfigurationError, match=section):
            settings_from_config(merge_config({section: "x"}))

    def test_section_not_a_table_in_file(self, tmp_path: Path) -> None:
        """Should reject a config file whose section is a string."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('calendar = "x"\n')

        with pytest.raises(ConfigurationError):
            load_settings(config_file)
