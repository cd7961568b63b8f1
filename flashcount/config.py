"""Configuration file management for flashcount."""

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from flashcount.dates import MonthPolicy, parse_month_policy, parse_weekday
from flashcount.domain.errors import ConfigurationError
from flashcount.domain.recurring import DEFAULT_MAX_CATCHUP
from flashcount.domain.report import UNCATEGORIZED, InsightThresholds

DEFAULT_CONFIG: dict[str, Any] = {
    "calendar": {
        "week_start": "monday",
        "month_policy": "clamp",
    },
    "recurring": {
        "max_catchup": DEFAULT_MAX_CATCHUP,
    },
    "report": {
        "uncategorized_label": UNCATEGORIZED,
        "top_share_threshold": 0.40,
        "period_change_threshold": 0.10,
        "category_change_threshold": 0.20,
    },
    "display": {
        "currency_symbol": "¥",
    },
}


@dataclass(frozen=True)
class Settings:
    """Validated configuration values."""

    week_start: int = 0
    month_policy: MonthPolicy = MonthPolicy.CLAMP
    max_catchup: int = DEFAULT_MAX_CATCHUP
    uncategorized_label: str = UNCATEGORIZED
    thresholds: InsightThresholds = InsightThresholds()
    currency_symbol: str = "¥"


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "flashcount" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(DEFAULT_CONFIG, f)

    os.chmod(config_path, 0o600)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the file is not valid TOML.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def merge_config(overrides: dict[str, Any]) -> dict[str, Any]:
    """Overlay a loaded config on the defaults, one table deep."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def _fraction(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float) or not 0 <= value <= 1:
        raise ConfigurationError(f"report.{name} must be a number between 0 and 1, got {value!r}")
    return float(value)


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name)
    if not isinstance(section, dict):
        raise ConfigurationError(f"[{name}] must be a table, got {section!r}")
    return section


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Validate a merged config dictionary into Settings.

    Raises:
        ConfigurationError: If any value is out of range or of the wrong type.
    """
    calendar_cfg = _section(config, "calendar")
    recurring_cfg = _section(config, "recurring")
    report_cfg = _section(config, "report")
    display_cfg = _section(config, "display")

    max_catchup = recurring_cfg["max_catchup"]
    if isinstance(max_catchup, bool) or not isinstance(max_catchup, int) or max_catchup < 1:
        raise ConfigurationError(f"recurring.max_catchup must be a positive integer, got {max_catchup!r}")

    return Settings(
        week_start=parse_weekday(str(calendar_cfg["week_start"])),
        month_policy=parse_month_policy(str(calendar_cfg["month_policy"])),
        max_catchup=max_catchup,
        uncategorized_label=str(report_cfg["uncategorized_label"]),
        thresholds=InsightThresholds(
            top_share=_fraction(report_cfg["top_share_threshold"], "top_share_threshold"),
            period_change=_fraction(report_cfg["period_change_threshold"], "period_change_threshold"),
            category_change=_fraction(report_cfg["category_change_threshold"], "category_change_threshold"),
        ),
        currency_symbol=str(display_cfg["currency_symbol"]),
    )


def load_settings(config_path: Path | None = None) -> Settings:
    """Load and validate settings. A missing config file means all defaults.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    try:
        overrides = load_config(config_path)
    except FileNotFoundError:
        overrides = {}
    return settings_from_config(merge_config(overrides))
