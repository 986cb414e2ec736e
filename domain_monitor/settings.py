"""Application configuration and the file it is stored in."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import Field, dataclass, field, fields
from datetime import timedelta
from typing import Any, TypeVar

import yaml

log = logging.getLogger(__name__)

APP_CONFIG = "config.yaml"
DOMAINS = "domain.yaml"
WHOIS_CACHE_NAME = "whois-cache.yaml"
WHOIS_REFRESH_INTERVAL = timedelta(hours=4)

_T = TypeVar("_T")


def _opt(key: str, default: Any) -> Any:
    return field(default=default, metadata={"key": key})


def _camel_opt(default: Any) -> Any:
    """A field whose file key is the camel-case form of its name."""
    return field(default=default, metadata={"key": None})


def _camel(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(part.capitalize() for part in rest)


def _key(f: Field) -> str:
    return f.metadata["key"] or _camel(f.name)


def _coerce(expected: type, value: Any, key: str) -> Any:
    if value is None:
        return expected()
    if expected is bool:
        if isinstance(value, bool):
            return value
        raise ValueError(f"{key}: expected a boolean, got {value!r}")
    if expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"{key}: expected a string, got {value!r}")


def _section_to_dict(section: Any) -> dict[str, Any]:
    return {_key(f): getattr(section, f.name) for f in fields(section)}


def _section_from_dict(cls: type[_T], data: Any, name: str) -> _T:
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise ValueError(f"{name}: expected a mapping, got {data!r}")
    values = {}
    for f in fields(cls):
        key = _key(f)
        if key in data:
            values[f.name] = _coerce(type(f.default), data[key], f"{name}.{key}")
    return cls(**values)


@dataclass
class AppConfiguration:
    """Settings of the web application itself."""

    port: int = _opt("port", 0)
    automate_whois_refresh: bool = _opt("automateWHOISRefresh", False)
    show_configuration: bool = _opt("showConfiguration", False)


@dataclass
class AlertsConfiguration:
    """Who receives alerts and which thresholds trigger them."""

    admin: str = _opt("admin", "")
    send_alerts: bool = _opt("sendAlerts", False)
    send_2_month_alert: bool = _opt("send2MonthAlert", False)
    send_1_month_alert: bool = _opt("send1MonthAlert", False)
    send_2_week_alert: bool = _opt("send2WeekAlert", False)
    send_1_week_alert: bool = _opt("send1WeekAlert", False)
    send_3_day_alert: bool = _opt("send3DayAlert", False)
    send_daily_expiry_alert: bool = _opt("sendDailyExpiryAlert", False)


@dataclass
class SMTPConfiguration:
    """Outgoing mail server settings."""

    host: str = _opt("host", "")
    port: int = _opt("port", 0)
    secure: bool = _opt("secure", False)
    auth_user: str = _opt("authUser", "")
    auth_pass: str = _camel_opt(str())
    enabled: bool = _opt("enabled", False)
    from_name: str = _opt("fromName", "")
    from_address: str = _opt("fromAddress", "")


@dataclass
class SchedulerConfiguration:
    """Settings for refreshing cached WHOIS data."""

    whois_cache_stale_interval: int = _opt("whoisCacheStaleInterval", 0)
    use_standard_whois_refresh_schedule: bool = _opt("useStandardWhoisRefreshSchedule", False)


_SECTIONS = (
    ("app", "app", AppConfiguration),
    ("alerts", "alerts", AlertsConfiguration),
    ("smtp", "smtp", SMTPConfiguration),
    ("scheduler", "scheduler", SchedulerConfiguration),
)


@dataclass
class ConfigurationFile:
    """The contents of the configuration file."""

    app: AppConfiguration = field(default_factory=AppConfiguration)
    alerts: AlertsConfiguration = field(default_factory=AlertsConfiguration)
    smtp: SMTPConfiguration = field(default_factory=SMTPConfiguration)
    scheduler: SchedulerConfiguration = field(default_factory=SchedulerConfiguration)

    def to_dict(self) -> dict[str, Any]:
        """Return the contents keyed as in the YAML file."""
        return {key: _section_to_dict(getattr(self, attr)) for attr, key, _ in _SECTIONS}

    @classmethod
    def from_dict(cls, data: Any) -> ConfigurationFile:
        """Build from parsed YAML; missing values take their zero value."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"configuration: expected a mapping, got {data!r}")
        return cls(
            **{
                attr: _section_from_dict(section_cls, data.get(key), key)
                for attr, key, section_cls in _SECTIONS
            }
        )


@dataclass
class Configuration:
    """Configuration data together with the file it is stored in."""

    config: ConfigurationFile = field(default_factory=ConfigurationFile)
    filepath: str = ""

    def flush(self) -> None:
        """Write the configuration to its file."""
        text = yaml.safe_dump(self.config.to_dict(), sort_keys=False, allow_unicode=True)
        with open(self.filepath, "w", encoding="utf-8") as handle:
            handle.write(text)
        log.info("💾 Configuration flushed to %s", os.path.basename(self.filepath))

    def update_app_configuration(self, data: AppConfiguration) -> None:
        self.config.app = data
        self.flush()

    def update_alerts_configuration(self, data: AlertsConfiguration) -> None:
        self.config.alerts = data
        self.flush()

    def update_smtp_configuration(self, data: SMTPConfiguration) -> None:
        self.config.smtp = data
        self.flush()

    def update_scheduler_configuration(self, data: SchedulerConfiguration) -> None:
        self.config.scheduler = data
        self.flush()


def default_configuration(filepath: str) -> Configuration:
    """Return the configuration used when no file exists yet."""
    return Configuration(
        filepath=filepath,
        config=ConfigurationFile(
            app=AppConfiguration(port=3124, automate_whois_refresh=True, show_configuration=True),
            scheduler=SchedulerConfiguration(
                whois_cache_stale_interval=190,
                use_standard_whois_refresh_schedule=True,
            ),
            alerts=AlertsConfiguration(send_1_month_alert=True, send_3_day_alert=True),
        ),
    )