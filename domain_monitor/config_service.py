"""Reading and changing single configuration values by section and key."""

from __future__ import annotations

import logging
import re
from typing import Any

from .settings import (
    AlertsConfiguration,
    AppConfiguration,
    Configuration,
    ConfigurationFile,
    SchedulerConfiguration,
    SMTPConfiguration,
)

log = logging.getLogger(__name__)

# Section name -> (key as stored in the file -> attribute on the section object).
_KEYS: dict[str, dict[str, str]] = {
    "app": {
        "port": "port",
        "automateWHOISRefresh": "automate_whois_refresh",
        "showConfiguration": "show_configuration",
    },
    "alerts": {
        "admin": "admin",
        "sendAlerts": "send_alerts",
        "send2MonthAlert": "send_2_month_alert",
        "send1MonthAlert": "send_1_month_alert",
        "send2WeekAlert": "send_2_week_alert",
        "send1WeekAlert": "send_1_week_alert",
        "send3DayAlert": "send_3_day_alert",
        "sendDailyExpiryAlert": "send_daily_expiry_alert",
    },
    "smtp": {
        "host": "host",
        "port": "port",
        "secure": "secure",
        "authUser": "auth_user",
        "authPass": "auth_pass",
        "enabled": "enabled",
        "fromName": "from_name",
        "fromAddress": "from_address",
    },
    "scheduler": {
        "whoisCacheStaleInterval": "whois_cache_stale_interval",
        "useStandardWhoisRefreshSchedule": "use_standard_whois_refresh_schedule",
    },
}

_INTEGER = re.compile(r"[+-]?[0-9]+")


class InvalidConfigurationKey(LookupError):
    """The key does not exist in the requested section."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Invalid configuration key: {key}")
        self.key = key


class InvalidConfigurationSection(LookupError):
    """The requested configuration section does not exist."""

    def __init__(self, section: str) -> None:
        super().__init__(f"Invalid configuration section: {section}")
        self.section = section


class ConfigurationLockedError(PermissionError):
    """Configuration access is disabled by the showConfiguration setting."""

    def __init__(self) -> None:
        super().__init__("configuration editing is disabled")


def _to_int(text: str) -> int | None:
    return int(text) if _INTEGER.fullmatch(text) else None


class ConfigurationService:
    """Access to the stored configuration, one section or value at a time."""

    def __init__(self, store: Configuration) -> None:
        self.store = store

    def get_configuration(self) -> ConfigurationFile:
        return self.store.config

    def get_app_configuration(self) -> AppConfiguration:
        return self.store.config.app

    def get_alerts_configuration(self) -> AlertsConfiguration:
        return self.store.config.alerts

    def get_smtp_configuration(self) -> SMTPConfiguration:
        return self.store.config.smtp

    def get_scheduler_configuration(self) -> SchedulerConfiguration:
        return self.store.config.scheduler

    def set_configuration(self, config: ConfigurationFile) -> None:
        self.store.config = config
        self.store.flush()

    def set_app_configuration(self, config: AppConfiguration) -> None:
        self.store.config.app = config
        self.store.flush()

    def set_alerts_configuration(self, config: AlertsConfiguration) -> None:
        self.store.config.alerts = config
        self.store.flush()

    def set_smtp_configuration(self, config: SMTPConfiguration) -> None:
        self.store.config.smtp = config
        self.store.flush()

    def set_scheduler_configuration(self, config: SchedulerConfiguration) -> None:
        self.store.config.scheduler = config
        self.store.flush()

    @property
    def _editable(self) -> bool:
        return self.store.config.app.show_configuration

    def get_configuration_value(self, section: str, key: str) -> Any:
        """Return one value; secrets are hidden unless configuration is shown."""
        keys = _KEYS.get(section)
        if keys is None:
            raise InvalidConfigurationSection(section)
        if section == "smtp" and not self._editable:
            log.warning(
                "🚨 Configuration editing is disabled in config.yaml "
                "(SMTP settings are not accessible via GET)"
            )
            raise ConfigurationLockedError()
        attr = keys.get(key)
        if attr is None:
            raise InvalidConfigurationKey(key)
        if section == "alerts" and key == "admin" and not self._editable:
            log.warning(
                "🚨 Configuration editing is disabled in config.yaml "
                "(Admin email is not accessible via GET)"
            )
            raise ConfigurationLockedError()
        return getattr(getattr(self.store.config, section), attr)

    def set_configuration_value(self, section: str, key: str, value: Any) -> None:
        """Set one value from its form text and write the configuration.

        Toggles arrive as "on" for true and anything else for false.
        """
        if not self._editable:
            log.warning("🚨 Configuration editing is disabled in config.yaml")
            raise ConfigurationLockedError()
        if not isinstance(value, str):
            log.warning("Value is not expected type (string)")
            raise TypeError("value is not expected type (string)")

        int_value = _to_int(value)
        bool_value = value == "on"
        log.info(
            "🛰️ Setting '%s:%s' to %s (%d, %s)",
            section,
            key,
            value,
            int_value or 0,
            str(bool_value).lower(),
        )

        keys = _KEYS.get(section)
        if keys is None:
            raise InvalidConfigurationSection(section)
        attr = keys.get(key)
        if attr is None:
            raise InvalidConfigurationKey(key)

        target = getattr(self.store.config, section)
        current = getattr(target, attr)
        if isinstance(current, bool):
            setattr(target, attr, bool_value)
        elif isinstance(current, int):
            if int_value is None:
                log.warning("Error converting %s '%s' to int", key, value)
                raise ValueError(f"invalid integer for {key}: {value!r}")
            setattr(target, attr, int_value)
        else:
            setattr(target, attr, value)

        self.store.flush()