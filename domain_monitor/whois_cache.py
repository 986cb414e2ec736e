"""Cached WHOIS data for monitored domains and the file it is stored in."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

import yaml

from .alerts import Alert
from .domains import DomainConfiguration
from .whois import DomainNotFoundError, WhoisInfo, WhoisQueryError, parse, parse_date, query

log = logging.getLogger(__name__)

EXPIRY_AGE = timedelta(days=30)

Lookup = Callable[[str], WhoisInfo]

_FLAGS = (
    ("nxdomain", "nxdomain"),
    ("sent_2_month_alert", "sent2MonthAlert"),
    ("sent_1_month_alert", "sent1MonthAlert"),
    ("sent_2_week_alert", "sent2WeekAlert"),
    ("sent_1_week_alert", "sent1WeekAlert"),
    ("sent_3_day_alert", "sent3DayAlert"),
)

_ALERT_FLAGS = {
    Alert.TWO_MONTHS: "sent_2_month_alert",
    Alert.ONE_MONTH: "sent_1_month_alert",
    Alert.TWO_WEEKS: "sent_2_week_alert",
    Alert.ONE_WEEK: "sent_1_week_alert",
    Alert.THREE_DAYS: "sent_3_day_alert",
}


def _default_lookup(fqdn: str) -> WhoisInfo:
    return parse(query(fqdn))


def _local_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    return now if now.tzinfo else now.astimezone()


def _same_day(earlier: datetime, now: datetime) -> bool:
    if earlier.tzinfo is not None and now.tzinfo is not None:
        earlier = earlier.astimezone(now.tzinfo)
    return earlier.date() == now.date()


def _time_from(value: Any, key: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is not None:
            return parsed
    raise ValueError(f"{key}: expected a date, got {value!r}")


def _time_to(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


@dataclass
class WhoisCache:
    """Cached WHOIS data for one domain, with the alerts already sent."""

    fqdn: str = ""
    nxdomain: bool = False
    whois_info: WhoisInfo = field(default_factory=WhoisInfo)
    last_updated: datetime | None = None
    sent_2_month_alert: bool = False
    sent_1_month_alert: bool = False
    sent_2_week_alert: bool = False
    sent_1_week_alert: bool = False
    sent_3_day_alert: bool = False
    last_alert_sent: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when the entry was never updated or is older than 30 days."""
        if self.last_updated is None:
            return True
        return _local_now(now) - self.last_updated > EXPIRY_AGE

    def refresh(self, lookup: Lookup | None = None) -> bool:
        """Fetch fresh WHOIS data; return whether the entry was updated."""
        lookup = lookup or _default_lookup
        try:
            info = lookup(self.fqdn)
        except DomainNotFoundError as exc:
            log.warning("Error parsing whois for %s: %s", self.fqdn, exc)
            self.nxdomain = True
            return False
        except WhoisQueryError as exc:
            log.warning("Error querying whois for %s: %s", self.fqdn, exc)
            return False
        self.whois_info = info
        self.last_updated = datetime.now(timezone.utc)
        log.info("📄 Refreshed whois for %s", self.fqdn)
        return True

    def mark_alert_sent(self, alert: Alert, now: datetime | None = None) -> None:
        """Record that an alert was sent, warning if it already had been."""
        now = _local_now(now)
        alert = Alert(alert)
        attr = _ALERT_FLAGS.get(alert)
        if attr is not None:
            if getattr(self, attr):
                log.warning("⚠️ %s was already marked as sent for %s!", alert, self.fqdn)
            setattr(self, attr, True)
        elif self.last_alert_sent is not None and _same_day(self.last_alert_sent, now):
            log.warning("⚠️ %s was already marked as sent for %s!", alert, self.fqdn)
        self.last_alert_sent = now

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"fqdn": self.fqdn, "nxdomain": self.nxdomain}
        out["whoisInfo"] = self.whois_info.to_dict()
        out["lastUpdated"] = _time_to(self.last_updated)
        for attr, key in _FLAGS[1:]:
            out[key] = getattr(self, attr)
        out["lastAlertSent"] = _time_to(self.last_alert_sent)
        return out

    @classmethod
    def from_dict(cls, data: Any) -> WhoisCache:
        """Build from parsed YAML; missing values take their zero value."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"whois cache entry: expected a mapping, got {data!r}")
        fqdn = data.get("fqdn")
        values: dict[str, Any] = {"fqdn": "" if fqdn is None else str(fqdn)}
        for attr, key in _FLAGS:
            flag = data.get(key)
            if flag is None:
                continue
            if not isinstance(flag, bool):
                raise ValueError(f"{key}: expected a boolean, got {flag!r}")
            values[attr] = flag
        values["whois_info"] = WhoisInfo.from_dict(data.get("whoisInfo"))
        values["last_updated"] = _time_from(data.get("lastUpdated"), "lastUpdated")
        values["last_alert_sent"] = _time_from(data.get("lastAlertSent"), "lastAlertSent")
        return cls(**values)


@dataclass
class WhoisCacheStorage:
    """All cached WHOIS entries together with the file they are stored in."""

    entries: list[WhoisCache] = field(default_factory=list)
    filepath: str = ""
    lookup: Lookup | None = field(default=None, repr=False, compare=False)

    def get(self, fqdn: str) -> WhoisCache | None:
        """Return the entry for a domain, or None."""
        return next((entry for entry in self.entries if entry.fqdn == fqdn), None)

    def get_all(self) -> list[WhoisCache]:
        return list(self.entries)

    def add(self, fqdn: str) -> WhoisCache:
        """Look up a new domain, store its entry and write the cache."""
        entry = WhoisCache(fqdn=fqdn)
        entry.refresh(self.lookup)
        self.entries.append(entry)
        self.flush()
        return entry

    def refresh(self) -> None:
        """Refresh the expired entries, writing the cache if any were."""
        expired = [entry for entry in self.entries if entry.is_expired()]
        for entry in expired:
            entry.refresh(self.lookup)
        if expired:
            self.flush()
        else:
            log.info("✅ WHOIS cache not reporting any expired entries. Cache is up to date.")

    def refresh_with_domains(self, domains: DomainConfiguration) -> None:
        """Make sure every domain has an entry, then refresh expired ones."""
        for domain in domains.domains:
            if self.get(domain.fqdn) is None:
                log.info("📄 Adding WHOIS entry for %s", domain.fqdn)
                self.add(domain.fqdn)
        self.refresh()

    def remove(self, fqdn: str) -> None:
        """Drop the entry for a domain, if any, and write the cache."""
        entry = self.get(fqdn)
        if entry is not None:
            self.entries.remove(entry)
            log.info("🗑 Removed WHOIS entry for %s", fqdn)
        self.flush()

    def flush(self) -> None:
        """Write the cache to its file."""
        data = {"entries": [entry.to_dict() for entry in self.entries]}
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        with open(self.filepath, "w", encoding="utf-8") as handle:
            handle.write(text)
        log.info("💾 Flushed WHOIS data cache to %s", os.path.basename(self.filepath))


def default_whois_cache_storage(path: str) -> WhoisCacheStorage:
    """Return an empty cache stored at the given path."""
    return WhoisCacheStorage(filepath=path)