"""Scheduled WHOIS refreshes and domain expiry checks."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from .alerts import Alert
from .domains import DomainConfiguration
from .mailer import MailError, MailerService
from .settings import ConfigurationFile
from .whois_cache import WhoisCache, WhoisCacheStorage

log = logging.getLogger(__name__)

# Days before expiry, the alert, the setting enabling it and the flag marking it sent.
_THRESHOLDS = (
    (60, Alert.TWO_MONTHS, "send_2_month_alert", "sent_2_month_alert"),
    (30, Alert.ONE_MONTH, "send_1_month_alert", "sent_1_month_alert"),
    (14, Alert.TWO_WEEKS, "send_2_week_alert", "sent_2_week_alert"),
    (7, Alert.ONE_WEEK, "send_1_week_alert", "sent_1_week_alert"),
    (3, Alert.THREE_DAYS, "send_3_day_alert", "sent_3_day_alert"),
)


class RepeatingTask:
    """Runs a function after a first delay and then again every interval."""

    def __init__(self, function: Callable[[], object], interval: float, first_delay: float = 0.0) -> None:
        self.function = function
        self.interval = interval
        self.first_delay = first_delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._cancelled = False

    def _schedule(self, delay: float) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._timer = threading.Timer(delay, self._run)
            self._timer.daemon = True
            self._timer.start()

    def _run(self) -> None:
        try:
            self.function()
        except Exception:
            log.exception("Scheduled task failed")
        self._schedule(self.interval)

    def start(self) -> None:
        """Start the schedule."""
        self._schedule(self.first_delay)

    def cancel(self) -> None:
        """Stop the schedule; a run in progress is not interrupted."""
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()


def _expiration(entry: WhoisCache | None) -> datetime | None:
    if entry is None or entry.nxdomain or entry.whois_info.is_empty():
        return None
    domain = entry.whois_info.domain
    return None if domain is None else domain.expiration_date_in_time


def _same_day(earlier: datetime | None, now: datetime) -> bool:
    if earlier is None:
        return False
    if earlier.tzinfo is not None and now.tzinfo is not None:
        earlier = earlier.astimezone(now.tzinfo)
    return earlier.date() == now.date()


def _send(mailer: MailerService, admin: str, entry: WhoisCache, alert: Alert, now: datetime) -> bool:
    try:
        mailer.send_alert(admin, entry.fqdn, alert)
    except MailError as exc:
        log.warning("❌ Failed to send %s for %s: %s", alert, entry.fqdn, exc)
        return False
    entry.mark_alert_sent(alert, now)
    return True


def _alerts_for(
    entry: WhoisCache, days: float, mailer: MailerService, config: ConfigurationFile, now: datetime
) -> list[Alert]:
    settings = config.alerts
    sent: list[Alert] = []
    for limit, alert, setting, flag in _THRESHOLDS:
        if days <= limit and not getattr(entry, flag) and getattr(settings, setting):
            if not _send(mailer, settings.admin, entry, alert, now):
                return sent
            sent.append(alert)
    if 0 < days <= 7 and settings.send_daily_expiry_alert:
        if _same_day(entry.last_alert_sent, now):
            log.warning("⚠️ Daily alert for %s was already sent today", entry.fqdn)
            return sent
        if _send(mailer, settings.admin, entry, Alert.DAILY, now):
            sent.append(Alert.DAILY)
    return sent


def check_domain_expirations(
    whois_cache: WhoisCacheStorage,
    domains: DomainConfiguration,
    mailer: MailerService | None,
    config: ConfigurationFile,
    now: datetime | None = None,
) -> list[tuple[str, Alert]]:
    """Send due expiry alerts for domains with alerts on; return what was sent."""
    if mailer is None:
        log.info("🚫 No mailer configured, canceling domain expiration checks.")
        return []
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    sent: list[tuple[str, Alert]] = []
    for domain in domains.domains:
        if not domain.alerts:
            continue
        entry = whois_cache.get(domain.fqdn)
        expires = _expiration(entry)
        if entry is None or expires is None:
            log.warning("❌ WHOIS entry for %s not found, skipping", domain.fqdn)
            continue
        days = (expires - now).total_seconds() / 86400
        sent.extend((domain.fqdn, alert) for alert in _alerts_for(entry, days, mailer, config, now))
    return sent


def refresh_whois_cache(whois_cache: WhoisCacheStorage, domains: DomainConfiguration) -> None:
    """Bring the cache in line with the domain list and write it."""
    log.info("🔄 Refreshing WHOIS cache")
    whois_cache.refresh_with_domains(domains)
    whois_cache.flush()