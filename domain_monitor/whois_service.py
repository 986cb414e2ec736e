"""Access to cached WHOIS data, fetching it on a cache miss."""

from __future__ import annotations

import logging

from .alerts import Alert
from .whois_cache import WhoisCache, WhoisCacheStorage

log = logging.getLogger(__name__)


class WhoisEntryMissing(LookupError):
    """No WHOIS entry exists for the domain even after fetching it."""


class WhoisService:
    """Look up WHOIS data for domains through the cache."""

    def __init__(self, store: WhoisCacheStorage) -> None:
        self.store = store

    def get_whois(self, fqdn: str, no_cache: bool = False) -> WhoisCache:
        """Return the cached entry, refreshing it first if no_cache is set.

        A domain not yet in the cache is looked up and added.
        """
        entry = self.store.get(fqdn)
        if entry is not None:
            if no_cache:
                entry.refresh(self.store.lookup)
                self.store.flush()
            return entry

        log.info("🙅 WHOIS entry cache miss for %s", fqdn)
        self.store.add(fqdn)
        entry = self.store.get(fqdn)
        if entry is None:
            raise WhoisEntryMissing("entry missing")
        return entry

    def mark_alert_sent(self, fqdn: str, alert: Alert) -> bool:
        """Record an alert for a cached domain; False if it is not cached."""
        entry = self.store.get(fqdn)
        if entry is None:
            return False
        entry.mark_alert_sent(alert)
        return True