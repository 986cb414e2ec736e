"""Loading the configuration, domain list and WHOIS cache from a data directory."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import yaml

from .domains import Domain, DomainConfiguration, default_domain_configuration
from .settings import (
    APP_CONFIG,
    DOMAINS,
    WHOIS_CACHE_NAME,
    Configuration,
    ConfigurationFile,
    default_configuration,
)
from .whois_cache import WhoisCache, WhoisCacheStorage, default_whois_cache_storage

log = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """A stored file exists but cannot be understood."""


def _read(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read()
    except OSError as exc:
        log.warning("error: %s", exc)
        return None


def _load(text: str, what: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"error while unmarshalling {what}: {exc}") from exc


def _items(data: Any, key: str, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"error while unmarshalling {what}: expected a mapping")
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ConfigurationError(f"error while unmarshalling {what}: {key} must be a list")
    return items


@dataclass
class ConfigDirectory:
    """The directory holding configuration and cache files."""

    data_dir: str

    def _path(self, name: str) -> str:
        return os.path.join(self.data_dir, name)

    def read_app_config(self) -> Configuration:
        """Read the app configuration, creating a default file if missing."""
        filepath = self._path(APP_CONFIG)
        text = _read(filepath)
        if text is None:
            config = default_configuration(filepath)
            log.info("🆕 Using default configuration to create %s", APP_CONFIG)
            config.flush()
            return config

        try:
            inner = ConfigurationFile.from_dict(_load(text, "configuration"))
        except ValueError as exc:
            raise ConfigurationError(f"error while unmarshalling configuration: {exc}") from exc

        if inner.app.port == 0 and not inner.alerts.admin and not inner.smtp.host:
            log.warning("🚨 Configuration file may be empty.")
            log.warning("🚨 %s", inner)

        config = Configuration(config=inner, filepath=filepath)
        config.flush()
        return config

    def read_domains(self) -> DomainConfiguration:
        """Read the domain list, creating an empty file if missing."""
        filepath = self._path(DOMAINS)
        text = _read(filepath)
        if text is None:
            domains = default_domain_configuration(filepath)
            log.info("🆕 Using default configuration to create %s", DOMAINS)
            domains.flush()
            return domains

        items = _items(_load(text, "configuration"), "domains", "configuration")
        try:
            parsed = [Domain.from_dict(item) for item in items]
        except ValueError as exc:
            raise ConfigurationError(f"error while unmarshalling configuration: {exc}") from exc

        domains = DomainConfiguration(domains=parsed, filepath=filepath)
        domains.flush()
        return domains

    def read_whois_cache(self) -> WhoisCacheStorage:
        """Read the WHOIS cache, creating an empty file if missing."""
        filepath = self._path(WHOIS_CACHE_NAME)
        text = _read(filepath)
        if text is None:
            cache = default_whois_cache_storage(filepath)
            log.info("🆕 Using default (empty) cache to create %s", WHOIS_CACHE_NAME)
            cache.flush()
            return cache

        items = _items(_load(text, "whois cache"), "entries", "whois cache")
        try:
            entries = [WhoisCache.from_dict(item) for item in items]
        except ValueError as exc:
            raise ConfigurationError(f"error while unmarshalling whois cache: {exc}") from exc

        cache = WhoisCacheStorage(entries=entries, filepath=filepath)
        cache.flush()
        return cache