"""The list of monitored domains and the file it is stored in."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

log = logging.getLogger(__name__)


def _text(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"{key}: expected a string, got {value!r}")


def _flag(data: Mapping, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


@dataclass
class Domain:
    """A monitored domain."""

    name: str = ""
    fqdn: str = ""
    alerts: bool = False
    enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "fqdn": self.fqdn, "alerts": self.alerts, "enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Any) -> Domain:
        """Build from parsed YAML; missing values take their zero value."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"domain: expected a mapping, got {data!r}")
        return cls(
            name=_text(data, "name"),
            fqdn=_text(data, "fqdn"),
            alerts=_flag(data, "alerts"),
            enabled=_flag(data, "enabled"),
        )


@dataclass
class DomainConfiguration:
    """The monitored domains together with the file they are stored in."""

    domains: list[Domain] = field(default_factory=list)
    filepath: str = ""

    def flush(self) -> None:
        """Write the domain list to its file."""
        data = {"domains": [domain.to_dict() for domain in self.domains]}
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        with open(self.filepath, "w", encoding="utf-8") as handle:
            handle.write(text)
        log.info("💾 Flushed domain table to %s", os.path.basename(self.filepath))

    def add_domain(self, domain: Domain) -> None:
        """Add a domain, or replace the one with the same FQDN."""
        for index, existing in enumerate(self.domains):
            if existing.fqdn == domain.fqdn:
                self.domains[index] = domain
                log.info("🔄 Updated domain %s", domain.fqdn)
                self.flush()
                return
        self.domains.append(domain)
        log.info("🆕 Added domain %s", domain.fqdn)
        self.flush()

    def remove_domain(self, domain: Domain) -> None:
        """Remove the domain with the same FQDN, if there is one."""
        for index, existing in enumerate(self.domains):
            if existing.fqdn == domain.fqdn:
                del self.domains[index]
                break
        log.info("🗑 Removed domain %s", domain.fqdn)
        self.flush()

    def update_domain(self, domain: Domain) -> None:
        """Replace the domain with the same FQDN, adding it if missing."""
        self.add_domain(domain)


def default_domain_configuration(filepath: str) -> DomainConfiguration:
    """Return an empty domain list stored at the given path."""
    return DomainConfiguration(filepath=filepath)