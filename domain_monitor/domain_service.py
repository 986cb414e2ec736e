"""Operations on the list of monitored domains."""

from __future__ import annotations

import logging

from .domains import Domain, DomainConfiguration

log = logging.getLogger(__name__)


class UnknownDomainError(LookupError):
    """No monitored domain has the requested FQDN."""


class DomainServiceError(Exception):
    """A change to the domain list did not take effect."""


class DomainService:
    """Create, read, update and delete monitored domains."""

    def __init__(self, store: DomainConfiguration) -> None:
        self.store = store

    def _index(self, fqdn: str) -> int | None:
        return next(
            (index for index, domain in enumerate(self.store.domains) if domain.fqdn == fqdn),
            None,
        )

    def create_domain(self, domain: Domain) -> int:
        """Add or replace a domain and return its position in the list."""
        self.store.add_domain(domain)
        index = self._index(domain.fqdn)
        if index is None:
            raise DomainServiceError("failed to add domain")
        return index

    def get_domain(self, fqdn: str) -> Domain:
        index = self._index(fqdn)
        if index is None:
            raise UnknownDomainError("domain not found")
        return self.store.domains[index]

    def get_domains(self) -> list[Domain]:
        return list(self.store.domains)

    def update_domain(self, domain: Domain) -> None:
        """Replace the domain with the same FQDN, adding it if missing."""
        log.info("🛰️ Received domain update: %s", domain)
        self.store.update_domain(domain)
        if self._index(domain.fqdn) is None:
            raise DomainServiceError("failed to update domain")

    def delete_domain(self, fqdn: str) -> None:
        """Remove every domain with this FQDN; unknown FQDNs are ignored."""
        for domain in [d for d in self.store.domains if d.fqdn == fqdn]:
            self.store.remove_domain(domain)
        if self._index(fqdn) is not None:
            raise DomainServiceError("failed to delete domain")

    def flush(self) -> None:
        self.store.flush()