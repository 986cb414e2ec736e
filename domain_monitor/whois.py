"""WHOIS lookups and parsing of WHOIS responses."""

from __future__ import annotations

import logging
import re
import socket
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta, timezone
from typing import Any

log = logging.getLogger(__name__)

WHOIS_PORT = 43
IANA_SERVER = "whois.iana.org"
DEFAULT_TIMEOUT = 10.0


class WhoisQueryError(Exception):
    """A WHOIS query failed or its response could not be used."""


class DomainNotFoundError(WhoisQueryError):
    """The WHOIS server reports that the domain is not registered."""


@dataclass
class DomainInfo:
    """Registration details of a domain."""

    domain_id: str = ""
    domain: str = ""
    punycode: str = ""
    name: str = ""
    extension: str = ""
    whois_server: str = ""
    status: list[str] = field(default_factory=list)
    name_servers: list[str] = field(default_factory=list)
    dnssec: bool = False
    created_date: str = ""
    updated_date: str = ""
    expiration_date: str = ""
    created_date_in_time: datetime | None = None
    updated_date_in_time: datetime | None = None
    expiration_date_in_time: datetime | None = None


_LIST_FIELDS = ("status", "name_servers")
_TIME_FIELDS = ("created_date_in_time", "updated_date_in_time", "expiration_date_in_time")


def _as_time(value: Any, key: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        if not value:
            return None
        parsed = parse_date(value)
        if parsed is None:
            raise ValueError(f"{key}: not a date: {value!r}")
        return parsed
    raise ValueError(f"{key}: expected a date, got {value!r}")


def _domain_to_dict(info: DomainInfo) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(info):
        value = getattr(info, f.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, list):
            value = list(value)
        out[f.name] = value
    return out


def _domain_from_dict(data: Any) -> DomainInfo:
    if not isinstance(data, Mapping):
        raise ValueError(f"domain: expected a mapping, got {data!r}")
    values: dict[str, Any] = {}
    for f in fields(DomainInfo):
        value = data.get(f.name)
        if value is None:
            continue
        if f.name in _TIME_FIELDS:
            values[f.name] = _as_time(value, f.name)
        elif f.name in _LIST_FIELDS:
            if not isinstance(value, list):
                raise ValueError(f"{f.name}: expected a list, got {value!r}")
            values[f.name] = [str(item) for item in value]
        elif f.name == "dnssec":
            if not isinstance(value, bool):
                raise ValueError(f"dnssec: expected a boolean, got {value!r}")
            values[f.name] = value
        else:
            values[f.name] = str(value)
    return DomainInfo(**values)


@dataclass
class WhoisInfo:
    """Parsed WHOIS data: the domain and its registrar."""

    domain: DomainInfo | None = None
    registrar: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """True when nothing was ever parsed into this record."""
        return self.domain is None and not self.registrar

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": None if self.domain is None else _domain_to_dict(self.domain),
            "registrar": dict(self.registrar),
        }

    @classmethod
    def from_dict(cls, data: Any) -> WhoisInfo:
        """Build from parsed YAML; missing values stay empty."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"whoisInfo: expected a mapping, got {data!r}")
        domain = data.get("domain")
        registrar = data.get("registrar") or {}
        if not isinstance(registrar, Mapping):
            raise ValueError(f"registrar: expected a mapping, got {registrar!r}")
        return cls(
            domain=None if domain is None else _domain_from_dict(domain),
            registrar={str(k): str(v) for k, v in registrar.items() if v is not None},
        )


_ISO = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?\s*(Z|UTC|GMT|[+-]\d{2}:?\d{2})?$",
    re.IGNORECASE,
)
_FORMATS = (
    "%Y-%m-%d",
    "%Y.%m.%d",
    "%Y/%m/%d",
    "%d-%b-%Y",
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%Y%m%d",
    "%d-%b-%Y %H:%M:%S",
    "%Y.%m.%d %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%a %b %d %H:%M:%S %Y",
)


def parse_date(text: str) -> datetime | None:
    """Parse a WHOIS date into an aware datetime, or None if unrecognised."""
    text = re.sub(r"\s*\((?:UTC|GMT)\)$", "", text.strip(), flags=re.IGNORECASE)
    if not text:
        return None
    match = _ISO.match(text)
    if match:
        year, month, day, hour, minute, second, fraction, zone = match.groups()
        micro = int((fraction or "0")[:6].ljust(6, "0"))
        tz = timezone.utc
        if zone and zone.upper() not in ("Z", "UTC", "GMT"):
            sign = 1 if zone[0] == "+" else -1
            digits = zone[1:].replace(":", "")
            tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))
        try:
            return datetime(
                int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
            )
        except ValueError:
            return None
    for fmt in _FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


_DOMAIN_KEYS = {
    "domain name": "domain",
    "domain": "domain",
    "registry domain id": "domain_id",
    "registrar whois server": "whois_server",
    "whois server": "whois_server",
    "creation date": "created_date",
    "created": "created_date",
    "created on": "created_date",
    "registered on": "created_date",
    "registration time": "created_date",
    "updated date": "updated_date",
    "last updated": "updated_date",
    "last modified": "updated_date",
    "changed": "updated_date",
    "registry expiry date": "expiration_date",
    "registrar registration expiration date": "expiration_date",
    "expiration date": "expiration_date",
    "expiry date": "expiration_date",
    "expires": "expiration_date",
    "expires on": "expiration_date",
    "expiration time": "expiration_date",
    "paid-till": "expiration_date",
}
_STATUS_KEYS = {"domain status", "status", "state"}
_NAME_SERVER_KEYS = {"name server", "nameserver", "nserver", "name servers"}
_REGISTRAR_KEYS = {
    "registrar": "name",
    "sponsoring registrar": "name",
    "registrar name": "name",
    "registrar url": "url",
    "registrar iana id": "iana_id",
    "registrar abuse contact email": "abuse_email",
}
_SIGNED = {"signed", "signeddelegation", "yes", "true", "active"}
_NOT_FOUND = (
    "no match for",
    "not found",
    "no data found",
    "no entries found",
    "no object found",
    "status: free",
    "status: available",
    "is available for registration",
)


def _add_unique(items: list[str], value: str) -> None:
    if value and value not in items:
        items.append(value)


def parse(raw: str) -> WhoisInfo:
    """Parse a raw WHOIS response.

    Raises DomainNotFoundError when the response says the domain does not
    exist, and WhoisQueryError when it holds no domain data at all.
    """
    if not raw or not raw.strip():
        raise WhoisQueryError("whois response is empty")

    values: dict[str, str] = {}
    registrar: dict[str, str] = {}
    status: list[str] = []
    name_servers: list[str] = []
    dnssec = False

    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith(("%", "#", ">>>")) or ":" not in line:
            continue
        key, _, value = line.partition(":")
        key = key.strip().lower()
        value = value.strip()
        if not value:
            continue
        if key in _DOMAIN_KEYS:
            values.setdefault(_DOMAIN_KEYS[key], value)
        elif key in _STATUS_KEYS:
            _add_unique(status, value.split()[0])
        elif key in _NAME_SERVER_KEYS:
            _add_unique(name_servers, value.split()[0].lower().rstrip("."))
        elif key == "dnssec":
            dnssec = dnssec or value.lower() in _SIGNED
        elif key in _REGISTRAR_KEYS:
            registrar.setdefault(_REGISTRAR_KEYS[key], value)

    if "domain" not in values:
        lowered = raw.lower()
        if any(pattern in lowered for pattern in _NOT_FOUND):
            raise DomainNotFoundError("domain is not found")
        raise WhoisQueryError("whois data is invalid")

    fqdn = values["domain"].lower().rstrip(".")
    name, _, extension = fqdn.partition(".")
    try:
        punycode = fqdn.encode("idna").decode("ascii")
    except UnicodeError:
        punycode = fqdn

    domain = DomainInfo(
        domain_id=values.get("domain_id", ""),
        domain=fqdn,
        punycode=punycode,
        name=name,
        extension=extension,
        whois_server=values.get("whois_server", ""),
        status=status,
        name_servers=name_servers,
        dnssec=dnssec,
        created_date=values.get("created_date", ""),
        updated_date=values.get("updated_date", ""),
        expiration_date=values.get("expiration_date", ""),
        created_date_in_time=parse_date(values.get("created_date", "")),
        updated_date_in_time=parse_date(values.get("updated_date", "")),
        expiration_date_in_time=parse_date(values.get("expiration_date", "")),
    )
    return WhoisInfo(domain=domain, registrar=registrar)


def _ask(server: str, text: str, timeout: float) -> str:
    try:
        payload = text.encode("idna")
    except UnicodeError:
        payload = text.encode("utf-8")
    chunks = []
    try:
        with socket.create_connection((server, WHOIS_PORT), timeout=timeout) as conn:
            conn.sendall(payload + b"\r\n")
            while True:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
    except OSError as exc:
        raise WhoisQueryError(f"whois query to {server} failed: {exc}") from exc
    return b"".join(chunks).decode("utf-8", errors="replace")


def _referral(response: str, wanted: str) -> str:
    for line in response.splitlines():
        key, sep, value = line.strip().partition(":")
        if sep and key.strip().lower() == wanted:
            host = value.strip()
            host = re.sub(r"^[a-z]+://", "", host, flags=re.IGNORECASE)
            host = host.split("/")[0].split(":")[0]
            if host:
                return host
    return ""


def query(fqdn: str, server: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Query WHOIS for a domain and return the raw response text.

    Without a server, the registry is found through IANA. A referral to a
    registrar's WHOIS server is followed and its answer appended.
    """
    fqdn = fqdn.strip().rstrip(".")
    if not fqdn:
        raise WhoisQueryError("domain is empty")
    if server is None:
        tld = fqdn.rsplit(".", 1)[-1]
        server = _referral(_ask(IANA_SERVER, tld, timeout), "refer")
        if not server:
            raise WhoisQueryError(f"no whois server known for {fqdn}")
    response = _ask(server, fqdn, timeout)
    referral = _referral(response, "registrar whois server")
    if referral and referral.lower() != server.lower():
        try:
            response += "\n" + _ask(referral, fqdn, timeout)
        except WhoisQueryError as exc:
            log.warning("Referral whois query for %s failed: %s", fqdn, exc)
    return response