"""Domain expiry monitoring with a WHOIS cache, e-mail alerts and a JSON web API."""

__version__ = "0.1.0"