"""Command-line entry point: load the data directory and serve the web app."""

from __future__ import annotations

import argparse
import logging
import os

from .mailer import MailerService, create_mailer
from .reader import ConfigDirectory, ConfigurationError
from .scheduler import RepeatingTask, check_domain_expirations, refresh_whois_cache
from .settings import WHOIS_REFRESH_INTERVAL, Configuration
from .web import create_app

log = logging.getLogger(__name__)

WHOIS_FIRST_DELAY = 5.0
EXPIRY_FIRST_DELAY = 60.0


def validate_directory(path: str) -> None:
    """Make sure the directory exists, creating it if needed."""
    if os.path.exists(path):
        if not os.path.isdir(path):
            raise NotADirectoryError(f"data directory is not a directory: {path}")
        log.info("📂 Data directory exists")
        return
    log.info("🛠️ Data directory does not exist, creating...")
    os.makedirs(path, exist_ok=True)
    log.info("📂 Data directory created")
    if not os.path.isdir(path):
        raise FileNotFoundError(f"failed to validate data directory: {path}")
    log.info("📂 Data directory exists")


def _configure_mailer(config: Configuration) -> MailerService | None:
    alerts = config.config.alerts
    smtp = config.config.smtp
    if not alerts.send_alerts:
        log.info("📵 Alerts are disabled")
        return None
    if not smtp.enabled:
        log.info("❌ Email notifications are disabled")
        return None
    if not smtp.host or smtp.host == "smtp.example.com":
        log.info("❌ SMTP is not configured")
        smtp.enabled = False
        return None
    mailer = create_mailer(smtp)
    if mailer is not None:
        log.info("📧 Alerts configured to be sent to %s", alerts.admin)
    return mailer


def main(argv: list[str] | None = None) -> int:
    """Run the domain monitor; returns the process exit status."""
    parser = argparse.ArgumentParser(prog="domain-monitor", description="Monitor domain expirations.")
    parser.add_argument(
        "-data-dir",
        "--data-dir",
        dest="data_dir",
        default="./data",
        help="Directory to store configuration and cache files",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    log.info("📁 Data directory set to %s", args.data_dir)
    try:
        validate_directory(args.data_dir)
        directory = ConfigDirectory(args.data_dir)
        log.info("⤴️ Loading configuration and cache files...")
        config = directory.read_app_config()
        mailer = _configure_mailer(config)
        log.info("📆 WHOIS cache refresh interval set to %s", WHOIS_REFRESH_INTERVAL)
        domains = directory.read_domains()
        log.info("📄 Loaded %d domains from domain list", len(domains.domains))
        whois_cache = directory.read_whois_cache()
        log.info("📄 Found %d cached whois entries", len(whois_cache.entries))
    except (OSError, ConfigurationError) as exc:
        log.error("❌ %s", exc)
        return 1

    app = create_app(config, domains, whois_cache, mailer, "views")
    interval = WHOIS_REFRESH_INTERVAL.total_seconds()
    tasks: list[RepeatingTask] = []

    if config.config.app.automate_whois_refresh:
        tasks.append(
            RepeatingTask(
                lambda: refresh_whois_cache(whois_cache, domains), interval, WHOIS_FIRST_DELAY
            )
        )
        log.info("📆 Scheduler running WHOIS expiration checks every %s", WHOIS_REFRESH_INTERVAL)
    else:
        log.info(
            "🚫 WHOIS cache refresh is disabled by configuration. "
            "(Check `automateWHOISRefresh` in config.yaml)"
        )

    if mailer is not None:
        tasks.append(
            RepeatingTask(
                lambda: check_domain_expirations(whois_cache, domains, mailer, config.config),
                interval,
                EXPIRY_FIRST_DELAY,
            )
        )
        log.info("📆 Scheduler running domain expiration checks every %s", WHOIS_REFRESH_INTERVAL)
    else:
        log.info("🚫 No mailer configured, canceling domain expiration checks.")

    for task in tasks:
        task.start()
    try:
        app.run(host="0.0.0.0", port=config.config.app.port)
    except OSError as exc:
        log.error("❌ %s", exc)
        return 1
    finally:
        for task in tasks:
            task.cancel()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())