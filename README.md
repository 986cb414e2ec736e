# domain_monitor

A small self-hosted service that tracks when your domains expire. It keeps a
list of monitored domains, caches their WHOIS records on disk, refreshes the
cache on a schedule and e-mails an administrator as expiry approaches. A
Flask application exposes the domain list, the settings and the WHOIS cache
as a JSON API.

## Installation

```
pip install .
```

## Running

```
domain-monitor --data-dir ./data
```

`-data-dir` is accepted as well; the default is `./data`. The directory is
created if it does not exist. It holds three YAML files:

- `config.yaml` – application, alert, SMTP and scheduler settings
- `domain.yaml` – the monitored domains
- `whois-cache.yaml` – cached WHOIS records and which alerts have been sent

Any file that is missing is written with defaults on start-up; files that
exist are read and written back in normalised form. A file that cannot be
parsed stops start-up with exit status 1. The web application is served by
Flask's built-in server on all interfaces, on the port given by `app.port`
(3124 in a freshly created configuration).

## Configuration

```yaml
app:
  port: 3124
  automateWHOISRefresh: true
  showConfiguration: true
alerts:
  admin: admin@example.com
  sendAlerts: true
  send2MonthAlert: false
  send1MonthAlert: true
  send2WeekAlert: false
  send1WeekAlert: false
  send3DayAlert: true
  sendDailyExpiryAlert: false
smtp:
  host: mail.example.com
  port: 587
  secure: true
  authUser: monitor@example.com
  authPass: password
  enabled: true
  fromName: Domain Monitor
  fromAddress: monitor@example.com
scheduler:
  whoisCacheStaleInterval: 190
  useStandardWhoisRefreshSchedule: true
```

Keys left out take their zero value (`0`, `false` or an empty string). A new
configuration turns on `automateWHOISRefresh`, `showConfiguration`,
`send1MonthAlert`, `send3DayAlert` and `useStandardWhoisRefreshSchedule`,
with a stale interval of 190.

With `showConfiguration` set to `false` every editing endpoint is switched
off, and the SMTP settings and the admin address can no longer be read
through the API. Turn it off in production.

Alerts go out only when `sendAlerts` is on, `smtp.enabled` is on and a host
other than the placeholder `smtp.example.com` is set. Mail is sent with
STARTTLS whenever the server offers it; with `secure: true` a server without
STARTTLS is refused. Login is used only when both `authUser` and `authPass`
are set.

Each threshold (two months, one month, two weeks, one week, three days) is
sent once per domain that has `alerts` on. With `sendDailyExpiryAlert` on, a
reminder is sent at most once per day during the last week before expiry.

The `scheduler` settings are stored and can be read and changed through the
API, but the refresh does not use them: a cached record is looked up again
once it is more than 30 days old.

## Schedules

If `automateWHOISRefresh` is on, the WHOIS cache is refreshed every four
hours, starting five seconds after start-up: domains missing from the cache
are looked up and added, and records older than 30 days are looked up again.
When a mailer is configured, expiry checks run every four hours as well,
starting one minute after start-up.

WHOIS queries go to port 43. The registry server is found through
`whois.iana.org`, and a referral to a registrar's WHOIS server is followed.

## HTTP API

- `GET /api/domain` – list domains
- `GET /api/domain/<fqdn>` – show one domain
- `POST /api/domain/create` – add or replace a domain (JSON body or form fields `name`, `fqdn`, `alerts`, `enabled`); answers `201` with its position in the list
- `PUT /api/domain/<fqdn>` – replace the domain named by the body's `fqdn`; answers `204`
- `DELETE /api/domain/<fqdn>` – remove a domain; answers `204`
- `GET /api/config/<section>/<key>` – read one setting (`app`, `alerts`, `smtp`, `scheduler`)
- `POST /api/config/<section>/<key>` with form field `value` – change one setting; toggles take `on` for true and anything else for false; answers `201`
- `POST /whois/` and `POST /whois/refresh` with form field `fqdn` – the cached or freshly looked-up WHOIS record as JSON
- `POST /mailer/test` – send a test e-mail to the alert recipient (only when a mailer is configured)

The create, update, delete and configuration-change endpoints exist only
when `showConfiguration` is on.

When a request fails, the page `views/<code>.html` (relative to the working
directory) is returned if it exists, otherwise the plain status text. Static
files are served from an `assets` directory next to `views`.

## What it does not do

There is no HTML dashboard, domain listing or configuration screen: the web
application answers in JSON only, and the WHOIS endpoints return the record
data rather than rendered cards.

## Using it as a library

```python
from domain_monitor.reader import ConfigDirectory
from domain_monitor.web import create_app

directory = ConfigDirectory("./data")
config = directory.read_app_config()
domains = directory.read_domains()
cache = directory.read_whois_cache()
app = create_app(config, domains, cache, None, "views")
```

Other building blocks:

- `domain_monitor.whois` – `query(fqdn)` for raw WHOIS text, `parse(raw)` into a `WhoisInfo`, `parse_date(text)`
- `domain_monitor.whois_cache.WhoisCacheStorage` – `get`, `add`, `refresh`, `refresh_with_domains`, `remove`, `flush`; pass `lookup=` to replace the network lookup
- `domain_monitor.scheduler` – `check_domain_expirations(...)`, `refresh_whois_cache(...)` and `RepeatingTask`
- `domain_monitor.mailer` – `create_mailer(smtp_config)` and `MailerService.test_mail` / `send_alert`