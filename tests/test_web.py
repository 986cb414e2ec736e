import smtplib

import pytest
import yaml

from domain_monitor.domains import Domain, DomainConfiguration
from domain_monitor.mailer import MailerService
from domain_monitor.settings import SMTPConfiguration, default_configuration
from domain_monitor.web import create_app
from domain_monitor.whois import DomainInfo, WhoisInfo
from domain_monitor.whois_cache import WhoisCacheStorage


class FakeSMTP:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def ehlo(self):
        pass

    def has_extn(self, name):
        return False

    def login(self, user, secret):
        pass

    def send_message(self, msg):
        if self.fail:
            raise smtplib.SMTPException("rejected")
        self.sent.append(msg)

    def quit(self):
        pass

    def close(self):
        pass


@pytest.fixture
def env(tmp_path):
    views = tmp_path / "views"
    views.mkdir()
    (views / "500.html").write_text("<p>server error page</p>")
    (views / "404.html").write_text("<p>missing page</p>")
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "style.css").write_text("body { color: red; }")

    config = default_configuration(str(tmp_path / "config.yaml"))
    config.config.alerts.admin = "admin@example.com"
    domains = DomainConfiguration(
        domains=[Domain(name="Example", fqdn="example.com", alerts=True, enabled=True)],
        filepath=str(tmp_path / "domain.yaml"),
    )
    calls = []

    def lookup(fqdn):
        calls.append(fqdn)
        return WhoisInfo(domain=DomainInfo(domain=fqdn), registrar={"name": "Registrar"})

    cache = WhoisCacheStorage(filepath=str(tmp_path / "whois-cache.yaml"), lookup=lookup)
    return {
        "tmp": tmp_path,
        "config": config,
        "domains": domains,
        "cache": cache,
        "calls": calls,
        "views": str(views),
    }


def make_client(env, mailer=None):
    app = create_app(env["config"], env["domains"], env["cache"], mailer, env["views"])
    return app.test_client()


def test_domain_list(env):
    response = make_client(env).get("/api/domain")
    assert response.status_code == 200
    assert response.get_json() == [
        {"name": "Example", "fqdn": "example.com", "alerts": True, "enabled": True}
    ]


def test_domain_show_and_unknown(env):
    client = make_client(env)
    assert client.get("/api/domain/example.com").get_json()["name"] == "Example"
    missing = client.get("/api/domain/nothing.example.com")
    assert missing.status_code == 500
    assert b"server error page" in missing.data


def test_domain_create_json(env):
    client = make_client(env)
    response = client.post("/api/domain/create", json={"name": "Other", "fqdn": "other.example.com"})
    assert response.status_code == 201
    assert response.get_json() == 1
    stored = yaml.safe_load((env["tmp"] / "domain.yaml").read_text())
    assert [d["fqdn"] for d in stored["domains"]] == ["example.com", "other.example.com"]


def test_domain_create_form(env):
    client = make_client(env)
    response = client.post(
        "/api/domain/create", data={"name": "Form", "fqdn": "form.example.com", "alerts": "true"}
    )
    assert response.status_code == 201
    assert env["domains"].domains[-1] == Domain("Form", "form.example.com", True, False)


def test_domain_create_bad_bool_is_rejected(env):
    client = make_client(env)
    response = client.post("/api/domain/create", data={"fqdn": "bad.example.com", "alerts": "on"})
    assert response.status_code == 400
    assert [d.fqdn for d in env["domains"].domains] == ["example.com"]


def test_domain_update_and_delete(env):
    client = make_client(env)
    response = client.put(
        "/api/domain/example.com",
        json={"name": "Renamed", "fqdn": "example.com", "alerts": False, "enabled": True},
    )
    assert response.status_code == 204
    assert env["domains"].domains[0].name == "Renamed"
    assert env["domains"].domains[0].alerts is False

    response = client.delete("/api/domain/example.com")
    assert response.status_code == 204
    assert env["domains"].domains == []


def test_editing_routes_absent_when_configuration_hidden(env):
    env["config"].config.app.show_configuration = False
    client = make_client(env)
    assert client.post("/api/domain/create", json={"fqdn": "x.example.com"}).status_code == 405
    assert client.post("/api/config/app/port", data={"value": "1"}).status_code == 405
    assert len(env["domains"].domains) == 1


def test_config_get_and_set(env):
    client = make_client(env)
    assert client.get("/api/config/app/port").get_json() == 3124
    response = client.post("/api/config/app/port", data={"value": "8080"})
    assert response.status_code == 201
    assert env["config"].config.app.port == 8080
    stored = yaml.safe_load((env["tmp"] / "config.yaml").read_text())
    assert stored["app"]["port"] == 8080


def test_config_invalid_section(env):
    client = make_client(env)
    assert client.get("/api/config/nope/port").status_code == 500
    assert client.post("/api/config/app/port", data={"value": "abc"}).status_code == 500
    assert env["config"].config.app.port == 3124


def test_mailer_route_sends(env):
    smtp = FakeSMTP()
    mailer = MailerService(
        SMTPConfiguration(
            host="smtp.example.com", port=25, from_name="Monitor", from_address="monitor@example.com"
        ),
        smtp_factory=lambda host, port: smtp,
    )
    response = make_client(env, mailer).post("/mailer/test")
    assert response.status_code == 200
    assert response.get_json() == "Mail sent"
    assert smtp.sent[0]["To"] == "admin@example.com"


def test_mailer_route_failure(env):
    smtp = FakeSMTP(fail=True)
    mailer = MailerService(
        SMTPConfiguration(host="smtp.example.com", port=25, from_address="monitor@example.com"),
        smtp_factory=lambda host, port: smtp,
    )
    assert make_client(env, mailer).post("/mailer/test").status_code == 500


def test_mailer_route_absent_without_mailer(env):
    assert make_client(env).post("/mailer/test").status_code in (404, 405)


def test_whois_lookup_and_refresh(env):
    client = make_client(env)
    first = client.post("/whois/", data={"fqdn": "example.com"}).get_json()
    assert first["fqdn"] == "example.com"
    assert first["whoisInfo"]["domain"]["domain"] == "example.com"
    client.post("/whois/", data={"fqdn": "example.com"})
    assert env["calls"] == ["example.com"]
    client.post("/whois/refresh", data={"fqdn": "example.com"})
    assert env["calls"] == ["example.com", "example.com"]


def test_whois_requires_fqdn(env):
    assert make_client(env).post("/whois/", data={}).status_code == 500


def test_static_assets_served(env):
    response = make_client(env).get("/style.css")
    assert response.status_code == 200
    assert b"color: red" in response.data


def test_not_found_uses_error_page(env):
    response = make_client(env).get("/does-not-exist.txt")
    assert response.status_code == 404
    assert b"missing page" in response.data