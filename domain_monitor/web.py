"""The web application: domain, configuration, mailer and WHOIS endpoints."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, abort, jsonify, request, send_file

from .config_service import ConfigurationService
from .domain_service import DomainService
from .domains import Domain, DomainConfiguration
from .mailer import MailerService
from .settings import Configuration
from .whois import WhoisQueryError
from .whois_cache import WhoisCacheStorage
from .whois_service import WhoisEntryMissing, WhoisService

log = logging.getLogger(__name__)

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _form_bool(form: Mapping[str, str], key: str) -> bool:
    value = form.get(key, "")
    if value == "" or value in _FALSE:
        return False
    if value in _TRUE:
        return True
    abort(400, f"{key}: not a boolean: {value!r}")


def _bind_domain() -> Domain:
    """Read a domain from a JSON body or from form fields."""
    if request.is_json:
        data: Any = request.get_json(silent=True)
        if data is None:
            abort(400, "request body is not valid JSON")
        try:
            return Domain.from_dict(data)
        except ValueError as exc:
            abort(400, str(exc))
    form = request.form
    return Domain(
        name=form.get("name", ""),
        fqdn=form.get("fqdn", ""),
        alerts=_form_bool(form, "alerts"),
        enabled=_form_bool(form, "enabled"),
    )


def _no_content() -> Response:
    return Response(status=204)


def _status_code(exc: Exception) -> int:
    """The HTTP status an exception stands for; 500 when it names none."""
    code = getattr(exc, "code", None)
    if isinstance(code, int) and not isinstance(code, bool) and 100 <= code <= 599:
        return code
    return 500


def create_app(
    config: Configuration,
    domains: DomainConfiguration,
    whois_cache: WhoisCacheStorage,
    mailer: MailerService | None = None,
    views_dir: str = "views",
) -> Flask:
    """Build the web application.

    Error pages are served from ``views_dir`` as ``<code>.html``; static
    assets come from the ``assets`` directory next to it.
    """
    views_dir = os.path.abspath(views_dir)
    assets_dir = os.path.join(os.path.dirname(views_dir), "assets")
    app = Flask(__name__, static_folder=assets_dir, static_url_path="")

    editable = config.config.app.show_configuration
    domain_service = DomainService(domains)
    config_service = ConfigurationService(config)
    whois_service = WhoisService(whois_cache)

    @app.errorhandler(Exception)
    def handle_error(exc: Exception) -> Any:
        code = _status_code(exc)
        log.error("%s", exc)
        page = os.path.join(views_dir, f"{code}.html")
        if os.path.isfile(page):
            return send_file(page, mimetype="text/html"), code
        log.error("error page %s is missing", page)
        try:
            text = HTTPStatus(code).phrase
        except ValueError:
            text = "Error"
        return Response(text, status=code, mimetype="text/plain")

    @app.after_request
    def log_request(response: Response) -> Response:
        log.info("%s %s %s", request.method, request.path, response.status_code)
        return response

    # Domain API
    @app.get("/api/domain")
    def domain_list() -> Any:
        return jsonify([domain.to_dict() for domain in domain_service.get_domains()])

    @app.get("/api/domain/<fqdn>")
    def domain_show(fqdn: str) -> Any:
        return jsonify(domain_service.get_domain(fqdn).to_dict())

    if editable:

        @app.post("/api/domain/create")
        def domain_create() -> Any:
            index = domain_service.create_domain(_bind_domain())
            domain_service.flush()
            return jsonify(index), 201

        @app.put("/api/domain/<fqdn>")
        def domain_update(fqdn: str) -> Any:
            domain_service.update_domain(_bind_domain())
            return _no_content()

        @app.delete("/api/domain/<fqdn>")
        def domain_delete(fqdn: str) -> Any:
            domain_service.delete_domain(fqdn)
            domain_service.flush()
            return _no_content()

    # Configuration API
    @app.get("/api/config/<section>/<key>")
    def config_get(section: str, key: str) -> Any:
        return jsonify(config_service.get_configuration_value(section, key))

    if editable:

        @app.post("/api/config/<section>/<key>")
        def config_set(section: str, key: str) -> Any:
            value = request.values.get("value", "")
            try:
                config_service.set_configuration_value(section, key, value)
            except Exception as exc:
                log.warning("🚨 Error setting configuration value: %s", exc)
                raise
            return Response(status=201)

    # Mailer
    if mailer is not None:
        recipient = config.config.alerts.admin

        @app.post("/mailer/test")
        def mailer_test() -> Any:
            try:
                mailer.test_mail(recipient)
            except Exception as exc:
                log.warning("❌ Failed to send test mail to %s: %s", recipient, exc)
                raise
            log.info("✅ Test mail sent successfully to %s", recipient)
            return jsonify("Mail sent")

    # WHOIS
    def whois_card(refresh: bool) -> Any:
        fqdn = request.values.get("fqdn", "")
        if not fqdn:
            raise ValueError("invalid domain to fetch (FQDN required)")
        try:
            entry = whois_service.get_whois(fqdn, refresh)
        except (WhoisEntryMissing, WhoisQueryError) as exc:
            return jsonify({"error": str(exc)})
        return jsonify(entry.to_dict())

    @app.post("/whois/")
    def whois_get() -> Any:
        return whois_card(False)

    @app.post("/whois/refresh")
    def whois_refresh() -> Any:
        return whois_card(True)

    return app