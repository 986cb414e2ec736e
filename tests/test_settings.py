import pytest
import yaml

from domain_monitor.settings import (
    AlertsConfiguration,
    AppConfiguration,
    Configuration,
    ConfigurationFile,
    SchedulerConfiguration,
    SMTPConfiguration,
    default_configuration,
)


def test_default_configuration_values(tmp_path):
    path = str(tmp_path / "config.yaml")
    conf = default_configuration(path)
    assert conf.filepath == path
    assert conf.config.app == AppConfiguration(
        port=3124, automate_whois_refresh=True, show_configuration=True
    )
    assert conf.config.scheduler.whois_cache_stale_interval == 190
    assert conf.config.scheduler.use_standard_whois_refresh_schedule is True
    assert conf.config.alerts.send_1_month_alert is True
    assert conf.config.alerts.send_3_day_alert is True
    assert conf.config.alerts.send_alerts is False
    assert conf.config.smtp == SMTPConfiguration()


def test_to_dict_uses_file_keys():
    data = default_configuration("x").config.to_dict()
    assert list(data) == ["app", "alerts", "smtp", "scheduler"]
    assert data["app"] == {"port": 3124, "automateWHOISRefresh": True, "showConfiguration": True}
    assert data["scheduler"]["whoisCacheStaleInterval"] == 190
    assert "authPass" in data["smtp"]


def test_round_trip():
    original = ConfigurationFile(
        app=AppConfiguration(port=8080, automate_whois_refresh=False, show_configuration=True),
        alerts=AlertsConfiguration(admin="admin@example.com", send_alerts=True, send_daily_expiry_alert=True),
        smtp=SMTPConfiguration(
            host="smtp.example.com",
            port=587,
            secure=True,
            auth_user="user",
            auth_pass="password",
            enabled=True,
            from_name="Monitor",
            from_address="monitor@example.com",
        ),
        scheduler=SchedulerConfiguration(whois_cache_stale_interval=10),
    )
    assert ConfigurationFile.from_dict(original.to_dict()) == original


def test_from_dict_empty_gives_zero_values():
    assert ConfigurationFile.from_dict(None) == ConfigurationFile()
    assert ConfigurationFile.from_dict({}).app.port == 0


def test_from_dict_partial_section():
    conf = ConfigurationFile.from_dict({"app": {"port": 3124}, "smtp": {"host": "smtp.example.com"}})
    assert conf.app.port == 3124
    assert conf.app.automate_whois_refresh is False
    assert conf.smtp.host == "smtp.example.com"
    assert conf.alerts == AlertsConfiguration()


@pytest.mark.parametrize(
    "data",
    [
        {"app": {"port": "abc"}},
        {"app": {"showConfiguration": "yes"}},
        {"app": ["port"]},
        ["app"],
    ],
)
def test_from_dict_rejects_bad_types(data):
    with pytest.raises(ValueError):
        ConfigurationFile.from_dict(data)


def test_flush_writes_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    conf = default_configuration(str(path))
    conf.flush()
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert loaded == conf.config.to_dict()
    assert ConfigurationFile.from_dict(loaded) == conf.config


def test_update_sections_persist(tmp_path):
    path = tmp_path / "config.yaml"
    conf = default_configuration(str(path))
    conf.update_app_configuration(AppConfiguration(port=9000))
    conf.update_alerts_configuration(AlertsConfiguration(admin="admin@example.com"))
    conf.update_smtp_configuration(SMTPConfiguration(host="smtp.example.com", enabled=True))
    conf.update_scheduler_configuration(SchedulerConfiguration(whois_cache_stale_interval=30))
    loaded = ConfigurationFile.from_dict(yaml.safe_load(path.read_text(encoding="utf-8")))
    assert loaded == conf.config
    assert loaded.app.port == 9000
    assert loaded.alerts.admin == "admin@example.com"
    assert loaded.smtp.enabled is True
    assert loaded.scheduler.whois_cache_stale_interval == 30


def test_flush_into_missing_directory_fails(tmp_path):
    conf = Configuration(filepath=str(tmp_path / "missing" / "config.yaml"))
    with pytest.raises(OSError):
        conf.flush()