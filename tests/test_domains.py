import pytest
import yaml

from domain_monitor.domains import Domain, DomainConfiguration, default_domain_configuration


@pytest.fixture
def store(tmp_path):
    return default_domain_configuration(str(tmp_path / "domain.yaml"))


def _on_disk(store):
    with open(store.filepath, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    return [Domain.from_dict(item) for item in data["domains"]]


def test_default_is_empty_and_flushes_empty_list(store):
    assert store.domains == []
    store.flush()
    with open(store.filepath, encoding="utf-8") as handle:
        assert yaml.safe_load(handle) == {"domains": []}


def test_domain_round_trip():
    domain = Domain(name="Example", fqdn="example.com", alerts=True, enabled=True)
    assert domain.to_dict() == {"name": "Example", "fqdn": "example.com", "alerts": True, "enabled": True}
    assert Domain.from_dict(domain.to_dict()) == domain


def test_domain_from_dict_missing_keys():
    assert Domain.from_dict({"fqdn": "example.com"}) == Domain(fqdn="example.com")
    assert Domain.from_dict(None) == Domain()


def test_domain_from_dict_bad_type():
    with pytest.raises(ValueError):
        Domain.from_dict({"fqdn": "example.com", "alerts": "on"})


def test_add_domain_appends_and_persists(store):
    first = Domain(name="A", fqdn="a.example.com")
    second = Domain(name="B", fqdn="b.example.com", alerts=True)
    store.add_domain(first)
    store.add_domain(second)
    assert store.domains == [first, second]
    assert _on_disk(store) == [first, second]


def test_add_existing_fqdn_replaces_in_place(store):
    store.add_domain(Domain(name="A", fqdn="a.example.com"))
    store.add_domain(Domain(name="B", fqdn="b.example.com"))
    replacement = Domain(name="A2", fqdn="a.example.com", enabled=True)
    store.add_domain(replacement)
    assert len(store.domains) == 2
    assert store.domains[0] == replacement
    assert _on_disk(store)[0] == replacement


def test_update_domain_adds_when_missing(store):
    domain = Domain(name="C", fqdn="c.example.com")
    store.update_domain(domain)
    assert store.domains == [domain]


def test_remove_domain_by_fqdn(store):
    keep = Domain(name="A", fqdn="a.example.com")
    store.add_domain(keep)
    store.add_domain(Domain(name="B", fqdn="b.example.com"))
    store.remove_domain(Domain(fqdn="b.example.com"))
    assert store.domains == [keep]
    assert _on_disk(store) == [keep]


def test_remove_missing_domain_still_flushes(store):
    store.remove_domain(Domain(fqdn="nothing.example.com"))
    assert store.domains == []
    assert _on_disk(store) == []


def test_flush_into_missing_directory_fails(tmp_path):
    store = DomainConfiguration(filepath=str(tmp_path / "missing" / "domain.yaml"))
    with pytest.raises(OSError):
        store.flush()