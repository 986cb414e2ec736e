from unittest import mock

import pytest
import yaml

from domain_monitor.cli import main, validate_directory


def test_validate_directory_creates_missing(tmp_path):
    target = tmp_path / "a" / "b"
    validate_directory(str(target))
    assert target.is_dir()


def test_validate_directory_keeps_existing(tmp_path):
    (tmp_path / "keep.txt").write_text("x")
    validate_directory(str(tmp_path))
    assert (tmp_path / "keep.txt").read_text() == "x"


def test_validate_directory_rejects_file(tmp_path):
    path = tmp_path / "file"
    path.write_text("x")
    with pytest.raises(NotADirectoryError):
        validate_directory(str(path))


@mock.patch("flask.Flask.run")
def test_main_creates_files_and_serves(run, tmp_path):
    data = tmp_path / "data"
    assert main(["--data-dir", str(data)]) == 0
    assert run.call_args.kwargs["port"] == 3124
    config = yaml.safe_load((data / "config.yaml").read_text())
    assert config["app"]["port"] == 3124
    assert yaml.safe_load((data / "domain.yaml").read_text()) == {"domains": []}
    assert yaml.safe_load((data / "whois-cache.yaml").read_text()) == {"entries": []}


@mock.patch("flask.Flask.run")
def test_main_single_dash_flag(run, tmp_path):
    data = tmp_path / "other"
    assert main(["-data-dir", str(data)]) == 0
    assert (data / "config.yaml").is_file()


@mock.patch("flask.Flask.run")
def test_main_uses_configured_port(run, tmp_path):
    (tmp_path / "config.yaml").write_text(yaml.safe_dump({"app": {"port": 8088}}))
    assert main(["--data-dir", str(tmp_path)]) == 0
    assert run.call_args.kwargs["port"] == 8088


@mock.patch("flask.Flask.run")
def test_main_fails_on_broken_config(run, tmp_path):
    (tmp_path / "config.yaml").write_text("app: [")
    assert main(["--data-dir", str(tmp_path)]) == 1
    assert run.call_count == 0