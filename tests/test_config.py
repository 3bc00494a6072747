import os
from pathlib import Path

import pytest

from config import AuditConfig, config_from_env, parse_concurrency, prepare_output_dir
from errors import InvalidInputError, OutputDirectoryError


def test_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = config_from_env()

    assert config.output_dir == str(tmp_path / "reports")
    assert config.output_format == "json"
    assert config.concurrency == 3
    assert config.lighthouse_path == "lighthouse"
    assert config.chrome_endpoint is None
    assert config.timeout is None
    assert config.throttling_method == "provided"


def test_environment_values(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("AUDIT_CONCURRENCY", "5")
    monkeypatch.setenv("LIGHTHOUSE_PATH", "/usr/local/bin/lighthouse")
    monkeypatch.setenv("CHROME_ENDPOINT", "ws://chrome:9222/devtools/browser/x")
    monkeypatch.setenv("AUDIT_TIMEOUT", "90")
    monkeypatch.setenv("AUDIT_OUTPUT_DIR", str(tmp_path / "out"))

    config = config_from_env()

    assert config.concurrency == 5
    assert config.lighthouse_path == "/usr/local/bin/lighthouse"
    assert config.chrome_endpoint == "ws://chrome:9222/devtools/browser/x"
    assert config.timeout == 90.0
    assert config.output_dir == str(tmp_path / "out")


def test_overrides_beat_environment(monkeypatch):
    monkeypatch.setenv("AUDIT_CONCURRENCY", "5")
    config = config_from_env(concurrency="2", output_format="HTML", categories=" performance, seo ,")

    assert config.concurrency == 2
    assert config.output_format == "html"
    assert config.categories == "performance,seo"


def test_unknown_format_is_rejected():
    with pytest.raises(InvalidInputError):
        config_from_env(output_format="pdf")


@pytest.mark.parametrize("value", [0, -2, "abc", "", None, True, "1.5"])
def test_bad_concurrency_falls_back_to_default(value):
    assert parse_concurrency(value) == 3


def test_concurrency_accepts_numeric_strings():
    assert parse_concurrency(" 4 ") == 4


@pytest.mark.parametrize("value", ["soon", "0", "-5"])
def test_bad_timeout_is_rejected(value):
    with pytest.raises(InvalidInputError):
        config_from_env(timeout=value)


def test_config_is_immutable():
    config = AuditConfig()
    with pytest.raises(Exception):
        config.concurrency = 10


def test_prepare_output_dir_creates_nested_dirs(tmp_path: Path):
    config = AuditConfig(output_dir=str(tmp_path / "a" / "b"))
    assert prepare_output_dir(config) == str(tmp_path / "a" / "b")
    assert (tmp_path / "a" / "b").is_dir()


def test_prepare_output_dir_uses_parent_of_output_path(tmp_path: Path):
    config = AuditConfig(output_dir=str(tmp_path / "unused"), output_path=str(tmp_path / "single" / "report.json"))
    assert prepare_output_dir(config) == str(tmp_path / "single")
    assert not (tmp_path / "unused").exists()


def test_prepare_output_dir_under_a_file(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(OutputDirectoryError):
        prepare_output_dir(AuditConfig(output_dir=str(blocker / "reports")))


def test_unwritable_output_dir_suggests_a_fix(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(os, "access", lambda path, mode: False)

    with pytest.raises(OutputDirectoryError) as exc:
        prepare_output_dir(AuditConfig(output_dir=str(tmp_path)))
    assert "chmod" in exc.value.remedy
