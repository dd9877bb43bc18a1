# flake8: noqa
import pytest
from loguru import logger
from typer.testing import CliRunner

import run
from docintake.resolvers.base import NullResolver
from docintake.resolvers.directory import DirectoryResolver

runner = CliRunner()

SETTINGS = """
paths:
  logs_root: logs
  inbox: in
  archive: out
  error: err
resolver:
  type: file
  clients_file: clients.yaml
  timeout_sec: 2
forms:
  large_form_threshold: 3
"""

CLIENTS = """
clients:
  - client_id: "7"
    client_code: C1001
"""


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    # los sinks apuntan al stderr del runner
    logger.remove()


def test_load_cfg_defaults():
    cfg = run.load_cfg("no_such_settings.yaml")
    assert cfg.paths.archive == "data/archive"
    assert cfg.scan.low_quality_threshold == 70
    assert isinstance(run.build_resolver(cfg), NullResolver)


def test_load_cfg_from_yaml(workdir):
    (workdir / "settings.yaml").write_text(SETTINGS, encoding="utf-8")
    (workdir / "clients.yaml").write_text(CLIENTS, encoding="utf-8")
    cfg = run.load_cfg("settings.yaml")
    assert cfg.paths.inbox == "in"
    assert cfg.resolver.timeout_sec == 2.0
    assert cfg.forms.large_form_threshold == 3
    assert cfg.inbox.mode == "scan"
    assert isinstance(run.build_resolver(cfg), DirectoryResolver)


def test_scan_command(workdir):
    (workdir / "lab.csv").write_bytes(b"101,102\n5.2,200\nC1001\n")
    result = runner.invoke(run.app, ["scan", "lab.csv", "--config", "none.yaml"])
    assert result.exit_code == 0
    assert '"path_id": "101"' in result.output


def test_scan_command_failure_exit_code(workdir):
    (workdir / "lab.csv").write_bytes(b"101\n5\n")
    result = runner.invoke(run.app, ["scan", "lab.csv", "--config", "none.yaml"])
    assert result.exit_code == 1
    assert "at least 3 rows" in result.output


def test_import_form_command(workdir):
    (workdir / "form.txt").write_bytes(b"Email:\nPhone Number ____\n")
    result = runner.invoke(run.app, ["import-form", "form.txt", "--config", "none.yaml"])
    assert result.exit_code == 0
    assert '"type": "phone"' in result.output


def test_watch_once_processes_backlog(workdir):
    (workdir / "settings.yaml").write_text(SETTINGS, encoding="utf-8")
    (workdir / "clients.yaml").write_text(CLIENTS, encoding="utf-8")
    (workdir / "in").mkdir()
    (workdir / "in" / "lab.csv").write_bytes(b"101\n5\nC1001\n")

    result = runner.invoke(run.app, ["watch", "--once", "--config", "settings.yaml"])
    assert result.exit_code == 0
    assert (workdir / "out" / "source" / "lab.csv").exists()
    assert len(list((workdir / "out").glob("*_scan_lab.json"))) == 1
