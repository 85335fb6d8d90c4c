"""Tests for analysis_publisher/cli.py"""

import json
import textwrap

import pytest
from click.testing import CliRunner

from analysis_publisher.cli import cli

BASE = "https://api.github.example.com"
RUNS = f"{BASE}/repos/octo/widgets/check-runs"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GITHUB_API_URL", "GITHUB_TOKEN", "GITHUB_REPOSITORY", "GITHUB_SHA", "GITHUB_WORKSPACE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    p = tmp_path / "analysis-publisher.yaml"
    p.write_text(textwrap.dedent(f"""\
        github:
          api_url: "{BASE}"
          token: "ghp_test"
          repository: "octo/widgets"
        check:
          name: "lint"
        """), encoding="utf-8")
    return str(p)


@pytest.fixture
def report_file(tmp_path):
    p = tmp_path / "report.json"
    p.write_text(json.dumps([
        {"file": "/ws/src/a.py", "line": 2, "message": "unused import", "severity": "low"},
    ]), encoding="utf-8")
    return str(p)


def test_init_writes_template(tmp_path):
    out = tmp_path / "cfg.yaml"
    result = CliRunner().invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 0
    assert out.exists()


def test_init_refuses_to_overwrite(tmp_path):
    out = tmp_path / "cfg.yaml"
    out.write_text("x")
    result = CliRunner().invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_publish_end_to_end(config_file, report_file, requests_mock):
    create = requests_mock.post(RUNS, json={"id": 3})
    update = requests_mock.patch(f"{RUNS}/3", json={"id": 3})

    result = CliRunner().invoke(cli, [
        "--config", config_file, "publish", report_file,
        "--sha", "abc123", "--workspace", "/ws", "--title", "Lint findings",
    ])

    assert result.exit_code == 0, result.output
    assert create.last_request.json()["head_sha"] == "abc123"
    batch = update.request_history[0].json()
    assert batch["output"]["title"] == "Lint findings"
    assert batch["output"]["annotations"][0]["path"] == "src/a.py"
    assert batch["output"]["annotations"][0]["annotation_level"] == "notice"
    assert update.last_request.json()["conclusion"] == "neutral"


def test_publish_client_rejection_exits_zero(config_file, report_file, requests_mock):
    requests_mock.post(RUNS, status_code=403, text="forbidden")
    result = CliRunner().invoke(cli, ["--config", config_file, "publish", report_file, "--sha", "abc"])
    assert result.exit_code == 0


def test_publish_server_error_exits_one(config_file, report_file, requests_mock):
    requests_mock.post(RUNS, status_code=500, text="oops")
    result = CliRunner().invoke(cli, ["--config", config_file, "publish", report_file, "--sha", "abc"])
    assert result.exit_code == 1
    assert "GitHub error" in result.output


def test_publish_without_sha_is_config_error(config_file, report_file):
    result = CliRunner().invoke(cli, ["--config", config_file, "publish", report_file])
    assert result.exit_code == 1
    assert "head_sha" in result.output


def test_publish_bad_report_is_report_error(config_file, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--config", config_file, "publish", str(bad), "--sha", "abc"])
    assert result.exit_code == 1
    assert "Report error" in result.output
