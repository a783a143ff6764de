"""Unit tests for the CLI entry point."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from scripts.ado_report.cli import main
from scripts.ado_report.errors import ErrorKind, RequestFailed
from scripts.ado_report.job import ReportResult

ARGS = ["--org-url", "https://dev.azure.com/contoso", "--token", "pat"]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for name in ("ADO_ORG_URL", "ADO_PAT", "ADO_MAX_RETRIES", "ADO_OUTPUT_DIR", "ADO_LOG_FILE",
                 "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    with patch("scripts.ado_report.cli.load_dotenv"), patch("scripts.ado_report.config.load_dotenv"):
        yield


@pytest.fixture
def job_cls():
    with patch("scripts.ado_report.cli.UserReportJob") as cls:
        cls.return_value.run_with_tracking.return_value = ReportResult(
            output_path=Path("output/report.csv"),
            users=3, rows=3, projects=2, memberships=3, failed_branches=0,
        )
        yield cls


def test_success_exits_zero(job_cls, tmp_path):
    code = main(ARGS + ["--output-dir", str(tmp_path), "--max-retries", "5"])

    assert code == 0
    config = job_cls.call_args.args[0]
    assert config.retry.max_retries == 5
    assert config.output_dir == tmp_path


def test_fatal_error_exits_one(job_cls):
    job_cls.return_value.run_with_tracking.side_effect = RequestFailed(
        "denied", kind=ErrorKind.AUTH_ERROR, url="https://dev.azure.com/contoso", status=401
    )

    assert main(ARGS) == 1


def test_missing_token_exits_one(job_cls):
    assert main(["--org-url", "https://dev.azure.com/contoso"]) == 1
    job_cls.assert_not_called()


@pytest.mark.parametrize(
    "argv",
    [
        ["--org-url", "https://dev.azure.com/contoso/extra", "--token", "pat"],
        ARGS + ["--max-retries", "0"],
        ARGS + ["--max-retries", "eleven"],
        ["--token", "pat"],
    ],
)
def test_invalid_arguments_exit_two(job_cls, argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)

    assert exc_info.value.code == 2


def test_log_file_from_environment_receives_run_logs(job_cls, tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "run.log"
    monkeypatch.setenv("ADO_LOG_FILE", str(log_file))

    assert main(ARGS) == 0

    entries = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert any(e["message"].startswith("Exported 3 users") for e in entries)
    assert job_cls.call_args.args[0].log_file == log_file


def test_log_file_argument_overrides_environment(job_cls, tmp_path, monkeypatch):
    env_file = tmp_path / "env.log"
    arg_file = tmp_path / "arg.log"
    monkeypatch.setenv("ADO_LOG_FILE", str(env_file))

    assert main(ARGS + ["--log-file", str(arg_file)]) == 0

    assert arg_file.exists()
    assert not env_file.exists()


def test_failed_run_is_reported_without_repeating_traceback(job_cls, caplog):
    job_cls.return_value.run_with_tracking.side_effect = RuntimeError("boom")

    with patch("scripts.ado_report.cli.configure_logging"):
        with caplog.at_level(logging.ERROR, logger="ado_report.cli"):
            assert main(ARGS) == 1

    [record] = [r for r in caplog.records if r.name == "ado_report.cli"]
    assert "boom" in record.getMessage()
    assert record.exc_info is None
