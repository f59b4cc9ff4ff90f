"""Tests for CLI dispatch and exit codes."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from case_triage.cli.main import main
from case_triage.errors import ConfigError, CrmAuthError, CrmQueryError
from case_triage.models.case import CaseBatch, CaseRecord, CrmSession
from case_triage.pipeline import TriageSummary


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("case_triage.cli.main.load_dotenv"):
        yield


@patch("case_triage.pipeline.run_triage")
@patch("case_triage.config.load_config")
def test_run_completes(mock_load, mock_run, config) -> None:
    """Per-case failures don't change the exit status."""
    mock_load.return_value = config
    mock_run.return_value = TriageSummary(total_matching=3)
    main(["run"])
    mock_run.assert_called_once()
    assert mock_run.call_args.kwargs["dry_run"] is False


@patch("case_triage.pipeline.run_triage")
@patch("case_triage.config.load_config")
def test_run_dry_run_flag(mock_load, mock_run, config) -> None:
    mock_load.return_value = config
    mock_run.return_value = TriageSummary()
    main(["run", "--dry-run", "--config", "triage.yaml"])
    assert mock_run.call_args.kwargs["dry_run"] is True
    mock_load.assert_called_once_with(Path("triage.yaml"))


@patch("case_triage.pipeline.run_triage", side_effect=CrmAuthError("HTTP 401"))
@patch("case_triage.config.load_config")
def test_run_setup_failure_exits_1(mock_load, mock_run, config) -> None:
    mock_load.return_value = config
    with pytest.raises(SystemExit) as exc_info:
        main(["run"])
    assert exc_info.value.code == 1


@patch("case_triage.pipeline.run_triage")
@patch("case_triage.config.load_config", side_effect=ConfigError("Invalid configuration: crm_client_secret"))
def test_config_error_exits_1(mock_load, mock_run) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["run"])
    assert exc_info.value.code == 1
    mock_run.assert_not_called()


@patch("case_triage.crm.client.SalesforceClient")
@patch("case_triage.pipeline.fetch_cases")
@patch("case_triage.config.load_config")
def test_query_writes_batch(mock_load, mock_fetch, mock_crm_cls, config, tmp_path: Path) -> None:
    mock_load.return_value = config
    batch = CaseBatch(records=[CaseRecord(Id="500A", CaseNumber="0001")], total_matching=12)
    mock_fetch.return_value = (CrmSession(access_token="t", instance_url="https://o"), batch)
    out = tmp_path / "batch.json"

    main(["query", "--output", str(out)])

    data = json.loads(out.read_text())
    assert data["total_matching"] == 12
    assert data["records"][0]["Id"] == "500A"
    assert data["records"][0]["CaseNumber"] == "0001"
    mock_crm_cls.return_value.close.assert_called_once()


@patch("case_triage.crm.client.SalesforceClient", return_value=MagicMock())
@patch("case_triage.pipeline.fetch_cases", side_effect=CrmQueryError("HTTP 400"))
@patch("case_triage.config.load_config")
def test_query_failure_exits_1(mock_load, mock_fetch, mock_crm_cls, config) -> None:
    mock_load.return_value = config
    with pytest.raises(SystemExit) as exc_info:
        main(["query"])
    assert exc_info.value.code == 1
