"""Pytest fixtures for case-triage tests."""

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import pytest

from case_triage.config import TriageConfig
from case_triage.models.case import CaseRecord, CrmSession
from case_triage.models.session import RemoteSession
from case_triage.reporting import Reporter


class RecordingReporter(Reporter):
    """Collects reporter calls for assertions."""

    def __init__(self) -> None:
        self.steps: list[str] = []
        self.successes: list[str] = []
        self.errors: list[tuple[str, Optional[str]]] = []
        self.progress_total: Optional[int] = None
        self.progress_updates = 0

    def on_step(self, message: str) -> None:
        self.steps.append(message)

    def on_success(self, message: str) -> None:
        self.successes.append(message)

    def on_error(self, message: str, details: Optional[str] = None) -> None:
        self.errors.append((message, details))

    @contextmanager
    def progress(self, total: int) -> Iterator[Any]:
        self.progress_total = total
        reporter = self

        class _Bar:
            def update(self, n: int = 1) -> None:
                reporter.progress_updates += n

        yield _Bar()


@pytest.fixture
def config() -> TriageConfig:
    return TriageConfig(
        crm_base_url="https://login.example.com",
        crm_client_id="client-id",
        crm_client_secret="client-secret",
        classification_base_url="https://agent.example.com/v1/routing",
        query="SELECT Id FROM Case",
    )


@pytest.fixture
def sample_case_row() -> dict[str, Any]:
    """One record as returned by the Salesforce query endpoint."""
    return {
        "attributes": {"type": "Case", "url": "/services/data/v63.0/sobjects/Case/500AAA"},
        "Id": "500AAA",
        "CaseNumber": "00012345",
        "Subject": "Cancel my membership",
        "Type": "Member Retention",
        "Description": "I would like to cancel before renewal.",
        "Origin": "Email",
        "CreatedDate": "2026-10-17T09:15:00.000+0000",
    }


@pytest.fixture
def case(sample_case_row: dict[str, Any]) -> CaseRecord:
    return CaseRecord.model_validate(sample_case_row)


@pytest.fixture
def crm_session() -> CrmSession:
    return CrmSession(access_token="sf-token", instance_url="https://org.example.com")


@pytest.fixture
def remote_session() -> RemoteSession:
    return RemoteSession.model_validate(
        {"id": "s_123", "appName": "ma_routing_agent", "userId": "u_salesforce", "state": {}}
    )


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
