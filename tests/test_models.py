"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from case_triage.models.case import CaseBatch, CaseRecord, CrmSession
from case_triage.models.result import ClassificationResult
from case_triage.models.session import RemoteSession


class TestCaseRecord:
    """Tests for CaseRecord model."""

    def test_validates_from_salesforce_fields(self, sample_case_row: dict) -> None:
        """Salesforce field names map onto snake_case attributes; attributes key dropped."""
        case = CaseRecord.model_validate(sample_case_row)
        assert case.id == "500AAA"
        assert case.case_number == "00012345"
        assert case.type == "Member Retention"
        assert case.created_date == "2026-10-17T09:15:00.000+0000"
        assert not hasattr(case, "attributes")

    def test_only_id_required(self) -> None:
        """Null fields are allowed; a missing Id is not."""
        case = CaseRecord.model_validate({"Id": "500X", "Subject": None})
        assert case.subject is None
        with pytest.raises(ValidationError):
            CaseRecord.model_validate({"CaseNumber": "1"})

    def test_frozen(self, case: CaseRecord) -> None:
        """Records are read-only snapshots."""
        with pytest.raises(ValidationError):
            case.subject = "changed"

    def test_label_prefers_case_number(self) -> None:
        assert CaseRecord(Id="500X", CaseNumber="42").label == "42"
        assert CaseRecord(Id="500X").label == "500X"

    def test_agent_message_projection(self, case: CaseRecord) -> None:
        """Only id, Type, Subject, Description, Origin are sent to the agent."""
        assert case.to_agent_message() == {
            "id": "500AAA",
            "Type": "Member Retention",
            "Subject": "Cancel my membership",
            "Description": "I would like to cancel before renewal.",
            "Origin": "Email",
        }


class TestCaseBatch:
    def test_defaults_empty(self) -> None:
        batch = CaseBatch()
        assert batch.records == []
        assert batch.total_matching == 0


class TestCrmSession:
    def test_auth_headers(self) -> None:
        session = CrmSession(access_token="tok", instance_url="https://org.example.com")
        assert session.auth_headers() == {"Authorization": "Bearer tok"}


class TestRemoteSession:
    def test_keeps_extra_fields(self) -> None:
        """Descriptor fields beyond id/appName/userId are preserved."""
        session = RemoteSession.model_validate(
            {"id": "s_1", "appName": "app", "userId": "u", "events": [], "lastUpdateTime": 1.5}
        )
        assert session.app_name == "app"
        assert session.user_id == "u"
        assert session.model_dump(by_alias=True)["lastUpdateTime"] == 1.5


class TestClassificationResult:
    def test_record_id(self) -> None:
        result = ClassificationResult(data={"CaseId": "500AAA", "Tier__c": "Gold"})
        assert result.record_id("CaseId") == "500AAA"

    def test_record_id_missing_or_blank(self) -> None:
        assert ClassificationResult(data={"Tier__c": "Gold"}).record_id("CaseId") is None
        assert ClassificationResult(data={"CaseId": ""}).record_id("CaseId") is None

    def test_update_body_strips_key(self) -> None:
        """Update body is the result minus the key; the result itself is untouched."""
        result = ClassificationResult(data={"CaseId": "500AAA", "Tier__c": "Gold", "Queue__c": "MA"})
        body = result.update_body("CaseId")
        assert body == {"Tier__c": "Gold", "Queue__c": "MA"}
        assert "CaseId" in result.data
