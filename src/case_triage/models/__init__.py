"""Data models for cases, sessions, and classification results."""

from case_triage.models.case import CaseBatch, CaseRecord, CrmSession
from case_triage.models.result import ClassificationResult
from case_triage.models.session import RemoteSession

__all__ = ["CaseBatch", "CaseRecord", "ClassificationResult", "CrmSession", "RemoteSession"]
