"""CRM (Salesforce) access."""

from case_triage.crm.client import SalesforceClient

__all__ = ["SalesforceClient"]
