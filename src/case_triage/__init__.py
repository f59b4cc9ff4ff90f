"""Salesforce case triage through an external routing agent."""

__version__ = "0.1.0"
