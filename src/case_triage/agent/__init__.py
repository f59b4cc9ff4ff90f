"""Routing agent access."""

from case_triage.agent.client import RoutingAgentClient
from case_triage.agent.events import find_final_json, iter_events

__all__ = ["RoutingAgentClient", "find_final_json", "iter_events"]
