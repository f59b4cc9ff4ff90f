"""Shared builders for fake HTTP responses."""

import json
from typing import Any, Callable

import httpx


def build_sse(*events: Any) -> str:
    """Event stream body: one `data:` block per event, blank line between blocks."""
    blocks = [e if isinstance(e, str) else f"data: {json.dumps(e)}" for e in events]
    return "\n\n".join(blocks) + "\n\n"


def final_event(final_json: dict, author: str = "json_generator") -> dict:
    """Agent event carrying a terminal final_json result."""
    return {"author": author, "actions": {"stateDelta": {"final_json": final_json}}}


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """httpx client whose requests are answered by `handler`."""
    return httpx.Client(transport=httpx.MockTransport(handler))
