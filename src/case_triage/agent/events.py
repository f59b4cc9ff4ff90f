"""Parsing for the routing agent's run_sse event stream."""

import json
from typing import Any, Iterator, Optional

DATA_PREFIX = "data:"


def iter_events(body: str) -> Iterator[dict[str, Any]]:
    """
    Yield JSON payloads from `data:` blocks, in document order.
    Blocks are separated by a blank line; blocks that don't decode to a JSON
    object are skipped.
    """
    text = body.replace("\r\n", "\n")
    for block in text.split("\n\n"):
        block = block.strip("\n")
        if not block.startswith(DATA_PREFIX):
            continue
        try:
            event = json.loads(block[len(DATA_PREFIX):].strip())
        except json.JSONDecodeError:
            continue
        if isinstance(event, dict):
            yield event


def final_json_of(event: dict[str, Any], author: str) -> Optional[dict[str, Any]]:
    """The event's actions.stateDelta.final_json if it comes from `author`, else None."""
    if event.get("author") != author:
        return None
    actions = event.get("actions")
    if not isinstance(actions, dict):
        return None
    delta = actions.get("stateDelta")
    if not isinstance(delta, dict):
        return None
    final = delta.get("final_json")
    if isinstance(final, dict) and final:
        return final
    return None


def find_final_json(body: str, author: str) -> Optional[dict[str, Any]]:
    """First terminal result in the stream; later ones are ignored."""
    for event in iter_events(body):
        final = final_json_of(event, author)
        if final is not None:
            return final
    return None
