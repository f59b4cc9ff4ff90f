"""Classification result passed through from the agent to the CRM."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ClassificationResult(BaseModel):
    """
    Arbitrary field map produced by the agent.
    The only key we know about is the record key naming the target case;
    everything else is written back verbatim.
    """

    data: dict[str, Any] = Field(default_factory=dict)

    def record_id(self, key_field: str) -> Optional[str]:
        value = self.data.get(key_field)
        if value is None or value == "":
            return None
        return str(value)

    def update_body(self, key_field: str) -> dict[str, Any]:
        """Copy of the result without the record key."""
        return {k: v for k, v in self.data.items() if k != key_field}
