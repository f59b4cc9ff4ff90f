"""Routing agent session descriptor."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RemoteSession(BaseModel):
    """
    Session returned by the agent's create-session call.
    Scoped to one case; any extra keys from the service are kept.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    app_name: str = Field(..., alias="appName")
    user_id: str = Field(..., alias="userId")
    state: dict[str, Any] = Field(default_factory=dict)
