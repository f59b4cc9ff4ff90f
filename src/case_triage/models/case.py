"""CRM case records and query batches."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CrmSession(BaseModel):
    """Access token plus the org-specific base URL for all further CRM calls."""

    access_token: str
    instance_url: str

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


class CaseRecord(BaseModel):
    """
    Read-only snapshot of a Salesforce Case.
    Validated from the API field names; extra keys such as `attributes` are dropped.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="Id")
    case_number: Optional[str] = Field(default=None, alias="CaseNumber")
    subject: Optional[str] = Field(default=None, alias="Subject")
    type: Optional[str] = Field(default=None, alias="Type")
    description: Optional[str] = Field(default=None, alias="Description")
    origin: Optional[str] = Field(default=None, alias="Origin")
    created_date: Optional[str] = Field(default=None, alias="CreatedDate")

    @property
    def label(self) -> str:
        """Business key for logs: case number when known, else the record id."""
        return self.case_number or self.id

    def to_agent_message(self) -> dict[str, Any]:
        """Projection of the case sent to the routing agent."""
        return {
            "id": self.id,
            "Type": self.type,
            "Subject": self.subject,
            "Description": self.description,
            "Origin": self.origin,
        }


class CaseBatch(BaseModel):
    """
    One query result. `total_matching` is the server-side count for the query,
    which can exceed len(records) when the query carries a LIMIT.
    """

    records: list[CaseRecord] = Field(default_factory=list)
    total_matching: int = 0
