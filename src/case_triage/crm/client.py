"""Salesforce REST client: client-credentials auth, SOQL query, and case writeback."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from case_triage.config import TriageConfig
from case_triage.errors import (
    CrmAuthError,
    CrmQueryError,
    CrmUpdateError,
    InvalidResultError,
    UnexpectedStatusError,
)
from case_triage.models.case import CaseBatch, CaseRecord, CrmSession
from case_triage.models.result import ClassificationResult

logger = logging.getLogger(__name__)


def _body(response: httpx.Response) -> Optional[str]:
    """Response text for error details, or None when empty."""
    text = response.text
    return text if text else None


class SalesforceClient:
    """
    Thin wrapper over the Salesforce REST API.
    Every call is attempted once; failures surface as typed triage errors.
    """

    DEFAULT_HEADERS = {
        "User-Agent": "case-triage/0.1",
        "Accept": "application/json",
    }

    def __init__(self, config: TriageConfig, client: Optional[httpx.Client] = None):
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=config.request_timeout,
            headers=self.DEFAULT_HEADERS,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def record_key_field(self) -> str:
        return self._config.record_key_field

    def _data_url(self, session: CrmSession, path: str) -> str:
        return f"{session.instance_url}/services/data/{self._config.crm_api_version}/{path}"

    def authenticate(self, client_id: str, client_secret: str) -> CrmSession:
        """Exchange client credentials for an access token and instance URL."""
        url = self._config.token_url
        logger.debug("POST %s (client_credentials)", url)
        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        }
        try:
            resp = self._client.post(url, data=form)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise CrmAuthError(
                f"Salesforce authentication failed with HTTP {e.response.status_code}",
                _body(e.response),
            ) from e
        except httpx.RequestError as e:
            raise CrmAuthError("Salesforce authentication request failed", str(e)) from e
        except ValueError as e:
            raise CrmAuthError("Salesforce token response was not JSON", _body(resp)) from e

        if not isinstance(payload, dict):
            raise CrmAuthError("Salesforce token response was not a JSON object", _body(resp))
        access_token = payload.get("access_token")
        instance_url = payload.get("instance_url")
        if not (isinstance(access_token, str) and access_token and isinstance(instance_url, str) and instance_url):
            raise CrmAuthError("Salesforce token response missing access_token or instance_url", resp.text)
        return CrmSession(access_token=access_token, instance_url=instance_url.rstrip("/"))

    def fetch_batch(self, session: CrmSession, query: str) -> CaseBatch:
        """
        Run a SOQL query. `total_matching` is Salesforce's totalSize, the count of
        all matching records, which may exceed the records returned.
        """
        url = self._data_url(session, "query")
        logger.debug("GET %s q=%s", url, query)
        try:
            resp = self._client.get(url, params={"q": query}, headers=session.auth_headers())
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise CrmQueryError(
                f"Salesforce query failed with HTTP {e.response.status_code}",
                _body(e.response),
            ) from e
        except httpx.RequestError as e:
            raise CrmQueryError("Salesforce query request failed", str(e)) from e
        except ValueError as e:
            raise CrmQueryError("Salesforce query response was not JSON", _body(resp)) from e

        if not isinstance(payload, dict):
            raise CrmQueryError("Salesforce query response was not a JSON object", _body(resp))
        raw_records = payload.get("records") or []
        if not isinstance(raw_records, list):
            raise CrmQueryError("Salesforce query returned malformed records", _body(resp))
        try:
            records = [CaseRecord.model_validate(r) for r in raw_records]
        except ValidationError as e:
            raise CrmQueryError("Salesforce query returned malformed records", str(e)) from e
        total = payload.get("totalSize")
        try:
            total_matching = int(total) if total is not None else len(records)
        except (TypeError, ValueError) as e:
            raise CrmQueryError("Salesforce query returned a malformed totalSize", _body(resp)) from e
        return CaseBatch(records=records, total_matching=total_matching)

    def apply_result(self, session: CrmSession, result: ClassificationResult) -> None:
        """
        PATCH the classification onto the record named by the result's key field.
        Only 204 with an empty body counts as success.
        """
        key_field = self._config.record_key_field
        record_id = result.record_id(key_field)
        if record_id is None:
            raise InvalidResultError(f'Classification result is missing "{key_field}"')

        body = result.update_body(key_field)
        url = self._data_url(session, f"sobjects/{self._config.sobject_type}/{record_id}")
        logger.debug("PATCH %s", url)
        try:
            resp = self._client.patch(url, json=body, headers=session.auth_headers())
        except httpx.RequestError as e:
            raise CrmUpdateError(f"Salesforce update of {record_id} failed", str(e)) from e

        if not resp.is_success:
            raise CrmUpdateError(
                f"Salesforce update of {record_id} failed with HTTP {resp.status_code}",
                _body(resp),
            )
        if resp.status_code != 204 or resp.content:
            raise UnexpectedStatusError(
                f"Unexpected status code: {resp.status_code}",
                _body(resp),
            )
