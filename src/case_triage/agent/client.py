"""Client for the routing agent service: session creation and classification runs."""

import json
import logging
import uuid
from typing import Optional

import httpx
from pydantic import ValidationError

from case_triage.agent.events import find_final_json
from case_triage.config import TriageConfig
from case_triage.errors import ClassificationError, ClassificationNotFoundError, SessionError
from case_triage.models.case import CaseRecord
from case_triage.models.result import ClassificationResult
from case_triage.models.session import RemoteSession

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"s_{uuid.uuid4()}"


class RoutingAgentClient:
    """
    Talks to the agent API under `classification_base_url`.
    All cases share one logical user; each case gets its own fresh session.
    """

    DEFAULT_HEADERS = {
        "User-Agent": "case-triage/0.1",
        "Accept": "application/json, text/event-stream, */*",
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

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def session_url(self, session_id: str) -> str:
        cfg = self._config
        return (
            f"{cfg.classification_base_url}/apps/{cfg.app_name}"
            f"/users/{cfg.user_id_template}/sessions/{session_id}"
        )

    def open_session(self, token: str, record_id: str) -> RemoteSession:
        """Create a session for one case with the configured initial state."""
        url = self.session_url(new_session_id())
        payload = {"state": dict(self._config.initial_session_state)}
        logger.debug("POST %s for record %s", url, record_id)
        try:
            resp = self._client.post(url, json=payload, headers=self._auth(token))
            resp.raise_for_status()
            return RemoteSession.model_validate(resp.json())
        except httpx.HTTPStatusError as e:
            raise SessionError(
                f"Session creation failed with HTTP {e.response.status_code}",
                e.response.text or None,
            ) from e
        except httpx.RequestError as e:
            raise SessionError("Session creation request failed", str(e)) from e
        except (ValueError, ValidationError) as e:
            raise SessionError("Session creation returned an unusable descriptor", str(e)) from e

    def run_payload(self, session: RemoteSession, case: CaseRecord) -> dict:
        return {
            "app_name": session.app_name,
            "userId": session.user_id,
            "session_id": session.id,
            "new_message": {
                "role": "user",
                "parts": [{"text": json.dumps(case.to_agent_message())}],
            },
            "streaming": False,
        }

    def classify(self, token: str, session: RemoteSession, case: CaseRecord) -> ClassificationResult:
        """
        Submit the case and pull the terminal result out of the event stream.
        The body is an event stream even though streaming is switched off.
        """
        url = f"{self._config.classification_base_url}/run_sse"
        logger.debug("POST %s for session %s", url, session.id)
        try:
            resp = self._client.post(url, json=self.run_payload(session, case), headers=self._auth(token))
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ClassificationError(
                f"Classification run failed with HTTP {e.response.status_code}",
                e.response.text or None,
            ) from e
        except httpx.RequestError as e:
            raise ClassificationError("Classification run request failed", str(e)) from e

        final = find_final_json(resp.text, self._config.terminal_author)
        if final is None:
            raise ClassificationNotFoundError(
                'Could not find "final_json" in the event stream',
                resp.text or None,
            )
        return ClassificationResult(data=final)
