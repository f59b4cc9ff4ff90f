"""Batch orchestration: setup stages once, then an isolated pipeline per case."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from case_triage.agent.client import RoutingAgentClient
from case_triage.config import TriageConfig
from case_triage.crm.client import SalesforceClient
from case_triage.errors import RecordError, SetupError
from case_triage.identity import obtain_identity_token
from case_triage.models.case import CaseBatch, CaseRecord, CrmSession
from case_triage.models.result import ClassificationResult
from case_triage.reporting import NullReporter, Reporter

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[Sequence[str]], str]


class CaseStatus(str, Enum):
    PENDING = "pending"
    SESSION_OPENED = "session_opened"
    CLASSIFIED = "classified"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass
class CaseOutcome:
    """Where one case ended up. `error` is set only for FAILED."""

    case: CaseRecord
    status: CaseStatus = CaseStatus.PENDING
    result: Optional[ClassificationResult] = None
    error: Optional[str] = None


@dataclass
class TriageSummary:
    total_matching: int = 0
    outcomes: list[CaseOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status != CaseStatus.FAILED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == CaseStatus.FAILED)

    @property
    def headline(self) -> str:
        if not self.outcomes:
            return "Process Complete: No cases needed processing."
        return (
            "Process Complete: All cases have been processed "
            f"({self.succeeded} succeeded, {self.failed} failed)."
        )


def process_case(
    case: CaseRecord,
    *,
    token: str,
    crm_session: CrmSession,
    crm: SalesforceClient,
    agent: RoutingAgentClient,
    reporter: Reporter,
    dry_run: bool = False,
) -> CaseOutcome:
    """
    Open a session, classify, write back. Any failure marks the case FAILED
    and skips its remaining stages; nothing already done is undone.
    """
    outcome = CaseOutcome(case=case)
    try:
        reporter.on_step(f"Creating agent session for case {case.id}")
        session = agent.open_session(token, case.id)
        outcome.status = CaseStatus.SESSION_OPENED
        reporter.on_success("Session created successfully.")
        reporter.on_data(session.model_dump(by_alias=True), "Session")

        reporter.on_step("Running classification")
        reporter.on_data(case.to_agent_message(), "Payload")
        result = agent.classify(token, session, case)
        outcome.result = result
        outcome.status = CaseStatus.CLASSIFIED
        reporter.on_success('Found "final_json" object.')
        reporter.on_data(result.data)

        if dry_run:
            reporter.on_info("Dry run: skipping Salesforce update.")
            return outcome

        target = result.record_id(crm.record_key_field) or "?"
        reporter.on_step(f"Updating Salesforce case {target}")
        crm.apply_result(crm_session, result)
        outcome.status = CaseStatus.UPDATED
        reporter.on_success(f"Case {target} updated successfully in Salesforce.")
    except RecordError as e:
        outcome.status = CaseStatus.FAILED
        outcome.error = e.message
        reporter.on_error(f"Failed to process case {case.label}: {e.message}", e.details)
    except Exception as e:
        logger.exception("Unexpected error processing case %s", case.label)
        outcome.status = CaseStatus.FAILED
        outcome.error = str(e) or type(e).__name__
        reporter.on_error(f"Failed to process case {case.label}: {outcome.error}")
    return outcome


def fetch_cases(
    config: TriageConfig,
    crm: SalesforceClient,
    reporter: Reporter,
) -> tuple[CrmSession, CaseBatch]:
    """Authenticate with Salesforce and run the configured query. Errors are fatal."""
    reporter.on_step("Authenticating with Salesforce via REST API")
    try:
        crm_session = crm.authenticate(
            config.crm_client_id, config.crm_client_secret.get_secret_value()
        )
    except SetupError as e:
        reporter.on_error(e.message, e.details)
        raise
    reporter.on_success("Salesforce authentication successful.")

    reporter.on_step("Querying Salesforce for cases and total count")
    try:
        batch = crm.fetch_batch(crm_session, config.query)
    except SetupError as e:
        reporter.on_error(e.message, e.details)
        raise
    reporter.on_success(f"Found a total of {batch.total_matching} matching case(s) in Salesforce.")
    if batch.records:
        reporter.on_info(f"This batch contains {len(batch.records)} case(s) to process.")
    else:
        reporter.on_info("The current batch is empty; no cases to process.")
    return crm_session, batch


def run_triage(
    config: TriageConfig,
    *,
    crm: Optional[SalesforceClient] = None,
    agent: Optional[RoutingAgentClient] = None,
    identity_provider: IdentityProvider = obtain_identity_token,
    reporter: Optional[Reporter] = None,
    dry_run: bool = False,
) -> TriageSummary:
    """
    Run one batch. SetupError from identity, auth, or query propagates;
    per-case failures are recorded in the summary and never stop the loop.
    """
    reporter = reporter or NullReporter()
    own_crm = crm is None
    own_agent = agent is None
    crm = crm or SalesforceClient(config)
    agent = agent or RoutingAgentClient(config)
    try:
        reporter.on_step("Fetching identity token")
        try:
            token = identity_provider(config.identity_command)
        except SetupError as e:
            reporter.on_error(e.message, e.details)
            raise
        reporter.on_success("Token retrieved successfully.")

        crm_session, batch = fetch_cases(config, crm, reporter)
        summary = TriageSummary(total_matching=batch.total_matching)
        if batch.records:
            with reporter.progress(len(batch.records)) as bar:
                for case in batch.records:
                    reporter.on_step(f"Processing case {case.label} ({case.created_date})")
                    outcome = process_case(
                        case,
                        token=token,
                        crm_session=crm_session,
                        crm=crm,
                        agent=agent,
                        reporter=reporter,
                        dry_run=dry_run,
                    )
                    summary.outcomes.append(outcome)
                    bar.update(1)
        reporter.on_step(summary.headline)
        return summary
    finally:
        if own_crm:
            crm.close()
        if own_agent:
            agent.close()
