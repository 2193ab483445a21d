"""
Investor research workflow.

Runs one research mode for an investor domain: checks for existing research,
makes sure both external systems are reachable before the paid research call,
publishes the analysis to the knowledge base and links it from the CRM.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, TypeVar

from investor_research.services.integrations.base import (
    CrmStore,
    IntegrationError,
    KnowledgeBaseStore,
    ResearchProvider,
)
from investor_research.services.research.formatter import (
    RenderedResearch,
    build_page_url,
    render_research,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResearchMode(str, Enum):
    """Which procedure to run for a domain."""

    CREATE = "create"  # Abort if research already exists
    FORCE_CREATE = "force_create"  # Create even if research exists
    REGENERATE = "regenerate"  # Delete existing research, then create
    FIX_LINKS = "fix_links"  # Re-link existing research from the CRM
    RESEARCH_ONLY = "research_only"  # Research + page, no CRM updates


class WorkflowStatus(str, Enum):
    """Terminal status of a workflow run."""

    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    SYSTEM_UNAVAILABLE = "system_unavailable"
    RESEARCH_FAILED = "research_failed"
    PUBLISH_FAILED = "publish_failed"
    DELETE_FAILED = "delete_failed"
    NOT_FOUND = "not_found"
    LINKING_FAILED = "linking_failed"

    @property
    def is_failure(self) -> bool:
        """Whether the process should report failure for this status."""
        return self not in (
            WorkflowStatus.SUCCESS,
            WorkflowStatus.ALREADY_EXISTS,
            WorkflowStatus.LINKING_FAILED,
        )


STATUS_MESSAGES = {
    WorkflowStatus.SUCCESS: "Successfully processed {domain}",
    WorkflowStatus.ALREADY_EXISTS: (
        "Research already exists for {domain} in Notion. "
        "Use --force-research to create duplicate research anyway, "
        "or --regen-research to replace it."
    ),
    WorkflowStatus.SYSTEM_UNAVAILABLE: (
        "Could not reach the Notion research database or the Attio company record for {domain}"
    ),
    WorkflowStatus.RESEARCH_FAILED: "Failed to get analysis from Perplexity for {domain}",
    WorkflowStatus.PUBLISH_FAILED: (
        "Failed to create Notion research page for {domain}; Attio was not updated"
    ),
    WorkflowStatus.DELETE_FAILED: (
        "Failed to delete existing research for {domain}; regeneration aborted"
    ),
    WorkflowStatus.NOT_FOUND: "No existing research or company record found for {domain}",
    WorkflowStatus.LINKING_FAILED: (
        "Research exists for {domain} but the Attio record could not be linked to it"
    ),
}


@dataclass
class WorkflowResult:
    """Outcome of a single workflow run."""

    mode: ResearchMode
    domain: str
    started_at: datetime
    status: WorkflowStatus | None = None
    completed_at: datetime | None = None
    vc_name: str | None = None
    page_id: str | None = None
    page_url: str | None = None
    record_id: str | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the process should report success for this run."""
        if self.status is None:
            return False
        # Linking is the only work fix-links does
        if self.mode == ResearchMode.FIX_LINKS and self.status == WorkflowStatus.LINKING_FAILED:
            return False
        return not self.status.is_failure

    @property
    def linking_failed(self) -> bool:
        """True if the best-effort CRM linking did not fully succeed."""
        return self.status == WorkflowStatus.LINKING_FAILED or bool(self.warnings)

    @property
    def duration_seconds(self) -> float | None:
        """Duration of the run in seconds."""
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def message(self) -> str:
        """Human-readable description of the outcome."""
        if self.status is None:
            return f"Research for {self.domain} has not finished"
        return STATUS_MESSAGES[self.status].format(domain=self.domain)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "mode": self.mode.value,
            "domain": self.domain,
            "status": self.status.value if self.status else None,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "vc_name": self.vc_name,
            "page_id": self.page_id,
            "page_url": self.page_url,
            "record_id": self.record_id,
            "warnings": list(self.warnings),
            "error": self.error,
        }


class _StepFailed:
    """Marker returned by ``_attempt`` when a collaborator call failed."""

    def __init__(self, error: str):
        self.error = error


class ResearchWorkflow:
    """
    Orchestrates the research provider, knowledge base and CRM.

    Every collaborator call is awaited in sequence. The first hard failure
    ends the run; side effects that already happened are never rolled back.
    Linking the CRM record after a page was created is best-effort.
    """

    def __init__(
        self,
        provider: ResearchProvider,
        knowledge_base: KnowledgeBaseStore,
        crm: CrmStore,
        criteria: str,
        note_title: str = "Research",
    ):
        self.provider = provider
        self.knowledge_base = knowledge_base
        self.crm = crm
        self.criteria = criteria
        self.note_title = note_title

    async def run(self, mode: ResearchMode, domain: str) -> WorkflowResult:
        """
        Execute one research mode for an investor domain.

        Args:
            mode: Procedure to run
            domain: Investor domain, e.g. ``sequoiacap.com``

        Returns:
            WorkflowResult with the terminal status

        Raises:
            ValueError: If the domain is empty
        """
        domain = (domain or "").strip()
        if not domain:
            raise ValueError("Investor domain must not be empty")

        result = WorkflowResult(mode=mode, domain=domain, started_at=datetime.now())
        logger.info(f"Running {mode.value} for {domain}")

        procedures = {
            ResearchMode.CREATE: self._create,
            ResearchMode.FORCE_CREATE: self._force_create,
            ResearchMode.REGENERATE: self._regenerate,
            ResearchMode.FIX_LINKS: self._fix_links,
            ResearchMode.RESEARCH_ONLY: self._research_only,
        }
        status = await procedures[mode](result)
        return self._finish(result, status)

    async def _create(self, result: WorkflowResult) -> WorkflowStatus:
        logger.info(f"Checking if research already exists for {result.domain}...")
        exists = await self._attempt(
            "Notion existence check", self.knowledge_base.exists_for_domain(result.domain)
        )
        if isinstance(exists, _StepFailed):
            result.error = exists.error
            return WorkflowStatus.SYSTEM_UNAVAILABLE
        if exists:
            logger.info(f"Research already exists for {result.domain}")
            return WorkflowStatus.ALREADY_EXISTS

        logger.info(f"No existing research found for {result.domain}, proceeding...")
        return await self._research_and_publish(result, link_crm=True)

    async def _force_create(self, result: WorkflowResult) -> WorkflowStatus:
        logger.warning("Force research mode enabled - duplicates will be created")
        return await self._research_and_publish(result, link_crm=True)

    async def _regenerate(self, result: WorkflowResult) -> WorkflowStatus:
        page_id = await self._attempt(
            "Notion page lookup", self.knowledge_base.find_page_id_by_domain(result.domain)
        )
        if isinstance(page_id, _StepFailed):
            result.error = page_id.error
            return WorkflowStatus.SYSTEM_UNAVAILABLE
        if not page_id:
            logger.warning(f"No existing research found for {result.domain}")
            return WorkflowStatus.NOT_FOUND

        logger.info(f"Found existing research (Page ID: {page_id})")
        deleted = await self._attempt(
            "Notion page delete", self.knowledge_base.delete_page(page_id)
        )
        if isinstance(deleted, _StepFailed) or not deleted:
            if isinstance(deleted, _StepFailed):
                result.error = deleted.error
            logger.error("Failed to delete existing research - aborting regeneration")
            return WorkflowStatus.DELETE_FAILED

        return await self._research_and_publish(result, link_crm=True)

    async def _fix_links(self, result: WorkflowResult) -> WorkflowStatus:
        page_id = await self._attempt(
            "Notion page lookup", self.knowledge_base.find_page_id_by_domain(result.domain)
        )
        if isinstance(page_id, _StepFailed):
            result.error = page_id.error
            return WorkflowStatus.SYSTEM_UNAVAILABLE
        if not page_id:
            logger.error(f"No existing Notion research found for {result.domain}")
            return WorkflowStatus.NOT_FOUND

        result.page_id = page_id
        result.page_url = build_page_url(page_id)
        logger.info(f"Found existing Notion research: {result.page_url}")

        record_id = await self._attempt("Attio record lookup", self.crm.find_record(result.domain))
        if isinstance(record_id, _StepFailed):
            result.error = record_id.error
            return WorkflowStatus.SYSTEM_UNAVAILABLE
        if not record_id:
            logger.error(f"No Attio company record found for {result.domain}")
            return WorkflowStatus.NOT_FOUND
        result.record_id = record_id

        updated = await self._attempt(
            "Attio research URL update",
            self.crm.update_research_url(record_id, result.page_url),
        )
        if isinstance(updated, _StepFailed) or not updated:
            if isinstance(updated, _StepFailed):
                result.error = updated.error
            return WorkflowStatus.LINKING_FAILED

        return WorkflowStatus.SUCCESS

    async def _research_only(self, result: WorkflowResult) -> WorkflowStatus:
        logger.info(f"Research-only mode for {result.domain} (no Attio updates)")
        return await self._research_and_publish(result, link_crm=False)

    async def _research_and_publish(
        self, result: WorkflowResult, link_crm: bool
    ) -> WorkflowStatus:
        """Validate (when linking), research, publish, then link the CRM record."""
        if link_crm:
            logger.info(f"Validating systems for {result.domain}...")
            database_ok = await self._attempt(
                "Notion database validation", self.knowledge_base.validate()
            )
            record_id = await self._attempt(
                "Attio record lookup", self.crm.find_record(result.domain)
            )

            if isinstance(database_ok, _StepFailed) or not database_ok:
                result.error = "Could not access Notion Investor Research database"
                logger.error(result.error)
                return WorkflowStatus.SYSTEM_UNAVAILABLE
            if isinstance(record_id, _StepFailed) or not record_id:
                result.error = f"Could not find Attio company record for {result.domain}"
                logger.error(result.error)
                return WorkflowStatus.SYSTEM_UNAVAILABLE

            result.record_id = record_id
            logger.info("Both Notion database and Attio company record are accessible")

        payload = await self._attempt(
            "Perplexity analysis", self.provider.analyze(result.domain, self.criteria)
        )
        if isinstance(payload, _StepFailed):
            result.error = payload.error
            return WorkflowStatus.RESEARCH_FAILED
        logger.info("Completed Perplexity analysis")

        rendered = render_research(result.domain, payload)
        result.vc_name = rendered.vc_name

        page_id = await self._attempt(
            "Notion page creation",
            self.knowledge_base.create_page(
                result.domain, rendered.vc_name, rendered.knowledge_base_body
            ),
        )
        if isinstance(page_id, _StepFailed) or not page_id:
            if isinstance(page_id, _StepFailed):
                result.error = page_id.error
            logger.error("Failed to create Notion page - cannot update Attio with URL")
            return WorkflowStatus.PUBLISH_FAILED

        result.page_id = page_id
        result.page_url = build_page_url(page_id)
        logger.info(f"Created Notion research page for {rendered.vc_name}: {result.page_url}")

        if link_crm:
            await self._link_crm_record(result, rendered)

        return WorkflowStatus.SUCCESS

    async def _link_crm_record(
        self, result: WorkflowResult, rendered: RenderedResearch
    ) -> None:
        """Best-effort: set the research URL and add the note. Failures become warnings."""
        updated = await self._attempt(
            "Attio research URL update",
            self.crm.update_research_url(result.record_id, result.page_url),
        )
        if isinstance(updated, _StepFailed) or not updated:
            self._warn(result, "Failed to update Attio company record with the research URL")
        else:
            logger.info("Updated Attio company record")

        noted = await self._attempt(
            "Attio note creation",
            self.crm.add_note(result.record_id, self.note_title, rendered.crm_body),
        )
        if isinstance(noted, _StepFailed) or not noted:
            self._warn(result, "Failed to add research note to Attio")
        else:
            logger.info("Added research note to Attio")

    async def _attempt(self, description: str, call: Awaitable[T]) -> T | _StepFailed:
        """Await a collaborator call, converting any failure into ``_StepFailed``."""
        try:
            return await call
        except IntegrationError as e:
            logger.error(f"{description} failed: {e}")
            return _StepFailed(str(e))
        except Exception as e:
            logger.exception(f"{description} failed unexpectedly: {e}")
            return _StepFailed(str(e))

    @staticmethod
    def _warn(result: WorkflowResult, message: str) -> None:
        logger.warning(message)
        result.warnings.append(message)

    @staticmethod
    def _finish(result: WorkflowResult, status: WorkflowStatus) -> WorkflowResult:
        result.status = status
        result.completed_at = datetime.now()
        log = logger.error if status.is_failure else logger.info
        log(f"{result.mode.value} for {result.domain} finished: {status.value}")
        return result
