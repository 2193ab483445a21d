"""
Investor research workflow.

Combines the research provider, the Notion knowledge base and the Attio CRM
into the create / force / regenerate / fix-links / research-only modes.
"""

from investor_research.services.research.workflow import (
    ResearchMode,
    ResearchWorkflow,
    WorkflowResult,
    WorkflowStatus,
)
from investor_research.services.research.formatter import (
    UNKNOWN_VC,
    RenderedResearch,
    build_markdown_body,
    build_page_url,
    build_sources_section,
    derive_name_from_domain,
    escape_dollars,
    extract_vc_name,
    render_research,
    unescape_dollars,
)
from investor_research.services.research.criteria import DEFAULT_CRITERIA, load_criteria

__all__ = [
    # Workflow
    "ResearchMode",
    "ResearchWorkflow",
    "WorkflowResult",
    "WorkflowStatus",
    # Formatting
    "UNKNOWN_VC",
    "RenderedResearch",
    "build_markdown_body",
    "build_page_url",
    "build_sources_section",
    "derive_name_from_domain",
    "escape_dollars",
    "extract_vc_name",
    "render_research",
    "unescape_dollars",
    # Criteria
    "DEFAULT_CRITERIA",
    "load_criteria",
]
