"""
Smoke tests for the external services.

Each check talks to one service and reports what it found without touching
the research workflow. Used by the ``--test-*`` / ``--ping-*`` CLI commands.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from investor_research.services.integrations.attio import AttioClient
from investor_research.services.integrations.base import AnalysisPayload, IntegrationError
from investor_research.services.integrations.notion import NotionClient
from investor_research.services.research.formatter import (
    build_page_url,
    build_sources_section,
    escape_dollars,
)

logger = logging.getLogger(__name__)

RESEARCH_DATABASE_NAME = "Investor Research"
TARGET_ATTIO_LISTS = ("Preseed VCs from Notion", "Startup Fundraising")

TEST_DOMAIN = "testvc.vc"
TEST_NAME = "TestVC"
TEST_MARKDOWN = """# TestVC Analysis

This is a test entry for TestVC (testvc.vc).

## Investment Criteria Match
- Stage: Seed stage focus
- Check size: $1M-$5M range

**Overall: Good test case for API integration.**"""


@dataclass
class DiagnosticResult:
    """Outcome of a smoke test."""

    name: str
    ok: bool
    details: list[str] = field(default_factory=list)

    def add(self, line: str) -> None:
        logger.debug(f"{self.name}: {line}")
        self.details.append(line)


async def check_notion_connection(notion: NotionClient) -> DiagnosticResult:
    """Search the workspace for the investor research database."""
    result = DiagnosticResult(name="notion", ok=False)
    try:
        databases = await notion.search_databases(RESEARCH_DATABASE_NAME)
    except IntegrationError as e:
        result.add(f"Notion API connection failed: {e}")
        return result

    if not databases:
        result.add(f"No '{RESEARCH_DATABASE_NAME}' database found. Make sure:")
        result.add("  1. The database exists in the Notion workspace")
        result.add("  2. Your Notion integration has access to it")
        result.add(f"  3. The database is named '{RESEARCH_DATABASE_NAME}'")
        return result

    result.add(f"Found {len(databases)} matching database(s):")
    for database in databases:
        title_parts = database.get("title") or [{}]
        title = title_parts[0].get("plain_text") or "Untitled"
        result.add(f"  - {title} (ID: {database.get('id', 'unknown')})")
        if RESEARCH_DATABASE_NAME.lower() in title.lower():
            result.ok = True

    if not result.ok:
        result.add(f"'{RESEARCH_DATABASE_NAME}' database not found in results")
    return result


async def check_notion_insert(notion: NotionClient) -> DiagnosticResult:
    """Create a TestVC entry with sample markdown content."""
    result = DiagnosticResult(name="notion-insert", ok=False)
    result.add(f"Creating entry for {TEST_NAME} ({TEST_DOMAIN})...")
    try:
        page_id = await notion.create_page(TEST_DOMAIN, TEST_NAME, escape_dollars(TEST_MARKDOWN))
    except IntegrationError as e:
        result.add(f"Failed to create {TEST_NAME} entry: {e}")
        return result

    if not page_id:
        result.add(f"Failed to create {TEST_NAME} entry")
        return result

    result.ok = True
    result.add(f"Page ID: {page_id}")
    result.add(f"View at: {build_page_url(page_id)}")
    return result


async def ping_attio(attio: AttioClient) -> DiagnosticResult:
    """List Attio objects as a basic connectivity check."""
    result = DiagnosticResult(name="attio", ok=False)
    try:
        objects = await attio.list_objects()
    except IntegrationError as e:
        result.add(f"Attio API ping failed: {e}")
        return result

    result.ok = True
    result.add(f"Attio API ping successful ({len(objects)} objects)")
    return result


async def check_attio_lists(attio: AttioClient) -> DiagnosticResult:
    """Look up the fundraising lists the research is tracked in."""
    result = DiagnosticResult(name="attio-lists", ok=False)
    try:
        lists = await attio.list_lists()
    except IntegrationError as e:
        result.add(f"Attio list test failed: {e}")
        return result

    if not lists:
        result.add("No lists found")
        return result

    result.add(f"Found {len(lists)} list(s):")
    found: dict[str, str] = {}
    for attio_list in lists:
        name = attio_list.get("name") or "Unknown"
        list_id = (attio_list.get("id") or {}).get("list_id") or "unknown"
        result.add(f"  - {name} (slug: {attio_list.get('api_slug', 'unknown')}, id: {list_id})")
        for target in TARGET_ATTIO_LISTS:
            if target.lower() in name.lower() and target not in found:
                found[target] = list_id

    for target in TARGET_ATTIO_LISTS:
        if target not in found:
            result.add(f"'{target}' list not found")
            continue
        try:
            details = await attio.get_list(found[target])
        except IntegrationError as e:
            result.add(f"Failed to get {target} list details: {e}")
            continue
        result.add(f"{target}: found ({details.get('name', target)})")

    result.ok = bool(found)
    return result


def check_sources(json_path: str | Path) -> DiagnosticResult:
    """Render the Sources section of a saved Perplexity response."""
    result = DiagnosticResult(name="sources", ok=False)
    path = Path(json_path)

    if not path.exists():
        result.add(f"File not found: {path}")
        return result

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        payload = AnalysisPayload.from_response(data)
    except (ValueError, IntegrationError) as e:
        result.add(f"Failed to parse {path}: {e}")
        return result

    sources = build_sources_section(payload.search_results, payload.citations)
    if not sources:
        result.add("No sources found in the JSON response")
        return result

    result.ok = True
    result.add("## Sources")
    result.details.extend(sources.split("\n"))
    return result
