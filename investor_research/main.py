"""
Command-line entry point for investor research.

Usage:
    investor-research <domain>                         # Create research (aborts if it exists)
    investor-research --force-research <domain>        # Create research even if it exists
    investor-research --regen-research <domain>        # Replace existing research
    investor-research --fix-links <domain>             # Re-link existing research from Attio
    investor-research --research-only-no-links <domain>  # Notion only, no Attio updates
    investor-research --json <domain>                  # Print the result as JSON

Diagnostics:
    investor-research --test-notion | --test-notion-insert | --ping-attio | --test-attio-list
    investor-research --test-sources <perplexity-response.json>
"""

import argparse
import asyncio
import json
import logging
import sys
from contextlib import AsyncExitStack
from dataclasses import dataclass

from investor_research.config import REQUIRED_CREDENTIALS, Settings, get_settings
from investor_research.services import diagnostics
from investor_research.services.integrations import (
    AttioClient,
    Mark2NotionClient,
    NotionClient,
    PerplexityClient,
)
from investor_research.services.research import (
    ResearchMode,
    ResearchWorkflow,
    WorkflowResult,
    load_criteria,
)

logger = logging.getLogger(__name__)


# CLI flag (argparse dest) -> workflow mode
MODE_FLAGS = {
    "force_research": ResearchMode.FORCE_CREATE,
    "regen_research": ResearchMode.REGENERATE,
    "fix_links": ResearchMode.FIX_LINKS,
    "research_only_no_links": ResearchMode.RESEARCH_ONLY,
}

DIAGNOSTIC_FLAGS = ("test_notion", "test_notion_insert", "ping_attio", "test_attio_list")


@dataclass
class Services:
    """External service clients shared by one CLI invocation."""

    perplexity: PerplexityClient
    notion: NotionClient
    attio: AttioClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="investor-research",
        description=(
            "Research a venture capital investor with Perplexity, publish the "
            "analysis to Notion and link it from Attio."
        ),
    )
    parser.add_argument(
        "domain",
        nargs="?",
        help="Investor domain to research, e.g. sequoiacap.com",
    )

    commands = parser.add_mutually_exclusive_group()
    commands.add_argument(
        "--force-research",
        metavar="DOMAIN",
        help="Create research even if it already exists",
    )
    commands.add_argument(
        "--regen-research",
        metavar="DOMAIN",
        help="Delete existing research and create a new one",
    )
    commands.add_argument(
        "--fix-links",
        metavar="DOMAIN",
        help="Update Attio with the existing Notion research URL (no new research)",
    )
    commands.add_argument(
        "--research-only-no-links",
        metavar="DOMAIN",
        help="Create new research in Notion only (no Attio updates)",
    )
    commands.add_argument(
        "--test-notion",
        action="store_true",
        help="Test the Notion API connection",
    )
    commands.add_argument(
        "--test-notion-insert",
        action="store_true",
        help="Test Notion database entry creation with markdown",
    )
    commands.add_argument(
        "--ping-attio",
        action="store_true",
        help="Ping the Attio API for basic connectivity",
    )
    commands.add_argument(
        "--test-attio-list",
        action="store_true",
        help="Look up the target Attio lists",
    )
    commands.add_argument(
        "--test-sources",
        metavar="JSON_FILE",
        help="Render the sources of a saved Perplexity response",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print the research result as JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed progress",
    )
    return parser


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def report_missing_credentials(missing: list[str]) -> None:
    print("Missing required environment variables:")
    for name in missing:
        print(f"  - {name} ({REQUIRED_CREDENTIALS[name]})")
    print("\nPlease set all required API keys before running the application.")
    print("Example:")
    for name in REQUIRED_CREDENTIALS:
        print(f'  export {name}="your_key"')


async def open_services(settings: Settings, stack: AsyncExitStack) -> Services:
    """Create one HTTP client per API; they are closed when ``stack`` exits."""
    timeout = settings.request_timeout

    perplexity_http = await stack.enter_async_context(
        PerplexityClient.create_http_client(settings.sonar_api_key, timeout)
    )
    notion_http = await stack.enter_async_context(
        NotionClient.create_http_client(
            settings.notion_api_key, timeout, settings.notion_version
        )
    )
    mark2notion_http = await stack.enter_async_context(
        Mark2NotionClient.create_http_client(settings.mark2notion_api_key, timeout)
    )
    attio_http = await stack.enter_async_context(
        AttioClient.create_http_client(settings.attio_api_key, timeout)
    )

    return Services(
        perplexity=PerplexityClient(perplexity_http, model=settings.perplexity_model),
        notion=NotionClient(
            notion_http,
            Mark2NotionClient(mark2notion_http),
            database_id=settings.notion_database_id,
            notion_token=settings.notion_api_key,
        ),
        attio=AttioClient(
            attio_http,
            research_url_attribute=settings.attio_research_url_attribute,
        ),
    )


async def run_research(
    services: Services,
    settings: Settings,
    mode: ResearchMode,
    domain: str,
    as_json: bool = False,
) -> int:
    workflow = ResearchWorkflow(
        provider=services.perplexity,
        knowledge_base=services.notion,
        crm=services.attio,
        criteria=load_criteria(settings.criteria_file),
        note_title=settings.note_title,
    )
    result = await workflow.run(mode, domain)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)

    return 0 if result.succeeded else 1


def print_result(result: WorkflowResult) -> None:
    print(result.message)
    if result.page_url:
        print(f"Notion page: {result.page_url}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    if result.error:
        print(f"Error: {result.error}")
    if result.linking_failed and result.page_url:
        print(
            f"Attio is not linked to the research. "
            f"Run: investor-research --fix-links {result.domain}"
        )


async def run_diagnostic(services: Services, flag: str) -> int:
    checks = {
        "test_notion": lambda: diagnostics.check_notion_connection(services.notion),
        "test_notion_insert": lambda: diagnostics.check_notion_insert(services.notion),
        "ping_attio": lambda: diagnostics.ping_attio(services.attio),
        "test_attio_list": lambda: diagnostics.check_attio_lists(services.attio),
    }
    result = await checks[flag]()
    print_diagnostic(result)
    return 0 if result.ok else 1


def print_diagnostic(result: diagnostics.DiagnosticResult) -> None:
    for line in result.details:
        print(line)
    print(f"{result.name}: {'OK' if result.ok else 'FAILED'}")


async def run_command(
    settings: Settings,
    mode: ResearchMode | None = None,
    domain: str | None = None,
    diagnostic: str | None = None,
    as_json: bool = False,
) -> int:
    async with AsyncExitStack() as stack:
        services = await open_services(settings, stack)
        if diagnostic:
            return await run_diagnostic(services, diagnostic)
        return await run_research(services, settings, mode, domain, as_json=as_json)


def resolve_research(args: argparse.Namespace) -> tuple[ResearchMode, str] | None:
    """Work out the research mode and domain from parsed arguments."""
    for flag, mode in MODE_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            return mode, value
    if args.domain is not None:
        return ResearchMode.CREATE, args.domain
    return None


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, args.verbose)

    # Works offline on a saved response
    if args.test_sources:
        result = diagnostics.check_sources(args.test_sources)
        print_diagnostic(result)
        return 0 if result.ok else 1

    diagnostic = next((flag for flag in DIAGNOSTIC_FLAGS if getattr(args, flag)), None)
    research = resolve_research(args)

    if diagnostic and args.domain is not None:
        parser.error("a domain cannot be combined with a test command")
    if research and args.domain is not None and research[0] != ResearchMode.CREATE:
        parser.error("give the domain either positionally or after the mode flag, not both")
    if diagnostic is None and research is None:
        parser.print_help()
        return 0
    if research and not research[1].strip():
        parser.error("investor domain must not be empty")

    if not settings.credentials_configured:
        report_missing_credentials(settings.missing_credentials)
        return 1

    try:
        if diagnostic:
            return asyncio.run(run_command(settings, diagnostic=diagnostic))
        mode, domain = research
        return asyncio.run(
            run_command(settings, mode=mode, domain=domain, as_json=args.as_json)
        )
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
