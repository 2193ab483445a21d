"""
Formatting of research provider output.

Turns an analysis payload into the investor name and the markdown body that
is published to the knowledge base and the CRM. Pure functions, no I/O.
"""

from dataclasses import dataclass

from investor_research.services.integrations.base import AnalysisPayload, Citation


UNKNOWN_VC = "Unknown VC"
VC_NAME_PREFIX = "VC Name:"
SNIPPET_MAX_LENGTH = 200
NOTION_PAGE_URL = "https://notion.so/{page_id}"


@dataclass(frozen=True)
class RenderedResearch:
    """Investor name and canonical (unescaped) markdown body."""

    vc_name: str
    markdown_body: str

    @property
    def knowledge_base_body(self) -> str:
        """Body for Notion, with dollar signs escaped."""
        return escape_dollars(self.markdown_body)

    @property
    def crm_body(self) -> str:
        """Body for the Attio note, where dollar signs are plain text."""
        return unescape_dollars(self.knowledge_base_body)


def extract_vc_name(analysis_text: str) -> str:
    """
    Extract the firm name from a ``VC Name: ...`` first line.

    Args:
        analysis_text: Analysis markdown from the research provider

    Returns:
        The name with markdown emphasis removed, or ``UNKNOWN_VC``
    """
    if not analysis_text:
        return UNKNOWN_VC

    first_line = analysis_text.split("\n", 1)[0].strip()
    if not first_line.lower().startswith(VC_NAME_PREFIX.lower()):
        return UNKNOWN_VC

    vc_name = first_line[len(VC_NAME_PREFIX):].strip()
    vc_name = vc_name.replace("*", "").strip()
    return vc_name or UNKNOWN_VC


def derive_name_from_domain(domain: str) -> str:
    """
    Build a display name from a domain, e.g. ``example-vc.com`` -> ``Example-vc``.
    """
    name = domain.strip()
    for suffix in (".com", ".vc"):
        if name.lower().endswith(suffix) and len(name) > len(suffix):
            name = name[: -len(suffix)]
    name = name.replace(".", " ")
    return name[:1].upper() + name[1:]


def _truncate_snippet(text: str, max_length: int = SNIPPET_MAX_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def _format_search_result(number: int, result: Citation) -> str:
    line = f"{number}. [{result.title or result.url}]({result.url})"
    if result.date:
        line += f" - {result.date}"
    if result.snippet:
        line += f"\n   - {_truncate_snippet(result.snippet)}"
    return line


def build_sources_section(
    search_results: list[Citation] | None,
    citations: list[str] | None = None,
) -> str:
    """
    Render citations as a numbered markdown list.

    Rich search results (title, date, snippet) are preferred; the bare
    citation URLs are only used when there are none.

    Returns:
        The list entries joined by newlines, or an empty string
    """
    entries: list[str] = []

    usable_results = [r for r in search_results or [] if r.url]
    if usable_results:
        for number, result in enumerate(usable_results, start=1):
            entries.append(_format_search_result(number, result))
    else:
        usable_urls = [url for url in citations or [] if url]
        for number, url in enumerate(usable_urls, start=1):
            entries.append(f"{number}. [{url}]({url})")

    return "\n".join(entries)


def build_markdown_body(
    analysis_text: str,
    search_results: list[Citation] | None = None,
    citations: list[str] | None = None,
) -> str:
    """Analysis text followed by a ``## Sources`` section when there are sources."""
    sources = build_sources_section(search_results, citations)
    if not sources:
        return analysis_text
    return f"{analysis_text}\n\n## Sources\n{sources}"


def escape_dollars(text: str) -> str:
    """Escape ``$`` so Notion does not treat it as inline math."""
    return text.replace("$", "\\$")


def unescape_dollars(text: str) -> str:
    """Reverse ``escape_dollars``."""
    return text.replace("\\$", "$")


def render_research(domain: str, payload: AnalysisPayload) -> RenderedResearch:
    """Render a payload into the investor name and markdown body."""
    vc_name = extract_vc_name(payload.content)
    if vc_name == UNKNOWN_VC:
        vc_name = derive_name_from_domain(domain)

    return RenderedResearch(
        vc_name=vc_name,
        markdown_body=build_markdown_body(
            payload.content, payload.search_results, payload.citations
        ),
    )


def build_page_url(page_id: str) -> str:
    """Public URL of a Notion page."""
    return NOTION_PAGE_URL.format(page_id=page_id.replace("-", ""))
