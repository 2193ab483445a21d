"""
Tests for research response formatting.
"""

import pytest

from investor_research.services.integrations.base import AnalysisPayload, Citation
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


class TestExtractVcName:
    """Test VC name extraction from the analysis first line."""

    def test_plain_name(self):
        """Test a plain VC Name line."""
        assert extract_vc_name("VC Name: Acme Ventures\n\n## Analysis") == "Acme Ventures"

    def test_strips_emphasis(self):
        """Test bold markers inside the name are removed."""
        assert extract_vc_name("VC Name: **Acme** Ventures\nmore") == "Acme Ventures"

    def test_fully_bold_line(self):
        """Test a name wrapped in italics and bold."""
        assert extract_vc_name("VC Name: ***Acme Ventures***") == "Acme Ventures"

    def test_case_insensitive_prefix(self):
        """Test the prefix match ignores case."""
        assert extract_vc_name("vc name:   Acme Ventures  ") == "Acme Ventures"

    def test_leading_whitespace_on_first_line(self):
        """Test the first line is trimmed before matching."""
        assert extract_vc_name("   VC Name: Acme\nbody") == "Acme"

    def test_missing_prefix(self):
        """Test text without the prefix returns the sentinel."""
        assert extract_vc_name("# Acme Ventures\nVC Name: Acme") == UNKNOWN_VC

    def test_only_first_line_examined(self):
        """Test a VC Name line further down is ignored."""
        assert extract_vc_name("\nVC Name: Acme") == UNKNOWN_VC

    def test_empty_name(self):
        """Test a prefix with nothing but emphasis returns the sentinel."""
        assert extract_vc_name("VC Name: ****") == UNKNOWN_VC

    def test_empty_text(self):
        """Test empty analysis text."""
        assert extract_vc_name("") == UNKNOWN_VC


class TestDeriveNameFromDomain:
    """Test domain-based name fallback."""

    def test_com_suffix(self):
        assert derive_name_from_domain("example-vc.com") == "Example-vc"

    def test_vc_suffix(self):
        assert derive_name_from_domain("seq.vc") == "Seq"

    def test_inner_dots_become_spaces(self):
        assert derive_name_from_domain("foo.capital.io") == "Foo capital io"

    def test_already_capitalized(self):
        assert derive_name_from_domain("Acme.com") == "Acme"

    @pytest.mark.parametrize(
        "domain,expected",
        [("Sequoia.COM", "Sequoia"), ("seq.VC", "Seq"), ("Acme.Com", "Acme")],
    )
    def test_suffix_ignores_case(self, domain, expected):
        assert derive_name_from_domain(domain) == expected


class TestSourcesSection:
    """Test rendering of citations."""

    def test_search_results_in_order(self):
        """Two search results produce two numbered entries in input order."""
        results = [
            Citation(url="https://a.example", title="First", date="2024-01-01"),
            Citation(url="https://b.example", title="Second", date="2024-02-01"),
        ]

        body = build_markdown_body("Analysis", results)

        assert body.startswith("Analysis\n\n## Sources\n")
        sources = body.split("## Sources\n", 1)[1]
        lines = sources.split("\n")
        assert lines == [
            "1. [First](https://a.example) - 2024-01-01",
            "2. [Second](https://b.example) - 2024-02-01",
        ]

    def test_snippet_bullet_truncated(self):
        """Snippets become an indented bullet cut at 200 characters."""
        result = Citation(url="https://a.example", title="A", date="2024", snippet="x" * 250)

        section = build_sources_section([result])

        first, second = section.split("\n")
        assert first == "1. [A](https://a.example) - 2024"
        assert second == "   - " + "x" * 200 + "..."

    def test_short_snippet_not_truncated(self):
        result = Citation(url="https://a.example", title="A", snippet="Short snippet")

        assert build_sources_section([result]).endswith("   - Short snippet")

    def test_missing_title_and_date(self):
        """The url stands in for a missing title; no date suffix."""
        section = build_sources_section([Citation(url="https://a.example")])

        assert section == "1. [https://a.example](https://a.example)"

    def test_prefers_search_results(self):
        """Bare citations are ignored when search results exist."""
        section = build_sources_section(
            [Citation(url="https://a.example", title="A")],
            ["https://other.example"],
        )

        assert "other.example" not in section

    def test_falls_back_to_citations(self):
        section = build_sources_section([], ["https://a.example", "https://b.example"])

        assert section == (
            "1. [https://a.example](https://a.example)\n"
            "2. [https://b.example](https://b.example)"
        )

    def test_no_sources(self):
        """No Sources section without entries."""
        assert build_markdown_body("Analysis", [], []) == "Analysis"
        assert build_markdown_body("Analysis") == "Analysis"

    def test_entries_without_url_skipped(self):
        section = build_sources_section([Citation(url="", title="Nothing")], ["", "https://a.example"])

        assert section == "1. [https://a.example](https://a.example)"


class TestDollarEscaping:
    """Test per-destination dollar handling."""

    def test_escape(self):
        assert escape_dollars("$5M seed") == "\\$5M seed"

    def test_unescape(self):
        assert unescape_dollars("\\$5M seed") == "$5M seed"

    @pytest.mark.parametrize(
        "text",
        ["", "$", "$$", "\\$", "\\\\$5", "no dollars", "a $1M-$5M round\n$", "$\\"],
    )
    def test_round_trip_is_identity(self, text):
        assert unescape_dollars(escape_dollars(text)) == text


class TestRenderResearch:
    """Test full rendering of a payload."""

    def test_render(self):
        payload = AnalysisPayload(
            content="VC Name: Sequoia\nRaised $1B",
            citations=["https://sequoiacap.com"],
        )

        rendered = render_research("seq.vc", payload)

        assert rendered.vc_name == "Sequoia"
        assert rendered.markdown_body.startswith("VC Name: Sequoia\nRaised $1B")
        assert "## Sources" in rendered.markdown_body
        assert "\\$1B" in rendered.knowledge_base_body
        assert rendered.crm_body == rendered.markdown_body

    def test_render_falls_back_to_domain(self):
        rendered = render_research("example-vc.com", AnalysisPayload(content="No name"))

        assert rendered.vc_name == "Example-vc"
        assert rendered.markdown_body == "No name"

    def test_rendered_research_is_frozen(self):
        rendered = RenderedResearch(vc_name="A", markdown_body="B")

        with pytest.raises(AttributeError):
            rendered.vc_name = "C"


class TestPageUrl:
    def test_hyphens_removed(self):
        assert build_page_url("27b6ef03-8cf6-8059") == "https://notion.so/27b6ef038cf68059"
