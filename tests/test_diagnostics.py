"""
Tests for the service smoke tests.
"""

import json

import pytest
from unittest.mock import AsyncMock

from investor_research.services import diagnostics
from investor_research.services.integrations.attio import AttioClient
from investor_research.services.integrations.base import IntegrationError
from investor_research.services.integrations.notion import NotionClient


@pytest.fixture
def notion():
    return AsyncMock(spec=NotionClient)


@pytest.fixture
def attio():
    return AsyncMock(spec=AttioClient)


class TestNotionChecks:
    """Test Notion diagnostics."""

    @pytest.mark.asyncio
    async def test_database_found(self, notion):
        notion.search_databases.return_value = [
            {"id": "db-1", "title": [{"plain_text": "Investor Research"}]},
            {"id": "db-2", "title": [{"plain_text": "Other"}]},
        ]

        result = await diagnostics.check_notion_connection(notion)

        assert result.ok is True
        assert "  - Investor Research (ID: db-1)" in result.details
        notion.search_databases.assert_awaited_once_with("Investor Research")

    @pytest.mark.asyncio
    async def test_database_not_in_results(self, notion):
        notion.search_databases.return_value = [{"id": "db-2", "title": []}]

        result = await diagnostics.check_notion_connection(notion)

        assert result.ok is False
        assert "  - Untitled (ID: db-2)" in result.details

    @pytest.mark.asyncio
    async def test_no_databases(self, notion):
        notion.search_databases.return_value = []

        result = await diagnostics.check_notion_connection(notion)

        assert result.ok is False

    @pytest.mark.asyncio
    async def test_connection_error(self, notion):
        notion.search_databases.side_effect = IntegrationError("HTTP 401", "notion")

        result = await diagnostics.check_notion_connection(notion)

        assert result.ok is False
        assert "HTTP 401" in result.details[0]

    @pytest.mark.asyncio
    async def test_insert(self, notion):
        notion.create_page.return_value = "aaaa-bbbb"

        result = await diagnostics.check_notion_insert(notion)

        assert result.ok is True
        assert "View at: https://notion.so/aaaabbbb" in result.details
        domain, title, body = notion.create_page.await_args.args
        assert (domain, title) == ("testvc.vc", "TestVC")
        assert "\\$1M-\\$5M" in body

    @pytest.mark.asyncio
    async def test_insert_failure(self, notion):
        notion.create_page.return_value = None

        result = await diagnostics.check_notion_insert(notion)

        assert result.ok is False


class TestAttioChecks:
    """Test Attio diagnostics."""

    @pytest.mark.asyncio
    async def test_ping(self, attio):
        attio.list_objects.return_value = [{"api_slug": "companies"}]

        result = await diagnostics.ping_attio(attio)

        assert result.ok is True

    @pytest.mark.asyncio
    async def test_ping_failure(self, attio):
        attio.list_objects.side_effect = IntegrationError("HTTP 401", "attio")

        result = await diagnostics.ping_attio(attio)

        assert result.ok is False

    @pytest.mark.asyncio
    async def test_lists(self, attio):
        attio.list_lists.return_value = [
            {"name": "Preseed VCs from Notion", "api_slug": "preseed", "id": {"list_id": "l1"}},
            {"name": "Other", "api_slug": "other", "id": {"list_id": "l2"}},
        ]
        attio.get_list.return_value = {"name": "Preseed VCs from Notion"}

        result = await diagnostics.check_attio_lists(attio)

        assert result.ok is True
        attio.get_list.assert_awaited_once_with("l1")
        assert "'Startup Fundraising' list not found" in result.details

    @pytest.mark.asyncio
    async def test_no_target_lists(self, attio):
        attio.list_lists.return_value = [{"name": "Other", "id": {"list_id": "l2"}}]

        result = await diagnostics.check_attio_lists(attio)

        assert result.ok is False
        attio.get_list.assert_not_awaited()


class TestCheckSources:
    """Test rendering sources from a saved response."""

    def test_renders_sources(self, tmp_path):
        path = tmp_path / "response.json"
        path.write_text(
            json.dumps(
                {
                    "choices": [{"message": {"content": "VC Name: Acme"}}],
                    "search_results": [
                        {"title": "Acme", "url": "https://acme.vc", "date": "2024-01-01"}
                    ],
                }
            ),
            encoding="utf-8",
        )

        result = diagnostics.check_sources(path)

        assert result.ok is True
        assert result.details == ["## Sources", "1. [Acme](https://acme.vc) - 2024-01-01"]

    def test_no_sources(self, tmp_path):
        path = tmp_path / "response.json"
        path.write_text(json.dumps({"choices": [{"message": {"content": "x"}}]}), encoding="utf-8")

        result = diagnostics.check_sources(path)

        assert result.ok is False

    def test_missing_file(self, tmp_path):
        result = diagnostics.check_sources(tmp_path / "missing.json")

        assert result.ok is False
        assert result.details[0].startswith("File not found")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "response.json"
        path.write_text("{not json", encoding="utf-8")

        result = diagnostics.check_sources(path)

        assert result.ok is False
