"""
Notion knowledge base client.

Research pages live in the "Investor Research" database, one page per
investor, keyed by the ``Domain`` url property. Page bodies are appended with
the Mark2Notion service, which converts rendered markdown into Notion blocks.
"""

import logging
from typing import Any
from urllib.parse import urlsplit

import httpx
import markdown

from investor_research.services.integrations.base import (
    BaseServiceClient,
    IntegrationError,
    KnowledgeBaseStore,
)

logger = logging.getLogger(__name__)


def domain_host(value: str) -> str:
    """Lowercased host of a url or bare domain, without a leading ``www.``."""
    value = value.strip().lower()
    if "://" not in value:
        value = f"//{value}"
    host = urlsplit(value).hostname or ""
    return host[4:] if host.startswith("www.") else host


class Mark2NotionClient(BaseServiceClient):
    """
    Mark2Notion API client.

    API Documentation: https://mark2notion.com/docs
    """

    BASE_URL = "https://api.mark2notion.com/api"
    service_name = "mark2notion"

    @classmethod
    def create_http_client(cls, api_key: str, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=cls.BASE_URL,
            headers={"x-api-key": api_key},
            timeout=timeout,
        )

    async def append(self, page_id: str, body: str, notion_token: str) -> bool:
        """
        Append markdown content to an existing Notion page.

        Args:
            page_id: Target page
            body: Markdown content
            notion_token: Notion integration token Mark2Notion writes with

        Returns:
            True if the service reported success
        """
        request_body = {
            "markdown": markdown.markdown(body),
            "notionToken": notion_token,
            "pageId": page_id,
        }
        response = await self._request("POST", "/append", json=request_body)

        status = self._json(response).get("status", "unknown")
        if status != "success":
            logger.error(f"Mark2Notion API returned status: {status}")
            return False
        return True


class NotionClient(BaseServiceClient, KnowledgeBaseStore):
    """
    Notion API client for the investor research database.

    API Documentation: https://developers.notion.com/reference
    """

    BASE_URL = "https://api.notion.com/v1"
    service_name = "notion"

    DOMAIN_PROPERTY = "Domain"
    TITLE_PROPERTY = "Investor Name"

    def __init__(
        self,
        client: httpx.AsyncClient,
        mark2notion: Mark2NotionClient,
        database_id: str,
        notion_token: str,
    ):
        super().__init__(client)
        self.mark2notion = mark2notion
        self.database_id = database_id
        self.notion_token = notion_token

    @classmethod
    def create_http_client(
        cls,
        api_key: str,
        timeout: float,
        notion_version: str = "2022-06-28",
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=cls.BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": notion_version,
            },
            timeout=timeout,
        )

    async def validate(self) -> bool:
        """Check that the research database can be queried."""
        try:
            await self._query_database({"page_size": 1})
        except IntegrationError as e:
            logger.error(f"Failed to access Notion database: {e}")
            return False
        logger.info("Notion Investor Research database is accessible")
        return True

    async def exists_for_domain(self, domain: str) -> bool:
        return bool(await self._find_pages(domain))

    async def find_page_id_by_domain(self, domain: str) -> str | None:
        for page in await self._find_pages(domain):
            if page.get("id"):
                return page["id"]
        return None

    async def create_page(self, domain: str, title: str, body: str) -> str | None:
        """
        Create a database entry and append the research body to it.

        Returns:
            The page id, or None if either step failed
        """
        create_body = {
            "parent": {"database_id": self.database_id},
            "properties": {
                self.DOMAIN_PROPERTY: {
                    "url": domain if domain.startswith("http") else f"https://{domain}",
                },
                self.TITLE_PROPERTY: {
                    "title": [
                        {"type": "text", "text": {"content": title}},
                    ],
                },
            },
        }
        response = await self._request("POST", "/pages", json=create_body)
        page_id = self._json(response).get("id")
        if not page_id:
            logger.error(f"Notion did not return a page id for {domain}")
            return None

        try:
            appended = await self.mark2notion.append(page_id, body, self.notion_token)
        except Exception:
            await self._discard_page(page_id)
            raise
        if not appended:
            logger.error(f"Created page {page_id} for {domain} but could not add its content")
            await self._discard_page(page_id)
            return None

        logger.info(f"Created Notion entry for {title} (ID: {page_id})")
        return page_id

    async def delete_page(self, page_id: str) -> bool:
        """Archive a page (Notion's delete)."""
        logger.info(f"Deleting Notion page (ID: {page_id})...")
        await self._request("PATCH", f"/pages/{page_id}", json={"archived": True})
        logger.info("Successfully deleted existing Notion page")
        return True

    async def search_databases(self, query: str) -> list[dict[str, Any]]:
        """Search the workspace for databases matching ``query``."""
        response = await self._request(
            "POST",
            "/search",
            json={
                "query": query,
                "filter": {"property": "object", "value": "database"},
            },
        )
        return self._json(response).get("results") or []

    async def _discard_page(self, page_id: str) -> None:
        """Archive a page whose content could not be added."""
        try:
            await self.delete_page(page_id)
        except IntegrationError as e:
            logger.error(f"Could not archive incomplete page {page_id}: {e}")

    async def _find_pages(self, domain: str) -> list[dict[str, Any]]:
        """Pages whose Domain property is exactly ``domain``."""
        pages = await self._query_database(
            {
                "filter": {
                    "property": self.DOMAIN_PROPERTY,
                    "url": {"contains": domain},
                },
            }
        )
        host = domain_host(domain)
        return [page for page in pages if domain_host(self._page_domain(page)) == host]

    def _page_domain(self, page: dict[str, Any]) -> str:
        prop = (page.get("properties") or {}).get(self.DOMAIN_PROPERTY) or {}
        return prop.get("url") or ""

    async def _query_database(self, body: dict[str, Any]) -> list[dict[str, Any]]:
        response = await self._request(
            "POST", f"/databases/{self.database_id}/query", json=body
        )
        return self._json(response).get("results") or []
