"""
Attio CRM client.

Investors are Attio company records matched on their ``domains`` attribute.
The research workflow links the Notion page from the record and attaches the
analysis as a markdown note.
"""

import logging
from typing import Any

import httpx

from investor_research.services.integrations.base import BaseServiceClient, CrmStore

logger = logging.getLogger(__name__)


class AttioClient(BaseServiceClient, CrmStore):
    """
    Attio REST API client.

    API Documentation: https://developers.attio.com/reference
    """

    BASE_URL = "https://api.attio.com/v2"
    service_name = "attio"

    def __init__(
        self,
        client: httpx.AsyncClient,
        research_url_attribute: str = "notion_research_url",
    ):
        super().__init__(client)
        self.research_url_attribute = research_url_attribute

    @classmethod
    def create_http_client(cls, api_key: str, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=cls.BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    async def find_record(self, domain: str) -> str | None:
        """Find the company record whose domains include ``domain``."""
        logger.info(f"Searching for company record matching {domain}...")
        response = await self._request(
            "POST",
            "/objects/companies/records/query",
            json={"filter": {"domains": domain}},
        )

        for record in self._json(response).get("data") or []:
            record_id = (record.get("id") or {}).get("record_id")
            if record_id:
                logger.info(
                    f"Found company record: {self._record_name(record) or 'Unknown'} (ID: {record_id})"
                )
                return record_id

        logger.info(f"No company record found for {domain}")
        return None

    async def update_research_url(self, record_id: str, url: str) -> bool:
        logger.info(f"Updating company record (ID: {record_id}) with research URL...")
        await self._request(
            "PATCH",
            f"/objects/companies/records/{record_id}",
            json={
                "data": {
                    "values": {
                        self.research_url_attribute: [{"value": url}],
                    },
                },
            },
        )
        return True

    async def add_note(self, record_id: str, title: str, body: str) -> bool:
        await self._request(
            "POST",
            "/notes",
            json={
                "data": {
                    "parent_object": "companies",
                    "parent_record_id": record_id,
                    "title": title,
                    "format": "markdown",
                    "content": body,
                },
            },
        )
        logger.info(f"Note '{title}' created on record {record_id}")
        return True

    async def list_objects(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/objects")
        return self._json(response).get("data") or []

    async def list_lists(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/lists")
        return self._json(response).get("data") or []

    async def get_list(self, list_id: str) -> dict[str, Any]:
        response = await self._request("GET", f"/lists/{list_id}")
        return self._json(response).get("data") or {}

    @staticmethod
    def _record_name(record: dict[str, Any]) -> str | None:
        names = (record.get("values") or {}).get("name") or []
        if names and isinstance(names[0], dict):
            return names[0].get("value")
        return None
