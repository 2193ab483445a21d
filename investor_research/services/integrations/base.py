"""
Base classes for the external services used by the research workflow.

Defines the three collaborator interfaces (research provider, knowledge base,
CRM), the shared exception hierarchy and the analysis payload format.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx


class IntegrationError(Exception):
    """Base exception for external service errors."""

    def __init__(self, message: str, service: str = "unknown"):
        self.message = message
        self.service = service
        super().__init__(f"[{service}] {message}")


class IntegrationAuthError(IntegrationError):
    """Raised when an API key is invalid or authentication fails."""

    pass


class IntegrationRateLimitError(IntegrationError):
    """Raised when rate limit is exceeded."""

    def __init__(self, message: str, service: str, retry_after: int | None = None):
        super().__init__(message, service)
        self.retry_after = retry_after


class IntegrationConnectionError(IntegrationError):
    """Raised when the service cannot be reached."""

    pass


class ProviderError(IntegrationError):
    """Base exception for research provider errors."""

    pass


class ProviderAuthError(ProviderError, IntegrationAuthError):
    """Raised when the research provider rejects the API key."""

    pass


class ProviderRateLimitError(ProviderError, IntegrationRateLimitError):
    """Raised when the research provider rate limit is exceeded."""

    pass


class ProviderConnectionError(ProviderError, IntegrationConnectionError):
    """Raised when the research provider cannot be reached."""

    pass


@dataclass
class Citation:
    """
    A source backing the analysis.

    Attributes:
        url: Source URL
        title: Page title (search results only)
        date: Publication date as returned by the provider
        snippet: Excerpt from the source
    """
    url: str
    title: str | None = None
    date: str | None = None
    snippet: str | None = None

    @classmethod
    def from_search_result(cls, item: dict[str, Any]) -> "Citation":
        """Create from a Perplexity ``search_results`` entry."""
        return cls(
            url=item.get("url") or "",
            title=item.get("title") or None,
            date=item.get("date") or None,
            snippet=item.get("snippet") or None,
        )


@dataclass
class AnalysisPayload:
    """Raw result of a research provider call."""

    content: str
    search_results: list[Citation] = field(default_factory=list)
    citations: list[str] = field(default_factory=list)
    model: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "AnalysisPayload":
        """
        Build a payload from a chat completions response body.

        Raises:
            ProviderError: If the response has no message content
        """
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ProviderError("Response contained no analysis content", "perplexity")
        if content is None:
            raise ProviderError("Response contained no analysis content", "perplexity")

        search_results = [
            Citation.from_search_result(item)
            for item in data.get("search_results") or []
            if isinstance(item, dict)
        ]
        citations = [
            str(url) for url in data.get("citations") or [] if url
        ]

        return cls(
            content=str(content),
            search_results=search_results,
            citations=citations,
            model=data.get("model"),
            raw=data,
        )


class BaseServiceClient:
    """
    Shared plumbing for clients that talk to a JSON HTTP API.

    The ``httpx.AsyncClient`` is created once by the caller (with base URL,
    auth headers and timeout) and injected here.
    """

    service_name = "unknown"

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs,
    ) -> httpx.Response:
        """
        Send a request and map failures onto the integration exceptions.

        Raises:
            IntegrationAuthError: On 401/403
            IntegrationRateLimitError: On 429
            IntegrationError: On any other non-2xx status
            IntegrationConnectionError: If the request could not be sent
        """
        try:
            response = await self.client.request(method, url, json=json, **kwargs)
        except httpx.RequestError as e:
            raise self._connection_error(f"Request failed: {str(e)}")

        if response.status_code in (401, 403):
            raise self._auth_error(f"Authentication failed ({response.status_code})")
        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise self._rate_limit_error(
                "Rate limit exceeded",
                int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if not 200 <= response.status_code < 300:
            raise self._error(f"HTTP {response.status_code}: {response.text[:500]}")

        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body, treating anything else as empty."""
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _error(self, message: str) -> IntegrationError:
        return IntegrationError(message, self.service_name)

    def _auth_error(self, message: str) -> IntegrationError:
        return IntegrationAuthError(message, self.service_name)

    def _rate_limit_error(self, message: str, retry_after: int | None) -> IntegrationError:
        return IntegrationRateLimitError(message, self.service_name, retry_after)

    def _connection_error(self, message: str) -> IntegrationError:
        return IntegrationConnectionError(message, self.service_name)


class ResearchProvider(ABC):
    """Produces an analysis of an investor for a criteria document."""

    @abstractmethod
    async def analyze(self, domain: str, criteria: str) -> AnalysisPayload:
        """
        Research an investor.

        Args:
            domain: Investor domain
            criteria: Investor criteria document (markdown)

        Returns:
            AnalysisPayload with the analysis text and citations

        Raises:
            ProviderError: If the request fails
        """
        pass


class KnowledgeBaseStore(ABC):
    """Stores one research page per investor domain."""

    @abstractmethod
    async def validate(self) -> bool:
        """Return True if the research database is reachable."""
        pass

    @abstractmethod
    async def exists_for_domain(self, domain: str) -> bool:
        """Return True if a research page already exists for the domain."""
        pass

    @abstractmethod
    async def find_page_id_by_domain(self, domain: str) -> str | None:
        """Return the id of the research page for the domain, if any."""
        pass

    @abstractmethod
    async def create_page(self, domain: str, title: str, body: str) -> str | None:
        """Create a research page and return its id, or None on failure."""
        pass

    @abstractmethod
    async def delete_page(self, page_id: str) -> bool:
        """Delete a research page. Returns True on success."""
        pass


class CrmStore(ABC):
    """CRM company records keyed by domain."""

    @abstractmethod
    async def find_record(self, domain: str) -> str | None:
        """Return the company record id for the domain, if any."""
        pass

    @abstractmethod
    async def update_research_url(self, record_id: str, url: str) -> bool:
        """Set the research URL attribute on a record."""
        pass

    @abstractmethod
    async def add_note(self, record_id: str, title: str, body: str) -> bool:
        """Append a markdown note to a record."""
        pass
