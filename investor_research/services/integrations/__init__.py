"""
External service integrations for investor research.

Provides the Perplexity research provider, the Notion knowledge base and the
Attio CRM behind the interfaces the research workflow consumes.
"""

from investor_research.services.integrations.base import (
    AnalysisPayload,
    BaseServiceClient,
    Citation,
    CrmStore,
    IntegrationAuthError,
    IntegrationConnectionError,
    IntegrationError,
    IntegrationRateLimitError,
    KnowledgeBaseStore,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ResearchProvider,
)
from investor_research.services.integrations.perplexity import PerplexityClient
from investor_research.services.integrations.notion import Mark2NotionClient, NotionClient
from investor_research.services.integrations.attio import AttioClient

__all__ = [
    # Interfaces and payloads
    "ResearchProvider",
    "KnowledgeBaseStore",
    "CrmStore",
    "AnalysisPayload",
    "Citation",
    "BaseServiceClient",
    # Errors
    "IntegrationError",
    "IntegrationAuthError",
    "IntegrationRateLimitError",
    "IntegrationConnectionError",
    "ProviderError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "ProviderConnectionError",
    # Clients
    "PerplexityClient",
    "NotionClient",
    "Mark2NotionClient",
    "AttioClient",
]
