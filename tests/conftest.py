"""
Pytest configuration and fixtures for investor research tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from investor_research.config import get_settings
from investor_research.services.integrations.base import (
    AnalysisPayload,
    Citation,
    CrmStore,
    KnowledgeBaseStore,
    ResearchProvider,
)


# Configure pytest-asyncio for async tests
pytest_plugins = ('pytest_asyncio',)


SAMPLE_ANALYSIS = """VC Name: Sequoia

## Fit Summary
Sequoia leads seed rounds of $1M-$5M.

**Recommendation: Strong Fit**"""


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset around each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_payload() -> AnalysisPayload:
    """An analysis with one rich search result."""
    return AnalysisPayload(
        content=SAMPLE_ANALYSIS,
        search_results=[
            Citation(
                url="https://sequoiacap.com/seed",
                title="Sequoia Seed",
                date="2024-05-01",
                snippet="Sequoia partners with founders from idea to IPO.",
            )
        ],
        citations=["https://sequoiacap.com/seed"],
        model="sonar-pro",
    )


@pytest.fixture
def provider(sample_payload) -> AsyncMock:
    """Research provider returning ``sample_payload``."""
    mock = AsyncMock(spec=ResearchProvider)
    mock.analyze.return_value = sample_payload
    return mock


@pytest.fixture
def knowledge_base() -> AsyncMock:
    """Knowledge base with no existing research that accepts new pages."""
    mock = AsyncMock(spec=KnowledgeBaseStore)
    mock.exists_for_domain.return_value = False
    mock.validate.return_value = True
    mock.find_page_id_by_domain.return_value = None
    mock.create_page.return_value = "1234-abcd-5678"
    mock.delete_page.return_value = True
    return mock


@pytest.fixture
def crm() -> AsyncMock:
    """CRM with a matching company record."""
    mock = AsyncMock(spec=CrmStore)
    mock.find_record.return_value = "rec1"
    mock.update_research_url.return_value = True
    mock.add_note.return_value = True
    return mock


def make_response(status_code: int = 200, json_data=None, text: str = "") -> MagicMock:
    """Build a fake ``httpx.Response``."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data if json_data is not None else {}
    return response


@pytest.fixture
def http_client() -> AsyncMock:
    """Injected ``httpx.AsyncClient`` replacement."""
    client = AsyncMock()
    client.request.return_value = make_response()
    return client


@pytest.fixture
def response_factory():
    """Factory for fake HTTP responses."""
    return make_response
