"""
Perplexity API client.

Asks the Sonar chat completions endpoint to evaluate an investor against the
investor criteria document.
"""

import logging

import httpx

from investor_research.services.integrations.base import (
    AnalysisPayload,
    BaseServiceClient,
    IntegrationError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ResearchProvider,
)

logger = logging.getLogger(__name__)


ANALYSIS_PROMPT = (
    "Research the venture capital firm at {domain} and evaluate whether it would be "
    "a good fit for Neo's $5M seed round based on the specific investor criteria "
    "provided below.\n\n"
    "INVESTOR CRITERIA CONTEXT:\n{criteria}\n\n"
    "IMPORTANT: Format your response as proper Markdown. Start your response with "
    "exactly this format on the first line:\n"
    "VC Name: [Full Name of the VC Firm]\n\n"
    "Then provide a comprehensive markdown analysis covering:\n"
    "1. How well they match our stage, check size, and sector focus\n"
    "2. Their relevant portfolio companies and track record\n"
    "3. Geographic alignment and investment thesis fit\n"
    "4. Overall recommendation (Strong Fit / Good Fit / Weak Fit / No Fit)\n"
    "5. Any specific partners or team members to target\n"
    "6. Potential concerns or red flags\n\n"
    "Use proper markdown formatting with headers, bullet points, bold text, etc."
)


class PerplexityClient(BaseServiceClient, ResearchProvider):
    """
    Perplexity Sonar API client.

    API Documentation: https://docs.perplexity.ai/api-reference/chat-completions
    """

    BASE_URL = "https://api.perplexity.ai"
    service_name = "perplexity"

    def __init__(self, client: httpx.AsyncClient, model: str = "sonar-pro"):
        super().__init__(client)
        self.model = model

    @classmethod
    def create_http_client(cls, api_key: str, timeout: float) -> httpx.AsyncClient:
        """Build the HTTP client used by this provider."""
        return httpx.AsyncClient(
            base_url=cls.BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def build_prompt(self, domain: str, criteria: str) -> str:
        """Build the research prompt for an investor."""
        return ANALYSIS_PROMPT.format(domain=domain, criteria=criteria)

    async def analyze(self, domain: str, criteria: str) -> AnalysisPayload:
        """
        Research the investor at ``domain``.

        Raises:
            ProviderError: If the request fails or the response is unusable
        """
        body = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": self.build_prompt(domain, criteria),
                }
            ],
        }

        logger.info(f"Querying Perplexity ({self.model}) for {domain}...")
        response = await self._request("POST", "/chat/completions", json=body)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Invalid JSON response: {e}", self.service_name)
        logger.debug(f"Perplexity response: {data}")

        payload = AnalysisPayload.from_response(data)
        logger.info(
            f"Received analysis for {domain} "
            f"({len(payload.search_results)} search results, {len(payload.citations)} citations)"
        )
        return payload

    def _error(self, message: str) -> IntegrationError:
        return ProviderError(message, self.service_name)

    def _auth_error(self, message: str) -> IntegrationError:
        return ProviderAuthError("Invalid Perplexity API key", self.service_name)

    def _rate_limit_error(self, message: str, retry_after: int | None) -> IntegrationError:
        return ProviderRateLimitError("Perplexity rate limit exceeded", self.service_name, retry_after)

    def _connection_error(self, message: str) -> IntegrationError:
        return ProviderConnectionError(message, self.service_name)
