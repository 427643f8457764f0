"""
BreachWatch - Web Search (OSINT)
Searches the web for breach reports with the Firecrawl search API.
"""

import logging

import requests

from errors import UpstreamError

logger = logging.getLogger(__name__)

FIRECRAWL_SEARCH_URL = "https://api.firecrawl.dev/v1/search"


class FirecrawlSearch:
    def __init__(self, api_key: str, timeout: int = 20, session: requests.Session | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def search(self, query: str, limit: int = 5) -> list[dict]:
        """
        Return search hits as dicts with title, url, description and markdown.
        Raises UpstreamError when unconfigured or when Firecrawl fails.
        """
        if not self.api_key:
            raise UpstreamError("Firecrawl connector not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "query": query,
            "limit": limit,
            "scrapeOptions": {"formats": ["markdown"]},
        }

        try:
            resp = self.session.post(FIRECRAWL_SEARCH_URL, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Firecrawl search request failed: %s", e)
            raise UpstreamError("Failed to search for breaches") from e

        if resp.status_code != 200:
            logger.error("Firecrawl search error: %s %s", resp.status_code, resp.text[:200])
            raise UpstreamError("Failed to search for breaches")

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("Failed to search for breaches") from e

        hits = data.get("data") if isinstance(data, dict) else None
        return [h for h in hits if isinstance(h, dict)] if isinstance(hits, list) else []
