"""
BreachWatch - Breach Crawler
Searches the web for recent breach reports, asks the text generator to pull
structured breach records out of them, and stores the ones not seen before.
Records are deduplicated on (name, domain) and stored unverified.
"""

import logging
from datetime import date

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ai.llm import TextGenerator
from ai.post_parser import extract_json_object
from errors import GenerationError, UpstreamError
from models import BreachOut, CrawlResult, ExtractedBreach
from osint.web_search import FirecrawlSearch
from store.breach_store import BreachStore
from store.tables import SEVERITIES

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "data breach 2024 exposed emails passwords"
SEARCH_LIMIT = 5
RESULT_CHAR_LIMIT = 2000

SYSTEM_PROMPT = (
    "You are a cybersecurity analyst who extracts structured data breach information. "
    "Always respond with valid JSON."
)

EXTRACTION_PROMPT = """Analyze the following search results about data breaches and extract structured information about any NEW data breaches mentioned.

Search Results:
{results}

Extract any data breaches mentioned and return them as a JSON array:
{{
  "breaches": [
    {{
      "name": "Company Name",
      "domain": "company.com",
      "breach_date": "YYYY-MM-DD",
      "exposed_data": ["emails", "passwords", "names"],
      "description": "Brief description of the breach",
      "affected_count": "Number affected (e.g., '50M')",
      "severity": "low|medium|high|critical",
      "source_url": "URL where this was reported"
    }}
  ]
}}

Only include breaches with enough information to be useful. Return an empty array if no clear breach information is found."""


def format_results(hits: list[dict]) -> str:
    blocks = []
    for i, hit in enumerate(hits, 1):
        content = (hit.get("markdown") or "")[:RESULT_CHAR_LIMIT] or hit.get("description") or "N/A"
        blocks.append(
            f"--- Result {i} ---\n"
            f"Title: {hit.get('title') or 'N/A'}\n"
            f"URL: {hit.get('url') or 'N/A'}\n"
            f"Content: {content}\n"
        )
    return "\n".join(blocks)


def parse_extraction(text: str) -> list[ExtractedBreach]:
    data = extract_json_object(text)
    if data is None:
        logger.warning("Failed to parse extracted breaches")
        return []
    raw = data.get("breaches")
    if not isinstance(raw, list):
        return []

    breaches = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            breaches.append(ExtractedBreach.model_validate(item))
        except SchemaError:
            logger.warning("Skipping malformed breach entry: %s", str(item)[:120])
    return breaches


def _parse_date(value: str | None) -> date | None:
    """Missing -> today; unparseable -> None (the caller skips the record)."""
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class BreachCrawler:
    def __init__(self, store: BreachStore, search: FirecrawlSearch, generator: TextGenerator):
        self.store = store
        self.search = search
        self.generator = generator

    def crawl(self, search_query: str | None = None) -> CrawlResult:
        query = (search_query or "").strip() or DEFAULT_QUERY
        logger.info("Searching for breach information: %s", query)

        hits = self.search.search(query, limit=SEARCH_LIMIT)
        if not hits:
            return CrawlResult(message="No new breach information found", breaches=[])

        try:
            text = self.generator.complete(SYSTEM_PROMPT, EXTRACTION_PROMPT.format(results=format_results(hits)))
        except GenerationError as e:
            logger.error("AI extraction failed: %s", e.message)
            return CrawlResult(
                message="Found results but could not extract breach data",
                raw_results=len(hits),
            )

        extracted = parse_extraction(text)
        inserted = [BreachOut.model_validate(b) for b in self._insert_new(extracted)]

        return CrawlResult(
            message=f"Found {len(extracted)} breaches, inserted {len(inserted)} new",
            breaches=inserted,
        )

    def _insert_new(self, extracted: list[ExtractedBreach]):
        inserted = []
        for item in extracted:
            name = (item.name or "").strip()
            domain = (item.domain or "").strip().lower()
            if not name or not domain:
                continue

            try:
                if self.store.find_breach(name, domain) is not None:
                    continue
            except SQLAlchemyError as e:
                raise UpstreamError("Failed to check existing breaches") from e

            breach_date = _parse_date(item.breach_date)
            if breach_date is None:
                logger.warning("Skipping %s: unparseable breach date %r", name, item.breach_date)
                continue

            severity = (item.severity or "").strip().lower()
            try:
                breach = self.store.add_breach(
                    name=name,
                    domain=domain,
                    breach_date=breach_date,
                    exposed_data=item.exposed_data,
                    description=item.description,
                    affected_count=item.affected_count,
                    severity=severity if severity in SEVERITIES else "medium",
                    source_url=item.source_url,
                    is_verified=False,
                )
            except IntegrityError:
                logger.info("Breach %s (%s) was inserted concurrently, skipping", name, domain)
                continue
            except SQLAlchemyError as e:
                logger.warning("Could not insert breach %s: %s", name, e)
                continue

            logger.info("Inserted new breach: %s", name)
            inserted.append(breach)
        return inserted
