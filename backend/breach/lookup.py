"""
BreachWatch - Lookup Service
Maps a submitted email to the breaches it appears in, via its hash.

When the email has no recorded breaches, an injected fallback decides what
to return. The default answers "no match"; the demo fallback reproduces the
old marketing-site behaviour of surfacing a few random breaches and exists
only so the UI has something to show without a real breach index.
"""

import logging
import random
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from breach.emails import hash_email, require_email
from errors import UpstreamError
from models import BreachSummary
from store.breach_store import BreachStore
from store.tables import Breach

logger = logging.getLogger(__name__)


class NoMatchFallback:
    """Deterministic policy: an email with no records has no breaches."""

    def select(self, load_breaches: Callable[[], list[Breach]]) -> list[Breach]:
        return []


class DemoBreachFallback:
    """Stub for demos: usually returns the newest one to three breaches.

    `rng` needs `random()` and `randint(a, b)`; pass a seeded
    `random.Random` (or any stand-in) to make the outcome predictable.
    """
    hit_rate = 0.7
    max_breaches = 3

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else random.Random()

    def select(self, load_breaches: Callable[[], list[Breach]]) -> list[Breach]:
        if self.rng.random() >= self.hit_rate:
            return []
        count = self.rng.randint(1, self.max_breaches)
        return load_breaches()[:count]


def summarize(breach: Breach, blog_slug: str | None) -> BreachSummary:
    return BreachSummary(
        id=breach.id,
        name=breach.name,
        domain=breach.domain,
        breach_date=breach.breach_date,
        exposed_data=list(breach.exposed_data or []),
        description=breach.description,
        affected_count=breach.affected_count,
        severity=breach.severity,
        blog_slug=blog_slug,
    )


class LookupService:
    def __init__(self, store: BreachStore, fallback=None):
        self.store = store
        self.fallback = fallback if fallback is not None else NoMatchFallback()

    def check_email(self, email) -> list[BreachSummary]:
        normalized = require_email(email)
        email_hash = hash_email(normalized)
        logger.info("Checking email hash %s… for breaches", email_hash[:12])

        try:
            breach_ids = self.store.breach_ids_for_hash(email_hash)
            if breach_ids:
                found = self.store.get_breaches(breach_ids)
            else:
                found = self.fallback.select(self.store.list_breaches)
            slugs = self.store.published_slugs([b.id for b in found])
        except SQLAlchemyError as e:
            logger.error("Breach lookup failed: %s", e)
            raise UpstreamError("Failed to fetch breach data") from e

        logger.info("Found %d breach(es) for email hash %s…", len(found), email_hash[:12])
        return [summarize(b, slugs.get(b.id)) for b in found]
