"""
BreachWatch - Report Generator
Writes a blog post about a breach with the text generator and stores it,
at most once per breach.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ai.llm import TextGenerator
from ai.post_parser import make_slug, parse_post
from errors import NotFound, PersistenceError, UpstreamError, ValidationError
from models import BlogPostOut, GenerationResult
from store.breach_store import BreachStore
from store.tables import Breach

logger = logging.getLogger(__name__)


# ─── Prompt Template ─────────────────────────────────────────────────

SYSTEM_PROMPT = (
    "You are a cybersecurity expert who writes detailed, accurate breach reports. "
    "Always respond with valid JSON."
)

BLOG_PROMPT = """You are a cybersecurity expert writing a detailed blog post about a data breach.

Write a comprehensive article about the following data breach:

**Breach Name:** {name}
**Domain:** {domain}
**Breach Date:** {breach_date}
**Affected Users:** {affected_count}
**Exposed Data Types:** {exposed_data}
**Description:** {description}
**Severity:** {severity}

Your article should include:
1. An engaging introduction explaining what happened
2. How the breach occurred (attack vector analysis)
3. What data was exposed and the potential risks
4. Impact assessment for affected users
5. Security recommendations for users

Format your response as JSON with this structure:
{{
  "title": "Engaging article title",
  "excerpt": "A brief 2-3 sentence summary for previews",
  "content": "Full markdown article content with headers (use ## for h2, ### for h3)",
  "recommendations": ["recommendation 1", "recommendation 2", "recommendation 3", "recommendation 4", "recommendation 5"],
  "sources": ["https://example.com/source1"],
  "readTime": "X min read"
}}

Make the content informative, factual, and actionable. Use a professional but accessible tone."""


def build_prompt(breach: Breach) -> str:
    exposed = ", ".join(breach.exposed_data or []) or "Unknown"
    return BLOG_PROMPT.format(
        name=breach.name,
        domain=breach.domain,
        breach_date=breach.breach_date.isoformat() if breach.breach_date else "Unknown",
        affected_count=breach.affected_count or "Unknown",
        exposed_data=exposed,
        description=breach.description or "No description available",
        severity=breach.severity,
    )


class ReportGenerator:
    def __init__(self, store: BreachStore, generator: TextGenerator):
        self.store = store
        self.generator = generator

    def _existing(self, breach_id: str):
        try:
            return self.store.get_post_for_breach(breach_id)
        except SQLAlchemyError as e:
            raise UpstreamError("Failed to check for existing blog post") from e

    def generate(self, breach_id) -> GenerationResult:
        if not breach_id:
            raise ValidationError("Breach ID is required")

        logger.info("Generating blog post for breach: %s", breach_id)

        # ── Step 1: Breach and existing post ─────────────────────────
        try:
            breach = self.store.get_breach(breach_id)
        except SQLAlchemyError as e:
            raise UpstreamError("Failed to fetch breach") from e
        if breach is None:
            raise NotFound("Breach not found")

        existing = self._existing(breach_id)
        if existing is not None:
            return GenerationResult(slug=existing.slug, created=False, message="Blog post already exists")

        # ── Step 2: Generate and parse ───────────────────────────────
        text = self.generator.complete(SYSTEM_PROMPT, build_prompt(breach))
        parsed = parse_post(text, breach.name, breach.affected_count)
        if parsed.degraded:
            logger.warning("Using degraded post for breach %s", breach_id)
        draft = parsed.draft

        # ── Step 3: Persist ──────────────────────────────────────────
        slug = make_slug(breach.name, breach.breach_date)
        try:
            post = self.store.add_blog_post(
                slug=slug,
                breach_id=breach.id,
                title=draft.title,
                excerpt=draft.excerpt,
                content=draft.content,
                exposed_data=list(breach.exposed_data or []),
                recommendations=draft.recommendations,
                sources=draft.sources,
                read_time=draft.read_time,
                is_published=True,
            )
        except IntegrityError as e:
            # Another request may have written the post for this breach first
            winner = self._existing(breach_id)
            if winner is not None:
                logger.info("Blog post for breach %s was created concurrently", breach_id)
                return GenerationResult(slug=winner.slug, created=False, message="Blog post already exists")
            logger.error("Error saving blog post %s: %s", slug, e)
            raise PersistenceError("Failed to save blog post") from e
        except SQLAlchemyError as e:
            logger.error("Error saving blog post %s: %s", slug, e)
            raise PersistenceError("Failed to save blog post") from e

        logger.info("Blog post created successfully: %s", post.slug)
        return GenerationResult(slug=post.slug, created=True, post=BlogPostOut.model_validate(post))
