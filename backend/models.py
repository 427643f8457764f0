"""
BreachWatch - Pydantic Models
Request/response schemas for the API, plus the shapes exchanged with the
text-generation model. JSON field names on the wire are camelCase.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


GENERIC_RECOMMENDATIONS = [
    "Change your password immediately",
    "Enable two-factor authentication",
    "Monitor your accounts for suspicious activity",
    "Use unique passwords for each service",
    "Consider using a password manager",
]
DEFAULT_READ_TIME = "5 min read"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ═══════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════

class CheckEmailRequest(CamelModel):
    """Email to look up. Validated by the lookup service, not here."""
    email: Optional[str] = None


class GenerateBlogRequest(CamelModel):
    breach_id: Optional[str] = Field(None, description="Id of the breach to write about")


class SubscribeRequest(CamelModel):
    email: Optional[str] = None
    action: Literal["subscribe", "unsubscribe"] = "subscribe"


class CrawlRequest(CamelModel):
    search_query: Optional[str] = Field(None, max_length=500, description="Web search query for new breaches")


# ═══════════════════════════════════════════════════════════════
# Domain views
# ═══════════════════════════════════════════════════════════════

class BreachSummary(CamelModel):
    """A breach matched by a lookup, with the slug of its blog post if one is published."""
    id: str
    name: str
    domain: str
    breach_date: Optional[date] = None
    exposed_data: list[str] = []
    description: Optional[str] = None
    affected_count: Optional[str] = None
    severity: str = "medium"
    blog_slug: Optional[str] = None


class BreachOut(CamelModel):
    id: str
    name: str
    domain: str
    breach_date: Optional[date] = None
    discovered_date: Optional[date] = None
    exposed_data: list[str] = []
    description: Optional[str] = None
    affected_count: Optional[str] = None
    severity: str = "medium"
    source_url: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None


class BlogPostSummary(CamelModel):
    slug: str
    title: str
    excerpt: str
    read_time: Optional[str] = None
    breach_id: Optional[str] = None
    created_at: Optional[datetime] = None


class BlogPostOut(BlogPostSummary):
    id: str
    content: str
    exposed_data: list[str] = []
    recommendations: list[str] = []
    sources: list[str] = []
    is_published: bool = False
    updated_at: Optional[datetime] = None


class BlogPostDetail(BlogPostOut):
    breach: Optional[BreachOut] = None


class PostDraft(CamelModel):
    """Article fields produced by the model (or by the degraded template)."""
    title: str = Field(..., min_length=1)
    excerpt: str
    content: str = Field(..., min_length=1)
    recommendations: list[str] = []
    sources: list[str] = []
    read_time: str = DEFAULT_READ_TIME

    @field_validator("recommendations", "sources", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("read_time", mode="before")
    @classmethod
    def coerce_read_time(cls, v):
        if v is None or v == "":
            return DEFAULT_READ_TIME
        if isinstance(v, (int, float)):
            return f"{int(v)} min read"
        return v


class ExtractedBreach(BaseModel):
    """One breach as extracted from search results by the model. Everything is optional."""
    name: Optional[str] = None
    domain: Optional[str] = None
    breach_date: Optional[str] = None
    exposed_data: list[str] = []
    description: Optional[str] = None
    affected_count: Optional[str] = None
    severity: Optional[str] = None
    source_url: Optional[str] = None

    @field_validator("exposed_data", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("affected_count", "breach_date", mode="before")
    @classmethod
    def as_text(cls, v):
        return None if v is None else str(v)


# ═══════════════════════════════════════════════════════════════
# Service results
# ═══════════════════════════════════════════════════════════════

class SubscriptionResult(CamelModel):
    status: Literal["new", "already_subscribed", "reactivated", "unsubscribed"]
    message: str
    already_subscribed: bool = False


class GenerationResult(CamelModel):
    slug: str
    created: bool
    message: Optional[str] = None
    post: Optional[BlogPostOut] = None


class CrawlResult(CamelModel):
    message: str
    breaches: list[BreachOut] = []
    raw_results: Optional[int] = None


# ═══════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════

class ErrorResponse(CamelModel):
    success: bool = False
    error: str


class CheckEmailResponse(CamelModel):
    success: bool = True
    breaches: list[BreachSummary] = []
    total: int = 0


class GenerateBlogResponse(CamelModel):
    success: bool = True
    slug: str
    message: Optional[str] = None
    post: Optional[BlogPostOut] = None


class SubscribeResponse(CamelModel):
    success: bool = True
    message: str
    status: str
    already_subscribed: bool = False


class CrawlResponse(CamelModel):
    success: bool = True
    message: str
    breaches: list[BreachOut] = []
    raw_results: Optional[int] = None


class BlogListResponse(CamelModel):
    success: bool = True
    posts: list[BlogPostSummary] = []
    total: int = 0


class BlogPostResponse(CamelModel):
    success: bool = True
    post: BlogPostDetail
