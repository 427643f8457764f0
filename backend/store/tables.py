# backend/store/tables.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from store.database import Base

SEVERITIES = ("low", "medium", "high", "critical")


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Breach(Base):
    __tablename__ = "breaches"
    __table_args__ = (UniqueConstraint("name", "domain", name="uq_breaches_name_domain"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    domain = Column(String, nullable=False)
    breach_date = Column(Date, nullable=False)
    discovered_date = Column(Date, nullable=True)
    exposed_data = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    affected_count = Column(String, nullable=True)  # free text, e.g. "50M"
    severity = Column(String(16), nullable=False, default="medium")
    source_url = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Breach {self.name} ({self.domain})>"


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=_uuid)
    slug = Column(String, unique=True, index=True, nullable=False)
    # One post per breach; a concurrent duplicate insert fails here instead of landing twice
    breach_id = Column(String(36), ForeignKey("breaches.id"), unique=True, nullable=True)
    title = Column(String, nullable=False)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    exposed_data = Column(JSON, nullable=False, default=list)
    recommendations = Column(JSON, nullable=False, default=list)
    sources = Column(JSON, nullable=False, default=list)
    read_time = Column(String, nullable=True, default="5 min read")
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    breach = relationship("Breach")

    def __repr__(self):
        return f"<BlogPost {self.slug}>"


class EmailBreachRecord(Base):
    __tablename__ = "email_breach_records"

    id = Column(String(36), primary_key=True, default=_uuid)
    email_hash = Column(String(64), index=True, nullable=False)
    breach_id = Column(String(36), ForeignKey("breaches.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class EmailSubscription(Base):
    __tablename__ = "email_subscriptions"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<EmailSubscription {self.email}>"
