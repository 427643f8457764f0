# backend/store/breach_store.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from store.tables import Breach, BlogPost, EmailBreachRecord, EmailSubscription


class BreachStore:
    """Reads and writes breach, blog-post, email-record and subscription rows.

    Wraps one request-scoped session. Write helpers commit immediately and
    roll the session back before re-raising, so a failed insert leaves the
    session usable for the caller's follow-up reads.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # ── Breaches ──────────────────────────────────────────────────

    def get_breach(self, breach_id: str) -> Optional[Breach]:
        return self.db.query(Breach).filter(Breach.id == breach_id).first()

    def find_breach(self, name: str, domain: str) -> Optional[Breach]:
        return (
            self.db.query(Breach)
            .filter(Breach.name == name, Breach.domain == domain)
            .first()
        )

    def list_breaches(self) -> list[Breach]:
        return self.db.query(Breach).order_by(Breach.breach_date.desc()).all()

    def get_breaches(self, breach_ids: list[str]) -> list[Breach]:
        if not breach_ids:
            return []
        return (
            self.db.query(Breach)
            .filter(Breach.id.in_(breach_ids))
            .order_by(Breach.breach_date.desc())
            .all()
        )

    def add_breach(self, **fields) -> Breach:
        breach = Breach(**fields)
        self.db.add(breach)
        self._commit()
        self.db.refresh(breach)
        return breach

    # ── Email breach records ──────────────────────────────────────

    def breach_ids_for_hash(self, email_hash: str) -> list[str]:
        rows = (
            self.db.query(EmailBreachRecord.breach_id)
            .filter(EmailBreachRecord.email_hash == email_hash)
            .all()
        )
        return list(dict.fromkeys(r[0] for r in rows))

    def add_email_breach_record(self, email_hash: str, breach_id: str) -> EmailBreachRecord:
        record = EmailBreachRecord(email_hash=email_hash, breach_id=breach_id)
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        return record

    # ── Blog posts ────────────────────────────────────────────────

    def get_post_for_breach(self, breach_id: str) -> Optional[BlogPost]:
        return (
            self.db.query(BlogPost)
            .filter(BlogPost.breach_id == breach_id)
            .order_by(BlogPost.created_at.asc())
            .first()
        )

    def published_slugs(self, breach_ids: list[str]) -> dict[str, str]:
        """Map breach id -> slug of its earliest published post."""
        if not breach_ids:
            return {}
        rows = (
            self.db.query(BlogPost.breach_id, BlogPost.slug)
            .filter(BlogPost.is_published.is_(True), BlogPost.breach_id.in_(breach_ids))
            .order_by(BlogPost.created_at.asc())
            .all()
        )
        slugs: dict[str, str] = {}
        for breach_id, slug in rows:
            slugs.setdefault(breach_id, slug)
        return slugs

    def get_published_post(self, slug: str) -> Optional[BlogPost]:
        return (
            self.db.query(BlogPost)
            .filter(BlogPost.slug == slug, BlogPost.is_published.is_(True))
            .first()
        )

    def list_published_posts(self, limit: int = 20, offset: int = 0) -> list[BlogPost]:
        return (
            self.db.query(BlogPost)
            .filter(BlogPost.is_published.is_(True))
            .order_by(BlogPost.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_published_posts(self) -> int:
        return self.db.query(BlogPost).filter(BlogPost.is_published.is_(True)).count()

    def add_blog_post(self, **fields) -> BlogPost:
        post = BlogPost(**fields)
        self.db.add(post)
        self._commit()
        self.db.refresh(post)
        return post

    # ── Subscriptions ─────────────────────────────────────────────

    def get_subscription(self, email: str) -> Optional[EmailSubscription]:
        return self.db.query(EmailSubscription).filter(EmailSubscription.email == email).first()

    def add_subscription(self, email: str) -> EmailSubscription:
        sub = EmailSubscription(email=email, is_active=True)
        self.db.add(sub)
        self._commit()
        self.db.refresh(sub)
        return sub

    def set_subscription_active(self, email: str, is_active: bool) -> int:
        """Update every row matching email; returns the number of rows touched."""
        updated = (
            self.db.query(EmailSubscription)
            .filter(EmailSubscription.email == email)
            .update({EmailSubscription.is_active: is_active}, synchronize_session="fetch")
        )
        self._commit()
        return updated
