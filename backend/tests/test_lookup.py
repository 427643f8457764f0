from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from breach.emails import hash_email
from breach.lookup import DemoBreachFallback, LookupService, NoMatchFallback
from conftest import FixedRng
from errors import UpstreamError, ValidationError
from store.tables import EmailBreachRecord


@pytest.fixture
def catalogue(make_breach):
    return [
        make_breach("Old", "old.com", date(2012, 1, 1)),
        make_breach("Mid", "mid.com", date(2016, 1, 1)),
        make_breach("New", "new.com", date(2022, 1, 1)),
        make_breach("Newest", "newest.com", date(2023, 1, 1)),
    ]


def test_recorded_email_returns_exactly_its_breaches(store, catalogue):
    old, _, new, _ = catalogue
    email_hash = hash_email("victim@example.com")
    store.add_email_breach_record(email_hash, old.id)
    store.add_email_breach_record(email_hash, new.id)

    results = LookupService(store).check_email("  Victim@Example.com ")

    assert {r.name for r in results} == {"Old", "New"}
    assert [r.name for r in results] == ["New", "Old"]


def test_unknown_email_has_no_breaches_by_default(store, catalogue):
    assert LookupService(store).check_email("nobody@example.com") == []
    assert LookupService(store, NoMatchFallback()).check_email("nobody@example.com") == []


def test_demo_fallback_returns_newest_prefix(store, catalogue):
    service = LookupService(store, DemoBreachFallback(rng=FixedRng(roll=0.5, count=2)))
    results = service.check_email("nobody@example.com")
    assert [r.name for r in results] == ["Newest", "New"]


def test_demo_fallback_can_miss(store, catalogue):
    service = LookupService(store, DemoBreachFallback(rng=FixedRng(roll=0.95, count=3)))
    assert service.check_email("nobody@example.com") == []


def test_demo_fallback_is_not_used_when_records_exist(store, catalogue):
    store.add_email_breach_record(hash_email("victim@example.com"), catalogue[1].id)
    service = LookupService(store, DemoBreachFallback(rng=FixedRng(roll=0.0, count=3)))
    assert [r.name for r in service.check_email("victim@example.com")] == ["Mid"]


def test_results_carry_published_blog_slug_only(store, catalogue):
    old, mid, _, _ = catalogue
    email_hash = hash_email("victim@example.com")
    store.add_email_breach_record(email_hash, old.id)
    store.add_email_breach_record(email_hash, mid.id)
    store.add_blog_post(slug="old-2012", breach_id=old.id, title="t", excerpt="e", content="c",
                        is_published=True)
    store.add_blog_post(slug="mid-2016", breach_id=mid.id, title="t", excerpt="e", content="c",
                        is_published=False)

    results = {r.name: r for r in LookupService(store).check_email("victim@example.com")}

    assert results["Old"].blog_slug == "old-2012"
    assert results["Mid"].blog_slug is None


def test_summary_fields(store, catalogue):
    store.add_email_breach_record(hash_email("victim@example.com"), catalogue[0].id)
    (summary,) = LookupService(store).check_email("victim@example.com")
    assert summary.domain == "old.com"
    assert summary.breach_date == date(2012, 1, 1)
    assert summary.exposed_data == ["Email addresses", "Passwords"]
    assert summary.severity == "high"
    assert summary.affected_count == "3M"


def test_invalid_email_is_rejected(store):
    with pytest.raises(ValidationError):
        LookupService(store).check_email("not-an-email")


def test_store_failure_surfaces_as_upstream_error(store, monkeypatch):
    def boom(_hash):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "breach_ids_for_hash", boom)
    with pytest.raises(UpstreamError) as exc:
        LookupService(store).check_email("victim@example.com")
    assert exc.value.message == "Failed to fetch breach data"


def test_lookup_writes_nothing(store, db, catalogue):
    LookupService(store, DemoBreachFallback(rng=FixedRng(roll=0.1, count=3))).check_email("x@example.com")
    assert db.query(EmailBreachRecord).count() == 0
