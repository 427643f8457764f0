import json
import sys
from datetime import date
from pathlib import Path

import pytest

BACKEND = Path(__file__).resolve().parents[1]
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

from fastapi.testclient import TestClient  # noqa: E402

from config import Settings  # noqa: E402
from store.breach_store import BreachStore  # noqa: E402
from store.database import init_db, make_engine, make_session_factory  # noqa: E402

VALID_POST = {
    "title": "Inside the Acme Breach",
    "excerpt": "Acme lost customer data in 2020.",
    "content": "## What Happened\n\nAttackers got in.",
    "recommendations": ["Rotate passwords", "Enable 2FA"],
    "sources": ["https://acme.com/security"],
    "readTime": "6 min read",
}


class FakeGenerator:
    """Stands in for ai.llm.TextGenerator."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def complete(self, system, prompt):
        self.calls.append((system, prompt))
        if self.error is not None:
            raise self.error
        return self.text


class FakeSearch:
    """Stands in for osint.web_search.FirecrawlSearch."""

    def __init__(self, hits=None, error=None):
        self.hits = hits or []
        self.error = error
        self.queries = []

    def search(self, query, limit=5):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.hits)


class FixedRng:
    def __init__(self, roll, count):
        self.roll = roll
        self.count = count

    def random(self):
        return self.roll

    def randint(self, a, b):
        return self.count


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def engine(settings):
    engine = make_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return BreachStore(db)


@pytest.fixture
def make_breach(store):
    def _make(name="Acme", domain="acme.com", breach_date=date(2020, 5, 1), **fields):
        fields.setdefault("exposed_data", ["Email addresses", "Passwords"])
        fields.setdefault("severity", "high")
        fields.setdefault("affected_count", "3M")
        return store.add_breach(name=name, domain=domain, breach_date=breach_date, **fields)
    return _make


@pytest.fixture
def generator():
    return FakeGenerator(text=json.dumps(VALID_POST))


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def app(settings, generator, search):
    import main

    app = main.create_app(settings)
    app.dependency_overrides[main.get_text_generator] = lambda: generator
    app.dependency_overrides[main.get_search_client] = lambda: search
    return app


@pytest.fixture
def client(app, engine):
    with TestClient(app) as c:
        yield c
