"""
BreachWatch - Seed Data
Creates the schema and loads a catalogue of well-known historical breaches.

    python seed.py                                   # load the catalogue
    python seed.py --email me@example.com --breach LinkedIn
"""

import argparse
import logging
import sys
from datetime import date

from breach.emails import hash_email, require_email
from config import Settings
from errors import ValidationError
from store.breach_store import BreachStore
from store.database import init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

KNOWN_BREACHES = [
    {
        "name": "LinkedIn",
        "domain": "linkedin.com",
        "breach_date": date(2021, 6, 22),
        "exposed_data": ["Email addresses", "Phone numbers", "Full names", "Physical addresses",
                         "Geolocation data", "Professional details", "Gender"],
        "description": "Data scraped from 700 million LinkedIn profiles was offered for sale on a hacking forum.",
        "affected_count": "700M",
        "severity": "critical",
    },
    {
        "name": "Adobe",
        "domain": "adobe.com",
        "breach_date": date(2013, 10, 4),
        "exposed_data": ["Email addresses", "Password hints", "Passwords", "Usernames"],
        "description": "Attackers stole customer records with weakly encrypted passwords and plain-text hints.",
        "affected_count": "153M",
        "severity": "critical",
    },
    {
        "name": "Dropbox",
        "domain": "dropbox.com",
        "breach_date": date(2012, 7, 1),
        "exposed_data": ["Email addresses", "Passwords"],
        "description": "A reused employee password gave attackers access to a file of user credentials.",
        "affected_count": "68M",
        "severity": "high",
    },
    {
        "name": "Yahoo",
        "domain": "yahoo.com",
        "breach_date": date(2014, 9, 22),
        "exposed_data": ["Email addresses", "Names", "Phone numbers", "Security questions", "Passwords"],
        "description": "State-sponsored attackers stole account data; the breach was disclosed in 2016.",
        "affected_count": "500M",
        "severity": "critical",
    },
    {
        "name": "MySpace",
        "domain": "myspace.com",
        "breach_date": date(2013, 6, 11),
        "exposed_data": ["Email addresses", "Passwords", "Usernames"],
        "description": "Accounts from the social network's peak years surfaced in 2016 with SHA-1 password hashes.",
        "affected_count": "360M",
        "severity": "high",
    },
    {
        "name": "Twitter",
        "domain": "twitter.com",
        "breach_date": date(2023, 1, 4),
        "exposed_data": ["Email addresses", "Names", "Usernames", "Follower counts"],
        "description": "An API vulnerability let attackers link email addresses to accounts; the data was leaked.",
        "affected_count": "200M",
        "severity": "high",
    },
]


def seed_breaches(store: BreachStore) -> int:
    """Insert the catalogue; existing (name, domain) pairs are left alone."""
    added = 0
    for entry in KNOWN_BREACHES:
        if store.find_breach(entry["name"], entry["domain"]) is not None:
            continue
        store.add_breach(is_verified=True, **entry)
        added += 1
    return added


def link_email(store: BreachStore, email: str, breach_name: str) -> None:
    """Record that `email` appears in every breach named `breach_name`."""
    normalized = require_email(email)
    matches = [b for b in store.list_breaches() if b.name.lower() == breach_name.lower()]
    if not matches:
        raise ValidationError(f"Unknown breach: {breach_name}")
    email_hash = hash_email(normalized)
    known = set(store.breach_ids_for_hash(email_hash))
    for breach in matches:
        if breach.id not in known:
            store.add_email_breach_record(email_hash, breach.id)


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Seed the BreachWatch database")
    ap.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    ap.add_argument("--email", default=None, help="Email address to link to a breach")
    ap.add_argument("--breach", default=None, help="Breach name for --email")
    args = ap.parse_args(argv)

    if bool(args.email) != bool(args.breach):
        ap.error("--email and --breach must be given together")

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")
    engine = make_engine(args.database_url or settings.database_url)
    init_db(engine)

    db = make_session_factory(engine)()
    try:
        store = BreachStore(db)
        added = seed_breaches(store)
        logger.info("Seeded %d new breach(es)", added)
        if args.email:
            link_email(store, args.email, args.breach)
            logger.info("Linked email hash to breach %s", args.breach)
    except ValidationError as e:
        print(f"[ERR] {e.message}", file=sys.stderr)
        return 2
    finally:
        db.close()
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
