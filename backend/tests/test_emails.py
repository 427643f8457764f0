import hashlib

import pytest

from breach.emails import hash_email, normalize_email, require_email
from errors import ValidationError


def test_normalize_trims_and_lowercases():
    assert normalize_email("  Jane.Doe@Example.COM \n") == "jane.doe@example.com"


def test_hash_is_stable_across_case_and_whitespace():
    digest = hash_email("jane@example.com")
    assert digest == hash_email("  JANE@example.com ")
    assert len(digest) == 64
    assert all(c in "0123456789abcdef" for c in digest)


def test_hash_matches_sha256_of_normalized_address():
    assert hash_email(" A@B.C ") == hashlib.sha256(b"a@b.c").hexdigest()


def test_different_addresses_hash_differently():
    assert hash_email("a@example.com") != hash_email("b@example.com")


@pytest.mark.parametrize("bad", [None, "", "   ", "no-at-sign", "@", 42])
def test_require_email_rejects_unusable_values(bad):
    with pytest.raises(ValidationError) as exc:
        require_email(bad)
    assert exc.value.message == "Valid email is required"
    assert exc.value.status_code == 400


def test_require_email_returns_normalized():
    assert require_email(" Bob@Mail.org ") == "bob@mail.org"
