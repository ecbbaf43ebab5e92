import string

import pytest
from hypothesis import given, settings, strategies as st

from security.password import hash_secret, verify_secret

_secrets = st.text(alphabet=string.ascii_letters + string.digits + "!@#$%^&*", min_size=1, max_size=50)


@given(secret=_secrets)
@settings(max_examples=10, deadline=None)
def test_verify_accepts_own_hash(secret):
    assert verify_secret(secret, hash_secret(secret))


@given(secret=_secrets, other=_secrets)
@settings(max_examples=10, deadline=None)
def test_verify_rejects_other_secret(secret, other):
    if secret == other:
        return
    assert not verify_secret(secret, hash_secret(other))


def test_hash_is_salted_per_call():
    assert hash_secret("Str0ng!Pass") != hash_secret("Str0ng!Pass")


def test_hash_uses_configured_cost(app):
    assert hash_secret("Str0ng!Pass").startswith("$2b$04$")


@pytest.mark.parametrize("stored", ["", "not-a-bcrypt-hash", "$2b$10$tooshort", None])
def test_malformed_hash_fails_closed(stored):
    assert verify_secret("Str0ng!Pass", stored) is False


def test_empty_secret_never_verifies():
    assert verify_secret("", hash_secret("x")) is False


def test_empty_secret_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_secret("")
