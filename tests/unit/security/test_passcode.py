"""Passcode hashing for protected campaigns."""

import pytest

from fundraising_events.security.exceptions import PasscodeHashError
from fundraising_events.security.passcode import hash_passcode, verify_passcode


def test_hash_verifies_and_is_salted():
    first = hash_passcode("letmein", iterations=1000)
    second = hash_passcode("letmein", iterations=1000)

    assert first.startswith("pbkdf2_sha256$1000$")
    assert first != second
    assert verify_passcode("letmein", first)
    assert not verify_passcode("wrong", first)


def test_malformed_hash():
    with pytest.raises(PasscodeHashError):
        verify_passcode("x", "not-a-hash")


def test_unknown_algorithm():
    encoded = hash_passcode("x", iterations=1000).replace("pbkdf2_sha256", "md5", 1)
    with pytest.raises(PasscodeHashError):
        verify_passcode("x", encoded)
