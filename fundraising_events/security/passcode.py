"""Passcode hashing for protected campaigns. PBKDF2-SHA256 with a per-passcode random salt."""

import base64
import hmac
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from fundraising_events.security.exceptions import PasscodeHashError

_ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 480000


def _derive(passcode: str, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passcode.encode("utf-8"))


def hash_passcode(passcode: str, *, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Return "pbkdf2_sha256$<iterations>$<salt>$<hash>" with urlsafe base64 parts."""
    salt = os.urandom(16)
    digest = _derive(passcode, salt, iterations)
    return "$".join(
        [
            _ALGORITHM,
            str(iterations),
            base64.urlsafe_b64encode(salt).decode("ascii"),
            base64.urlsafe_b64encode(digest).decode("ascii"),
        ]
    )


def verify_passcode(passcode: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_b64, digest_b64 = encoded.split("$")
        salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
        expected = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
        rounds = int(iterations)
    except ValueError as e:
        raise PasscodeHashError(f"Malformed passcode hash: {e}") from e
    if algorithm != _ALGORITHM:
        raise PasscodeHashError(f"Unsupported passcode hash algorithm: {algorithm}")
    return hmac.compare_digest(_derive(passcode, salt, rounds), expected)
