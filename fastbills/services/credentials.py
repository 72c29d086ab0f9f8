# ==============================================================================
# CREDENTIAL VERIFICATION
# ==============================================================================
# Login compares a submitted password with the stored one through a verifier,
# so the session service never knows how passwords are stored.
#
#   PlaintextCredentialVerifier → exact string match (seed users)
#   HashedCredentialVerifier    → werkzeug password hashes
# ==============================================================================

from typing import Protocol, runtime_checkable

from werkzeug.security import check_password_hash, generate_password_hash


_HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


@runtime_checkable
class ICredentialVerifier(Protocol):
    """Checks a submitted password against the stored credential."""

    def verify(self, stored: str, submitted: str) -> bool:
        ...


class PlaintextCredentialVerifier:
    """Exact match, the historical behavior of the seed data."""

    def verify(self, stored: str, submitted: str) -> bool:
        return stored is not None and submitted is not None and stored == submitted


class HashedCredentialVerifier:
    """
    werkzeug hash verification.

    Stored values that are not werkzeug hashes are compared in plain text, so
    a partially migrated user list keeps working.
    """

    def verify(self, stored: str, submitted: str) -> bool:
        if not stored or submitted is None:
            return False
        if stored.startswith(_HASH_PREFIXES):
            return check_password_hash(stored, submitted)
        return stored == submitted

    @staticmethod
    def hash_password(password: str) -> str:
        return generate_password_hash(password)


def get_verifier(kind: str) -> ICredentialVerifier:
    """
    Verifier for a FASTBILLS_CREDENTIALS value.

    Args:
        kind: 'plaintext' or 'hashed'

    Raises:
        ValueError: Unknown verifier name
    """
    if kind == 'plaintext':
        return PlaintextCredentialVerifier()
    if kind == 'hashed':
        return HashedCredentialVerifier()
    raise ValueError(f"Unknown credential verifier: {kind}")
