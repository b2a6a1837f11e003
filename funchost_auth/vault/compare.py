"""
Key Comparison — Constant-time equality for secret values.

Security Note:
    Comparison time depends only on the input lengths, never on the
    position of the first mismatching character.
"""
import hmac
from typing import Optional


def secret_value_equals(candidate: Optional[str], stored: Optional[str]) -> bool:
    """Compare a candidate key against a stored secret value.

    Args:
        candidate: Key value supplied by the caller.
        stored: Secret value from the store.

    Returns:
        True only if both values are present and identical. An empty or
        missing stored value never matches.
    """
    if not stored or candidate is None:
        return False
    return hmac.compare_digest(
        candidate.encode("utf-8"), stored.encode("utf-8"),
    )
