"""
Receipt number generation.
Format: RCP-<epoch milliseconds>-<5 random uppercase alphanumeric>, e.g. RCP-1718000000000-K3Q9Z.
"""

import secrets
import string
from datetime import datetime, timezone
from typing import Optional

RECEIPT_PREFIX = "RCP"
_ALPHABET = string.ascii_uppercase + string.digits


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """
    Time-based receipt number with a random suffix.

    Collisions within the same millisecond are left to the unique constraint on
    payments.receipt_number. Uses secrets for the random part.
    """
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(5))
    return f"{RECEIPT_PREFIX}-{millis}-{suffix}"
