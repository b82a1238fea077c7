"""One-way anonymisation of requester IPs."""
from __future__ import annotations

import hashlib

IP_HASH_LENGTH = 8


def hash_ip(ip: str) -> str:
    """First 8 hex chars (32 bits) of SHA-256 over the raw IP string.

    Collisions between distinct IPs are tolerated. The result is also the
    only ownership proof for gallery deletes, so it must stay stable.
    """
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()[:IP_HASH_LENGTH]
