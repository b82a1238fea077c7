"""Composite storage keys: ``app:<session>:<version>[:<ip hash>]``."""
from __future__ import annotations

from appshare.core.ip_hash import hash_ip

KEY_PREFIX = "app"
KEY_DELIMITER = ":"
WILDCARD_VERSION = "*"


def encode_key(session_id: str, version: str, ip: str | None = None) -> str:
    parts = [KEY_PREFIX, session_id, version]
    # Historical per-IP draft suffix; decode_key ignores it.
    if ip:
        parts.append(hash_ip(ip))
    return KEY_DELIMITER.join(parts)


def decode_key(key: str) -> tuple[str, str] | None:
    """Return ``(session_id, version)`` or None when the key is malformed.

    Ids that themselves contain ``:`` do not survive the round trip.
    """
    parts = key.split(KEY_DELIMITER)
    if len(parts) < 3:
        return None
    return parts[1], parts[2]


def is_wildcard(version: str | None) -> bool:
    return not version or version == WILDCARD_VERSION
