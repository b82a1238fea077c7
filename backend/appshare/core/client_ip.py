"""Requester IP extraction from trusted proxy headers."""
from __future__ import annotations

from typing import Mapping

UNKNOWN_IP = "unknown"
_FORWARDED_HEADERS = ("x-forwarded-for", "x-real-ip")


def client_ip_from_headers(headers: Mapping[str, str]) -> str:
    """First entry of the forwarded-for chain, else ``"unknown"``."""
    for name in _FORWARDED_HEADERS:
        value = headers.get(name)
        if not value:
            continue
        first = value.split(",")[0].strip()
        if first:
            return first
    return UNKNOWN_IP
