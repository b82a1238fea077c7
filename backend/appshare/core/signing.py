"""HTML signature verification.

The rest of the service only depends on the ``verify(html, signature)``
predicate; the HMAC implementation is the default wiring.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class SignatureVerifier(Protocol):
    def verify(self, html: str, signature: str) -> bool: ...


class HmacSignatureVerifier:
    """Hex HMAC-SHA256 of the html under a shared secret."""

    def __init__(self, secret: str) -> None:
        self._secret = secret.encode("utf-8")
        if not secret:
            logger.warning("SIGNING_SECRET is empty; every signature will be rejected")

    def sign(self, html: str) -> str:
        return hmac.new(self._secret, html.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, html: str, signature: str) -> bool:
        if not self._secret or not signature:
            return False
        return hmac.compare_digest(self.sign(html), signature.strip().lower())
