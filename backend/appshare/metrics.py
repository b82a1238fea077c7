"""Prometheus metrics for the submission, gallery and voting paths."""
from __future__ import annotations

from prometheus_client import Counter


SUBMISSIONS_TOTAL = Counter(
    "appshare_submissions_total",
    "App submissions by outcome",
    ["outcome"],
)

GALLERY_CACHE_TOTAL = Counter(
    "appshare_gallery_cache_total",
    "Gallery cache reads and invalidations",
    ["result"],
)

GALLERY_WRITES_TOTAL = Counter(
    "appshare_gallery_writes_total",
    "Gallery entry adds/removals by outcome",
    ["operation", "outcome"],
)

UPVOTES_TOTAL = Counter(
    "appshare_upvotes_total",
    "Upvote attempts by outcome",
    ["outcome"],
)

BLOCKED_REQUESTS_TOTAL = Counter(
    "appshare_blocked_requests_total",
    "Write attempts rejected because the IP is blocked",
)

RATE_LIMITED_TOTAL = Counter(
    "appshare_rate_limited_total",
    "Requests rejected by a rate limiter",
    ["limiter"],
)
