"""FastAPI dependencies: service container, client IP, rate limits, admin token."""
from __future__ import annotations

import hmac

from fastapi import Depends, Header, Request

from appshare.container import Services
from appshare.core.client_ip import client_ip_from_headers
from appshare.errors import ForbiddenError, RateLimitedError


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_client_ip(request: Request) -> str:
    return client_ip_from_headers(request.headers)


def enforce_global_rate_limit(
    ip: str = Depends(get_client_ip),
    services: Services = Depends(get_services),
) -> None:
    if not services.global_limiter.consume(ip):
        raise RateLimitedError()


def enforce_sensitive_rate_limit(
    ip: str = Depends(get_client_ip),
    services: Services = Depends(get_services),
) -> None:
    if not services.sensitive_limiter.consume(ip):
        raise RateLimitedError()


def require_admin_token(
    x_admin_token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> None:
    expected = services.admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(expected, x_admin_token):
        raise ForbiddenError("Invalid admin token")
