"""Starlette / FastAPI integration for signed session cookies."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from cookieseal.auth.signing import (
    INVALID,
    RejectReason,
    ValidationResult,
    sign_value,
    validate,
)
from cookieseal.config.loader import CookieSettings

logger = logging.getLogger(__name__)


def read_signed_cookie(
    cookies: Mapping[str, str],
    settings: CookieSettings,
    now: datetime,
    on_reject: Optional[Callable[[RejectReason], None]] = None,
) -> ValidationResult:
    """
    Validate the configured cookie from a request's cookie mapping.

    Args:
        cookies: Request cookies (e.g. ``request.cookies``).
        settings: Cookie name, secret and expiry.
        now: Validation time.
        on_reject: Optional observer for the internal reject reason.

    Returns:
        The validation result; INVALID when the cookie is absent.
    """
    raw = cookies.get(settings.name)
    if raw is None:
        if on_reject is not None:
            on_reject(RejectReason.MALFORMED)
        return INVALID
    return validate(raw, settings.secret, settings.name, settings.expire, now, on_reject=on_reject)


def set_signed_cookie(
    response: Response, settings: CookieSettings, value: bytes, now: datetime
) -> str:
    """
    Sign *value* and attach it to *response* as the configured cookie.

    Returns:
        The signed cookie value that was set.
    """
    signed = sign_value(settings.secret, settings.name, value, now)
    response.set_cookie(
        settings.name,
        signed,
        max_age=int(settings.expire.total_seconds()),
        path=settings.path,
        domain=settings.domain,
        secure=settings.secure,
        httponly=settings.httponly,
        samesite=settings.samesite,  # type: ignore[arg-type]
    )
    return signed


class SignedCookieMiddleware(BaseHTTPMiddleware):
    """
    Judge the session cookie on every request.

    Sets ``request.state.cookie_value`` (bytes or None) and
    ``request.state.cookie_issued_at`` (datetime or None). Requests are never
    rejected here and invalid cookies are left in place; deciding what an
    absent session means is up to the route.
    """

    def __init__(
        self,
        app: ASGIApp,
        settings: CookieSettings,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        on_reject: Optional[Callable[[RejectReason], None]] = None,
    ) -> None:
        super().__init__(app)
        self.settings = settings
        self.clock = clock
        self.on_reject = on_reject

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        result = read_signed_cookie(request.cookies, self.settings, self.clock(), self.on_reject)
        request.state.cookie_value = result.value
        request.state.cookie_issued_at = result.timestamp
        if result.ok:
            logger.debug("Valid %s cookie for %s", self.settings.name, request.url.path)
        return await call_next(request)
