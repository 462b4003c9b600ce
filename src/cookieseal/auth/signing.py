"""Signing and validation of cookie values.

A signed cookie carries three ``|``-separated fields::

    base64(value) | unix seconds | base64(HMAC(seed, name + base64(value) + unix seconds))

The cookie name is part of the signed message, so a value signed for one
cookie is not accepted under another name. Validation collapses every failure
into the same negative result; the reason is only logged.
"""

import base64
import binascii
import enum
import hashlib
import hmac
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple, Optional

logger = logging.getLogger(__name__)

# Allowed drift between the signing and the validating host's clocks.
CLOCK_SKEW_TOLERANCE = timedelta(minutes=5)

# int64 range, as issued by any signer
_TIMESTAMP_RE = re.compile(r"-?[0-9]{1,19}")


@dataclass(frozen=True)
class SignatureAlgorithm:
    """A digest that cookie signatures may be computed with."""

    name: str
    digestmod: Callable[..., Any]
    legacy: bool = False


# Tried in order during validation. New cookies are always signed with the first.
# TODO: drop sha1 once every live cookie has been re-issued with sha256.
SIGNATURE_ALGORITHMS: tuple[SignatureAlgorithm, ...] = (
    SignatureAlgorithm("sha256", hashlib.sha256),
    SignatureAlgorithm("sha1", hashlib.sha1, legacy=True),
)


class RejectReason(enum.Enum):
    """Why a cookie was rejected. Never returned to callers."""

    MALFORMED = "malformed"
    MISMATCH = "mismatch"
    EXPIRED = "expired"
    CLOCK_SKEW = "clock-skew"


class ValidationResult(NamedTuple):
    """Outcome of :func:`validate`. Falsy unless the cookie was accepted."""

    value: Optional[bytes]
    timestamp: Optional[datetime]
    ok: bool

    def __bool__(self) -> bool:
        return self.ok


INVALID = ValidationResult(None, None, False)


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(data: str) -> Optional[bytes]:
    """Decode canonical standard base64, or return None."""
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None
    # Reject encodings with non-zero trailing bits so each digest has one spelling.
    if _b64encode(raw) != data:
        return None
    return raw


def _unix_seconds(now: datetime) -> int:
    return math.floor(now.timestamp())


def cookie_signature(digestmod: Callable[..., Any], seed: str, *parts: str) -> str:
    """
    Compute the base64 HMAC of the concatenated parts.

    Args:
        digestmod: Hash constructor (e.g. ``hashlib.sha256``).
        seed: HMAC key.
        *parts: Message fields, joined with no delimiter.

    Returns:
        Standard padded base64 of the digest.
    """
    mac = hmac.new(seed.encode("utf-8"), digestmod=digestmod)
    for part in parts:
        mac.update(part.encode("utf-8"))
    return _b64encode(mac.digest())


def check_hmac(supplied: str, expected: str) -> bool:
    """Constant-time comparison of two base64 digests. Bad base64 never matches."""
    supplied_mac = _b64decode(supplied)
    expected_mac = _b64decode(expected)
    if supplied_mac is None or expected_mac is None:
        return False
    return hmac.compare_digest(supplied_mac, expected_mac)


def check_signature(signature: str, seed: str, *parts: str) -> Optional[SignatureAlgorithm]:
    """
    Return the first algorithm in :data:`SIGNATURE_ALGORITHMS` whose HMAC
    over *parts* matches *signature*, or None.
    """
    for algorithm in SIGNATURE_ALGORITHMS:
        if check_hmac(signature, cookie_signature(algorithm.digestmod, seed, *parts)):
            return algorithm
    return None


def sign_value(seed: str, name: str, value: bytes, now: datetime) -> str:
    """
    Build a signed cookie value.

    Args:
        seed: HMAC key (the cookie secret).
        name: Cookie name; bound into the signature.
        value: Opaque payload.
        now: Signing time, truncated to whole seconds.

    Returns:
        ``encoded|timestamp|signature`` string to use as the cookie value.
    """
    encoded = _b64encode(value)
    timestamp = str(_unix_seconds(now))
    signature = cookie_signature(SIGNATURE_ALGORITHMS[0].digestmod, seed, name, encoded, timestamp)
    return f"{encoded}|{timestamp}|{signature}"


def _reject(
    name: str,
    reason: RejectReason,
    on_reject: Optional[Callable[[RejectReason], None]],
) -> ValidationResult:
    logger.debug("Rejected cookie %r: %s", name, reason.value)
    if on_reject is not None:
        on_reject(reason)
    return INVALID


def validate(
    cookie: str,
    seed: str,
    name: str,
    expiration: timedelta,
    now: datetime,
    on_reject: Optional[Callable[[RejectReason], None]] = None,
) -> ValidationResult:
    """
    Check that a cookie value was signed with *seed* for *name* and is fresh.

    The embedded timestamp must fall strictly inside
    ``(now - expiration, now + CLOCK_SKEW_TOLERANCE)``.

    Args:
        cookie: Raw cookie value as received.
        seed: HMAC key the cookie should have been signed with.
        name: Cookie name the value was read from.
        expiration: Maximum cookie age.
        now: Validation time.
        on_reject: Optional observer called with the internal reject reason.

    Returns:
        ``(value, timestamp, True)`` for an accepted cookie, otherwise
        :data:`INVALID`. Never raises for malformed input.
    """
    parts = cookie.split("|")
    if len(parts) != 3:
        return _reject(name, RejectReason.MALFORMED, on_reject)
    encoded, timestamp, signature = parts

    try:
        algorithm = check_signature(signature, seed, name, encoded, timestamp)
    except UnicodeEncodeError:
        # Lone surrogates (e.g. undecodable argv bytes) cannot be signed text.
        return _reject(name, RejectReason.MALFORMED, on_reject)
    if algorithm is None:
        return _reject(name, RejectReason.MISMATCH, on_reject)
    if algorithm.legacy:
        logger.info("Cookie %r accepted with legacy %s signature", name, algorithm.name)

    if not _TIMESTAMP_RE.fullmatch(timestamp):
        return _reject(name, RejectReason.MALFORMED, on_reject)
    ts = int(timestamp)

    # Browsers don't send the cookie's own expiry back, so age is judged
    # from the signing timestamp alone.
    now_ts = now.timestamp()
    if ts <= now_ts - expiration.total_seconds():
        return _reject(name, RejectReason.EXPIRED, on_reject)
    if ts >= now_ts + CLOCK_SKEW_TOLERANCE.total_seconds():
        return _reject(name, RejectReason.CLOCK_SKEW, on_reject)

    value = _b64decode(encoded)
    if value is None:
        return _reject(name, RejectReason.MALFORMED, on_reject)
    try:
        issued_at = datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return _reject(name, RejectReason.MALFORMED, on_reject)
    return ValidationResult(value, issued_at, True)
