"""Cookie secret helpers: normalization and generation."""

import base64
import binascii
import re
import secrets

# Valid AES key sizes. A decoded secret of any other length is not trusted
# to be what the operator meant.
AES_KEY_LENGTHS = (16, 24, 32)

_URLSAFE_RE = re.compile(r"[A-Za-z0-9_-]*")


def secret_bytes(secret: str) -> bytes:
    """
    Normalize an operator secret into raw key bytes.

    The secret is treated as unpadded URL-safe base64 first. The decoded form
    is only used when it is a valid AES key length; otherwise (or when it does
    not decode at all) the literal string is the key.

    Args:
        secret: Secret string from config.

    Returns:
        Key bytes. Never raises.
    """
    stripped = secret.rstrip("=")
    if _URLSAFE_RE.fullmatch(stripped):
        padded = stripped + "=" * (-len(stripped) % 4)
        try:
            decoded = base64.urlsafe_b64decode(padded)
        except (binascii.Error, ValueError):
            decoded = None
        if decoded is not None and len(decoded) in AES_KEY_LENGTHS:
            return decoded
    return literal_bytes(secret)


def literal_bytes(secret: str) -> bytes:
    """
    UTF-8 bytes of *secret*, total over all strings.

    Surrogate-escaped characters (as click produces for non-UTF-8 argv) map
    back to their original bytes; any other lone surrogate is encoded as is.
    """
    try:
        return secret.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return secret.encode("utf-8", "surrogatepass")


def generate_secret() -> str:
    """Generate a 32-byte secret, URL-safe base64 encoded."""
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode()
