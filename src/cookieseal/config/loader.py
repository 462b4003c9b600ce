"""YAML configuration loader and validator."""

import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import yaml

from cookieseal.auth.secret import AES_KEY_LENGTHS, secret_bytes

DEFAULT_COOKIE_NAME = "_oauth2_proxy"
DEFAULT_EXPIRE = timedelta(hours=168)

# Accepted expire formats:
#   3600          plain seconds (int or digit string)
#   "1h30m"       one or more <int><unit> groups, units s/m/h/d
_DURATION_RE = re.compile(r"(?:\d+[smhd])+")
_DURATION_PART_RE = re.compile(r"(\d+)([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
# RFC 6265 cookie-name token characters
_COOKIE_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_SAMESITE_VALUES = ("lax", "strict", "none")


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


@dataclass
class CookieSettings:
    """Settings for the signed session cookie."""

    secret: str
    name: str = DEFAULT_COOKIE_NAME
    expire: timedelta = DEFAULT_EXPIRE
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    httponly: bool = True
    samesite: str = "lax"


def parse_duration(value: Any) -> timedelta:
    """
    Parse an expire setting into a timedelta.

    Args:
        value: Integer seconds, a digit string, or a string such as "168h" / "1h30m".

    Returns:
        Parsed duration

    Raises:
        ConfigError: If the value is not a recognised duration
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration {value!r}")
    try:
        if isinstance(value, int):
            return timedelta(seconds=value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text.isdigit():
                return timedelta(seconds=int(text))
            if _DURATION_RE.fullmatch(text):
                seconds = sum(
                    int(amount) * _UNIT_SECONDS[unit]
                    for amount, unit in _DURATION_PART_RE.findall(text)
                )
                return timedelta(seconds=seconds)
    except (OverflowError, ValueError) as exc:
        raise ConfigError(f"duration {value!r} is out of range") from exc
    raise ConfigError(f"invalid duration {value!r} (expected seconds or e.g. '168h', '1h30m')")


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    cookie = config.get("cookie")
    if not isinstance(cookie, dict):
        errors.append("'cookie' key is required and must be a mapping")
        return errors

    secret = cookie.get("secret")
    if not secret or not isinstance(secret, str):
        errors.append("cookie: missing required field 'secret'")
    elif len(secret_bytes(secret)) not in AES_KEY_LENGTHS:
        errors.append(
            "cookie: 'secret' must be 16, 24, or 32 bytes "
            "(raw, or URL-safe base64 encoded)"
        )

    name = cookie.get("name", DEFAULT_COOKIE_NAME)
    if not isinstance(name, str) or not _COOKIE_NAME_RE.fullmatch(name):
        errors.append(f"cookie: invalid name {name!r}")

    if "expire" in cookie:
        try:
            if parse_duration(cookie["expire"]) <= timedelta(0):
                errors.append("cookie: 'expire' must be a positive duration")
        except ConfigError as exc:
            errors.append(f"cookie: {exc}")

    for flag in ("secure", "httponly"):
        if flag in cookie and not isinstance(cookie[flag], bool):
            errors.append(f"cookie: '{flag}' must be true or false, got {cookie[flag]!r}")

    if not isinstance(cookie.get("path", "/"), str):
        errors.append(f"cookie: 'path' must be a string, got {cookie['path']!r}")
    domain = cookie.get("domain")
    if domain is not None and not isinstance(domain, str):
        errors.append(f"cookie: 'domain' must be a string, got {domain!r}")

    samesite = cookie.get("samesite", "lax")
    if str(samesite).lower() not in _SAMESITE_VALUES:
        errors.append(
            f"cookie: unrecognized samesite '{samesite}' (expected one of {', '.join(_SAMESITE_VALUES)})"
        )

    return errors


def settings_from_config(config: dict[str, Any]) -> CookieSettings:
    """
    Construct CookieSettings from a validated config dict.

    Args:
        config: Parsed and validated config dictionary

    Returns:
        CookieSettings instance

    Raises:
        ConfigError: If the cookie section or its secret is missing
    """
    raw = config.get("cookie")
    if not isinstance(raw, dict) or not raw.get("secret"):
        raise ConfigError("cookie.secret is required")
    return CookieSettings(
        secret=str(raw["secret"]),
        name=raw.get("name", DEFAULT_COOKIE_NAME),
        expire=parse_duration(raw.get("expire", int(DEFAULT_EXPIRE.total_seconds()))),
        path=raw.get("path", "/"),
        domain=raw.get("domain"),
        secure=bool(raw.get("secure", True)),
        httponly=bool(raw.get("httponly", True)),
        samesite=str(raw.get("samesite", "lax")).lower(),
    )
