"""Atomic YAML config write-back for cookieseal."""

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from cookieseal.config.loader import CookieSettings


def format_duration(duration: timedelta) -> str:
    """Render a duration as whole hours, minutes or seconds ("168h", "90m", "45s")."""
    seconds = int(duration.total_seconds())
    for unit, size in (("h", 3600), ("m", 60)):
        if seconds and seconds % size == 0:
            return f"{seconds // size}{unit}"
    return f"{seconds}s"


def settings_to_raw(settings: CookieSettings) -> dict[str, Any]:
    """Serialize CookieSettings back to the raw YAML dict format the loader expects."""
    d: dict[str, Any] = {
        "name": settings.name,
        "secret": settings.secret,
        "expire": format_duration(settings.expire),
        "path": settings.path,
        "secure": settings.secure,
        "httponly": settings.httponly,
        "samesite": settings.samesite,
    }
    if settings.domain:
        d["domain"] = settings.domain
    return d


def write_config(path: Path, config: dict[str, Any]) -> None:
    """
    Atomically write a config dict to a YAML file.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written file. The file is created owner-readable only, since it
    holds the cookie secret.

    Args:
        path: Destination config.yaml path.
        config: Full config dict.
    """
    tmp = path.with_suffix(".yaml.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.dump(
                config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        os.replace(tmp, path)
    except Exception:
        # Clean up temp file on failure
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


def build_config_dict(settings: CookieSettings) -> dict[str, Any]:
    """
    Build a full config dict from cookie settings.

    Returns:
        Config dict ready for write_config().
    """
    return {"cookie": settings_to_raw(settings)}
