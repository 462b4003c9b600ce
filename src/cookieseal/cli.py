"""Command-line interface for cookieseal."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click

from cookieseal import __version__
from cookieseal.config.loader import (
    DEFAULT_COOKIE_NAME,
    ConfigError,
    CookieSettings,
    load_config,
    parse_duration,
    settings_from_config,
    validate_config,
)

DEFAULT_CONFIG = Path.home() / ".config" / "cookieseal" / "config.yaml"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(config: str) -> CookieSettings:
    path = Path(config)
    if not path.exists():
        click.echo(f"Config file not found: {path}", err=True)
        sys.exit(1)
    raw = load_config(path)
    if not raw:
        click.echo("Config file is empty.", err=True)
        sys.exit(1)
    errors = validate_config(raw)
    if errors:
        click.echo("Config validation errors:", err=True)
        for e in errors:
            click.echo(f"  • {e}", err=True)
        sys.exit(1)
    return settings_from_config(raw)


def _now(at: Optional[int]) -> datetime:
    if at is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(at, tz=timezone.utc)


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="cookieseal")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="COOKIESEAL_CONFIG",
    show_default=True,
    help="Path to cookieseal config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """cookieseal: signed, time-bounded session cookies."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── init command ──────────────────────────────────────────────────────────────


@main.command()
@click.option("--name", default=None, help="Cookie name (default: _oauth2_proxy)")
@click.option("--expire", default="168h", show_default=True, help="Cookie lifetime, e.g. 168h")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, name: Optional[str], expire: str, force: bool) -> None:
    """Write a new config file with a freshly generated secret."""
    from cookieseal.auth.secret import generate_secret
    from cookieseal.config.writer import build_config_dict, write_config

    path = Path(ctx.obj["config"])
    if path.exists() and not force:
        click.echo(f"Config file already exists: {path} (use --force to overwrite)", err=True)
        sys.exit(1)
    try:
        lifetime = parse_duration(expire)
    except ConfigError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    if lifetime.total_seconds() <= 0:
        click.echo("--expire must be a positive duration", err=True)
        sys.exit(1)

    settings = CookieSettings(
        secret=generate_secret(),
        name=name or DEFAULT_COOKIE_NAME,
        expire=lifetime,
    )
    write_config(path, build_config_dict(settings))
    click.echo(f"✓  Wrote {path}")


# ── secret group ──────────────────────────────────────────────────────────────


@main.group()
def secret() -> None:
    """Generate and inspect cookie secrets."""


@secret.command("generate")
def secret_generate() -> None:
    """Print a new random 32-byte secret (URL-safe base64)."""
    from cookieseal.auth.secret import generate_secret

    click.echo(generate_secret())


@secret.command("inspect")
@click.argument("value")
def secret_inspect(value: str) -> None:
    """Show how a secret string is turned into key bytes."""
    from cookieseal.auth.secret import AES_KEY_LENGTHS, literal_bytes, secret_bytes

    key = secret_bytes(value)
    decoded = key != literal_bytes(value)
    click.echo(f"{'Encoding:':<12} {'base64' if decoded else 'raw'}")
    click.echo(f"{'Key length:':<12} {len(key)} bytes")
    if len(key) not in AES_KEY_LENGTHS:
        click.echo("Warning: key is not 16, 24 or 32 bytes", err=True)


# ── sign / verify commands ────────────────────────────────────────────────────


@main.command()
@click.argument("value")
@click.option("--at", type=int, default=None, help="Signing time as Unix seconds (default: now)")
@click.pass_context
def sign(ctx: click.Context, value: str, at: Optional[int]) -> None:
    """Print a signed cookie value for VALUE."""
    from cookieseal.auth.secret import literal_bytes
    from cookieseal.auth.signing import sign_value

    settings = _load_settings(ctx.obj["config"])
    click.echo(sign_value(settings.secret, settings.name, literal_bytes(value), _now(at)))


@main.command()
@click.argument("cookie")
@click.option("--at", type=int, default=None, help="Validation time as Unix seconds (default: now)")
@click.pass_context
def verify(ctx: click.Context, cookie: str, at: Optional[int]) -> None:
    """Check a signed cookie value and print its payload."""
    from cookieseal.auth.signing import validate

    settings = _load_settings(ctx.obj["config"])
    result = validate(cookie, settings.secret, settings.name, settings.expire, _now(at))
    if not result.ok:
        click.echo("✗  Cookie is invalid or expired.", err=True)
        sys.exit(1)
    click.echo((result.value or b"").decode("utf-8", errors="replace"))


if __name__ == "__main__":
    main()
