"""Hanko CLI - sign, inspect and send authenticated API requests."""

import asyncio
import json
import sys
import time
import tomllib
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, ParamSpec, TypeVar, cast

import click
from rich.console import Console
from rich.table import Table

from hanko.client import ClientConfig, HankoClient
from hanko.common.errors import ApiError, ConfigurationError
from hanko.common.hmac import AUTH_SCHEME, build_message, decode_envelope, sign, verify
from hanko.common.logging import setup_logging
from hanko.common.settings import Settings

console = Console()
err_console = Console(stderr=True)

P = ParamSpec("P")
R = TypeVar("R")


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _load_config(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path).expanduser()
    if not config_path.exists():
        err_console.print(f"[red]Config not found: {config_path}[/red]")
        sys.exit(1)

    raw = config_path.read_bytes()
    if config_path.suffix.lower() == ".toml":
        data = tomllib.loads(raw.decode("utf-8"))
    else:
        data = json.loads(raw.decode("utf-8"))

    if isinstance(data, dict) and isinstance(data.get("hanko"), dict):
        return cast(dict[str, Any], data["hanko"])
    return cast(dict[str, Any], data) if isinstance(data, dict) else {}


def _read_body(body: str | None, body_file: str | None) -> bytes:
    if body is not None and body_file is not None:
        raise click.UsageError("Use either --body or --body-file, not both")
    if body_file is not None:
        return Path(body_file).read_bytes()
    return (body or "").encode("utf-8")


def _require_secret(ctx: click.Context) -> str:
    secret = ctx.obj.get("api_secret")
    if not secret:
        err_console.print("[red]API secret required (--api-secret or HANKO_API_SECRET)[/red]")
        sys.exit(1)
    return cast(str, secret)


@click.group()
@click.option("--base-url", default=None, help="Hanko API base URL")
@click.option("--api-secret", default=None, help="API secret (prefer HANKO_API_SECRET)")
@click.option("--api-key-id", default=None, help="API key id for HMAC signing")
@click.option(
    "--config",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to config (JSON or TOML with optional [hanko] section)",
)
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, ...)")
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: str | None,
    api_secret: str | None,
    api_key_id: str | None,
    config: str | None,
    log_level: str | None,
) -> None:
    """Hanko CLI - Sign and send Hanko Authentication API requests."""
    settings = Settings()
    config_data = _load_config(config)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url or config_data.get("base_url") or settings.base_url
    ctx.obj["api_secret"] = api_secret or config_data.get("api_secret") or settings.api_secret
    ctx.obj["api_key_id"] = api_key_id or config_data.get("api_key_id") or settings.api_key_id
    ctx.obj["api_version"] = config_data.get("api_version") or settings.api_version
    ctx.obj["timeout"] = float(config_data.get("http_timeout", settings.http_timeout))

    setup_logging(
        level=log_level or config_data.get("log_level") or settings.log_level,
        json_output=bool(config_data.get("log_json", settings.log_json)),
    )


# === Signing ===


@cli.command("sign")
@click.argument("method")
@click.argument("path")
@click.option("--body", default=None, help="Request body as text")
@click.option("--body-file", type=click.Path(exists=True, dir_okay=False), help="Read request body from file")
@click.option("--timestamp", type=int, default=None, help="Fixed signing time (Unix seconds)")
@click.option("--nonce", default=None, help="Fixed nonce")
@click.option("--show-message", is_flag=True, help="Also print the canonical message")
@click.pass_context
def sign_request(
    ctx: click.Context,
    method: str,
    path: str,
    body: str | None,
    body_file: str | None,
    timestamp: int | None,
    nonce: str | None,
    show_message: bool,
) -> None:
    """Print the Authorization header value for a request."""
    secret = _require_secret(ctx)
    api_key_id = ctx.obj.get("api_key_id")
    if not api_key_id:
        err_console.print("[red]API key id required for HMAC signing (--api-key-id)[/red]")
        sys.exit(1)

    payload = _read_body(body, body_file)
    try:
        token = sign(secret, api_key_id, method, path, payload, timestamp=timestamp, nonce=nonce)
    except ConfigurationError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if show_message:
        envelope = decode_envelope(token)
        message = build_message(api_key_id, envelope.time, method, path, envelope.nonce, payload)
        err_console.print(f"[cyan]Message:[/cyan] {message}", soft_wrap=True)

    click.echo(f"{AUTH_SCHEME} {token}")


@cli.command("decode")
@click.argument("token")
def decode_token(token: str) -> None:
    """Show the contents of an HMAC token or Authorization header value."""
    try:
        envelope = decode_envelope(token)
    except ValueError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    table = Table(title="HMAC Envelope")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    try:
        signed_at = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(envelope.time))
        time_text = f"{envelope.time} ({signed_at} UTC)"
    except (OverflowError, OSError, ValueError):
        time_text = str(envelope.time)

    table.add_row("apiKeyId", envelope.api_key_id)
    table.add_row("time", time_text)
    table.add_row("nonce", envelope.nonce)
    table.add_row("signature", envelope.signature)

    console.print(table)


@cli.command("verify")
@click.argument("token")
@click.argument("method")
@click.argument("path")
@click.option("--body", default=None, help="Request body as text")
@click.option("--body-file", type=click.Path(exists=True, dir_okay=False), help="Read request body from file")
@click.option("--max-age", type=int, default=None, help="Reject tokens older than this many seconds")
@click.pass_context
def verify_token(
    ctx: click.Context,
    token: str,
    method: str,
    path: str,
    body: str | None,
    body_file: str | None,
    max_age: int | None,
) -> None:
    """Check a token against a request."""
    secret = _require_secret(ctx)
    payload = _read_body(body, body_file)

    if verify(secret, token, method, path, payload, max_age=max_age):
        console.print("[green]✓ Signature valid[/green]")
    else:
        console.print("[red]✗ Signature invalid[/red]")
        sys.exit(1)


# === API Requests ===


@cli.command("request")
@click.argument("method")
@click.argument("path")
@click.option("--body", default=None, help="JSON request body")
@click.pass_context
@async_command
async def send_request(ctx: click.Context, method: str, path: str, body: str | None) -> None:
    """Send an authenticated request to PATH (relative to the API version)."""
    try:
        payload = json.loads(body) if body is not None else None
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON body: {exc}[/red]")
        sys.exit(1)

    try:
        config = ClientConfig(
            base_url=ctx.obj["base_url"],
            api_secret=_require_secret(ctx),
            api_key_id=ctx.obj.get("api_key_id"),
            api_version=ctx.obj["api_version"],
            timeout=ctx.obj["timeout"],
        )
    except ConfigurationError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    async with HankoClient(config) as client:
        try:
            data = await client.request(
                f"cli {method.lower()} {path}",
                method.upper(),
                client.url(path),
                payload,
            )
        except ApiError as exc:
            err_console.print(f"[red]✗ {exc}[/red]")
            sys.exit(1)

    if data is None:
        console.print("[green]✓ Request succeeded (no content)[/green]")
    else:
        console.print_json(json.dumps(data))


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
