from __future__ import annotations

import os
import traceback
from typing import Optional

import typer

from ghcert import __version__
from ghcert.logging import setup_logging
from ghcert.services.errors import CertError, KeyringUnavailableError
from ghcert.services.github import credentials
from ghcert.services.service import CertificateService
from ghcert.services.settings import CertSettings, load_settings

app = typer.Typer(help="Request short-lived SSH certificates through a GitHub repository.")
auth_app = typer.Typer(help="Manage the stored GitHub credential.")
app.add_typer(auth_app, name="auth")


def _service() -> CertificateService:
    return CertificateService()


def _print_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)


def _fail(exc: Exception) -> typer.Exit:
    if os.getenv("GHCERT_CLI_DEBUG") == "1":
        traceback.print_exc()
    _print_error(str(exc))
    return typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ghcert {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log protocol steps to stderr."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit log records as JSON lines."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    setup_logging("DEBUG" if verbose else "WARNING", json_output=log_json)


def _settings(config: Optional[str], **flags) -> CertSettings:
    return load_settings(config_file=config, **flags)


@app.command("get")
def cmd_get(
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Organization acting as certificate authority."),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Repository acting as certificate authority."),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Path of the SSH public key to certify."),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Root URL of the signer fetch endpoint."),
    output: Optional[str] = typer.Option(None, "--file", "-f", help="Write the certificate here instead of next to the key."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file."),
    attempts: Optional[int] = typer.Option(None, "--attempts", help="Maximum number of fetch attempts."),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds to wait between fetch attempts."),
    deadline: Optional[float] = typer.Option(None, "--deadline", help="Give up polling after this many seconds."),
) -> None:
    """Get a new SSH certificate for a local public key."""
    try:
        settings = _settings(
            config,
            org=org,
            repo=repo,
            key_path=key,
            server_url=server,
            output=output,
            attempts=attempts,
            interval=interval,
        )
        result = _service().get_certificate(settings, on_event=typer.echo, timeout=deadline)
    except CertError as exc:
        raise _fail(exc)
    typer.secho(f"Certificate written to {result.path}", fg=typer.colors.GREEN)


@app.command("keys")
def cmd_keys(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file."),
) -> None:
    """List the SSH keys registered on your GitHub profile."""
    try:
        settings = _settings(config)
        keys = _service().list_keys(settings)
    except CertError as exc:
        raise _fail(exc)
    if not keys:
        typer.echo("No SSH keys found on your GitHub profile.")
        return
    for item in keys:
        created = item.created_at.date().isoformat() if item.created_at else "-"
        verified = "verified" if item.verified else "unverified"
        typer.echo(f"{item.id}\t{item.title or '-'}\t{verified}\t{created}")


@auth_app.command("login")
def auth_login(
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token; prompted for when omitted."),
) -> None:
    """Store a GitHub token in the system keyring."""
    value = token or typer.prompt("GitHub token", hide_input=True)
    try:
        credentials.save_token(value.strip())
    except KeyringUnavailableError as exc:
        raise _fail(exc)
    typer.secho("GitHub token saved to the system keyring.", fg=typer.colors.GREEN)


@auth_app.command("logout")
def auth_logout() -> None:
    """Remove the stored GitHub token."""
    try:
        removed = credentials.delete_token()
    except KeyringUnavailableError as exc:
        raise _fail(exc)
    typer.echo("GitHub token removed." if removed else "No stored GitHub token.")


@auth_app.command("status")
def auth_status() -> None:
    """Show where the GitHub credential comes from."""
    try:
        _token, source = credentials.resolve_token()
    except CertError as exc:
        raise _fail(exc)
    typer.echo(f"Authenticated via {source}.")


def run() -> None:
    app()


__all__ = ["app", "run"]
