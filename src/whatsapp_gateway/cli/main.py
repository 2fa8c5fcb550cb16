"""
WhatsApp Gateway CLI

Command-line interface for gateway administration.

Commands:
- create-tenant: Register a tenant and print its client secret
- list-tenants: List tenants
- issue-token: Exchange client credentials for a bearer token
- set-meta-credentials: Store Meta Cloud API credentials for a tenant
- list-sessions: List a tenant's sessions
- session-qr: Show the pairing QR code of a session
- serve: Run the API server
"""

import asyncio
from typing import Optional

import qrcode
import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from whatsapp_gateway.core.db import get_db as _get_db
from whatsapp_gateway.core.settings import get_settings
from whatsapp_gateway.exceptions import GatewayError
from whatsapp_gateway.persistence.models import Tenant
from whatsapp_gateway.persistence.repo import WhatsAppRepository
from whatsapp_gateway.providers.base import ProviderError
from whatsapp_gateway.providers.factory import ProviderFactory
from whatsapp_gateway.routing.tenant_resolver import TenantResolver
from whatsapp_gateway.service import SessionService, TenantService

app = typer.Typer(
    name="whatsapp-gateway",
    help="WhatsApp Gateway administration CLI",
)

console = Console()


def get_db():
    """Get database session."""
    return next(_get_db())


def _resolve_tenant(db, tenant: str) -> Tenant:
    resolved = TenantResolver(db).resolve(tenant)
    if resolved is None:
        rprint(f"[red]No active tenant found: {tenant}[/red]")
        raise typer.Exit(1)
    return resolved


@app.command()
def create_tenant(
    client_id: str = typer.Argument(..., help="Client identifier used in the X-Tenant-Id header"),
    name: str = typer.Argument(..., help="Display name"),
):
    """
    Register a new tenant.

    The client secret is printed once and only its hash is stored.
    """
    db = get_db()

    try:
        tenant, client_secret = TenantService(db).create_tenant(client_id, name)

        rprint(f"[green]Tenant created:[/green]")
        rprint(f"  ID: {tenant.id}")
        rprint(f"  Client ID: {tenant.client_id}")
        rprint(f"  Client Secret: {client_secret}")
        rprint(f"\n[yellow]Store the client secret now, it cannot be shown again[/yellow]")

    except GatewayError as e:
        rprint(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    finally:
        db.close()


@app.command()
def list_tenants():
    """List all tenants."""
    db = get_db()

    try:
        tenants = WhatsAppRepository(db).list_tenants()

        if not tenants:
            rprint("[yellow]No tenants found[/yellow]")
            return

        table = Table(title="Tenants")
        table.add_column("ID", style="dim")
        table.add_column("Client ID")
        table.add_column("Name")
        table.add_column("Active")
        table.add_column("Created")

        for tenant in tenants:
            table.add_row(
                str(tenant.id)[:8] + "...",
                tenant.client_id,
                tenant.name,
                "✓" if tenant.is_active else "✗",
                tenant.created_at.strftime("%Y-%m-%d %H:%M") if tenant.created_at else "-",
            )

        console.print(table)

    finally:
        db.close()


@app.command()
def issue_token(
    client_id: str = typer.Argument(..., help="Tenant client identifier"),
    client_secret: str = typer.Option(..., prompt=True, hide_input=True, help="Tenant client secret"),
):
    """Exchange client credentials for a bearer token."""
    db = get_db()

    try:
        token = TenantService(db).issue_token(client_id, client_secret)
        rprint(token)

    except GatewayError as e:
        rprint(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    finally:
        db.close()


@app.command()
def set_meta_credentials(
    tenant: str = typer.Argument(..., help="Tenant UUID or client identifier"),
    phone_number_id: str = typer.Argument(..., help="WhatsApp phone number ID (Meta)"),
    access_token: str = typer.Option(..., prompt=True, hide_input=True, help="Access token (will be encrypted)"),
):
    """Store Meta Cloud API credentials for a tenant."""
    settings = get_settings()
    db = get_db()

    try:
        resolved = _resolve_tenant(db, tenant)
        if not settings.WHATSAPP_ENCRYPTION_KEY:
            rprint("[yellow]Warning: WHATSAPP_ENCRYPTION_KEY not set, storing token unencrypted[/yellow]")

        TenantService(db).set_meta_credentials(resolved, phone_number_id, access_token)
        rprint(f"[green]Meta credentials stored for tenant {resolved.client_id}[/green]")

    finally:
        db.close()


@app.command()
def list_sessions(
    tenant: str = typer.Argument(..., help="Tenant UUID or client identifier"),
    active_only: bool = typer.Option(False, help="Only show active sessions"),
):
    """List sessions for a tenant."""
    db = get_db()

    try:
        resolved = _resolve_tenant(db, tenant)
        repo = WhatsAppRepository(db)
        sessions = repo.get_active_sessions(resolved.id) if active_only else repo.get_all_sessions(resolved.id)

        if not sessions:
            rprint("[yellow]No sessions found[/yellow]")
            return

        table = Table(title=f"Sessions for tenant {resolved.client_id}")
        table.add_column("ID", style="dim")
        table.add_column("Phone")
        table.add_column("Provider")
        table.add_column("Active")
        table.add_column("Updated")

        for session in sessions:
            table.add_row(
                str(session.id)[:8] + "...",
                session.phone_number,
                session.provider_type,
                "✓" if session.is_active else "✗",
                session.updated_at.strftime("%Y-%m-%d %H:%M") if session.updated_at else "-",
            )

        console.print(table)

    finally:
        db.close()


@app.command()
def session_qr(
    tenant: str = typer.Argument(..., help="Tenant UUID or client identifier"),
    phone_number: str = typer.Argument(..., help="Session phone number"),
    show_qr: bool = typer.Option(True, help="Render the QR code in the terminal"),
):
    """
    Show the pairing QR code of a session.

    Scan it with WhatsApp to connect the session.
    """
    db = get_db()
    providers = ProviderFactory(get_settings())

    async def fetch() -> Optional[str]:
        try:
            return await SessionService(db, providers).get_qr_code(resolved, phone_number)
        finally:
            await providers.close()

    try:
        resolved = _resolve_tenant(db, tenant)

        try:
            qr_data = asyncio.run(fetch())
        except (GatewayError, ProviderError) as e:
            rprint(f"[red]Failed to get QR code: {e}[/red]")
            raise typer.Exit(1)

        if not qr_data:
            rprint(f"[yellow]No QR code available for {phone_number} (unknown or already connected)[/yellow]")
            raise typer.Exit(1)

        rprint(f"[green]QR Code for {phone_number}:[/green]")
        if show_qr:
            qr = qrcode.QRCode()
            qr.add_data(qr_data)
            qr.print_ascii(invert=True)
        else:
            rprint(qr_data)

    finally:
        db.close()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the API server."""
    import uvicorn

    uvicorn.run("whatsapp_gateway.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
