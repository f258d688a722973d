"""
Operator CLI.

Day-to-day platform chores without the admin UI: schema setup, onboarding,
staff profiles, development tokens and the recharge approval queue.

Usage:
    food-delivery db-init
    food-delivery onboard "Spice Route" 9876543210 spiceroute@upi
    food-delivery create-profile 9800000020 RIDER --name Vikram
    food-delivery issue-token 9800000020
    food-delivery recharges --status PENDING
    food-delivery resolve-recharge 12 APPROVE --approver 9800000099
"""

import asyncio
import time

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select, text

from shared.config.constants import Roles, WalletTxnStatus
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, engine
from shared.infrastructure.events import get_event_circuit_breaker, get_redis_pool
from shared.security.auth import sign_jwt
from shared.utils.validators import normalize_phone
from rest_api.models import Base, Profile
from rest_api.services.domain import RestaurantService, WalletService
from rest_api.services.domain.restaurant_service import DuplicateSlugError, InvalidGSTNumberError
from rest_api.services.domain.wallet_service import (
    RechargeAlreadyResolvedError,
    WalletTransactionNotFoundError,
)

app = typer.Typer(
    name="food-delivery",
    help="Food delivery platform operator CLI",
    add_completion=False,
)
console = Console()


def _phone_or_exit(phone: str) -> str:
    try:
        return normalize_phone(phone)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def db_init():
    """Create any missing tables."""
    Base.metadata.create_all(bind=engine)
    console.print(f"[green]✓ Schema ready ({engine.dialect.name})[/green]")


# =============================================================================
# Restaurants and Profiles
# =============================================================================


@app.command()
def onboard(
    name: str = typer.Argument(..., help="Restaurant display name"),
    owner_phone: str = typer.Argument(..., help="Owner's mobile number"),
    upi_id: str = typer.Argument(..., help="UPI VPA customers pay to"),
    slug: str = typer.Option(None, help="URL slug, derived from the name when omitted"),
    gst_number: str = typer.Option(None, "--gstin", help="GSTIN, if registered"),
):
    """Onboard a restaurant with platform default fees and credit floor."""
    with SessionLocal() as db:
        try:
            restaurant = RestaurantService(db).onboard(
                name=name,
                owner_phone=owner_phone,
                upi_id=upi_id,
                slug=slug,
                gst_number=gst_number,
            )
        except DuplicateSlugError as e:
            console.print(f"[red]✗ Slug '{e.slug}' is already taken[/red]")
            raise typer.Exit(1)
        except (InvalidGSTNumberError, ValueError) as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(1)

        console.print(
            f"[green]✓ Onboarded {restaurant.name} (id={restaurant.id}, slug={restaurant.slug})[/green]"
        )


@app.command()
def create_profile(
    phone: str = typer.Argument(..., help="Mobile number"),
    role: str = typer.Argument(..., help="SUPER_ADMIN, RESTAURANT, CUSTOMER or RIDER"),
    name: str = typer.Option(None, help="Full name"),
):
    """Create a profile, or change the role of an existing one."""
    role = role.upper()
    if role not in Roles.ALL:
        console.print(f"[red]✗ Unknown role {role}. Use one of: {', '.join(Roles.ALL)}[/red]")
        raise typer.Exit(1)
    normalized = _phone_or_exit(phone)

    with SessionLocal() as db:
        profile = db.scalar(select(Profile).where(Profile.phone == normalized))
        if profile is None:
            profile = Profile(phone=normalized, role=role, full_name=name)
            db.add(profile)
            action = "Created"
        else:
            profile.role = role
            if name:
                profile.full_name = name
            action = "Updated"
        db.commit()
        console.print(f"[green]✓ {action} {role} profile {profile.id} for {normalized}[/green]")


@app.command()
def issue_token(
    phone: str = typer.Argument(..., help="Mobile number of an existing profile"),
    ttl_minutes: int = typer.Option(60, help="Token lifetime"),
):
    """Mint a bearer token for a profile (development and support use)."""
    normalized = _phone_or_exit(phone)
    with SessionLocal() as db:
        profile = db.scalar(select(Profile).where(Profile.phone == normalized))
        if profile is None:
            console.print(f"[red]✗ No profile for {normalized}[/red]")
            raise typer.Exit(1)
        claims = {"sub": str(profile.id), "role": profile.role, "phone": profile.phone}

    if settings.environment == "production":
        console.print("[yellow]Issuing a token against production settings[/yellow]")
    typer.echo(sign_jwt(claims, ttl_seconds=ttl_minutes * 60))


# =============================================================================
# Finance Commands
# =============================================================================


@app.command()
def recharges(
    status: str = typer.Option(WalletTxnStatus.PENDING, help="PENDING, APPROVED or REJECTED"),
    limit: int = typer.Option(50, help="Max rows"),
):
    """List restaurant recharge requests."""
    with SessionLocal() as db:
        txns = WalletService(db).list_recharges(status=status.upper(), limit=limit)

        table = Table(title=f"Recharges ({status.upper()})")
        table.add_column("ID", style="cyan")
        table.add_column("Restaurant", style="cyan")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("Proof")
        table.add_column("Requested", style="yellow")

        for txn in txns:
            table.add_row(
                str(txn.id),
                str(txn.restaurant_id),
                f"₹{txn.amount}",
                txn.proof_image_url or "-",
                txn.created_at.strftime("%Y-%m-%d %H:%M") if txn.created_at else "-",
            )

    console.print(table)
    if not txns:
        console.print("[green]✓ Queue is empty[/green]")


@app.command()
def resolve_recharge(
    txn_id: int = typer.Argument(..., help="Wallet transaction ID"),
    decision: str = typer.Argument(..., help="APPROVE or REJECT"),
    approver: str = typer.Option(None, help="Admin phone to stamp as approver"),
):
    """Approve or reject a pending recharge."""
    decision = decision.upper()
    if decision not in ("APPROVE", "REJECT"):
        console.print("[red]✗ Decision must be APPROVE or REJECT[/red]")
        raise typer.Exit(1)

    with SessionLocal() as db:
        approver_id = None
        if approver:
            admin = db.scalar(select(Profile).where(Profile.phone == _phone_or_exit(approver)))
            if admin is None or admin.role != Roles.SUPER_ADMIN:
                console.print("[red]✗ Approver must be an existing SUPER_ADMIN[/red]")
                raise typer.Exit(1)
            approver_id = admin.id

        try:
            txn = WalletService(db).resolve_recharge(txn_id, decision, approver_id=approver_id)
        except WalletTransactionNotFoundError:
            console.print(f"[red]✗ Wallet transaction {txn_id} not found[/red]")
            raise typer.Exit(1)
        except RechargeAlreadyResolvedError as e:
            console.print(f"[red]✗ Transaction {txn_id} is already {e.status}[/red]")
            raise typer.Exit(1)

        console.print(f"[green]✓ Recharge {txn.id} {txn.status} (₹{txn.amount})[/green]")


@app.command()
def stats():
    """Platform totals."""
    with SessionLocal() as db:
        totals = RestaurantService(db).platform_stats()

    table = Table(title="Platform")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in totals.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)


# =============================================================================
# Health Commands
# =============================================================================


@app.command()
def config_check():
    """Show configuration errors and warnings for the current environment."""
    errors = settings.validate_production_secrets()
    warnings = settings.config_warnings()

    for error in errors:
        console.print(f"[red]✗ {error}[/red]")
    for warning in warnings:
        console.print(f"[yellow]! {warning}[/yellow]")

    if errors and settings.environment == "production":
        raise typer.Exit(1)
    if not errors and not warnings:
        console.print("[green]✓ Configuration OK[/green]")


@app.command()
def health():
    """Check database and Redis connectivity."""
    table = Table(title="Dependencies")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    start = time.perf_counter()
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        table.add_row("Database", "✓ Healthy", f"{(time.perf_counter() - start) * 1000:.0f}ms")
    except Exception as e:
        table.add_row("Database", f"✗ {type(e).__name__}", "-")

    async def _ping_redis():
        client = await get_redis_pool()
        await client.ping()

    start = time.perf_counter()
    try:
        asyncio.run(_ping_redis())
        table.add_row("Redis", "✓ Healthy", f"{(time.perf_counter() - start) * 1000:.0f}ms")
    except Exception as e:
        table.add_row("Redis", f"✗ {type(e).__name__}", "-")

    breaker = get_event_circuit_breaker().get_stats()
    table.add_row("Event breaker", breaker["state"], "-")

    console.print(table)


if __name__ == "__main__":
    app()
