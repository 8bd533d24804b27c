"""
Command-line interface for the booking sync layer.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from washsync.api.booking_api import BookingAPI
from washsync.config import Settings
from washsync.schema.records import BookingRequest
from washsync.schema.result import FetchResult

app = typer.Typer(
    name="washsync",
    help="Car-wash booking client - cached, resilient access to bookings, centres and alerts",
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _api() -> BookingAPI:
    return BookingAPI(Settings.from_env())


def _source_label(result: FetchResult) -> str:
    label = result.source.value if result.source else "-"
    if result.is_degraded:
        return f"[yellow]{label} ({result.error.value if result.error else 'offline'})[/yellow]"
    return f"[dim]{label}[/dim]"


def _report_failure(result: FetchResult) -> None:
    console.print(f"[red]{result.message or 'Request failed'}[/red]")
    if result.validation_errors:
        for field, messages in result.validation_errors.items():
            console.print(f"  [red]{field}:[/red] {'; '.join(messages)}")
    if result.is_auth_error:
        console.print("[dim]Run `washsync login` to sign in again.[/dim]")
    raise typer.Exit(code=1)


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="Account password"),
):
    """Sign in and store the session token."""

    async def _login():
        async with _api() as api:
            result = await api.login(email, password)
        if not result.success:
            _report_failure(result)
        console.print(f"[green]Signed in as {result.data.full_name}[/green] [dim]({result.data.email})[/dim]")

    asyncio.run(_login())


@app.command()
def logout(
    owner: bool = typer.Option(False, "--owner", help="Sign out of a service-owner account"),
):
    """Clear the local session and cached data."""

    async def _logout():
        async with _api() as api:
            result = await api.logout(owner=owner)
        if not result.success:
            _report_failure(result)
        console.print("[green]Logged out[/green]")

    asyncio.run(_logout())


@app.command()
def whoami():
    """Show the signed-in user."""

    async def _whoami():
        async with _api() as api:
            user = await api.current_user()
        if user is None:
            console.print("[yellow]Not signed in.[/yellow]")
            raise typer.Exit(code=1)

        table = Table(show_header=False)
        table.add_row("Name", user.full_name)
        table.add_row("Email", user.email)
        table.add_row("Phone", user.phone_number or "-")
        table.add_row("Type", user.type.value)
        table.add_row("Status", user.status)
        console.print(table)

    asyncio.run(_whoami())


@app.command()
def bookings(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Wait for fresh data instead of using the cache"),
):
    """List your bookings."""

    async def _bookings():
        async with _api() as api:
            result = await api.get_bookings(force_refresh=refresh)
        if not result.success:
            _report_failure(result)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID")
        table.add_column("Service")
        table.add_column("Centre")
        table.add_column("Date")
        table.add_column("Status")
        table.add_column("Total")
        for booking in result.data:
            table.add_row(
                booking.reference or booking.id,
                booking.service_name or "-",
                booking.service_centre_name or "-",
                f"{booking.booking_date or '-'} {booking.booking_time or ''}".strip(),
                booking.status,
                booking.total_amount or "-",
            )

        console.print(table)
        console.print(f"Source: {_source_label(result)}")

    asyncio.run(_bookings())


@app.command("owner-bookings")
def owner_bookings(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Wait for fresh data instead of using the cache"),
):
    """List bookings received by your service centre."""

    async def _owner_bookings():
        async with _api() as api:
            result = await api.get_owner_bookings(force_refresh=refresh)
        if not result.success:
            _report_failure(result)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID")
        table.add_column("Customer")
        table.add_column("Vehicle")
        table.add_column("Date")
        table.add_column("Status")
        for booking in result.data.bookings:
            table.add_row(
                booking.reference or booking.id,
                booking.customer_name or "-",
                booking.vehicle_no or "-",
                f"{booking.booking_date or '-'} {booking.booking_time or ''}".strip(),
                booking.status,
            )

        console.print(table)
        if result.data.status_totals:
            totals = ", ".join(f"{k}: {v}" for k, v in result.data.status_totals.items())
            console.print(f"[bold]Totals:[/bold] {totals}")
        console.print(f"Source: {_source_label(result)}")

    asyncio.run(_owner_bookings())


@app.command()
def centers(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Wait for fresh data instead of using the cache"),
):
    """List service centres."""

    async def _centers():
        async with _api() as api:
            result = await api.get_service_centers(force_refresh=refresh)
        if not result.success:
            _report_failure(result)

        if not result.data:
            console.print("\n[yellow]No service centres available.[/yellow]")
        else:
            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("ID")
            table.add_column("Name")
            table.add_column("Address")
            table.add_column("Rating")
            for centre in result.data:
                table.add_row(
                    centre.id,
                    centre.name,
                    centre.address or "-",
                    f"{centre.rating:.1f}" if centre.rating is not None else "-",
                )
            console.print(table)
        console.print(f"Source: {_source_label(result)}")

    asyncio.run(_centers())


@app.command()
def alerts(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Ignore cached alerts"),
    owner: bool = typer.Option(False, "--owner", help="Show service-owner alerts"),
):
    """Show notifications."""

    async def _alerts():
        async with _api() as api:
            if owner:
                result = await api.get_owner_alerts(force_refresh=refresh)
            else:
                result = await api.get_alerts(force_refresh=refresh)
        if not result.success:
            _report_failure(result)

        if not result.data:
            console.print("\n[dim]No notifications.[/dim]")
        for alert in result.data:
            marker = "[bold blue]*[/bold blue]" if alert.is_unread else " "
            console.print(f"{marker} [bold]{alert.title}[/bold] [dim]{alert.created_at or ''}[/dim]")
            if alert.description:
                console.print(f"   {alert.description}")
        console.print(f"Source: {_source_label(result)}")

    asyncio.run(_alerts())


@app.command()
def book(
    centre: str = typer.Option(..., "--centre", "-c", help="Service centre ID"),
    date: str = typer.Option(..., "--date", "-d", help="Booking date (YYYY-MM-DD)"),
    time: str = typer.Option(..., "--time", "-t", help="Booking time (HH:MM)"),
    vehicle: str = typer.Option(..., "--vehicle", help="Vehicle registration number"),
    service: str = typer.Option(None, "--service", "-s", help="Service ID"),
    notes: str = typer.Option(None, "--notes", "-n", help="Notes for the washer"),
):
    """Book a car wash."""

    async def _book():
        request = BookingRequest(
            service_centre_id=centre,
            booking_date=date,
            booking_time=time,
            vehicle_no=vehicle,
            service_id=service,
            notes=notes,
        )
        async with _api() as api:
            result = await api.create_booking(request)
        if not result.success:
            _report_failure(result)
        console.print(f"[green]Booking confirmed[/green] - ID {result.data}")

    asyncio.run(_book())


@app.command()
def cancel(
    booking_id: str = typer.Argument(..., help="Booking ID"),
    owner: bool = typer.Option(False, "--owner", help="Cancel as the service owner"),
):
    """Cancel a booking."""

    async def _cancel():
        async with _api() as api:
            if owner:
                result = await api.cancel_owner_booking(booking_id)
            else:
                result = await api.cancel_booking(booking_id)
        if not result.success:
            _report_failure(result)
        console.print(f"[green]{result.message}[/green]")

    asyncio.run(_cancel())


@app.command()
def cache():
    """Show cached resources and their age."""

    async def _cache():
        async with _api() as api:
            now = api.cache.now()
            rows = []
            for config in api.registry.resources.values():
                entry = await api.cache.read_entry(config.cache_key)
                rows.append((config, entry))

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Resource")
        table.add_column("Key")
        table.add_column("Captured")
        table.add_column("Age")
        table.add_column("Fresh")
        for config, entry in rows:
            if entry is None:
                table.add_row(config.name, config.cache_key, "-", "-", "[dim]empty[/dim]")
                continue
            fresh = entry.is_fresh(config.ttl_seconds, now)
            table.add_row(
                config.name,
                config.cache_key,
                datetime.fromtimestamp(entry.captured_at).strftime("%Y-%m-%d %H:%M:%S"),
                f"{entry.age(now):.0f}s",
                "[green]yes[/green]" if fresh else "[yellow]stale[/yellow]",
            )
        console.print(table)

    asyncio.run(_cache())


if __name__ == "__main__":
    app()
