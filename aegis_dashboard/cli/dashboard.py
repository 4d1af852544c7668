"""Operator CLI for the Aegis dashboard."""
import asyncio
import json

import click

from aegis_dashboard.exceptions import AegisDashboardError
from aegis_dashboard.integrations.vendor_status import VendorStatusEvaluator
from aegis_dashboard.schemas.records import VendorStatus, VendorStatusOption
from aegis_dashboard.store.entities import VENDORS, list_entity_types
from aegis_dashboard.store.entity_store import EntityStore

STATUS_ICONS = {
    VendorStatusOption.OPERATIONAL: "✅",
    VendorStatusOption.DEGRADED: "⚠️ ",
    VendorStatusOption.OUTAGE: "❌",
}


def print_vendor_table(statuses: list[VendorStatus]) -> None:
    """Print vendor statuses as an aligned table."""
    click.echo("\n" + "=" * 70)
    click.echo("VENDOR STATUS")
    click.echo("=" * 70)
    if not statuses:
        click.echo("  No vendors configured.")
    width = max((len(status.name) for status in statuses), default=0)
    for status in statuses:
        icon = STATUS_ICONS.get(status.status, " ")
        click.echo(f"  {icon} {status.name.ljust(width)}  {status.status.value:<12} {status.url}")
    click.echo("=" * 70 + "\n")


@click.group()
def cli() -> None:
    """Inspect and prepare the Aegis dashboard from the command line."""


@cli.command()
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output statuses as JSON instead of a formatted table",
)
def vendors(output_json: bool) -> None:
    """
    Evaluate every stored vendor and print its status.

    Examples:

        # Formatted table
        aegis-dashboard vendors

        # JSON output for automation
        aegis-dashboard vendors --json
    """

    async def evaluate() -> list[VendorStatus]:
        store = EntityStore()
        await store.ensure_seed(VENDORS)
        return await VendorStatusEvaluator().evaluate_all(await store.list(VENDORS))

    try:
        statuses = asyncio.run(evaluate())
    except AegisDashboardError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    if output_json:
        click.echo(json.dumps([status.to_api() for status in statuses], indent=2))
    else:
        print_vendor_table(statuses)


@cli.command()
def seed() -> None:
    """Install seed records for every listed entity type with an empty index."""

    async def run() -> dict[str, bool]:
        store = EntityStore()
        results: dict[str, bool] = {}
        for entity_type in list_entity_types():
            if entity_type.indexed:
                results[entity_type.name] = await store.ensure_seed(entity_type)
        return results

    try:
        results = asyncio.run(run())
    except AegisDashboardError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    for name, seeded in results.items():
        click.echo(f"{name}: {'seeded' if seeded else 'already populated'}")


if __name__ == "__main__":
    cli()
