import json

import click

from pickapp.extensions import db
from pickapp.services.registry import services


def register_cli(app):
    @app.cli.command("seed-areas")
    @click.argument("names", nargs=-1, required=True)
    def seed_areas(names) -> None:
        """Create warehouse areas that do not exist yet."""
        created = services().areas.ensure(names)
        db.session.commit()
        if not created:
            click.echo("All areas already exist.")
            return
        for area in created:
            click.echo(f"Created area {area.id}: {area.name}")

    @app.cli.command("check-ledger")
    def check_ledger() -> None:
        """Compare each item's total quantity with the sum of its bins."""
        discrepancies = services().items.ledger_discrepancies()
        if not discrepancies:
            click.echo("Ledger OK: every item total matches its bins.")
            return
        click.echo(f"{len(discrepancies)} item(s) out of balance:")
        click.echo(json.dumps(discrepancies, indent=2))
        raise SystemExit(1)
