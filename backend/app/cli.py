"""CLI commands for Flask application."""

import click
from flask.cli import with_appcontext


@click.command("reconcile-progress")
@click.option("--user-id", type=int, default=None, help="Reconcile a single user")
@click.option("--limit", type=int, default=500, show_default=True)
@with_appcontext
def reconcile_progress_command(user_id, limit):
    """Recompute points and levels from the waste transaction log."""
    from app.services import ProgressLedger
    from app.services.exceptions import RewardsError

    ledger = ProgressLedger()

    if user_id is not None:
        try:
            report = ledger.reconcile(user_id)
        except RewardsError as e:
            raise click.ClickException(e.message)
        status = "corrected" if report["corrected"] else "ok"
        click.echo(
            f"User {user_id}: {status} "
            f"(stored {report['stored_points']}, ledger {report['ledger_points']})"
        )
        return

    summary = ledger.reconcile_all(limit=limit)
    click.echo(f"Checked {summary['checked']} users, corrected {summary['corrected']}")
