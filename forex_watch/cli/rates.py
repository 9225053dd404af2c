"""CLI for running a rate fetch cycle on demand."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext


@click.command("fetch-rates")
@click.option("--force", is_flag=True, help="Fetch even outside the active window")
@with_appcontext
def fetch_rates(force: bool) -> None:
    """Run one rate fetch cycle now and print the resulting rates."""

    fetcher = current_app.extensions["rate_fetcher"]
    store = current_app.extensions["rate_store"]
    click.echo(f"Fetching {len(fetcher.pairs)} pair(s) via {current_app.config['FX_RATE_PROVIDER']}...")
    result = fetcher.run_cycle(force=force)

    if result is None:
        click.echo("A fetch cycle is already running.")
        return
    if result.skipped:
        click.echo("Outside the active window; nothing fetched. Use --force to override.")
        return

    for base, error in result.failed.items():
        click.echo(f"{base}: failed ({error})")

    for rate in store.get_all_rates(int(current_app.config["RATE_CACHE_TTL_MS"])):
        flag = " (stale)" if rate.stale else ""
        click.echo(f"{rate.base}:{rate.quote} {rate.rate} {rate.provider} {rate.timestamp.isoformat()}{flag}")
