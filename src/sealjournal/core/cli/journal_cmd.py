"""Journal commands: unlock, day, add, edit, summary."""

from __future__ import annotations

import click

from sealjournal.core.cli.common import echo_json, password_option, run_service


@click.command()
@password_option
@click.option("--show-key", is_flag=True, help="Also print the signing key recovered from the file.")
@click.pass_obj
def unlock(config, password: str, show_key: bool) -> None:
    """Open the journal, creating an empty one on first use."""
    result = run_service(config, lambda service: service.unlock(password))
    if not show_key:
        result = result["payload"]
    echo_json(result)


@click.command()
@click.argument("date")
@password_option
@click.pass_obj
def day(config, date: str, password: str) -> None:
    """Show the summary and entries recorded for DATE (YYYY-MM-DD)."""
    echo_json(run_service(config, lambda service: service.get_day(password, date)))


@click.command()
@click.argument("date")
@click.argument("content")
@password_option
@click.pass_obj
def add(config, date: str, content: str, password: str) -> None:
    """Append an entry with CONTENT to DATE."""
    echo_json(run_service(config, lambda service: service.append_entry(password, date, content)))


@click.command()
@click.argument("entry_id")
@click.argument("content")
@click.option("--timestamp", default=None, help="New ISO-8601 timestamp for the entry.")
@password_option
@click.pass_obj
def edit(config, entry_id: str, content: str, timestamp: str | None, password: str) -> None:
    """Replace the content of entry ENTRY_ID."""
    echo_json(run_service(config, lambda service: service.edit_entry(password, entry_id, content, timestamp)))


@click.command()
@click.argument("date")
@click.argument("text")
@password_option
@click.pass_obj
def summary(config, date: str, text: str, password: str) -> None:
    """Set the summary of DATE to TEXT."""
    echo_json(run_service(config, lambda service: service.set_summary(password, date, text)))
