"""sealjournal verify - check signature and digest without the password."""

from __future__ import annotations

import asyncio

import click

from sealjournal.core.exceptions import StoreError
from sealjournal.core.storage import SealedStore


@click.command()
@click.pass_obj
def verify(config) -> None:
    """Check that the sealed files are intact (no password needed)."""
    data_file, public_key_file = config.get_store_paths()
    store = SealedStore(data_file, public_key_file)
    try:
        sealed = asyncio.run(store.verify())
    except StoreError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e
    click.echo(f"OK: {store.data_path} (saved {sealed.timestamp})")
