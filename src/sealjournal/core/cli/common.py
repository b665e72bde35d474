"""Shared setup logic for CLI commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

from sealjournal.core.config import Config
from sealjournal.core.exceptions import ConfigurationError, SealJournalError
from sealjournal.core.utils.logging import setup_logging

DEFAULT_CONFIG_PATH = Path.home() / ".sealjournal" / "config.yaml"

password_option = click.option(
    "--password",
    envvar="SEALJOURNAL_PASSWORD",
    prompt=True,
    hide_input=True,
    help="Journal password (or set SEALJOURNAL_PASSWORD).",
)


def setup(config_file: str | None = None, data_dir: str | None = None, log_level: str | None = None) -> Config:
    """Load config and configure logging for one CLI invocation."""
    try:
        config = Config(config_file=config_file or str(DEFAULT_CONFIG_PATH), data_dir=data_dir)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    level = (log_level or config.get("logging.level", "WARNING")).upper()
    setup_logging(level=level, log_file=config.get("logging.file") or None)
    return config


def run_service(config: Config, action: Callable[[Any], Awaitable[Any]]) -> Any:
    """Run ``action(service)`` on a fresh JournalService and shut it down.

    Library errors become a ClickException (exit code 1).
    """
    from sealjournal.service import JournalService

    async def _main() -> Any:
        service = JournalService.from_config(config)
        try:
            return await action(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_main())
    except SealJournalError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))
