"""sealjournal CLI - entry point for unlock, day, add, edit, summary and verify."""

import click

from sealjournal import __version__


@click.group()
@click.version_option(version=__version__, package_name="sealjournal")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML or JSON config file.")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Directory holding the sealed files.")
@click.option("--log-level", default=None, help="Override logging.level (DEBUG, INFO, WARNING, ...).")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, data_dir: str | None, log_level: str | None) -> None:
    """sealjournal - a password-sealed personal journal."""
    from sealjournal.core.cli.common import setup

    ctx.obj = setup(config_file=config_file, data_dir=data_dir, log_level=log_level)


# Register subcommands (lazy imports keep startup fast)
from .journal_cmd import add, day, edit, summary, unlock
from .verify_cmd import verify

main.add_command(unlock)
main.add_command(day)
main.add_command(add)
main.add_command(edit)
main.add_command(summary)
main.add_command(verify)
