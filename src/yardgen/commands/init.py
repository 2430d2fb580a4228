"""Init command -- write a commented default ``yardgen.yml``.

Implements ``yardgen init``. The template documents every option with its
default value, so a fresh project can start from it and delete what it
does not need.
"""

from __future__ import annotations

from pathlib import Path

import typer

from yardgen.output import info, print_data, success, suggest


def init_command(
    config: str = typer.Option(
        "yardgen.yml", "--config", "-C", help="Where to write the configuration file."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing file."
    ),
    stdout: bool = typer.Option(
        False, "--stdout", help="Print the template instead of writing it."
    ),
) -> None:
    """Create a default yardgen.yml.

    Args:
        config: Destination path.
        force: Overwrite an existing file.
        stdout: Print the template to stdout and write nothing.

    Raises:
        ConfigError: If the destination exists and *force* is not set.

    Example::

        yardgen init
        yardgen init --config .config/yardgen.yml --force
        yardgen init --stdout > yardgen.yml
    """
    from yardgen.config import default_config_yaml, write_default_config

    if stdout:
        print_data(default_config_yaml().rstrip("\n"))
        return

    path = Path(config)
    info(f"Writing default configuration to {path}")
    write_default_config(path, force=force)
    success(f"Created {path}")
    suggest(f"Document your code: yardgen run --dry --config {path} lib")
