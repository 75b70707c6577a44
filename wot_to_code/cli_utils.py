"""
CLI utilities for command line reconstruction and logging setup.
"""

import logging
from pathlib import Path

import click

PROGRAM_NAME = "wot_to_code"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """Configure the root logger for a CLI run."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct the command line from the current Click context.

    Options still at their default are left out, flags are written without a
    value and local paths are shortened to their file name.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    try:
        ctx = click.get_current_context()
    except RuntimeError:
        return PROGRAM_NAME

    cli_args = ctx.params
    if not cli_args:
        return PROGRAM_NAME

    arguments = []
    options = []

    for param in click_command.params:
        if param.name not in cli_args:
            continue
        value = cli_args[param.name]
        if value is None or value == param.default:
            continue

        if isinstance(param, click.Argument):
            arguments.append(_format_value(value))
        elif isinstance(param, click.Option):
            if param.is_flag:
                flags = param.opts if value else param.secondary_opts
                if flags:
                    options.append(flags[0])
                continue
            flag = param.opts[0] if param.opts else f"--{param.name}"
            options.extend([flag, _format_value(value)])

    return " ".join([PROGRAM_NAME, *arguments, *options])


def _format_value(value) -> str:
    """Convert local file paths to just file names for cleaner display."""
    if isinstance(value, (str, Path)) and "://" not in str(value):
        path = Path(str(value))
        return path.name if path.exists() else str(value)
    return str(value)
