"""
Command-line interface for bumpwise.

Every command reads one request document: the dependency to bump, the
parsed dependency set, the manifests and lockfiles, and optionally version
listings, advisories and ignore rules. The group loads configuration once
and hands it to the commands through :class:`BumpwiseContext`.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from bumpwise.config import load_config
from bumpwise.__version__ import __version__
from bumpwise.context import BumpwiseContext
from bumpwise.exceptions import BumpwiseError, ConfigError
from bumpwise.utils.logger import get_logger, setup_logging
from bumpwise.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="bumpwise.toml (or pyproject.toml) with helper and registry settings.",
    envvar="BUMPWISE_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log decisions: -v for INFO, -vv for DEBUG with timestamps.",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Colour tables and log lines (NO_COLOR also disables it).",
    envvar="BUMPWISE_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="bumpwise",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """bumpwise: decide whether one dependency can be safely bumped.

    REQUEST.json names the dependency and carries its manifests. Without a
    "versions" listing, versions are fetched from the configured registry;
    conflicts come from the native lockfile helper.

    \b
    Commands:
      check REQUEST.json                 Verdict, target and rewritten requirements
      conflicts REQUEST.json -t VERSION  Packages whose requirements exclude VERSION

    \b
    Examples:
      bumpwise check request.json
      bumpwise check request.json --format json
      bumpwise -v conflicts request.json --target 2.0.0

    Use ``bumpwise COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    bumpwise_ctx = BumpwiseContext.from_options(
        loaded_config, verbose=verbose, color=color, config_path=config
    )
    ctx.obj = bumpwise_ctx

    logger.debug("bumpwise v%s", __version__)
    logger.debug("Config path: %s", bumpwise_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from bumpwise.commands.check import check  # noqa: E402
from bumpwise.commands.conflicts import conflicts  # noqa: E402

cli.add_command(check)
cli.add_command(conflicts)


def main() -> int:
    """Main entry point for the bumpwise CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except BumpwiseError as exc:
        print_error(str(exc))
        logger.debug(
            "BumpwiseError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
