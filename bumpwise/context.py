"""
Shared context object for bumpwise CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from bumpwise.config import BumpwiseConfig


class BumpwiseContext:
    """Global context object for bumpwise CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the bumpwise configuration file, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration (defaults when no file was found).
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: BumpwiseConfig = BumpwiseConfig()

    @classmethod
    def from_options(
        cls,
        config: BumpwiseConfig,
        *,
        verbose: int = 0,
        color: bool = True,
        config_path: Optional[Path] = None,
    ) -> "BumpwiseContext":
        """Build the context for one invocation from the global options.

        ``config_path`` falls back to the file the configuration was
        discovered in, so commands can report where settings came from.
        """
        ctx = cls()
        ctx.config = config
        ctx.verbose = verbose
        ctx.color = color
        ctx.config_path = config_path or config.source_path
        return ctx


#: Click decorator for injecting :class:`BumpwiseContext` into commands.
pass_context = click.make_pass_decorator(BumpwiseContext, ensure=True)
