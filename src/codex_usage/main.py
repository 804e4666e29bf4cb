# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
codex-usage entry point.

Resolves a credential, fetches usage once and prints the report. Any
failure becomes a single "Error: ..." line on stderr and exit status 1.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from .client import UsageClient
from .config import UsageConfig, load_config
from .core.errors import CodexUsageError
from .core.types import UsageSnapshot
from .credentials import CredentialStore
from .renderer import RenderMode, render

lib_logger = logging.getLogger("codex_usage")


def _print_error(console: Console, message: str) -> None:
    console.print(Text.assemble(("Error:", "bold red"), " ", message), soft_wrap=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codex-usage",
        description="Show Codex / ChatGPT rate-limit usage.",
    )
    parser.add_argument(
        "-p",
        "--plain",
        action="store_true",
        help="plain, uncolored output for scripts",
    )
    return parser


def fetch_snapshot(config: UsageConfig) -> UsageSnapshot:
    """Resolve a credential and fetch usage with it."""
    credential = CredentialStore(config).resolve()
    return UsageClient(config.usage_url).fetch(credential)


def run(
    argv: Optional[List[str]] = None,
    console: Optional[Console] = None,
    err_console: Optional[Console] = None,
    config: Optional[UsageConfig] = None,
) -> int:
    """
    Run the CLI.

    Returns:
        Process exit status: 0 on success, 1 on any failure
    """
    # Unknown arguments are ignored rather than rejected
    args, _ = build_parser().parse_known_args(argv)
    mode = RenderMode.PLAIN if args.plain else RenderMode.FANCY
    console = console or Console(highlight=False)
    err_console = err_console or Console(stderr=True, highlight=False)

    try:
        config = config or load_config()
    except ValueError as e:
        _print_error(err_console, str(e))
        return 1
    logging.basicConfig(level=getattr(logging, config.log_level))

    try:
        if mode is RenderMode.PLAIN:
            snapshot = fetch_snapshot(config)
        else:
            console.print()
            # Transient: the spinner line is erased before the report prints
            with console.status("[cyan]◆[/cyan] Fetching usage data...", spinner="dots"):
                snapshot = fetch_snapshot(config)
    except CodexUsageError as e:
        lib_logger.debug(f"Usage run failed: {e!r}")
        _print_error(err_console, str(e))
        return 1

    console.print(render(snapshot, mode), soft_wrap=True)
    if mode is RenderMode.FANCY:
        console.print()
    return 0


def main():
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
