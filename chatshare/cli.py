#!/usr/bin/env python3
"""
Preview the conversation that would be shared from the current Cursor workspace.
Uses Rich library for the terminal UI.

Usage:
    python -m chatshare.cli [--json] [--title TITLE] [--workspace-storage DIR]
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import configure_logging, load_config, update_config
from .domain.conversation_extractor import extract_conversation
from .domain.errors import ExtractionEnvironmentError
from .domain.models import Conversation
from .domain.share import build_share_payload

console = Console()

PREVIEW_LENGTH = 120


def show_intro() -> None:
    """Display the intro banner."""
    console.print()
    intro_text = Text(" Preview Cursor conversation for sharing ", style="bold reverse")
    console.print(Panel(intro_text, border_style="blue"))


def render_conversation(messages: Conversation) -> Table:
    """Build a table with one row per message."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", width=4)
    table.add_column("Role", style="green", width=10)
    table.add_column("Content", style="white")

    for idx, msg in enumerate(messages, start=1):
        content = " ".join(msg["content"].split())
        if len(content) > PREVIEW_LENGTH:
            content = content[:PREVIEW_LENGTH - 3] + "..."
        table.add_row(str(idx), msg["role"], content)
    return table


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview the active Cursor conversation")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--json", action="store_true",
                        help="Print the share payload as JSON instead of a table")
    parser.add_argument("--title", default="", help="Title to put in the share payload")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument("--workspace-storage", default=None,
                        help="Override Cursor's workspaceStorage directory")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    config = load_config(args.env_file)
    debug = args.debug or config.debug
    configure_logging(debug)
    if args.debug:
        update_config(debug=True)
    if args.workspace_storage:
        update_config(storage_root=pathlib.Path(args.workspace_storage).expanduser())

    if not args.json:
        show_intro()

    try:
        if args.json:
            messages = extract_conversation()
        else:
            with console.status("[bold blue]Reading local chat history...", spinner="dots"):
                messages = extract_conversation()
    except ExtractionEnvironmentError as e:
        console.print(Panel(str(e), title="Cannot read Cursor storage", border_style="red"))
        return 1

    if args.json:
        print(json.dumps(build_share_payload(args.title, messages), ensure_ascii=False, indent=2))
        return 0

    if not messages:
        console.print("[yellow]No conversation found in the active workspace.[/yellow]")
        return 0

    console.print(f"\n[bold]Found {len(messages)} messages:[/bold]\n")
    console.print(render_conversation(messages))
    return 0


if __name__ == "__main__":
    sys.exit(main())
