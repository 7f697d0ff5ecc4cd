"""accessindex CLI: Typer-based command-line interface.

Provides the ``accessindex`` command with subcommands for ingesting raw
event files, querying events, role members and ownership, and listing the
network registry.

All output uses Rich for formatted terminal display.
"""
