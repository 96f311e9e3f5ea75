"""CLI output formatting functions.

This module contains functions for displaying sync plans and settings
to the command line.
"""

from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from gsuite_dirsync.sync.engine import SyncPlan

# Entries shown per section before truncating
MAX_LISTED = 10


def _echo_section(title: str, marker: str, lines: list[str]) -> None:
    if not lines:
        return
    click.echo(f"\n{title}:")
    for line in lines[:MAX_LISTED]:
        click.echo(f"  {marker} {line}")
    if len(lines) > MAX_LISTED:
        click.echo(f"  ... and {len(lines) - MAX_LISTED} more")


def show_detailed_changes(plan: "SyncPlan") -> None:
    """
    Display the contacts a plan would touch.

    Args:
        plan: The SyncPlan to display
    """
    click.echo("\n=== Detailed Changes ===")

    if not plan.has_changes():
        click.echo("\nNo changes needed, contacts are in sync.")
        return

    _echo_section(
        "Contacts to create",
        "+",
        [f"{user.display_name} <{user.lookup_key()}>" for user in plan.to_create],
    )
    _echo_section(
        "Contacts to update",
        "~",
        [
            f"{update.user.display_name} <{update.user.lookup_key()}>"
            for update in plan.to_update
        ],
    )
    _echo_section(
        "Contacts to delete",
        "-",
        [deletion.key for deletion in plan.to_delete],
    )


def show_settings(settings: dict[str, Any], domain: str) -> None:
    """
    Display a redacted settings summary.

    Args:
        settings: Output of Settings.redacted()
        domain: Domain whose shared contacts are synced
    """
    click.echo("\nSettings:")
    for key, value in settings.items():
        click.echo(f"  {key}: {value}")
    click.echo(f"  domain: {domain}")
