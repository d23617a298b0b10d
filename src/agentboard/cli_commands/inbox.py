"""``agentboard inbox``: subscriptions and notifications for one agent."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import get_args

import click

from agentboard.cli_commands._output import (
    console,
    print_models_json,
    print_notifications_table,
    print_subscriptions_table,
)
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime
from agentboard.core.blackboard.models import FindingSeverity
from agentboard.core.events.models import PatternType, SubscriptionFilters


@click.group()
def inbox() -> None:
    """Subscribe to events and read notifications."""


@inbox.command("subscribe")
@click.argument("agent_id")
@click.option(
    "--pattern", "pattern_type", type=click.Choice(get_args(PatternType)), required=True
)
@click.option("--value", "pattern_value", required=True, help="Value the pattern must equal.")
@click.option(
    "--severity",
    type=click.Choice(get_args(FindingSeverity)),
    multiple=True,
    help="Only events with this severity (repeatable).",
)
@click.option("--include-self", is_flag=True, help="Also notify on the agent's own events.")
@click.option("--expires", type=click.DateTime(), default=None, help="Expiry time (UTC).")
@pass_runtime
def subscribe(
    runtime: BoardRuntime,
    agent_id: str,
    pattern_type: PatternType,
    pattern_value: str,
    severity: tuple[FindingSeverity, ...],
    include_self: bool,
    expires: datetime | None,
) -> None:
    """Subscribe AGENT_ID to matching events."""
    filters = SubscriptionFilters(severity=list(severity) or None, exclude_self=not include_self)
    sub = runtime.run(
        lambda board: board.events.subscribe(
            agent_id, pattern_type, pattern_value, filters=filters, expires_at=expires
        )
    )
    console.print(f"[green]Subscribed:[/green] {sub.id} ({pattern_type}={pattern_value})")


@inbox.command("unsubscribe")
@click.argument("agent_id")
@click.argument("subscription_id")
@pass_runtime
def unsubscribe(runtime: BoardRuntime, agent_id: str, subscription_id: str) -> None:
    """Cancel SUBSCRIPTION_ID."""
    if not runtime.run(lambda board: board.events.cancel(agent_id, subscription_id)):
        console.print(f"[yellow]No active subscription {subscription_id}.[/yellow]")
        sys.exit(1)
    console.print(f"[green]Cancelled:[/green] {subscription_id}")


@inbox.command("subscriptions")
@click.argument("agent_id")
@pass_runtime
def subscriptions(runtime: BoardRuntime, agent_id: str) -> None:
    """List AGENT_ID's active subscriptions."""
    subs = runtime.run(lambda board: board.events.list(agent_id))
    if not subs:
        console.print("[yellow]No active subscriptions.[/yellow]")
        return
    print_subscriptions_table(subs)


@inbox.command("list")
@click.argument("agent_id")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def list_unread(runtime: BoardRuntime, agent_id: str, limit: int, as_json: bool) -> None:
    """Show AGENT_ID's unread notifications, newest first."""
    notes = runtime.run(lambda board: board.mailbox.get_unread(agent_id, limit))

    if not notes:
        console.print("[yellow]No unread notifications.[/yellow]")
        return

    if as_json:
        print_models_json(notes)
    else:
        print_notifications_table(notes)


@inbox.command("count")
@click.argument("agent_id")
@pass_runtime
def count(runtime: BoardRuntime, agent_id: str) -> None:
    """Show unread and total notification counts."""
    counts = runtime.run(lambda board: board.mailbox.get_count(agent_id))
    console.print(f"{counts.unread} unread / {counts.total} total")


@inbox.command("read")
@click.argument("agent_id")
@click.argument("notification_id", required=False)
@click.option("--all", "read_all", is_flag=True, help="Mark every unread notification read.")
@click.option("--dismiss", is_flag=True, help="Dismiss instead of marking read.")
@pass_runtime
def read(
    runtime: BoardRuntime,
    agent_id: str,
    notification_id: str | None,
    read_all: bool,
    dismiss: bool,
) -> None:
    """Mark NOTIFICATION_ID (or --all) read."""
    if read_all:
        marked = runtime.run(lambda board: board.mailbox.mark_all_read(agent_id))
        console.print(f"[green]Marked {marked} notification(s) read.[/green]")
        return

    if notification_id is None:
        raise click.UsageError("Give a NOTIFICATION_ID or --all")

    if dismiss:
        ok = runtime.run(lambda board: board.mailbox.dismiss(agent_id, notification_id))
    else:
        ok = runtime.run(lambda board: board.mailbox.mark_read(agent_id, notification_id))
    if not ok:
        console.print(f"[red]Notification not found:[/red] {notification_id}")
        sys.exit(1)
    console.print(f"[green]{'Dismissed' if dismiss else 'Read'}:[/green] {notification_id}")
