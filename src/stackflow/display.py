"""
One-line rendering of stack events for the console.
"""

from typing import Any, Callable, Dict, Optional

import click

from .clock import as_utc
from .statuses import ACTION_VERBS, STATUS_COLORS, Action

EventSink = Callable[[str], None]


def format_event(event: Dict[str, Any], action: Action, stack_name: str) -> str:
    """Format an event as ``[time] Verb stack: type - logical-id  STATUS  reason``."""
    status = event.get("ResourceStatus", "")
    color = STATUS_COLORS.get(status)
    timestamp = as_utc(event["Timestamp"]).strftime("%H:%M:%S")

    return "[{}] {} {}: {} - {}  {}  {}".format(
        click.style(timestamp, fg="bright_black"),
        ACTION_VERBS[action],
        click.style(stack_name, fg="cyan"),
        event.get("ResourceType", ""),
        event.get("LogicalResourceId", ""),
        click.style(status, fg=color) if color else status,
        event.get("ResourceStatusReason") or "",
    )


def echo_sink(line: str) -> None:
    click.echo(line)


def resolve_sink(sink: Optional[EventSink]) -> EventSink:
    return sink if sink is not None else echo_sink
