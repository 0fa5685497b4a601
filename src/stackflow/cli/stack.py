#!/usr/bin/env python3
"""
Stack lifecycle CLI commands.
"""

import functools
import json
import sys
from typing import Any, Callable, Dict, Optional, Tuple

import click

from stackflow.cleanup import CleanupScanner
from stackflow.config import ClientConfig, load_config
from stackflow.stack_manager import StackManager
from stackflow.statuses import DEFAULT_POLL_INTERVAL_MS


def client_options(func: Callable) -> Callable:
    """Attach the AWS connection options shared by every command."""

    @click.option("--region", help="AWS region")
    @click.option("--profile", help="AWS profile to use")
    @click.option("--proxy", envvar="PROXY", help="HTTPS proxy URL (env: PROXY)")
    @click.option("--endpoint-url", help="Override the CloudFormation endpoint")
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper


def build_client_config(region, profile, proxy, endpoint_url) -> ClientConfig:
    return ClientConfig(
        region=region, profile=profile, proxy=proxy, endpoint_url=endpoint_url
    )


def parse_params(values: Tuple[str, ...]) -> Optional[Dict[str, str]]:
    """Parse repeated KEY=VALUE options."""
    if not values:
        return None
    params = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{value}'", param_hint="--param")
        params[key.strip()] = val
    return params


@click.group()
def main() -> None:
    """CloudFormation stack lifecycle commands."""
    pass


@main.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), help="Deploy config YAML file")
@click.option("--stack-name", "-s", help="CloudFormation stack name")
@click.option("--template", "-t", help="Template file (.json, .yaml, .yml or .py)")
@click.option("--param", "-p", "params", multiple=True, help="Template parameter KEY=VALUE (repeatable)")
@click.option("--capability", "capabilities", multiple=True, help="Capability to acknowledge (repeatable)")
@click.option("--no-wait", is_flag=True, help="Return after submission without waiting")
@click.option("--poll-interval", type=int, help="Milliseconds between event polls")
@click.option("--max-wait", type=float, help="Give up waiting after this many seconds")
@client_options
def deploy(
    config_path,
    stack_name,
    template,
    params,
    capabilities,
    no_wait,
    poll_interval,
    max_wait,
    region,
    profile,
    proxy,
    endpoint_url,
) -> None:
    """Create the stack if it does not exist, update it otherwise."""
    try:
        config = load_config(
            config_path,
            name=stack_name,
            template=template,
            params=parse_params(params),
            capabilities=list(capabilities) or None,
            fire_and_forget=no_wait or None,
            poll_interval_ms=poll_interval,
            max_wait=max_wait,
            region=region,
            profile=profile,
            proxy=proxy,
            endpoint_url=endpoint_url,
        )

        manager = StackManager.from_config(config)
        action = manager.create_or_update()

        if config.fire_and_forget:
            click.echo(f"Submitted {action.value} for stack {config.name}")
        else:
            click.echo(f"✅ Stack {config.name} {action.value} complete")

    except click.ClickException:
        raise
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option("--no-wait", is_flag=True, help="Return after submission without waiting")
@click.option("--poll-interval", type=int, default=DEFAULT_POLL_INTERVAL_MS, help="Milliseconds between event polls")
@click.option("--max-wait", type=float, help="Give up waiting after this many seconds")
@client_options
def delete(stack_name, no_wait, poll_interval, max_wait, region, profile, proxy, endpoint_url) -> None:
    """Delete a CloudFormation stack."""
    try:
        manager = StackManager(
            stack_name,
            fire_and_forget=no_wait,
            poll_interval_ms=poll_interval,
            max_wait=max_wait,
            client_config=build_client_config(region, profile, proxy, endpoint_url),
        )
        manager.delete()

        if not no_wait:
            click.echo(f"✅ Stack {stack_name} deleted")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@client_options
def exists(stack_name, region, profile, proxy, endpoint_url) -> None:
    """Exit 0 if the stack exists and can be updated, 1 otherwise."""
    manager = StackManager(
        stack_name,
        client_config=build_client_config(region, profile, proxy, endpoint_url),
    )
    found = manager.stack_exists()
    click.echo("true" if found else "false")
    if not found:
        sys.exit(1)


@main.command()
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option("--output-key", "-o", help="Print only this output value")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@client_options
def outputs(stack_name, output_key, output_json, region, profile, proxy, endpoint_url) -> None:
    """Show stack outputs."""
    try:
        manager = StackManager(
            stack_name,
            client_config=build_client_config(region, profile, proxy, endpoint_url),
        )
        values = manager.outputs()

        if output_key:
            if output_key not in values:
                click.echo(
                    f"Output '{output_key}' not found in stack {stack_name}", err=True
                )
                sys.exit(1)
            click.echo(values[output_key])
        elif output_json:
            click.echo(json.dumps(values, indent=2))
        else:
            for key, value in values.items():
                click.echo(f"{key}: {value}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option("--regex", "-r", required=True, help="Pattern searched for in stack names")
@click.option("--minutes-old", "-m", type=float, default=0, help="Only stacks created at least this many minutes ago")
@click.option("--limit", "-l", type=int, help="Delete at most this many stacks, oldest first")
@click.option("--dry-run", is_flag=True, help="Only list the stacks that would be deleted")
@click.option("--no-wait", is_flag=True, help="Do not wait for each delete to finish")
@click.option("--max-workers", type=int, default=4, help="Deletes in flight at once")
@click.option("--poll-interval", type=int, default=DEFAULT_POLL_INTERVAL_MS, help="Milliseconds between event polls")
@client_options
def cleanup(
    regex,
    minutes_old,
    limit,
    dry_run,
    no_wait,
    max_workers,
    poll_interval,
    region,
    profile,
    proxy,
    endpoint_url,
) -> None:
    """Delete stacks matching a pattern and older than a threshold."""
    try:
        manager = StackManager(
            fire_and_forget=no_wait,
            poll_interval_ms=poll_interval,
            client_config=build_client_config(region, profile, proxy, endpoint_url),
        )
        scanner = CleanupScanner(manager, max_workers=max_workers)
        report = scanner.cleanup(
            regex, minutes_old=minutes_old, dry_run=dry_run, limit=limit
        )

        if not report.selected:
            click.echo("No stacks matched")
            return

        for stack in report.selected:
            prefix = "Would delete" if dry_run else "Selected"
            click.echo(f"{prefix} {stack.stack_name:<40} {stack.creation_time}")

        if report.failed:
            click.echo(f"\n❌ {len(report.failed)} stack(s) failed to delete:", err=True)
            for name, reason in report.failed.items():
                click.echo(f"  - {name}: {reason}", err=True)
            sys.exit(1)

        if not dry_run:
            click.echo(f"\n✅ Cleaned up {len(report.deleted)} stack(s)")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
