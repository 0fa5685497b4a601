"""
One-call helpers for the common stack operations.
"""

import re
from typing import Any, Dict, Optional, Union

from .cleanup import CleanupReport, CleanupScanner
from .stack_manager import StackManager
from .statuses import Action


def deploy(name: str, template: Any, **options: Any) -> Action:
    """Create or update ``name`` from ``template`` and wait for it to finish."""
    return StackManager(name, template, **options).create_or_update()


def stack_exists(name: str, **options: Any) -> bool:
    return StackManager(name, **options).stack_exists()


def delete(name: str, **options: Any) -> None:
    StackManager(name, **options).delete()


def outputs(name: str, **options: Any) -> Dict[str, str]:
    return StackManager(name, **options).outputs()


def cleanup(
    regex: Union[str, re.Pattern],
    minutes_old: Optional[float] = 0,
    dry_run: bool = False,
    limit: Optional[int] = None,
    max_workers: int = 4,
    **options: Any,
) -> CleanupReport:
    """Delete stacks matching ``regex`` older than ``minutes_old`` minutes."""
    scanner = CleanupScanner(StackManager(**options), max_workers=max_workers)
    return scanner.cleanup(regex, minutes_old=minutes_old, dry_run=dry_run, limit=limit)
