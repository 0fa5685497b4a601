"""
Bulk deletion of stacks matching a name pattern and a minimum age.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from .clock import Clock, as_utc, utcnow
from .stack_manager import StackManager
from .statuses import CLEANUP_STATUS_FILTER

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class StackSummary:
    """The ListStacks fields cleanup works with."""

    stack_name: str
    stack_status: str
    creation_time: datetime

    @classmethod
    def from_api(cls, summary: Dict[str, Any]) -> "StackSummary":
        return cls(
            stack_name=summary["StackName"],
            stack_status=summary["StackStatus"],
            creation_time=as_utc(summary["CreationTime"]),
        )


@dataclass
class CleanupReport:
    """What a cleanup pass selected and what happened to each stack."""

    selected: Tuple[StackSummary, ...] = ()
    deleted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    dry_run: bool = False


class CleanupScanner:
    """Find old stacks by name pattern and delete them through a StackManager."""

    def __init__(
        self,
        manager: StackManager,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Clock = utcnow,
    ):
        """
        Initialize the scanner.

        Args:
            manager: Manager whose delete path is used for every stack
            max_workers: Upper bound on deletes in flight at once
            clock: Source of the current UTC time
        """
        self.manager = manager
        self.client = manager.client
        self.max_workers = max(1, max_workers)
        self.clock = clock

    def list_stacks(self) -> List[StackSummary]:
        """List all stacks in a cleanable status."""
        return [
            StackSummary.from_api(summary)
            for summary in self.client.iter_stack_summaries(CLEANUP_STATUS_FILTER)
        ]

    def select(
        self,
        stacks: List[StackSummary],
        regex: Union[str, re.Pattern],
        minutes_old: Optional[float] = 0,
        limit: Optional[int] = None,
    ) -> Tuple[StackSummary, ...]:
        """Filter by name and age, oldest first, keeping at most ``limit``."""
        pattern = re.compile(regex) if isinstance(regex, str) else regex
        cutoff = self.clock() - timedelta(minutes=minutes_old or 0)

        matched = [
            stack
            for stack in stacks
            if pattern.search(stack.stack_name) and stack.creation_time < cutoff
        ]
        matched.sort(key=lambda s: s.creation_time)

        if limit:
            matched = matched[:limit]
        return tuple(matched)

    def cleanup(
        self,
        regex: Union[str, re.Pattern],
        minutes_old: Optional[float] = 0,
        dry_run: bool = False,
        limit: Optional[int] = None,
    ) -> CleanupReport:
        """
        Delete every stack matching ``regex`` created over ``minutes_old`` minutes ago.

        A failing delete is logged and recorded; the rest of the batch continues.

        Args:
            regex: Pattern searched for in stack names
            minutes_old: Minimum age in minutes (0 disables the age filter)
            dry_run: Only report what would be deleted
            limit: Delete at most this many stacks, oldest first

        Returns:
            CleanupReport
        """
        selected = self.select(self.list_stacks(), regex, minutes_old, limit)
        report = CleanupReport(selected=selected, dry_run=dry_run)

        if not selected:
            logger.info("No stacks to clean up")
            return report

        if dry_run:
            for stack in selected:
                logger.info(f"Will clean up {stack.stack_name} Created {stack.creation_time}")
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_map = {}
            for stack in selected:
                logger.info(f"Cleaning up {stack.stack_name} Created {stack.creation_time}")
                future = executor.submit(self.manager.delete, stack.stack_name)
                future_map[future] = stack.stack_name

            for future in as_completed(future_map):
                name = future_map[future]
                try:
                    future.result()
                except Exception as e:
                    logger.error(f"Error deleting stack {name}: {e}")
                    report.failed[name] = str(e)
                else:
                    report.deleted.append(name)

        return report
