"""
Create or update submission for a stack.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from .client import CloudFormationClient, StackRequest
from .clock import Clock, utcnow
from .errors import ErrorKind, classify_error
from .statuses import Action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submission:
    """Outcome of a submitted stack change."""

    action: Action
    stack_name: str
    started_at: datetime
    changed: bool = True


class OperationSubmitter:
    """Submit create/update calls and normalize no-op updates."""

    def __init__(self, client: CloudFormationClient, clock: Clock = utcnow):
        self.client = client
        self.clock = clock

    def submit(self, action: Action, request: StackRequest) -> Submission:
        """
        Submit a stack change.

        The watermark is taken immediately before the API call so events
        from earlier operations can be told apart.

        Args:
            action: Action.CREATE or Action.UPDATE
            request: Stack name, capabilities and template body

        Returns:
            Submission carrying the watermark; ``changed`` is False when the
            update had nothing to do
        """
        action = Action(action)
        if action not in (Action.CREATE, Action.UPDATE):
            raise ValueError(f"Cannot submit a {action.value} as a stack change")

        started_at = self.clock()

        if action is Action.CREATE:
            logger.info(f"Creating stack {request.stack_name}")
            self.client.create_stack(request)
            return Submission(action, request.stack_name, started_at)

        logger.info(f"Updating stack {request.stack_name}")
        try:
            self.client.update_stack(request)
        except Exception as e:
            if classify_error(e) is not ErrorKind.NO_UPDATES:
                raise
            logger.info(f"No updates to perform on {request.stack_name}")
            return Submission(action, request.stack_name, started_at, changed=False)

        return Submission(action, request.stack_name, started_at)
