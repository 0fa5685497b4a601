"""
CloudFormation stack lifecycle operations.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from .client import CloudFormationClient, StackRequest
from .clock import Clock, utcnow
from .config import ClientConfig, DeployConfig
from .display import EventSink
from .events import EventTracker
from .scheduler import Ticker, ticker_for
from .statuses import DEFAULT_CAPABILITIES, DEFAULT_POLL_INTERVAL_MS, Action, is_existing
from .submitter import OperationSubmitter
from .templates import load_template

logger = logging.getLogger(__name__)

TickerFactory = Callable[[int], Ticker]


class StackManager:
    """Create, update and delete one CloudFormation stack and wait for the result."""

    def __init__(
        self,
        name: Optional[str] = None,
        template: Any = None,
        params: Optional[Dict[str, Any]] = None,
        capabilities: Optional[Iterable[str]] = None,
        fire_and_forget: bool = False,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        max_wait: Optional[float] = None,
        client: Optional[CloudFormationClient] = None,
        client_config: Optional[ClientConfig] = None,
        sink: Optional[EventSink] = None,
        ticker_factory: Optional[TickerFactory] = None,
        clock: Clock = utcnow,
    ):
        """
        Initialize stack manager.

        Args:
            name: Stack name
            template: Template reference (see stackflow.templates)
            params: Parameters for callable Python templates
            capabilities: Capabilities acknowledged on create/update
            fire_and_forget: Return right after submission instead of waiting
            poll_interval_ms: Delay between event polls
            max_wait: Seconds to wait for a terminal status (None waits forever)
            client: CloudFormation client adapter (built from client_config if omitted)
            client_config: Connection settings used to build the client
            sink: Receives formatted event lines (defaults to the console)
            ticker_factory: Builds the poll driver from an interval in ms
            clock: Source of the current UTC time
        """
        self.name = name
        self.template = template
        self.params = params or {}
        self.capabilities = tuple(capabilities or DEFAULT_CAPABILITIES)
        self.fire_and_forget = fire_and_forget
        self.poll_interval_ms = poll_interval_ms
        self.max_wait = max_wait
        self.client = client or CloudFormationClient(client_config)
        self.sink = sink
        self.ticker_factory = ticker_factory or ticker_for
        self.clock = clock
        self.submitter = OperationSubmitter(self.client, clock=clock)

    @classmethod
    def from_config(cls, config: DeployConfig, **kwargs: Any) -> "StackManager":
        """Build a manager from a DeployConfig."""
        return cls(
            name=config.name,
            template=config.template,
            params=config.params,
            capabilities=config.capabilities,
            fire_and_forget=config.fire_and_forget,
            poll_interval_ms=config.poll_interval_ms,
            max_wait=config.max_wait,
            client_config=config.client,
            **kwargs,
        )

    def _stack_name(self, override_name: Optional[str] = None) -> str:
        stack_name = override_name or self.name
        if not stack_name:
            raise ValueError("No stack name given")
        return stack_name

    def stack_exists(self, override_name: Optional[str] = None) -> bool:
        """Check whether the stack is in a state that accepts an update.

        Never raises; any error counts as "does not exist".
        """
        stack_name = override_name or self.name
        if not stack_name:
            return False
        try:
            stack = self.client.describe_stack(stack_name)
        except Exception as e:
            logger.debug(f"Treating {stack_name} as absent: {e}")
            return False
        return is_existing(stack.get("StackStatus", ""))

    def wait_for(self, action: Action, stack_name: str, started_at: datetime) -> None:
        """Poll events for ``stack_name`` until the action finishes."""
        tracker = EventTracker(
            self.client,
            action,
            stack_name,
            started_at,
            sink=self.sink,
            max_wait=self.max_wait,
            clock=self.clock,
        )
        tracker.wait(self.ticker_factory(self.poll_interval_ms))

    def create_or_update(self) -> Action:
        """Create the stack if absent, update it otherwise.

        Returns:
            The action that was performed
        """
        stack_name = self._stack_name()
        action = Action.UPDATE if self.stack_exists() else Action.CREATE

        request = StackRequest(
            stack_name=stack_name,
            capabilities=self.capabilities,
            template_body=load_template(self.template, self.params),
        )
        submission = self.submitter.submit(action, request)

        if self.fire_and_forget:
            logger.info(f"Submitted {action.value} for {stack_name}, not waiting")
            return action

        self.wait_for(action, stack_name, submission.started_at)
        logger.info(f"Stack {stack_name} {action.value} complete")
        return action

    def delete(self, override_name: Optional[str] = None) -> None:
        """Delete the stack; a stack that does not exist counts as deleted."""
        stack_name = self._stack_name(override_name)
        started_at = self.clock()

        logger.info(f"Deleting stack {stack_name}")
        self.client.delete_stack(stack_name)

        if self.fire_and_forget:
            return

        self.wait_for(Action.DELETE, stack_name, started_at)
        logger.info(f"Stack {stack_name} delete complete")

    def outputs(self, override_name: Optional[str] = None) -> Dict[str, str]:
        """Get stack outputs as an OutputKey -> OutputValue mapping."""
        stack = self.client.describe_stack(self._stack_name(override_name))
        return {
            output["OutputKey"]: output["OutputValue"]
            for output in stack.get("Outputs", [])
        }
