"""
stackflow - create, update, watch and clean up CloudFormation stacks.
"""

__version__ = "1.0.0"

from .cleanup import CleanupReport, CleanupScanner, StackSummary
from .client import CloudFormationClient, StackRequest
from .config import ClientConfig, DeployConfig, load_config
from .errors import (
    ConfigError,
    StackflowError,
    StackOperationFailed,
    StackOperationTimeout,
    TemplateError,
)
from .events import EventTracker, TrackerState
from .stack_manager import StackManager
from .statuses import Action

__all__ = [
    "Action",
    "CleanupReport",
    "CleanupScanner",
    "ClientConfig",
    "CloudFormationClient",
    "ConfigError",
    "DeployConfig",
    "EventTracker",
    "StackManager",
    "StackOperationFailed",
    "StackOperationTimeout",
    "StackRequest",
    "StackSummary",
    "StackflowError",
    "TemplateError",
    "TrackerState",
    "load_config",
]
