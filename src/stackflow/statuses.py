"""
CloudFormation status classification and display constants.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"

DEFAULT_CAPABILITIES = ("CAPABILITY_IAM",)
DEFAULT_POLL_INTERVAL_MS = 5000


class Action(str, Enum):
    """Stack operation kinds."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


SUCCESS_STATUSES: FrozenSet[str] = frozenset(
    [
        "CREATE_COMPLETE",
        "DELETE_COMPLETE",
        "UPDATE_COMPLETE",
    ]
)

FAILURE_STATUSES: FrozenSet[str] = frozenset(
    [
        "ROLLBACK_FAILED",
        "ROLLBACK_IN_PROGRESS",
        "ROLLBACK_COMPLETE",
        "UPDATE_ROLLBACK_IN_PROGRESS",
        "UPDATE_ROLLBACK_COMPLETE",
        "UPDATE_FAILED",
        "DELETE_FAILED",
    ]
)

# A stack in one of these states can take an UpdateStack call
EXISTS_STATUSES: FrozenSet[str] = frozenset(
    [
        "CREATE_COMPLETE",
        "UPDATE_COMPLETE",
        "ROLLBACK_COMPLETE",
        "UPDATE_ROLLBACK_COMPLETE",
    ]
)

CLEANUP_STATUS_FILTER: Tuple[str, ...] = (
    "CREATE_COMPLETE",
    "CREATE_FAILED",
    "DELETE_FAILED",
    "ROLLBACK_COMPLETE",
    "UPDATE_COMPLETE",
)

STATUS_COLORS: Dict[str, str] = {
    "CREATE_IN_PROGRESS": "bright_black",
    "CREATE_COMPLETE": "green",
    "CREATE_FAILED": "red",
    "DELETE_IN_PROGRESS": "bright_black",
    "DELETE_COMPLETE": "green",
    "DELETE_FAILED": "red",
    "ROLLBACK_FAILED": "red",
    "ROLLBACK_IN_PROGRESS": "yellow",
    "ROLLBACK_COMPLETE": "red",
    "UPDATE_IN_PROGRESS": "bright_black",
    "UPDATE_COMPLETE": "green",
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS": "green",
    "UPDATE_ROLLBACK_IN_PROGRESS": "yellow",
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS": "yellow",
    "UPDATE_ROLLBACK_FAILED": "red",
    "UPDATE_ROLLBACK_COMPLETE": "red",
    "UPDATE_FAILED": "red",
}

ACTION_VERBS: Dict[Action, str] = {
    Action.CREATE: "Creating",
    Action.DELETE: "Deleting",
    Action.UPDATE: "Updating",
}


def is_success(status: str) -> bool:
    return status in SUCCESS_STATUSES


def is_failure(status: str) -> bool:
    return status in FAILURE_STATUSES


def is_existing(status: str) -> bool:
    return status in EXISTS_STATUSES
