"""
Exceptions raised by stack operations and provider error classification.

All matching against CloudFormation error codes and messages lives in
``classify_error`` so the rules can follow changes to the provider's
error format in one place.
"""

import re
from enum import Enum
from typing import Optional, Tuple

from botocore.exceptions import ClientError


class StackflowError(Exception):
    """Base class for stackflow errors."""


class StackOperationFailed(StackflowError):
    """A stack-level event reported a failure during the current operation."""

    def __init__(self, action: str, stack_name: str, reason: Optional[str] = None):
        self.action = action
        self.stack_name = stack_name
        self.reason = reason
        message = f"{stack_name} {action.upper()} Failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class StackOperationTimeout(StackflowError):
    """The stack did not reach a terminal status within the allowed time."""

    def __init__(self, action: str, stack_name: str, waited: float):
        self.action = action
        self.stack_name = stack_name
        self.waited = waited
        super().__init__(
            f"{stack_name} {action.upper()} did not finish within {waited:.0f}s"
        )


class TemplateError(StackflowError):
    """A template reference could not be turned into a template body."""


class ConfigError(StackflowError):
    """A configuration file is missing or invalid."""


class ErrorKind(Enum):
    """Provider error categories the lifecycle logic reacts to."""

    NOT_FOUND = "not_found"
    THROTTLED = "throttled"
    NO_UPDATES = "no_updates"
    OTHER = "other"


THROTTLING_CODES = frozenset(
    ["Throttling", "ThrottlingException", "RequestLimitExceeded", "TooManyRequestsException"]
)

# Matched against "<Code>: <Message>" as well as botocore's rendering of the error
NOT_FOUND_PATTERN = re.compile(r"ValidationError\W+.*Stack\s+\[?.+?\]?\s+does not exist")
THROTTLING_PATTERN = re.compile(r"Throttling\W+.*Rate\s+exceeded", re.IGNORECASE)
NO_UPDATES_PATTERN = re.compile(r"no updates are to be performed", re.IGNORECASE)


def _code_and_message(exc: BaseException) -> Tuple[str, str]:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return str(error.get("Code", "")), str(error.get("Message", ""))
    return "", str(exc)


def classify_error(exc: BaseException) -> ErrorKind:
    """Classify a provider exception.

    Args:
        exc: Exception raised by a CloudFormation API call

    Returns:
        The matching ErrorKind, OTHER when no rule applies
    """
    code, message = _code_and_message(exc)
    candidates = [f"{code}: {message}", str(exc)]

    if NO_UPDATES_PATTERN.search(message) or NO_UPDATES_PATTERN.search(str(exc)):
        return ErrorKind.NO_UPDATES

    if code == "ValidationError" and "does not exist" in message:
        return ErrorKind.NOT_FOUND
    if any(NOT_FOUND_PATTERN.search(text) for text in candidates):
        return ErrorKind.NOT_FOUND

    if code in THROTTLING_CODES:
        return ErrorKind.THROTTLED
    if any(THROTTLING_PATTERN.search(text) for text in candidates):
        return ErrorKind.THROTTLED

    return ErrorKind.OTHER
