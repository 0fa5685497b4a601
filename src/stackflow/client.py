"""
Thin facade over the boto3 CloudFormation client.

Each method maps to one API call and returns the raw response pieces the
lifecycle logic needs. Event pagination is left to the callers so they control
ordering and error handling per page.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import boto3
from botocore.config import Config

from .config import ClientConfig


@dataclass(frozen=True)
class StackRequest:
    """Parameters for a create or update submission."""

    stack_name: str
    capabilities: Tuple[str, ...]
    template_body: str

    def to_api(self) -> Dict[str, Any]:
        return {
            "StackName": self.stack_name,
            "Capabilities": list(self.capabilities),
            "TemplateBody": self.template_body,
        }


class CloudFormationClient:
    """Typed access to the CloudFormation operations used by stackflow."""

    def __init__(self, config: Optional[ClientConfig] = None, client: Any = None):
        """
        Initialize the client.

        Args:
            config: Connection settings
            client: Pre-built boto3 client (skips session creation)
        """
        self.config = config or ClientConfig()
        self.cloudformation = client or self._create_client()

    def _create_client(self) -> Any:
        session_args: Dict[str, Any] = {}
        if self.config.region:
            session_args["region_name"] = self.config.region
        if self.config.profile:
            session_args["profile_name"] = self.config.profile
        session = boto3.Session(**session_args)

        config_args: Dict[str, Any] = {}
        if self.config.proxy:
            config_args["proxies"] = {
                "http": self.config.proxy,
                "https": self.config.proxy,
            }
        if self.config.max_attempts:
            config_args["retries"] = {
                "max_attempts": self.config.max_attempts,
                "mode": "standard",
            }

        client_args: Dict[str, Any] = {}
        if config_args:
            client_args["config"] = Config(**config_args)
        if self.config.endpoint_url:
            client_args["endpoint_url"] = self.config.endpoint_url

        return session.client("cloudformation", **client_args)

    def create_stack(self, request: StackRequest) -> Dict[str, Any]:
        return self.cloudformation.create_stack(**request.to_api())

    def update_stack(self, request: StackRequest) -> Dict[str, Any]:
        return self.cloudformation.update_stack(**request.to_api())

    def describe_stack(self, stack_name: str) -> Dict[str, Any]:
        """Return the first Stacks entry for ``stack_name``.

        Raises botocore ClientError when the stack does not exist.
        """
        response = self.cloudformation.describe_stacks(StackName=stack_name)
        return response["Stacks"][0]

    def list_stacks(
        self, next_token: Optional[str] = None, status_filter: Sequence[str] = ()
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Fetch one page of stack summaries.

        Returns:
            Tuple of (summaries, next token or None)
        """
        params: Dict[str, Any] = {}
        if next_token:
            params["NextToken"] = next_token
        if status_filter:
            params["StackStatusFilter"] = list(status_filter)

        response = self.cloudformation.list_stacks(**params)
        return response.get("StackSummaries", []), response.get("NextToken") or None

    def iter_stack_summaries(
        self, status_filter: Sequence[str] = ()
    ) -> Iterator[Dict[str, Any]]:
        """Yield every stack summary across all ListStacks pages."""
        params: Dict[str, Any] = {}
        if status_filter:
            params["StackStatusFilter"] = list(status_filter)

        paginator = self.cloudformation.get_paginator("list_stacks")
        for page in paginator.paginate(**params):
            yield from page.get("StackSummaries", [])

    def describe_stack_events(
        self, stack_name: str, next_token: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Fetch one page of stack events, newest first.

        Returns:
            Tuple of (events, next token or None)
        """
        params: Dict[str, Any] = {"StackName": stack_name}
        if next_token:
            params["NextToken"] = next_token

        response = self.cloudformation.describe_stack_events(**params)
        return response.get("StackEvents", []), response.get("NextToken") or None

    def delete_stack(self, stack_name: str) -> Dict[str, Any]:
        return self.cloudformation.delete_stack(StackName=stack_name)
