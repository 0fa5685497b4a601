"""
Configuration for stack deployments.

Settings are plain dataclasses passed explicitly to the objects that use
them. Deploy files are YAML, validated with a JSON schema before use.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from .errors import ConfigError
from .statuses import DEFAULT_CAPABILITIES, DEFAULT_POLL_INTERVAL_MS

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Connection settings for the CloudFormation client."""

    region: Optional[str] = None
    profile: Optional[str] = None
    proxy: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_attempts: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Create config from dictionary."""
        return cls(**data)


@dataclass
class DeployConfig:
    """Everything needed to create, update or delete one stack."""

    name: str
    template: Any = None
    params: Dict[str, Any] = field(default_factory=dict)
    capabilities: List[str] = field(default_factory=lambda: list(DEFAULT_CAPABILITIES))
    fire_and_forget: bool = False
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    max_wait: Optional[float] = None
    client: ClientConfig = field(default_factory=ClientConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeployConfig":
        """Create config from dictionary."""
        data = dict(data)
        client = data.pop("client", None) or {}
        if isinstance(client, dict):
            client = ClientConfig.from_dict(client)
        return cls(client=client, **data)


DEPLOY_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "template": {"type": ["string", "object"]},
        "params": {"type": "object"},
        "capabilities": {"type": "array", "items": {"type": "string"}},
        "fire_and_forget": {"type": "boolean"},
        "poll_interval_ms": {"type": "integer", "minimum": 1},
        "max_wait": {"type": ["number", "null"], "minimum": 0},
        "client": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "region": {"type": ["string", "null"]},
                "profile": {"type": ["string", "null"]},
                "proxy": {"type": ["string", "null"]},
                "endpoint_url": {"type": ["string", "null"]},
                "max_attempts": {"type": ["integer", "null"], "minimum": 1},
            },
        },
    },
}

CLIENT_KEYS = frozenset(f.name for f in fields(ClientConfig))


def merge_overrides(data: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override values into a config mapping.

    ``None`` overrides are ignored. Keys naming a ClientConfig field are
    merged into the nested ``client`` mapping.
    """
    merged = dict(data)
    client = dict(merged.get("client") or {})

    for key, value in overrides.items():
        if value is None:
            continue
        if key in CLIENT_KEYS:
            client[key] = value
        else:
            merged[key] = value

    if client:
        merged["client"] = client
    return merged


def validate_config(data: Dict[str, Any]) -> None:
    """Validate a deploy config mapping, raising ConfigError."""
    try:
        jsonschema.validate(data, DEPLOY_CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"Invalid deploy config at {location}: {e.message}") from e


def load_config(
    path: Optional[Union[str, Path]] = None, **overrides: Any
) -> DeployConfig:
    """Load a deploy config from YAML and apply overrides.

    Args:
        path: YAML file to read; when omitted only overrides are used
        overrides: Values that take precedence over the file (None is skipped)

    Returns:
        Validated DeployConfig
    """
    data: Dict[str, Any] = {}

    if path is not None:
        config_file = Path(path)
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        with open(config_file, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file} must contain a mapping")
        logger.debug(f"Loaded deploy config from {config_file}")

        # Relative template paths are resolved against the config file
        template = data.get("template")
        if isinstance(template, str) and not Path(template).is_absolute():
            data["template"] = str(config_file.parent / template)

    data = merge_overrides(data, overrides)
    validate_config(data)
    return DeployConfig.from_dict(data)
