"""
Template resolution.

A template reference is one of:

* a mapping (or list) that is serialized to JSON,
* an object with ``to_json`` such as a troposphere ``Template``,
* a path to a ``.py`` module exposing ``template`` (a value, or a callable
  taking the parameters mapping),
* a path to a JSON/YAML template file, sent as-is.
"""

import importlib.util
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import TemplateError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class CloudFormationYAMLLoader(yaml.SafeLoader):
    """YAML loader that accepts CloudFormation intrinsic function tags."""


def cfn_tag_constructor(loader, tag_suffix, node):
    """Generic constructor for CloudFormation tags."""
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    elif isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node)
    raise yaml.constructor.ConstructorError(
        None,
        None,
        f"could not determine a constructor for the tag '!{tag_suffix}'",
        node.start_mark,
    )


CFN_TAGS = [
    "Ref", "GetAtt", "GetAZs", "ImportValue", "Join", "Select",
    "Split", "Sub", "Transform", "Base64", "Cidr", "FindInMap",
    "GetParam", "Condition", "Equals", "If", "Not", "And", "Or",
]

for tag in CFN_TAGS:
    CloudFormationYAMLLoader.add_constructor(
        f"!{tag}",
        lambda loader, node, tag=tag: cfn_tag_constructor(loader, tag, node),
    )


def serialize(template: Any) -> str:
    """Serialize an in-memory template to a JSON body."""
    if hasattr(template, "to_json"):
        return str(template.to_json())
    try:
        return json.dumps(template)
    except TypeError as e:
        raise TemplateError(f"Template is not JSON serializable: {e}") from e


def _load_module(path: Path) -> Any:
    module_name = f"stackflow_template_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise TemplateError(f"Cannot import template module {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def load_python_template(path: Path, params: Optional[Dict[str, Any]] = None) -> str:
    """Import ``path`` and serialize its ``template`` attribute."""
    module = _load_module(path)
    if not hasattr(module, "template"):
        raise TemplateError(f"{path} does not define 'template'")

    template = module.template
    if callable(template):
        template = template(params or {})
    return serialize(template)


def read_template_file(path: Path) -> str:
    """Read a template file; YAML bodies must at least parse."""
    body = path.read_text(encoding="utf-8")
    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            yaml.load(body, Loader=CloudFormationYAMLLoader)
        except yaml.YAMLError as e:
            raise TemplateError(f"Invalid YAML template {path}: {e}") from e
    return body


def load_template(template: Any, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Resolve a template reference into a template body.

    Args:
        template: Mapping, troposphere Template, or path to a template file/module
        params: Parameters handed to callable Python templates

    Returns:
        Template body string
    """
    if template is None:
        raise TemplateError("No template given")

    if not isinstance(template, (str, Path)):
        return serialize(template)

    path = Path(template)
    if not path.exists():
        raise TemplateError(f"Template not found: {path}")

    logger.debug(f"Loading template from {path}")
    if path.suffix == ".py":
        return load_python_template(path, params)
    return read_template_file(path)
