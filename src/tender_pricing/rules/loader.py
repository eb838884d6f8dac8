"""
Loading rule configurations and tender items from JSON files

Two rule file layouts are accepted:

- Tree: {"root": {...nested children...}, "actions": [...], "rounding_policies": [...]}
- Flat: {"rules": [{"rule_id": ..., "parent_id": ...}, ...], "actions": [...], ...}

Loading is the one place where a bad configuration is fatal: a file that is
not valid JSON or does not match the schema raises ConfigurationError before
any item is priced.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from tender_pricing.kernel.errors import (
    ConfigFileNotFound,
    ConfigurationError,
    ItemsFileError,
)
from tender_pricing.kernel.logging import LogOperation, get_logger
from tender_pricing.pricing.models import Item
from tender_pricing.rules.models import FlatRule, RoundingPolicy, RuleAction, RuleConfig

logger = get_logger(__name__)

_items_adapter = TypeAdapter(list[Item])


class FlatRuleDocument(BaseModel):
    """On-disk layout of a flat rule table"""

    rules: list[FlatRule]
    actions: list[RuleAction] = Field(default_factory=list)
    rounding_policies: list[RoundingPolicy] = Field(default_factory=list)
    name: str = "default"


def parse_rule_config(data: dict[str, Any], source: str = "<memory>") -> RuleConfig:
    """
    Build a RuleConfig from an already-decoded document

    Args:
        data: Decoded JSON object (tree or flat layout)
        source: Where the data came from (for error messages)

    Raises:
        ConfigurationError: If the document matches neither layout, fails
            validation, or links flat rules into duplicates or cycles
    """
    if not isinstance(data, dict):
        raise ConfigurationError(source, "top-level JSON value must be an object")

    try:
        if "rules" in data:
            doc = FlatRuleDocument.model_validate(data)
            return RuleConfig.from_flat_rules(
                doc.rules,
                actions=doc.actions,
                rounding_policies=doc.rounding_policies,
                name=doc.name,
            )
        if "root" in data:
            return RuleConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(source, _summarize(exc)) from exc
    except ConfigurationError as exc:
        raise ConfigurationError(source, exc.reason) from exc

    raise ConfigurationError(source, "expected a 'root' tree or a 'rules' table")


def load_rule_config(path: str | Path) -> RuleConfig:
    """
    Load a rule configuration file

    Args:
        path: JSON file path

    Returns:
        Parsed RuleConfig

    Raises:
        ConfigFileNotFound: If the file does not exist
        ConfigurationError: If the file is not valid JSON or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileNotFound(path)

    with LogOperation(logger, "load_rule_config", path=str(path)):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(str(path), f"invalid JSON ({exc})") from exc
        return parse_rule_config(data, source=str(path))


def dump_rule_config(config: RuleConfig, path: str | Path) -> None:
    """Write a rule configuration as a tree-layout JSON file"""
    Path(path).write_text(config.model_dump_json(indent=2), encoding="utf-8")


def load_items(path: str | Path) -> list[Item]:
    """
    Load tender items from a JSON list

    Args:
        path: JSON file path

    Returns:
        Items in file order

    Raises:
        ItemsFileError: If the file is missing, not JSON, or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ItemsFileError(path, "file not found")

    try:
        return _items_adapter.validate_json(path.read_bytes())
    except ValidationError as exc:
        raise ItemsFileError(path, _summarize(exc)) from exc


def _summarize(exc: ValidationError) -> str:
    errors = exc.errors()
    first = errors[0]
    location = ".".join(str(part) for part in first["loc"])
    more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{location}: {first['msg']}{more}"
