"""
Configuration Loader (``inventory_config.loader``).

Loads a movement policy YAML file and turns its ``movements`` section into
a validated ``MovementConfig``.  Runtime callers go through
``inventory_config.get_movement_config()``; this module is its tooling.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or non-mapping ``movements`` section, unknown keys or invalid
  values  -> ``InvalidPolicyConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_kernel.exceptions import InvalidPolicyConfigError
from inventory_modules.movements.config import MovementConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidPolicyConfigError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidPolicyConfigError("<root>", "policy file must contain a mapping")
    return data


def parse_movement_config(data: dict[str, Any]) -> MovementConfig:
    """Build a ``MovementConfig`` from the ``movements`` section."""
    section = data.get("movements")
    if section is None:
        raise InvalidPolicyConfigError("movements", "section is required")
    if not isinstance(section, dict):
        raise InvalidPolicyConfigError("movements", "section must be a mapping")
    return MovementConfig.from_dict(dict(section))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; identical data, identical sum."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
