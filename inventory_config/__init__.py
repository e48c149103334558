"""
inventory_config -- single public entrypoint for movement configuration.

Responsibility:
    Provide the ONLY way to obtain movement-editing configuration at
    runtime through ``get_movement_config()``.  Services receive the
    returned ``MovementConfig`` by injection; nothing else reads policy
    files.

Architecture position:
    Configuration -- YAML-driven policy set, validated on load.
    Sits above ``inventory_modules`` (it builds ``MovementConfig``) and
    below ``inventory_services``.  The kernel never imports this package.

Invariants enforced:
    - Single entrypoint: runtime config flows through ``get_movement_config()``.
    - Deterministic checksum: the same YAML always yields the same
      checksum in the trace record.

Failure modes:
    - ``FileNotFoundError`` -- the requested policy file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``InvalidPolicyConfigError`` -- the ``movements`` section is missing,
      malformed, or fails ``MovementConfig`` validation.

Audit relevance:
    Every successful call emits an ``INVENTORY_CONFIG_TRACE`` log entry
    with the config id, version and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from inventory_config.loader import compute_checksum, load_yaml_file, parse_movement_config
from inventory_modules.movements.config import MovementConfig

_logger = logging.getLogger("inventory_kernel.config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"


def get_movement_config(path: Path | str | None = None) -> MovementConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Policy YAML to load.  Defaults to the bundled
            ``inventory_config/sets/default.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidPolicyConfigError: If the policy fails validation.
    """
    source = Path(path) if path is not None else _DEFAULT_CONFIG_FILE
    data = load_yaml_file(source)
    config = parse_movement_config(data)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_id": data.get("config_id"),
            "config_version": data.get("version"),
            "checksum": compute_checksum(data),
            "source": source.name,
        },
    )
    return config


__all__ = ["get_movement_config"]
