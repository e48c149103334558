"""
Movement Configuration Schema.

Defines the structure and defaults for movement-editing settings.
Actual values are loaded from the YAML policy set at runtime via
``inventory_config.get_movement_config()``.
"""

from dataclasses import dataclass
from typing import Self

from inventory_kernel.exceptions import InvalidPolicyConfigError
from inventory_kernel.logging_config import get_logger
from inventory_modules.movements.models import MovementType, ReceivePolicy

logger = get_logger("modules.movements.config")


@dataclass
class MovementConfig:
    """
    Configuration schema for the movements module.

    Override at instantiation with site-specific values:

        config = MovementConfig(
            allow_partial=True,
            batch_lookup_debounce_ms=250,
        )
    """

    # Batch/serial receive policy
    allow_over_receive: bool = False
    allow_partial: bool = False

    # Batch editor
    batch_lookup_debounce_ms: int = 400

    # New documents
    default_movement_type: MovementType = MovementType.RECEIPT
    default_unit_of_measure: str = "pcs"

    def __post_init__(self):
        if isinstance(self.default_movement_type, str) and not isinstance(
            self.default_movement_type, MovementType
        ):
            try:
                self.default_movement_type = MovementType(self.default_movement_type.upper())
            except ValueError:
                raise InvalidPolicyConfigError(
                    "default_movement_type",
                    f"unknown movement type {self.default_movement_type!r}",
                ) from None

        for name in ("allow_over_receive", "allow_partial"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidPolicyConfigError(name, "must be a boolean")

        if isinstance(self.batch_lookup_debounce_ms, bool) or not isinstance(
            self.batch_lookup_debounce_ms, int
        ):
            raise InvalidPolicyConfigError(
                "batch_lookup_debounce_ms", "must be an integer"
            )
        if self.batch_lookup_debounce_ms < 0:
            raise InvalidPolicyConfigError(
                "batch_lookup_debounce_ms", "cannot be negative"
            )

        if not self.default_unit_of_measure or not self.default_unit_of_measure.strip():
            raise InvalidPolicyConfigError(
                "default_unit_of_measure", "cannot be empty"
            )

        logger.info(
            "movement_config_initialized",
            extra={
                "allow_over_receive": self.allow_over_receive,
                "allow_partial": self.allow_partial,
                "batch_lookup_debounce_ms": self.batch_lookup_debounce_ms,
                "default_movement_type": self.default_movement_type.value,
                "default_unit_of_measure": self.default_unit_of_measure,
            },
        )

    @property
    def receive_policy(self) -> ReceivePolicy:
        return ReceivePolicy(
            allow_over_receive=self.allow_over_receive,
            allow_partial=self.allow_partial,
        )

    @property
    def debounce_seconds(self) -> float:
        return self.batch_lookup_debounce_ms / 1000

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("movement_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML policy set)."""
        logger.info(
            "movement_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise InvalidPolicyConfigError(
                sorted(unknown)[0], "unknown configuration key"
            )
        return cls(**data)
