"""
Tests for movement configuration and the YAML policy loader.

Covers:
- MovementConfig defaults and validation
- Dict construction and unknown keys
- Loading the bundled policy set and custom files
- Trace logging and checksum determinism
"""

from decimal import Decimal

import pytest
import yaml

from inventory_config import get_movement_config
from inventory_config.loader import compute_checksum, load_yaml_file, parse_movement_config
from inventory_kernel.exceptions import InvalidPolicyConfigError
from inventory_modules.movements.config import MovementConfig
from inventory_modules.movements.models import MovementType, ReceivePolicy


class TestMovementConfig:
    """Schema defaults and validation."""

    def test_defaults(self):
        config = MovementConfig()
        assert config.allow_over_receive is False
        assert config.allow_partial is False
        assert config.batch_lookup_debounce_ms == 400
        assert config.default_movement_type is MovementType.RECEIPT
        assert config.default_unit_of_measure == "pcs"

    def test_with_defaults(self):
        assert MovementConfig.with_defaults() == MovementConfig()

    def test_receive_policy(self):
        config = MovementConfig(allow_partial=True)
        assert config.receive_policy == ReceivePolicy(allow_partial=True)

    def test_debounce_seconds(self):
        assert MovementConfig(batch_lookup_debounce_ms=250).debounce_seconds == 0.25

    def test_movement_type_from_string(self):
        config = MovementConfig(default_movement_type="issue")
        assert config.default_movement_type is MovementType.ISSUE

    @pytest.mark.parametrize("kwargs, field", [
        ({"default_movement_type": "TELEPORT"}, "default_movement_type"),
        ({"allow_partial": "yes"}, "allow_partial"),
        ({"allow_over_receive": 1}, "allow_over_receive"),
        ({"batch_lookup_debounce_ms": True}, "batch_lookup_debounce_ms"),
        ({"batch_lookup_debounce_ms": 0.5}, "batch_lookup_debounce_ms"),
        ({"batch_lookup_debounce_ms": -1}, "batch_lookup_debounce_ms"),
        ({"default_unit_of_measure": "  "}, "default_unit_of_measure"),
    ])
    def test_invalid_values(self, kwargs, field):
        with pytest.raises(InvalidPolicyConfigError) as exc_info:
            MovementConfig(**kwargs)
        assert exc_info.value.field == field
        assert exc_info.value.code == "INVALID_POLICY_CONFIG"

    def test_from_dict(self):
        config = MovementConfig.from_dict({"allow_over_receive": True, "default_movement_type": "LOSS"})
        assert config.allow_over_receive is True
        assert config.default_movement_type is MovementType.LOSS

    def test_from_dict_unknown_key(self):
        with pytest.raises(InvalidPolicyConfigError) as exc_info:
            MovementConfig.from_dict({"allow_partial": True, "zeta": 1, "alpha": 2})
        assert exc_info.value.field == "alpha"

    def test_initialization_logged(self, captured_logs):
        MovementConfig(allow_partial=True)
        record = next(r for r in captured_logs() if r["message"] == "movement_config_initialized")
        assert record["allow_partial"] is True
        assert record["default_movement_type"] == "RECEIPT"


class TestLoader:
    """YAML policy files."""

    def _write(self, tmp_path, content):
        path = tmp_path / "policy.yaml"
        path.write_text(content)
        return path

    def test_bundled_default(self):
        assert get_movement_config() == MovementConfig()

    def test_custom_file(self, tmp_path):
        path = self._write(tmp_path, yaml.safe_dump({
            "config_id": "SITE_7",
            "version": 3,
            "movements": {
                "allow_partial": True,
                "batch_lookup_debounce_ms": 150,
                "default_movement_type": "TRANSFER",
            },
        }))
        config = get_movement_config(path)
        assert config.allow_partial is True
        assert config.debounce_seconds == 0.15
        assert config.default_movement_type is MovementType.TRANSFER

    def test_trace_logged(self, tmp_path, captured_logs):
        path = self._write(tmp_path, "config_id: SITE_7\nversion: 2\nmovements: {}\n")
        get_movement_config(str(path))
        trace = next(r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE")
        assert trace["config_id"] == "SITE_7"
        assert trace["config_version"] == 2
        assert trace["source"] == "policy.yaml"
        assert len(trace["checksum"]) == 64

    def test_missing_section(self, tmp_path):
        path = self._write(tmp_path, "config_id: X\n")
        with pytest.raises(InvalidPolicyConfigError) as exc_info:
            get_movement_config(path)
        assert exc_info.value.field == "movements"

    def test_section_not_mapping(self):
        with pytest.raises(InvalidPolicyConfigError) as exc_info:
            parse_movement_config({"movements": ["allow_partial"]})
        assert exc_info.value.reason == "section must be a mapping"

    def test_root_not_mapping(self, tmp_path):
        path = self._write(tmp_path, "- just\n- a list\n")
        with pytest.raises(InvalidPolicyConfigError):
            load_yaml_file(path)

    def test_empty_file_has_no_section(self, tmp_path):
        path = self._write(tmp_path, "")
        assert load_yaml_file(path) == {}
        with pytest.raises(InvalidPolicyConfigError):
            get_movement_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_movement_config(tmp_path / "absent.yaml")

    def test_invalid_value_in_file(self, tmp_path):
        path = self._write(tmp_path, "movements:\n  batch_lookup_debounce_ms: -5\n")
        with pytest.raises(InvalidPolicyConfigError):
            get_movement_config(path)


class TestChecksum:
    """Checksum determinism."""

    def test_key_order_irrelevant(self):
        a = {"movements": {"allow_partial": True, "allow_over_receive": False}, "version": 1}
        b = {"version": 1, "movements": {"allow_over_receive": False, "allow_partial": True}}
        assert compute_checksum(a) == compute_checksum(b)

    def test_value_change_detected(self):
        assert compute_checksum({"v": Decimal("1")}) != compute_checksum({"v": Decimal("2")})
