"""Tests for container specification models."""

import pytest

from phoenix.errors import SpecValidationError
from phoenix.models.container import ContainerSpec, parse_gpu_assignment, validate_container_entry


class TestGpuAssignment:
    """Test GPU assignment parsing."""

    @pytest.mark.parametrize("raw,expected", [
        (None, None),
        ("", None),
        ("none", None),
        ("NONE", None),
        ("0", frozenset({0})),
        ("0,1", frozenset({0, 1})),
        ("1,1", frozenset({1})),
        (2, frozenset({2})),
    ])
    def test_valid_assignments(self, raw, expected):
        assert parse_gpu_assignment(raw) == expected

    @pytest.mark.parametrize("raw", ["0,", "a", "0 ,1", "-1", "0;1", True])
    def test_invalid_assignments(self, raw):
        with pytest.raises(SpecValidationError) as exc_info:
            parse_gpu_assignment(raw)
        assert exc_info.value.field == "gpu_assignment"


class TestContainerEntry:
    """Test validation of lxc_configs entries."""

    def test_valid_entry(self, container_entry):
        spec = validate_container_entry("900", container_entry)

        assert isinstance(spec, ContainerSpec)
        assert spec.id == 900
        assert spec.gpu_indices == (0, 1)
        assert spec.features == "nesting=1"

    def test_missing_field_names_it(self, container_entry):
        del container_entry["memory_mb"]

        with pytest.raises(SpecValidationError) as exc_info:
            validate_container_entry(900, container_entry)
        assert exc_info.value.field == "memory_mb"

    def test_bad_gpu_assignment_names_field(self, container_entry):
        container_entry["gpu_assignment"] = "0,x"

        with pytest.raises(SpecValidationError) as exc_info:
            validate_container_entry(900, container_entry)
        assert exc_info.value.field == "gpu_assignment"

    def test_non_numeric_id(self, container_entry):
        with pytest.raises(SpecValidationError) as exc_info:
            validate_container_entry("abc", container_entry)
        assert exc_info.value.field == "id"

    @pytest.mark.parametrize("marker", ["", "null", "empty"])
    def test_unset_markers_become_none(self, container_entry, marker):
        container_entry["static_ip"] = marker
        container_entry["mac_address"] = marker

        spec = validate_container_entry(900, container_entry)

        assert spec.static_ip is None
        assert spec.mac_address is None

    @pytest.mark.parametrize("raw,expected", [
        (None, "nesting=1"),
        ("", "nesting=1"),
        ("null", "nesting=1"),
        ("empty", None),
        ("nesting=1,keyctl=1", "nesting=1,keyctl=1"),
    ])
    def test_features(self, container_entry, raw, expected):
        container_entry["features"] = raw

        assert validate_container_entry(900, container_entry).features == expected

    def test_features_default_when_omitted(self, container_entry):
        del container_entry["features"]

        assert validate_container_entry(900, container_entry).features == "nesting=1"

    def test_missing_network_config(self, container_entry):
        container_entry["network_config"] = "null"

        with pytest.raises(SpecValidationError) as exc_info:
            validate_container_entry(900, container_entry)
        assert exc_info.value.field == "network_config"

    def test_unknown_keys_are_ignored(self, container_entry):
        container_entry["description"] = "not used"

        assert validate_container_entry(900, container_entry).name == "gpu-worker"
