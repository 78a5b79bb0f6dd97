"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from phoenix.models.config import PhoenixConfig, ProvisionerConfig
from phoenix.models.retry import RetryPolicy


def test_defaults():
    config = PhoenixConfig()

    assert config.provisioner.log_level == "INFO"
    assert config.provisioner.max_parallel == 1
    assert config.host.lxc_config_dir == "/etc/pve/lxc"
    assert config.retry.create == RetryPolicy(max_attempts=3, delay_seconds=10)
    assert config.retry.start == RetryPolicy(max_attempts=5, delay_seconds=5)
    assert config.network.default_nic == "eth0"
    assert config.passthrough.swap_mb == 512


def test_log_level_is_case_insensitive():
    assert ProvisionerConfig(log_level="debug").log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        ProvisionerConfig(log_level="chatty")


def test_negative_stage_timeout_rejected():
    with pytest.raises(ValidationError):
        ProvisionerConfig(stage_timeouts={"create": -1})


def test_retry_policy_needs_an_attempt():
    with pytest.raises(ValidationError):
        RetryPolicy(max_attempts=0, delay_seconds=1)


def test_partial_sections_and_unknown_keys():
    config = PhoenixConfig(**{
        "retry": {"exec": {"max_attempts": 5, "delay_seconds": 2}},
        "legacy": {"ignored": True},
    })

    assert config.retry.exec.max_attempts == 5
    assert config.retry.create.max_attempts == 3
