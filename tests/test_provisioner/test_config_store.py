"""Tests for configuration loading."""

import json

import pytest

from phoenix.errors import ConfigError, SpecValidationError
from phoenix.provisioner.config import ConfigStore


@pytest.mark.asyncio
class TestConfigStore:
    """Test ConfigStore loading."""

    async def test_load_config_and_containers(self, config_dir, host_dirs):
        store = ConfigStore(config_dir)
        await store.load()

        assert store.config.provisioner.log_level == "DEBUG"
        assert store.config.host.lxc_config_dir == str(host_dirs["lxc"])
        assert store.container_ids == [900]
        assert store.get_container_spec(900).name == "gpu-worker"

    async def test_missing_config_yaml_uses_defaults(self, tmp_path, container_entry):
        containers_file = tmp_path / "c.json"
        containers_file.write_text(json.dumps({"lxc_configs": {"100": container_entry}}))

        store = ConfigStore(tmp_path / "nowhere", containers_file)
        await store.load()

        assert store.config.host.lxc_config_dir == "/etc/pve/lxc"
        assert store.container_ids == [100]

    async def test_invalid_entry_does_not_block_others(self, tmp_path, container_entry):
        containers_file = tmp_path / "c.json"
        broken = dict(container_entry)
        del broken["cores"]
        containers_file.write_text(json.dumps({"lxc_configs": {"100": container_entry, "101": broken}}))

        store = ConfigStore(tmp_path, containers_file)
        await store.load()

        assert store.container_ids == [100, 101]
        assert store.get_container_spec(100).id == 100
        with pytest.raises(SpecValidationError) as exc_info:
            store.get_container_spec(101)
        assert exc_info.value.field == "cores"

    async def test_unknown_id(self, config_dir):
        store = ConfigStore(config_dir)
        await store.load()

        with pytest.raises(ConfigError):
            store.get_container_spec(4242)

    async def test_missing_containers_file(self, tmp_path):
        store = ConfigStore(tmp_path, tmp_path / "absent.json")

        with pytest.raises(ConfigError):
            await store.load()

    async def test_invalid_json(self, tmp_path):
        containers_file = tmp_path / "c.json"
        containers_file.write_text("{not json")

        with pytest.raises(ConfigError):
            await ConfigStore(tmp_path, containers_file).load()

    async def test_missing_lxc_configs_key(self, tmp_path):
        containers_file = tmp_path / "c.json"
        containers_file.write_text(json.dumps({"containers": {}}))

        with pytest.raises(ConfigError):
            await ConfigStore(tmp_path, containers_file).load()

    async def test_invalid_main_config(self, tmp_path, container_entry):
        (tmp_path / "config.yaml").write_text("provisioner:\n  log_level: chatty\n")
        containers_file = tmp_path / "c.json"
        containers_file.write_text(json.dumps({"lxc_configs": {"100": container_entry}}))

        with pytest.raises(ConfigError):
            await ConfigStore(tmp_path, containers_file).load()

    async def test_load_runs_once(self, config_dir, tmp_path, container_entry):
        store = ConfigStore(config_dir)
        await store.load()

        (tmp_path / "lxc_configs.json").write_text(
            json.dumps({"lxc_configs": {"900": container_entry, "901": container_entry}})
        )
        await store.load()
        assert store.container_ids == [900]

        fresh = ConfigStore(config_dir)
        await fresh.load()
        assert fresh.container_ids == [900, 901]

    async def test_access_before_load(self, config_dir):
        with pytest.raises(ConfigError):
            ConfigStore(config_dir).get_container_spec(900)
