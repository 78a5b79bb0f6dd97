"""Configuration loading for the provisioner."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from pydantic import ValidationError

from phoenix.errors import ConfigError, SpecValidationError
from phoenix.models.config import PhoenixConfig
from phoenix.models.container import ContainerSpec, validate_container_entry


logger = logging.getLogger(__name__)


class ConfigStore:
    """Loads the tool configuration and the multi-container specification.

    Population happens once under a lock; afterwards the store is read-only
    and safe for concurrent readers.
    """

    def __init__(self, config_dir: Path, containers_file: Optional[Path] = None):
        """Initialize configuration store."""
        self.config_dir = Path(config_dir)
        self.containers_file_override = Path(containers_file) if containers_file else None
        self.yaml = YAML(typ="safe")
        self.config: Optional[PhoenixConfig] = None
        self.containers: Dict[int, ContainerSpec] = {}
        self.invalid: Dict[int, SpecValidationError] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def containers_file(self) -> Path:
        """Path of the multi-container JSON file."""
        if self.containers_file_override:
            return self.containers_file_override
        if self.config is None:
            raise ConfigError("Configuration not loaded")
        return Path(self.config.host.containers_file)

    async def load(self):
        """Load all configuration files once."""
        async with self._lock:
            if self._loaded:
                return
            await self._populate()

    async def _populate(self):
        logger.info(f"Loading configuration from {self.config_dir}")

        await self._load_main_config()
        await self._load_containers()

        self._loaded = True
        logger.info(
            f"Configuration loaded: {len(self.containers)} valid, "
            f"{len(self.invalid)} invalid container entries"
        )

    async def _load_main_config(self):
        """Load main configuration file."""
        config_file = self.config_dir / "config.yaml"
        if not config_file.exists():
            logger.warning(f"Main config not found: {config_file}, using defaults")
            self.config = PhoenixConfig()
            return

        try:
            data = await self._read_yaml(config_file)
            self.config = PhoenixConfig(**(data or {}))
            logger.debug(f"Loaded main config: {config_file}")
        except ValidationError as e:
            logger.error(f"Invalid main config: {e}")
            raise ConfigError(f"Invalid main config {config_file}: {e}") from e
        except YAMLError as e:
            raise ConfigError(f"Cannot parse {config_file}: {e}") from e

    async def _load_containers(self):
        """Load and validate container entries."""
        containers_file = self.containers_file
        if not containers_file.exists():
            raise ConfigError(f"Container configuration not found: {containers_file}")

        try:
            data = await self._read_json(containers_file)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {containers_file}: {e}") from e

        entries = data.get("lxc_configs") if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise ConfigError(f"{containers_file} has no 'lxc_configs' object")

        self.containers.clear()
        self.invalid.clear()
        for raw_id, entry in entries.items():
            try:
                spec = validate_container_entry(raw_id, entry)
            except SpecValidationError as e:
                logger.error(f"Invalid configuration for container {raw_id}: {e}")
                key = _id_key(raw_id)
                if key is not None:
                    self.invalid[key] = e
                continue
            self.containers[spec.id] = spec

        if not entries:
            logger.warning(f"No container configurations found in {containers_file}")
        logger.debug(f"Loaded containers from {containers_file}")

    async def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse YAML file."""
        content = await asyncio.to_thread(file_path.read_text)
        return self.yaml.load(content)

    async def _read_json(self, file_path: Path) -> Any:
        """Read and parse JSON file."""
        content = await asyncio.to_thread(file_path.read_text)
        return json.loads(content)

    @property
    def container_ids(self) -> List[int]:
        """All configured ids, valid or not, in ascending order."""
        return sorted(set(self.containers) | set(self.invalid))

    def get_container_spec(self, container_id: int) -> ContainerSpec:
        """Get a validated container specification.

        Raises SpecValidationError if the entry is invalid and ConfigError if
        the id is not configured.
        """
        if not self._loaded:
            raise ConfigError("Configuration not loaded")
        if container_id in self.invalid:
            raise self.invalid[container_id]
        spec = self.containers.get(container_id)
        if spec is None:
            raise ConfigError(f"No configuration found for container ID {container_id}")
        return spec


def _id_key(raw_id: Any) -> Optional[int]:
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        return None
