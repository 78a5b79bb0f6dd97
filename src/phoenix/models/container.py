"""Container specification models."""

import re
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from phoenix.errors import SpecValidationError


GPU_ASSIGNMENT_PATTERN = re.compile(r"^[0-9]+(,[0-9]+)*$")

# Values the JSON file uses to mean "not set"
_UNSET_MARKERS = {"", "null", "empty"}


def parse_gpu_assignment(raw: Any) -> Optional[FrozenSet[int]]:
    """Parse a GPU assignment string into a set of indices.

    ``None``, ``""`` and ``"none"`` mean no GPUs. Anything else must be
    comma-separated digits such as ``"0"`` or ``"0,1"``.
    """
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise SpecValidationError(
            "gpu_assignment",
            f"expected comma-separated GPU indices or 'none', got {raw!r}",
        )

    value = str(raw).strip()
    if value == "" or value.lower() == "none":
        return None
    if not GPU_ASSIGNMENT_PATTERN.match(value):
        raise SpecValidationError(
            "gpu_assignment",
            f"invalid format {value!r}, expected comma-separated GPU indices "
            "(e.g. '0', '1', '0,1') or 'none'",
        )
    return frozenset(int(index) for index in value.split(","))


class ContainerSpec(BaseModel):
    """Container specification, one entry of ``lxc_configs``."""
    id: int = Field(..., gt=0, description="Container id (VMID)")
    name: str = Field(..., min_length=1, description="Container hostname")
    memory_mb: int = Field(..., gt=0)
    cores: int = Field(..., gt=0)
    template: str = Field(..., min_length=1, description="Template path or volume id")
    storage_pool: str = Field(..., min_length=1)
    storage_size_gb: int = Field(..., gt=0)
    network_config: Union[Dict[str, Any], str] = Field(..., description="Structured or legacy 'ip,gw,dns'")
    features: Optional[str] = Field(default="nesting=1")
    gpu_assignment: Optional[FrozenSet[int]] = None
    static_ip: Optional[str] = None
    mac_address: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("gpu_assignment", mode="before")
    @classmethod
    def validate_gpu_assignment(cls, v):
        """Accept only comma-separated digits or 'none'."""
        if isinstance(v, (set, frozenset)):
            return v
        try:
            return parse_gpu_assignment(v)
        except SpecValidationError as e:
            raise ValueError(e.message) from e

    @field_validator("static_ip", "mac_address", mode="before")
    @classmethod
    def normalize_unset(cls, v):
        """Treat empty and null-like strings as unset."""
        if isinstance(v, str) and v.strip() in _UNSET_MARKERS:
            return None
        return v

    @field_validator("features", mode="before")
    @classmethod
    def default_features(cls, v):
        """Null or blank features mean the default; 'empty' disables them."""
        if v is None or (isinstance(v, str) and v.strip() in ("", "null")):
            return "nesting=1"
        if isinstance(v, str) and v.strip() == "empty":
            return None
        return v

    @field_validator("network_config", mode="before")
    @classmethod
    def validate_network_present(cls, v):
        """Network block must be an object or a non-empty string."""
        if v is None or (isinstance(v, str) and v.strip() in _UNSET_MARKERS):
            raise ValueError("missing network configuration")
        return v

    @property
    def gpu_indices(self) -> Tuple[int, ...]:
        """Assigned GPU indices in ascending order."""
        return tuple(sorted(self.gpu_assignment or ()))


def validate_container_entry(container_id: Union[int, str], data: Dict[str, Any]) -> ContainerSpec:
    """Validate one raw ``lxc_configs`` entry.

    Raises SpecValidationError naming the first offending field.
    """
    if not isinstance(data, dict):
        raise SpecValidationError("lxc_configs", f"entry for {container_id} is not an object")

    try:
        cid = int(container_id)
    except (TypeError, ValueError):
        raise SpecValidationError("id", f"container id {container_id!r} is not an integer")

    try:
        return ContainerSpec(**{**data, "id": cid})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "spec"
        raise SpecValidationError(field, first["msg"]) from e
