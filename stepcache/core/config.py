"""Cache configuration.

Field names are snake_case; YAML files use the same keys, e.g.

    set_count: 4
    associativity: 2
    block_size: 4
    write_policy: write-back
    allocation_policy: write-allocate
    address_width: 8
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping

import yaml

from stepcache.core.address import bit_widths
from stepcache.core.errors import ConfigError

WritePolicy = Literal["write-through", "write-back"]
AllocationPolicy = Literal["write-allocate", "no-write-allocate"]

WRITE_POLICIES = ("write-through", "write-back")
ALLOCATION_POLICIES = ("write-allocate", "no-write-allocate")


@dataclass(frozen=True)
class CacheConfig:
    """Geometry and policies of one simulated cache.

    Frozen: the engine swaps in a new instance on every config change so a
    trace never sees its config move underneath it.
    """
    set_count: int = 4
    associativity: int = 4
    block_size: int = 4
    write_policy: WritePolicy = "write-back"
    allocation_policy: AllocationPolicy = "write-allocate"
    address_width: int = 8  # 8-bit keeps the memory view small

    def __post_init__(self):
        if self.write_policy not in WRITE_POLICIES:
            raise ConfigError(f"write_policy must be one of {WRITE_POLICIES}, got {self.write_policy!r}")
        if self.allocation_policy not in ALLOCATION_POLICIES:
            raise ConfigError(
                f"allocation_policy must be one of {ALLOCATION_POLICIES}, got {self.allocation_policy!r}"
            )
        bit_widths(self)

    @property
    def tag_bits(self) -> int:
        return bit_widths(self)[0]

    @property
    def index_bits(self) -> int:
        return bit_widths(self)[1]

    @property
    def offset_bits(self) -> int:
        return bit_widths(self)[2]

    @property
    def memory_size(self) -> int:
        return 1 << self.address_width

    @property
    def num_blocks(self) -> int:
        return self.set_count * self.associativity

    def with_updates(self, **updates) -> CacheConfig:
        """Return a validated copy with `updates` merged in."""
        unknown = set(updates) - _field_names()
        if unknown:
            raise ConfigError(f"unknown config field(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> CacheConfig:
        return cls().with_updates(**dict(values))

    @classmethod
    def from_yaml(cls, yaml_path: str) -> CacheConfig:
        """Load a config from a YAML mapping; missing keys keep their defaults."""
        with open(yaml_path, 'r') as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"{yaml_path}: expected a mapping of config fields")
        return cls.from_dict(values)


def _field_names():
    return {f.name for f in dataclasses.fields(CacheConfig)}


DEFAULT_CONFIG = CacheConfig()

__all__ = [
    "ALLOCATION_POLICIES",
    "AllocationPolicy",
    "CacheConfig",
    "DEFAULT_CONFIG",
    "WRITE_POLICIES",
    "WritePolicy",
]
