"""Named cache geometries.

Each preset fixes the associativity and derives the number of sets from the
total block count, the way the direct-mapped / 2-way / 4-way / fully
associative wrappers used to:

    set_count = total_blocks // associativity
"""
from typing import Optional

from stepcache.core.config import CacheConfig
from stepcache.core.errors import ConfigError
from stepcache.core.simulator import CacheEngine

PRESETS = ('direct-mapped', 'two-way', 'four-way', 'fully-associative', 'k-way')

_FIXED_WAYS = {
    'direct-mapped': 1,
    'two-way': 2,
    'four-way': 4,
}


def build_config(preset: str, total_blocks: int = 16, associativity: Optional[int] = None,
                 **overrides) -> CacheConfig:
    if preset in _FIXED_WAYS:
        k = _FIXED_WAYS[preset]
    elif preset == 'fully-associative':
        k = total_blocks
    elif preset == 'k-way':
        if associativity is None:
            raise ConfigError("k-way preset needs an explicit associativity")
        k = associativity
    else:
        raise ConfigError(f"unknown preset {preset!r}, expected one of {PRESETS}")

    if total_blocks < 1 or k < 1 or k > total_blocks or total_blocks % k != 0:
        raise ConfigError(f"{total_blocks} blocks cannot be split into {k}-way sets")
    return CacheConfig().with_updates(set_count=total_blocks // k, associativity=k, **overrides)


def build_engine(preset: str, total_blocks: int = 16, associativity: Optional[int] = None,
                 **overrides) -> CacheEngine:
    return CacheEngine(build_config(preset, total_blocks, associativity, **overrides))
