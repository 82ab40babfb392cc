"""Core cache storage

The cache is `set_count` sets of `associativity` ways each. The store only
holds lines and answers questions about them; deciding what to do on a
request is the planner's job, and lines only change when the engine applies
an event.

- lookup(index, tag) -> way or None
- select_victim(index) -> way (read-only)
- install(index, way, tag, data, dirty) / touch(index, way) stamp `last_used`
  from the LRU clock
"""

import copy
from dataclasses import dataclass
from typing import List, Optional

from stepcache.core.config import CacheConfig
from stepcache.core.replacement_policies import LRUReplacement


@dataclass
class CacheLine:
    """container for a cache line (way).

    Fields:
    - valid: whether the line currently holds a block
    - dirty: whether the block was written and not yet written back
    - tag: the tag stored in the line (meaningful only when valid)
    - data: the single scalar held for the whole block
    - last_used: logical timestamp of the last install/touch
    """

    valid: bool = False
    dirty: bool = False
    tag: int = 0
    data: Optional[int] = None
    last_used: int = 0


class CacheStore:
    """Set/way grid with tagged lookup and LRU victim selection."""

    def __init__(self, config: CacheConfig, policy: Optional[LRUReplacement] = None):
        self.config = config
        self.policy = policy if policy is not None else LRUReplacement()
        self.sets: List[List[CacheLine]] = [
            [CacheLine() for _ in range(config.associativity)]
            for _ in range(config.set_count)
        ]

    def _set(self, index: int) -> List[CacheLine]:
        if not 0 <= index < len(self.sets):
            raise IndexError(f"set index {index} out of range [0, {len(self.sets) - 1}]")
        return self.sets[index]

    def line(self, index: int, way: int) -> CacheLine:
        cache_set = self._set(index)
        if not 0 <= way < len(cache_set):
            raise IndexError(f"way {way} out of range [0, {len(cache_set) - 1}]")
        return cache_set[way]

    def lookup(self, index: int, tag: int) -> Optional[int]:
        """Return the way holding `tag` in set `index`, or None on a miss."""
        for way, line in enumerate(self._set(index)):
            if line.valid and line.tag == tag:
                return way
        return None

    def select_victim(self, index: int) -> int:
        return self.policy.choose_victim(self._set(index))

    def install(self, index: int, way: int, tag: int, data: Optional[int], dirty: bool) -> None:
        line = self.line(index, way)
        line.valid = True
        line.tag = tag
        line.data = data
        line.dirty = dirty
        line.last_used = self.policy.tick()

    def touch(self, index: int, way: int) -> None:
        """LRU promotion on a hit; data and flags are left alone."""
        self.line(index, way).last_used = self.policy.tick()

    def valid_line_count(self) -> int:
        return sum(1 for s in self.sets for line in s if line.valid)

    def snapshot(self) -> List[List[CacheLine]]:
        """Deep copy of every set, safe to hand to viewers."""
        return copy.deepcopy(self.sets)

    def reset(self) -> None:
        """Invalidate every line and rewind the LRU clock."""
        for s in self.sets:
            for way in range(len(s)):
                s[way] = CacheLine()
        self.policy.reset()


__all__ = ["CacheLine", "CacheStore"]
