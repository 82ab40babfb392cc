"""LRU replacement driven by a logical clock.

Every install or touch stamps the line with the next value of a single
counter, so eviction order depends only on the order of accesses and a
replayed trace always picks the same victims.

API:
- tick(): advance the clock and return the new stamp
- choose_victim(lines): way index to replace within one set
- reset(): rewind the clock to 0
"""

from typing import Sequence


class LRUReplacement:
    """Least-Recently-Used victim selection over a set of lines.

    Lines only need `valid` and `last_used` attributes.
    """

    def __init__(self):
        self.clock = 0

    def tick(self) -> int:
        self.clock += 1
        return self.clock

    def choose_victim(self, lines: Sequence) -> int:
        """Pick the way to fill.

        The first invalid way wins. Otherwise the way with the smallest
        `last_used`; the strict `<` keeps the lowest way index on ties.
        """
        if not lines:
            raise ValueError("cannot choose a victim in an empty set")
        for way, line in enumerate(lines):
            if not line.valid:
                return way
        victim = 0
        oldest = lines[0].last_used
        for way in range(1, len(lines)):
            if lines[way].last_used < oldest:
                oldest = lines[way].last_used
                victim = way
        return victim

    def reset(self) -> None:
        self.clock = 0


__all__ = ["LRUReplacement"]
