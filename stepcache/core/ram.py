"""Main memory model.

A flat, byte-addressable array of `2 ** address_width` integer cells backing
the cache. Cell `i` starts out holding the value `i`, so a fetched block shows
where it came from. Only written cells are stored.

- MainMemory(address_width)
- read(address) -> stored value, or `address` if never written
- write(address, value) -> stores value at address
- reset() -> forget every write
"""
from typing import Dict, List, Optional

from stepcache.core.errors import AddressOutOfRangeError


class MainMemory:
    def __init__(self, address_width: int = 8):
        self.address_width = int(address_width)
        self.size = 1 << self.address_width
        # store memory as a sparse dict: address -> value (int)
        self.storage: Dict[int, int] = {}

    def check_address(self, address: int) -> int:
        if not isinstance(address, int) or isinstance(address, bool):
            raise TypeError(f"address must be int, got {type(address).__name__}")
        if address < 0 or address >= self.size:
            raise AddressOutOfRangeError(f"address {address} out of range [0, {self.size - 1}]")
        return address

    def read(self, address: int) -> int:
        a = self.check_address(address)
        return self.storage.get(a, a)

    def write(self, address: int, value: Optional[int] = 0) -> None:
        a = self.check_address(address)
        self.storage[a] = 0 if value is None else int(value)

    def cells(self, start: int = 0, stop: Optional[int] = None) -> List[int]:
        """Values of addresses in [start, stop), for memory views."""
        stop = self.size if stop is None else min(stop, self.size)
        return [self.storage.get(a, a) for a in range(max(0, start), stop)]

    def written_addresses(self) -> List[int]:
        return sorted(self.storage)

    def copy(self) -> "MainMemory":
        other = MainMemory(self.address_width)
        other.storage = dict(self.storage)
        return other

    def reset(self) -> None:
        self.storage.clear()

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, address: int) -> int:
        return self.read(address)


__all__ = ["MainMemory"]
