"""Trace events.

One frozen dataclass per event kind, each carrying only the fields that
kind needs. A trace is a plain tuple of these, in the order they must be
applied.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from stepcache.core.address import AddressBreakdown


class RequestType(str, Enum):
    READ = "READ"
    WRITE = "WRITE"


class EventKind(str, Enum):
    START = "START"
    DECODE = "DECODE"
    CHECK_SET = "CHECK_SET"
    CHECK_HIT = "CHECK_HIT"
    HIT = "HIT"
    MISS = "MISS"
    EVICT = "EVICT"
    WRITE_BACK = "WRITE_BACK"
    NO_ALLOCATE_WRITE = "NO_ALLOCATE_WRITE"
    FETCH_MEMORY = "FETCH_MEMORY"
    INSTALL_LINE = "INSTALL_LINE"
    TOUCH_LRU = "TOUCH_LRU"


class _Event:
    kind: ClassVar[EventKind]

    def describe(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {'kind': self.kind.value}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif dataclasses.is_dataclass(value):
                value = dataclasses.asdict(value)
            d[f.name] = value
        d['description'] = self.describe()
        return d


@dataclass(frozen=True)
class StartEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.START
    request_type: RequestType
    address: int
    data: Optional[int] = None

    def describe(self) -> str:
        text = f"Request: {self.request_type.value} at Address {self.address} (0x{self.address:x})"
        if self.request_type is RequestType.WRITE:
            text += f", data {self.data}"
        return text


@dataclass(frozen=True)
class DecodeEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.DECODE
    breakdown: AddressBreakdown

    def describe(self) -> str:
        b = self.breakdown
        return (f"Tag: {b.tag}, Index: {b.index}, Offset: {b.offset} "
                f"({b.tag_bits}/{b.index_bits}/{b.offset_bits} bits)")


@dataclass(frozen=True)
class CheckSetEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.CHECK_SET
    set_index: int

    def describe(self) -> str:
        return f"Check Set {self.set_index}"


@dataclass(frozen=True)
class CheckHitEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.CHECK_HIT
    set_index: int
    tag: int

    def describe(self) -> str:
        return f"Checking ways of Set {self.set_index} for Tag {self.tag}"


@dataclass(frozen=True)
class HitEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.HIT
    set_index: int
    way_index: int

    def describe(self) -> str:
        return f"Hit in Set {self.set_index}, Way {self.way_index}"


@dataclass(frozen=True)
class MissEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.MISS
    set_index: int

    def describe(self) -> str:
        return f"Miss in Set {self.set_index}"


@dataclass(frozen=True)
class EvictEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.EVICT
    set_index: int
    way_index: int
    tag: int
    dirty: bool
    data: Optional[int] = None

    def describe(self) -> str:
        state = "dirty" if self.dirty else "clean"
        return f"Evicting Way {self.way_index} of Set {self.set_index} (LRU, Tag {self.tag}, {state})"


@dataclass(frozen=True)
class WriteBackEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.WRITE_BACK
    address: int
    data: Optional[int]

    def describe(self) -> str:
        return f"Write {self.data} to Memory 0x{self.address:x}"


@dataclass(frozen=True)
class NoAllocateWriteEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.NO_ALLOCATE_WRITE
    address: int
    data: int

    def describe(self) -> str:
        return f"Write {self.data} direct to Memory 0x{self.address:x} (No-Allocate)"


@dataclass(frozen=True)
class FetchMemoryEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.FETCH_MEMORY
    address: int

    def describe(self) -> str:
        return f"Fetch block from Memory 0x{self.address:x}"


@dataclass(frozen=True)
class InstallLineEvent(_Event):
    """Write a line. With `fill_from_memory` the data is read from
    memory[address] when the event is applied and `data` is ignored."""
    kind: ClassVar[EventKind] = EventKind.INSTALL_LINE
    set_index: int
    way_index: int
    tag: int
    address: int
    dirty: bool
    data: Optional[int] = None
    fill_from_memory: bool = False

    def describe(self) -> str:
        source = "fetched block" if self.fill_from_memory else f"data {self.data}"
        text = f"Update Cache Set {self.set_index}, Way {self.way_index} with Tag {self.tag}, {source}"
        if self.dirty:
            text += " - Mark Dirty"
        return text


@dataclass(frozen=True)
class TouchLruEvent(_Event):
    kind: ClassVar[EventKind] = EventKind.TOUCH_LRU
    set_index: int
    way_index: int

    def describe(self) -> str:
        return f"Update LRU for Set {self.set_index}, Way {self.way_index}"


CacheEvent = Union[
    StartEvent,
    DecodeEvent,
    CheckSetEvent,
    CheckHitEvent,
    HitEvent,
    MissEvent,
    EvictEvent,
    WriteBackEvent,
    NoAllocateWriteEvent,
    FetchMemoryEvent,
    InstallLineEvent,
    TouchLruEvent,
]

EventTrace = Tuple[CacheEvent, ...]


def kinds(trace: EventTrace) -> Tuple[EventKind, ...]:
    """The kind of every event in `trace`, in order."""
    return tuple(e.kind for e in trace)


__all__ = [
    "CacheEvent",
    "CheckHitEvent",
    "CheckSetEvent",
    "DecodeEvent",
    "EventKind",
    "EventTrace",
    "EvictEvent",
    "FetchMemoryEvent",
    "HitEvent",
    "InstallLineEvent",
    "MissEvent",
    "NoAllocateWriteEvent",
    "RequestType",
    "StartEvent",
    "TouchLruEvent",
    "WriteBackEvent",
    "kinds",
]
