"""CacheEngine coordinates planning, stepping and statistics.

A request is planned into a trace first; nothing changes until the caller
steps through it. Only `reset`, `update_config`, `step` and `abandon` touch
engine state.
"""
from enum import Enum
from typing import Callable, List, Optional, Union

from .cache import CacheLine, CacheStore
from .config import CacheConfig
from .errors import AddressOutOfRangeError, BusyError
from .events import (
    CacheEvent,
    CheckHitEvent,
    CheckSetEvent,
    DecodeEvent,
    EventTrace,
    EvictEvent,
    FetchMemoryEvent,
    HitEvent,
    InstallLineEvent,
    MissEvent,
    NoAllocateWriteEvent,
    RequestType,
    StartEvent,
    TouchLruEvent,
    WriteBackEvent,
)
from .planner import RequestPlanner
from .ram import MainMemory
from .replacement_policies import LRUReplacement
from ..data.stats_export import Statistics
from ..utils.logging import get_logger

logger = get_logger(__name__)


class EngineState(str, Enum):
    IDLE = "IDLE"
    PLANNING = "PLANNING"
    STEPPING = "STEPPING"


class CacheEngine:
    def __init__(self, config: Optional[CacheConfig] = None):
        self._config = config if config is not None else CacheConfig()
        self._policy = LRUReplacement()
        self._store = CacheStore(self._config, self._policy)
        self._memory = MainMemory(self._config.address_width)
        self._stats = Statistics()
        self._trace: EventTrace = ()
        self._cursor = 0
        self._last_trace: EventTrace = ()
        self._state = EngineState.IDLE

    # -- lifecycle ---------------------------------------------------------

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is not EngineState.IDLE

    def _drop_trace(self):
        self._trace = ()
        self._cursor = 0
        self._state = EngineState.IDLE

    def reset(self):
        self._store = CacheStore(self._config, self._policy)
        self._policy.reset()
        self._memory = MainMemory(self._config.address_width)
        self._stats.reset()
        self._last_trace = ()
        self._drop_trace()
        logger.info("engine reset: %d sets x %d ways, %d-byte blocks, %d-bit addresses",
                    self._config.set_count, self._config.associativity,
                    self._config.block_size, self._config.address_width)

    def update_config(self, **updates):
        """Merge `updates` into the config and rebuild the cache.

        The merged config is validated before anything is rebuilt, so a
        ConfigError leaves the engine exactly as it was. Memory survives
        unless the address width changes.
        """
        new_config = self._config.with_updates(**updates)
        old_width = self._config.address_width
        self._config = new_config
        self._policy.reset()
        self._store = CacheStore(new_config, self._policy)
        if new_config.address_width != old_width:
            self._memory = MainMemory(new_config.address_width)
        self._stats.reset()
        self._last_trace = ()
        self._drop_trace()
        logger.info("config updated: %s", ", ".join(f"{k}={v}" for k, v in sorted(updates.items())))

    # -- request / step protocol ---------------------------------------------

    def process_request(self, request_type: Union[RequestType, str], address: int,
                        data: Optional[int] = None) -> EventTrace:
        """Plan a request and make it the pending trace.

        Raises BusyError while another trace is being stepped (the pending
        trace and cursor are left as they were) and AddressOutOfRangeError
        for addresses outside memory.
        """
        if self._state is not EngineState.IDLE:
            raise BusyError(
                f"request rejected: trace in progress ({self._cursor}/{len(self._trace)} events applied)"
            )
        if not isinstance(address, int) or isinstance(address, bool):
            raise TypeError(f"address must be int, got {type(address).__name__}")
        if not 0 <= address < self._memory.size:
            raise AddressOutOfRangeError(
                f"address {address} out of range [0, {self._memory.size - 1}]"
            )
        self._state = EngineState.PLANNING
        try:
            trace = RequestPlanner(self._config).plan(self._store, request_type, address, data)
        except Exception:
            self._state = EngineState.IDLE
            raise
        self._trace = trace
        self._cursor = 0
        self._state = EngineState.STEPPING
        return trace

    def step(self) -> bool:
        """Apply the next pending event. Returns True if more events remain."""
        if self._state is not EngineState.STEPPING:
            return False
        event = self._trace[self._cursor]
        self._apply(event)
        self._cursor += 1
        if self._cursor >= len(self._trace):
            self._stats.record_request()
            self._last_trace = self._trace
            self._drop_trace()
            return False
        return True

    def abandon(self) -> int:
        """Discard the pending trace without applying the rest.

        Returns how many events were skipped.
        """
        skipped = len(self._trace) - self._cursor
        if self._state is EngineState.STEPPING:
            logger.info("abandoned trace with %d event(s) left", skipped)
        self._drop_trace()
        return skipped

    def run_to_completion(self, callback: Optional[Callable[[CacheEvent], None]] = None) -> int:
        """Step until idle; `callback` sees each event after it is applied."""
        applied = 0
        while self._state is EngineState.STEPPING:
            event = self._trace[self._cursor]
            self.step()
            applied += 1
            if callback:
                callback(event)
        return applied

    def access(self, request_type: Union[RequestType, str], address: int,
               data: Optional[int] = None) -> EventTrace:
        trace = self.process_request(request_type, address, data)
        self.run_to_completion()
        return trace

    def _apply(self, event: CacheEvent):
        logger.debug("[%s] %s", event.kind.value, event.describe())
        if isinstance(event, (StartEvent, DecodeEvent, CheckSetEvent, CheckHitEvent)):
            pass
        elif isinstance(event, HitEvent):
            self._stats.hits += 1
        elif isinstance(event, MissEvent):
            self._stats.misses += 1
        elif isinstance(event, EvictEvent):
            self._stats.evictions += 1
        elif isinstance(event, (WriteBackEvent, NoAllocateWriteEvent)):
            self._memory.write(event.address, event.data)
            self._stats.memory_writes += 1
        elif isinstance(event, FetchMemoryEvent):
            self._stats.memory_reads += 1
        elif isinstance(event, InstallLineEvent):
            data = self._memory.read(event.address) if event.fill_from_memory else event.data
            self._store.install(event.set_index, event.way_index, event.tag, data, event.dirty)
        elif isinstance(event, TouchLruEvent):
            self._store.touch(event.set_index, event.way_index)
        else:
            raise TypeError(f"unknown cache event {event!r}")

    # -- snapshots ---------------------------------------------------------

    def cache(self) -> List[List[CacheLine]]:
        return self._store.snapshot()

    def memory(self) -> MainMemory:
        return self._memory.copy()

    def stats(self) -> Statistics:
        return self._stats.copy()

    def pending_trace(self) -> EventTrace:
        return self._trace

    def cursor(self) -> int:
        return self._cursor

    def current_event(self) -> Optional[CacheEvent]:
        """The event the next `step()` will apply, or None when idle."""
        if self._state is not EngineState.STEPPING:
            return None
        return self._trace[self._cursor]

    def last_trace(self) -> EventTrace:
        """The most recently completed trace."""
        return self._last_trace


__all__ = ["CacheEngine", "EngineState"]
