"""Request planning.

Turns one READ/WRITE request into the ordered list of events needed to
resolve it against the current cache contents. Planning only reads the
store; every mutation is carried by the returned events and happens when
the engine steps through them.
"""
from typing import List, Optional, Union

from stepcache.core.address import decode, reconstruct_address
from stepcache.core.cache import CacheStore
from stepcache.core.config import CacheConfig
from stepcache.core.errors import RequestError
from stepcache.core.events import (
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
from stepcache.utils.logging import get_logger

logger = get_logger(__name__)


def coerce_request_type(request_type: Union[RequestType, str]) -> RequestType:
    if isinstance(request_type, RequestType):
        return request_type
    try:
        return RequestType(str(request_type).upper())
    except ValueError:
        raise RequestError(f"unknown request type {request_type!r}, expected READ or WRITE") from None


class RequestPlanner:
    def __init__(self, config: CacheConfig):
        self.config = config

    def plan(self, store: CacheStore, request_type: Union[RequestType, str], address: int,
             data: Optional[int] = None) -> EventTrace:
        """Build the trace for one request against `store` as it is now.

        Calling this twice on the same state yields equal traces.
        """
        rtype = coerce_request_type(request_type)
        is_write = rtype is RequestType.WRITE
        if is_write and data is None:
            raise RequestError(f"WRITE to 0x{address:x} needs a data value")
        if not is_write:
            data = None

        config = self.config
        b = decode(address, config)
        trace: List[CacheEvent] = [
            StartEvent(rtype, address, data),
            DecodeEvent(b),
            CheckSetEvent(b.index),
            CheckHitEvent(b.index, b.tag),
        ]

        way = store.lookup(b.index, b.tag)
        if way is not None:
            trace.append(HitEvent(b.index, way))
            trace.append(TouchLruEvent(b.index, way))
            if is_write:
                if config.write_policy == "write-through":
                    trace.append(InstallLineEvent(b.index, way, b.tag, address, dirty=False, data=data))
                    trace.append(WriteBackEvent(address, data))
                else:
                    trace.append(InstallLineEvent(b.index, way, b.tag, address, dirty=True, data=data))
            # read hit: data is already resident
        else:
            trace.append(MissEvent(b.index))
            if is_write and config.allocation_policy == "no-write-allocate":
                trace.append(NoAllocateWriteEvent(address, data))
            else:
                victim = store.select_victim(b.index)
                line = store.line(b.index, victim)
                if line.valid:
                    trace.append(EvictEvent(b.index, victim, line.tag, line.dirty, line.data))
                    if line.dirty:
                        victim_address = reconstruct_address(line.tag, b.index, config)
                        trace.append(WriteBackEvent(victim_address, line.data))
                trace.append(FetchMemoryEvent(address))
                trace.append(InstallLineEvent(
                    b.index, victim, b.tag, address,
                    dirty=is_write and config.write_policy == "write-back",
                    data=data,
                    fill_from_memory=not is_write,
                ))

        logger.debug("planned %s 0x%x: %s", rtype.value, address, " ".join(e.kind.value for e in trace))
        return tuple(trace)


__all__ = ["RequestPlanner", "coerce_request_type"]
