"""Tests for request planning: trace shape for every hit/miss path, and that
planning never touches the store."""
import pytest

from stepcache.core.address import decode
from stepcache.core.cache import CacheStore
from stepcache.core.errors import RequestError
from stepcache.core.events import (
    DecodeEvent,
    EventKind as K,
    EvictEvent,
    InstallLineEvent,
    RequestType,
    StartEvent,
    WriteBackEvent,
    kinds,
)
from stepcache.core.planner import RequestPlanner, coerce_request_type

PREFIX = (K.START, K.DECODE, K.CHECK_SET, K.CHECK_HIT)


@pytest.fixture
def store(small_config):
    return CacheStore(small_config)


def _planner(config, **updates):
    return RequestPlanner(config.with_updates(**updates))


def test_read_miss_into_empty_set(small_config, store):
    trace = RequestPlanner(small_config).plan(store, 'READ', 0x34)
    assert kinds(trace) == PREFIX + (K.MISS, K.FETCH_MEMORY, K.INSTALL_LINE)
    start, decoded = trace[0], trace[1]
    assert start == StartEvent(RequestType.READ, 0x34, None)
    assert isinstance(decoded, DecodeEvent)
    assert (decoded.breakdown.tag, decoded.breakdown.index) == (3, 1)
    install = trace[-1]
    assert (install.set_index, install.way_index, install.tag) == (1, 0, 3)
    assert install.fill_from_memory is True
    assert install.dirty is False


def test_read_hit(small_config, store):
    store.install(1, 1, tag=3, data=52, dirty=False)
    trace = RequestPlanner(small_config).plan(store, 'read', 0x35)
    assert kinds(trace) == PREFIX + (K.HIT, K.TOUCH_LRU)
    assert (trace[4].set_index, trace[4].way_index) == (1, 1)


def test_write_hit_write_through(small_config, store):
    store.install(1, 0, tag=3, data=52, dirty=False)
    trace = _planner(small_config, write_policy='write-through').plan(store, 'WRITE', 0x34, 9)
    assert kinds(trace) == PREFIX + (K.HIT, K.TOUCH_LRU, K.INSTALL_LINE, K.WRITE_BACK)
    install, wb = trace[-2], trace[-1]
    assert install.dirty is False
    assert install.data == 9
    assert wb == WriteBackEvent(0x34, 9)


def test_write_hit_write_back(small_config, store):
    store.install(1, 0, tag=3, data=52, dirty=False)
    trace = RequestPlanner(small_config).plan(store, RequestType.WRITE, 0x34, 9)
    assert kinds(trace) == PREFIX + (K.HIT, K.TOUCH_LRU, K.INSTALL_LINE)
    assert trace[-1].dirty is True
    assert K.WRITE_BACK not in kinds(trace)


@pytest.mark.parametrize('write_policy', ['write-back', 'write-through'])
def test_write_miss_no_allocate(small_config, store, write_policy):
    planner = _planner(small_config, allocation_policy='no-write-allocate', write_policy=write_policy)
    trace = planner.plan(store, 'WRITE', 0x34, 5)
    assert kinds(trace) == PREFIX + (K.MISS, K.NO_ALLOCATE_WRITE)
    assert (trace[-1].address, trace[-1].data) == (0x34, 5)


def test_read_miss_ignores_no_allocate(small_config, store):
    planner = _planner(small_config, allocation_policy='no-write-allocate')
    trace = planner.plan(store, 'READ', 0x34)
    assert kinds(trace)[-2:] == (K.FETCH_MEMORY, K.INSTALL_LINE)


@pytest.mark.parametrize('write_policy,dirty', [('write-back', True), ('write-through', False)])
def test_write_miss_allocate(small_config, store, write_policy, dirty):
    planner = _planner(small_config, write_policy=write_policy)
    trace = planner.plan(store, 'WRITE', 0x34, 5)
    assert kinds(trace) == PREFIX + (K.MISS, K.FETCH_MEMORY, K.INSTALL_LINE)
    install = trace[-1]
    assert install.data == 5
    assert install.fill_from_memory is False
    assert install.dirty is dirty


def test_clean_eviction_has_no_write_back(small_config, store):
    store.install(1, 0, tag=3, data=52, dirty=False)
    store.install(1, 1, tag=7, data=116, dirty=False)
    trace = RequestPlanner(small_config).plan(store, 'READ', 0xB4)
    assert kinds(trace) == PREFIX + (K.MISS, K.EVICT, K.FETCH_MEMORY, K.INSTALL_LINE)
    assert trace[5] == EvictEvent(1, 0, 3, False, 52)


def test_dirty_eviction_writes_back_victim_address(small_config, store):
    # Input: set 1 holds dirty tag 3 (way 0) and clean tag 7 (way 1); read 0xB4 (tag 11).
    # Expected: EVICT way 0, then WRITE_BACK of the victim data to 0x34, whose
    # decode is the victim's (tag, index).
    store.install(1, 0, tag=3, data=99, dirty=True)
    store.install(1, 1, tag=7, data=116, dirty=False)
    trace = RequestPlanner(small_config).plan(store, 'READ', 0xB4)
    assert kinds(trace) == PREFIX + (K.MISS, K.EVICT, K.WRITE_BACK, K.FETCH_MEMORY, K.INSTALL_LINE)
    wb = trace[6]
    assert wb == WriteBackEvent(0x34, 99)
    b = decode(wb.address, small_config)
    assert (b.tag, b.index) == (3, 1)
    assert trace[-1] == InstallLineEvent(1, 0, 11, 0xB4, dirty=False, data=None, fill_from_memory=True)


def test_planning_is_pure(small_config, store):
    store.install(1, 0, tag=3, data=99, dirty=True)
    store.install(1, 1, tag=7, data=116, dirty=False)
    before = store.snapshot()
    clock = store.policy.clock
    planner = RequestPlanner(small_config)
    first = planner.plan(store, 'WRITE', 0xB4, 1)
    second = planner.plan(store, 'WRITE', 0xB4, 1)
    assert first == second
    assert store.snapshot() == before
    assert store.policy.clock == clock


def test_bad_requests(small_config, store):
    planner = RequestPlanner(small_config)
    with pytest.raises(RequestError):
        planner.plan(store, 'FETCH', 0)
    with pytest.raises(RequestError):
        planner.plan(store, 'WRITE', 0)
    assert coerce_request_type('write') is RequestType.WRITE


def test_read_drops_data(small_config, store):
    trace = RequestPlanner(small_config).plan(store, 'READ', 0x10, 42)
    assert trace[0].data is None
    assert trace[-1].data is None


def test_events_describe_and_export(small_config, store):
    trace = RequestPlanner(small_config).plan(store, 'WRITE', 0x34, 7)
    assert trace[0].describe() == "Request: WRITE at Address 52 (0x34), data 7"
    assert trace[2].describe() == "Check Set 1"
    d = trace[1].to_dict()
    assert d['kind'] == 'DECODE'
    assert d['breakdown']['tag'] == 3
    assert trace[0].to_dict()['request_type'] == 'WRITE'
    assert all(e.describe() for e in trace)
