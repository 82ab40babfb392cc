"""Sequence driver

Converts textual request lists into engine requests and steps each one to
completion. Item syntax (comma separated):

    52        READ of 52 (digits only are decimal)
    3f        READ of 0x3f (bare hex letters mean hex)
    0x34      READ of 0x34
    0x34-7    WRITE of 7 to 0x34 (data is decimal, or hex with 0x)
    R:0x34    explicit READ
    W:0x34=7  explicit WRITE
"""
import random
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from stepcache.core.errors import CacheSimError, RequestError
from stepcache.core.events import EvictEvent, HitEvent, InstallLineEvent, RequestType
from stepcache.core.simulator import CacheEngine

SCENARIOS = ('Matrix Traversal', 'Random Access', 'Thrash Set')


def parse_address(s: str) -> int:
    s = s.strip()
    if not s:
        raise RequestError("empty address")
    try:
        if s.lower().startswith('0x'):
            return int(s[2:], 16)
        # if contains hex letters, treat as hex
        if any(c in 'abcdefABCDEF' for c in s):
            return int(s, 16)
        return int(s, 10)
    except ValueError:
        raise RequestError(f"bad address {s!r}") from None


def parse_data(s: str) -> int:
    s = s.strip()
    try:
        return int(s, 0) if s.lower().startswith(('0x', '-0x')) else int(s, 10)
    except ValueError:
        raise RequestError(f"bad data value {s!r}") from None


def parse_item(item: Union[str, int]) -> Tuple[RequestType, int, Optional[int]]:
    """Parse one sequence item into (request type, address, data)."""
    if isinstance(item, int):
        return RequestType.READ, item, None
    text = item.strip()
    prefix, sep, rest = text.partition(':')
    if sep and prefix.strip().upper() in ('R', 'W'):
        if prefix.strip().upper() == 'R':
            return RequestType.READ, parse_address(rest), None
        addr, eq, data = rest.partition('=')
        if not eq:
            raise RequestError(f"write {text!r} needs '=data'")
        return RequestType.WRITE, parse_address(addr), parse_data(data)
    # store syntax: "addr-data"
    if '-' in text:
        addr, data = text.split('-', 1)
        return RequestType.WRITE, parse_address(addr), parse_data(data)
    return RequestType.READ, parse_address(text), None


def split_sequence(seq: str) -> List[str]:
    return [s for s in map(str.strip, seq.split(',')) if s]


class Simulation:
    def __init__(self, engine: Optional[CacheEngine] = None, seed: Optional[int] = None):
        self.engine = engine if engine is not None else CacheEngine()
        self.seed = seed

    def run_request(self, item: Union[str, int], trace_events: bool = True) -> Dict[str, Any]:
        rtype, address, data = parse_item(item)
        trace = self.engine.access(rtype, address, data)
        hit = any(isinstance(e, HitEvent) for e in trace)
        way = None
        set_index = None
        evicted_tag = None
        for e in trace:
            if isinstance(e, (HitEvent, InstallLineEvent)):
                set_index, way = e.set_index, e.way_index
            elif isinstance(e, EvictEvent):
                evicted_tag = e.tag
        info = {
            'address': address,
            'request_type': rtype.value,
            'value': data,
            'hit': hit,
            'set_index': set_index,
            'way_index': way,
            'evicted_tag': evicted_tag,
            'stats': self.engine.stats().as_dict(),
        }
        if trace_events:
            info['events'] = [f"[{e.kind.value}] {e.describe()}" for e in trace]
        return info

    def run_simulation(self, sequence: Union[str, Iterable[Union[str, int]], None] = None,
                       num_passes: int = 1, scenario: str = 'Matrix Traversal') -> List[Dict[str, Any]]:
        """Run `sequence` (or a built-in scenario when empty) `num_passes` times.

        Cache state and stats carry over between passes. Malformed items are
        reported as error entries and do not stop the run.
        """
        if isinstance(sequence, str):
            items = split_sequence(sequence)
        else:
            items = list(sequence or [])
        if not items:
            items = self.generate_sequence_for_scenario(scenario)

        results = []
        for p in range(num_passes):
            for idx, it in enumerate(items):
                try:
                    info = self.run_request(it)
                except (CacheSimError, TypeError) as e:
                    info = {'error': str(e), 'input': it}
                info['_pass'] = p
                info['_idx'] = idx
                results.append(info)
        return results

    def generate_sequence_for_scenario(self, name: str) -> List[str]:
        # Produce a list of 0x-prefixed address strings for predefined scenarios
        size = self.engine.config.memory_size
        if name == 'Matrix Traversal':
            N = 10
            return [format((i * N + j) % size, '#x') for i in range(N) for j in range(N)]
        elif name == 'Random Access':
            rng = random.Random(self.seed)
            return [format(rng.randrange(size), '#x') for _ in range(16)]
        elif name == 'Thrash Set':
            # associativity + 1 distinct blocks in set 0, revisited in order
            cfg = self.engine.config
            stride = cfg.set_count * cfg.block_size
            blocks = [(k * stride) % size for k in range(cfg.associativity + 1)]
            return [format(a, '#x') for a in blocks * 2]
        raise ValueError(f"unknown scenario {name!r}, expected one of {SCENARIOS}")
