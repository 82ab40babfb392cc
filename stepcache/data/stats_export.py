"""Statistics and exporter.
"""
import copy
import csv
import json
from typing import Any, Dict, Iterable, List, Optional


def export_chart_json(hit_rate_history: List[float], stats: Dict[str, float], fpath: str) -> str:
    """Export hit-rate history and stats to a JSON file. Returns the saved path.
    """
    data = {
        'hit_rate_history': list(hit_rate_history),
        'stats': stats
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def export_trace_json(trace: Iterable, fpath: str) -> str:
    """Dump a trace (sequence of events) as a JSON list of event dicts."""
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump([e.to_dict() for e in trace], fh, indent=2)
    return fpath


def export_chart_pdf(hit_rate_history: List[float], fpath: str) -> str:
    """Render the hit-rate history to a PDF using matplotlib and save it.
    Returns the saved file path.
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    data = list(hit_rate_history) or [0]
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.plot(range(len(data)), data, color='#FFA500', linewidth=2)
    ax.fill_between(range(len(data)), data, color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Request')
    ax.set_ylabel('Hit rate')
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, format='pdf', dpi=150)
    plt.close(fig)
    return fpath


class Statistics:
    def __init__(self):
        self.reset()

    def reset(self):
        # counters start from zero
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.memory_reads = 0
        self.memory_writes = 0
        self.hit_rate_history: List[float] = []

    def record_request(self):
        # sampled once per completed request, feeds the chart
        self.hit_rate_history.append(self.hit_rate)

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            'accesses': self.accesses,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
            'hit_rate': self.hit_rate,
            'miss_rate': self.miss_rate,
            'memory_reads': self.memory_reads,
            'memory_writes': self.memory_writes,
        }

    def copy(self) -> "Statistics":
        return copy.deepcopy(self)

    def __eq__(self, other):
        if not isinstance(other, Statistics):
            return NotImplemented
        return self.as_dict() == other.as_dict() and self.hit_rate_history == other.hit_rate_history

    def __repr__(self):
        return f"Statistics(hits={self.hits}, misses={self.misses}, evictions={self.evictions})"


class Exporter:
    COLUMNS = ['accesses', 'hits', 'misses', 'evictions', 'hit_rate', 'miss_rate', 'memory_reads', 'memory_writes']

    @staticmethod
    def export_stats_csv(path: str, stats: Statistics, extra: Optional[Dict[str, Any]] = None):
        row = stats.as_dict()
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            header = list(Exporter.COLUMNS)
            values = [row[c] for c in Exporter.COLUMNS]
            for key, value in (extra or {}).items():
                header.append(key)
                values.append(value)
            writer.writerow(header)
            writer.writerow(values)
        return path
