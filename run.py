"""Entry point for the step-driven cache simulator.

Usage:
    python run.py                                  # matrix traversal on the default cache
    python run.py --sequence "0x34,0x38-7,0x34"    # explicit reads / writes
    python run.py --preset two-way --blocks 8 --trace
    python run.py --config cache.yaml --export-csv stats.csv
"""
import argparse
import sys

from stepcache.core.config import CacheConfig
from stepcache.core.errors import CacheSimError
from stepcache.core.simulator import CacheEngine
from stepcache.data.stats_export import Exporter, export_chart_json, export_chart_pdf, export_trace_json
from stepcache.simulation import Simulation
from stepcache.simulation.simulation import SCENARIOS
from stepcache.utils.logging import set_level
from stepcache.wrappers.presets import PRESETS, build_config


def build_parser():
    p = argparse.ArgumentParser(description="Step-driven set-associative cache simulator")
    p.add_argument('--config', help="YAML file with cache config fields")
    p.add_argument('--preset', choices=PRESETS, help="named geometry (overrides set_count/associativity)")
    p.add_argument('--blocks', type=int, default=16, help="total blocks for --preset")
    p.add_argument('--ways', type=int, help="associativity for --preset k-way")
    p.add_argument('--sequence', default='', help="comma separated requests, e.g. '0x34,0x38-7'")
    p.add_argument('--scenario', choices=SCENARIOS, default='Matrix Traversal')
    p.add_argument('--seed', type=int, help="seed for the Random Access scenario")
    p.add_argument('--passes', type=int, default=1)
    p.add_argument('--trace', action='store_true', help="print every event of every request")
    p.add_argument('--export-csv', metavar='PATH')
    p.add_argument('--export-json', metavar='PATH', help="hit-rate history and stats")
    p.add_argument('--export-trace', metavar='PATH', help="events of the last request")
    p.add_argument('--export-pdf', metavar='PATH', help="hit-rate chart")
    p.add_argument('--log-level', default='WARNING')
    return p


def load_config(args) -> CacheConfig:
    config = CacheConfig.from_yaml(args.config) if args.config else CacheConfig()
    if args.preset:
        fields = config.to_dict()
        del fields['set_count'], fields['associativity']
        config = build_config(args.preset, args.blocks, args.ways, **fields)
    return config


def main(argv=None):
    args = build_parser().parse_args(argv)
    set_level(args.log_level)
    try:
        engine = CacheEngine(load_config(args))
    except CacheSimError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2

    sim = Simulation(engine, seed=args.seed)
    results = sim.run_simulation(args.sequence, num_passes=args.passes, scenario=args.scenario)
    for info in results:
        if 'error' in info:
            print(f"#{info['_idx']}: {info['input']!r}: {info['error']}")
            continue
        if args.trace:
            for line in info['events']:
                print(line)
            print()

    s = engine.stats()
    cfg = engine.config
    print('Cache:', f"{cfg.set_count} sets x {cfg.associativity} ways, {cfg.block_size}-byte blocks,",
          cfg.write_policy, cfg.allocation_policy)
    print('Accesses:', s.accesses)
    print('Hits:', s.hits)
    print('Misses:', s.misses)
    print('Evictions:', s.evictions)
    print('Hit rate:', round(s.hit_rate, 4))
    print('Memory reads:', s.memory_reads)
    print('Memory writes:', s.memory_writes)

    if args.export_csv:
        Exporter.export_stats_csv(args.export_csv, s)
    if args.export_json:
        export_chart_json(s.hit_rate_history, s.as_dict(), args.export_json)
    if args.export_trace:
        export_trace_json(engine.last_trace(), args.export_trace)
    if args.export_pdf:
        export_chart_pdf(s.hit_rate_history, args.export_pdf)
    return 0


if __name__ == '__main__':
    sys.exit(main())
