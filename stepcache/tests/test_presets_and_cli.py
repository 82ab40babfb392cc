import csv
import os

import pytest

from stepcache.core.errors import ConfigError
from stepcache.wrappers.presets import build_config, build_engine

import run


@pytest.mark.parametrize('preset,blocks,sets,ways', [
    ('direct-mapped', 16, 16, 1),
    ('two-way', 16, 8, 2),
    ('four-way', 8, 2, 4),
    ('fully-associative', 8, 1, 8),
])
def test_presets(preset, blocks, sets, ways):
    cfg = build_config(preset, blocks)
    assert (cfg.set_count, cfg.associativity) == (sets, ways)
    assert cfg.num_blocks == blocks


def test_k_way_preset_and_overrides():
    cfg = build_config('k-way', 16, associativity=8, write_policy='write-through')
    assert (cfg.set_count, cfg.associativity, cfg.write_policy) == (2, 8, 'write-through')
    with pytest.raises(ConfigError):
        build_config('k-way', 16)


@pytest.mark.parametrize('preset,blocks', [
    ('four-way', 2),
    ('two-way', 0),
    ('direct-mapped', 12),
    ('eight-way', 16),
])
def test_bad_presets(preset, blocks):
    with pytest.raises(ConfigError):
        build_config(preset, blocks)


def test_fully_associative_engine_uses_every_way():
    # Input: 4-block fully associative cache; read 4 blocks, then a 5th.
    # Expected: no eviction until the 5th block, which evicts the first block read.
    e = build_engine('fully-associative', 4)
    for a in (0x00, 0x10, 0x20, 0x30):
        e.access('READ', a)
    assert e.stats().evictions == 0
    trace = e.access('READ', 0x40)
    evicted = [ev for ev in trace if ev.kind.value == 'EVICT'][0]
    assert (evicted.way_index, evicted.tag) == (0, 0)


def test_cli_headless_run(tmp_path, capsys):
    cfg = tmp_path / 'cache.yaml'
    cfg.write_text("set_count: 4\nassociativity: 2\n")
    out_csv = tmp_path / 'stats.csv'
    out_trace = tmp_path / 'trace.json'
    rc = run.main(['--config', str(cfg), '--sequence', '0x34,0x34,0x74,0xb4', '--trace',
                   '--export-csv', str(out_csv), '--export-trace', str(out_trace)])
    assert rc == 0
    out = capsys.readouterr().out
    assert 'Hits: 1' in out
    assert 'Misses: 3' in out
    assert 'Evictions: 1' in out
    assert '[EVICT]' in out
    with open(out_csv, newline='') as f:
        rows = list(csv.reader(f))
    assert rows[1][1] == '1'
    assert os.path.exists(out_trace)


def test_cli_preset_and_bad_items(capsys):
    rc = run.main(['--preset', 'direct-mapped', '--blocks', '4', '--sequence', '0x34,zz'])
    assert rc == 0
    out = capsys.readouterr().out
    assert "'zz'" in out
    assert 'Cache: 4 sets x 1 ways' in out


def test_cli_config_error(capsys):
    rc = run.main(['--preset', 'four-way', '--blocks', '2'])
    assert rc == 2
    assert 'config error' in capsys.readouterr().err
