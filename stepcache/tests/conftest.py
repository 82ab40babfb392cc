"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `stepcache`
package without needing PYTHONPATH set externally, and provide engines built
from the small teaching config used throughout the tests.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (stepcache/tests -> stepcache -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from stepcache.core.config import CacheConfig  # noqa: E402
from stepcache.core.simulator import CacheEngine  # noqa: E402


@pytest.fixture
def small_config():
    # 4 sets x 2 ways, 4-byte blocks, 8-bit addresses: 4 tag / 2 index / 2 offset bits
    return CacheConfig(set_count=4, associativity=2, block_size=4,
                       write_policy='write-back', allocation_policy='write-allocate',
                       address_width=8)


@pytest.fixture
def engine(small_config):
    return CacheEngine(small_config)
