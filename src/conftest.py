"""
Pytest Configuration
====================

Automatically loaded by pytest. Adds src/ to sys.path
so cdt_core is importable without installation.

Tests marked @pytest.mark.slow (full-size builds) only run with --runslow.

Usage:
    cd src
    pytest tests/ -v
    pytest tests/ -v --runslow
"""

import sys
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption("--runslow", action="store_true", default=False,
                     help="run full-size builds marked slow")


def pytest_configure(config):
    """Add src/ to path before any imports happen."""
    config.addinivalue_line("markers", "slow: full-size build, needs --runslow")
    src_root = Path(__file__).parent
    if str(src_root) not in sys.path:
        sys.path.insert(0, str(src_root))


def pytest_collection_modifyitems(config, items):
    if config.getoption("--runslow"):
        return
    skip_slow = pytest.mark.skip(reason="needs --runslow")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# Also do it at module level for non-pytest usage
src_root = Path(__file__).parent
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))
