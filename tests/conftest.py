"""Shared test fixtures for depshear tests."""

import json
from datetime import datetime, timezone

import pytest

from depshear.scanning import SourceParser, analyze_source


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(scope="session")
def parser():
    """One SourceParser shared by the whole run (grammar loading is slow)."""
    return SourceParser()


@pytest.fixture
def scan_source(parser):
    """Parse a snippet and return its FileScan."""

    def _scan(code: str, path: str = "src/index.ts"):
        return analyze_source(parser.parse(path, code.encode()))

    return _scan


@pytest.fixture
def make_repo(tmp_path):
    """Write a file tree under tmp_path and return its root.

    Values that are dicts or lists are written as JSON (package.json files).
    """

    def _make(files: dict):
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def fixed_clock():
    """Clock returning a constant timestamp."""
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    return lambda: stamp
