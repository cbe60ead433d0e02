"""Integration tests need ``--integration`` unless they are marked ``ci_safe``.

The ``ci_safe`` tests here only bind loopback sockets and stub the account
service, so they always run.
"""

import pytest


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration", default=False):
        return
    skip = pytest.mark.skip(reason="needs --integration")
    for item in items:
        if item.get_closest_marker("integration") and not item.get_closest_marker("ci_safe"):
            item.add_marker(skip)
