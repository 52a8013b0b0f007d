import os

import pytest
from pathlib import Path

from lpfork import default_configuration, RPC_URL_ENV_VARS

from fakes import FakeChain

PACKAGEDIR = Path(__file__).parent.absolute()
TEST_CONFIG_FILE = PACKAGEDIR.joinpath("testconfig.yaml")

"""
Fixtures
"""


def pytest_collection_modifyitems(config, items):
    if any(os.getenv(name, "").strip() for name in RPC_URL_ENV_VARS):
        return
    skip = pytest.mark.skip(
        reason=f"no fork endpoint, set one of {', '.join(RPC_URL_ENV_VARS)}"
    )
    for item in items:
        if item.get_closest_marker("fork"):
            item.add_marker(skip)


@pytest.fixture
def config_filename():
    return str(TEST_CONFIG_FILE)


@pytest.fixture
def config():
    return default_configuration()


@pytest.fixture
def chain():
    return FakeChain()
