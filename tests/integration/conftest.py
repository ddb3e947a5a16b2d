# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for Rackspace integration tests."""

import logging
from pathlib import Path
from secrets import token_hex
from typing import Any, Generator

import pytest

from rackspace_provisioner.driver import SERVER_ID_KEY, RackspaceDriver
from rackspace_provisioner.state import StateFile

logger = logging.getLogger(__name__)


@pytest.fixture(scope="module", name="driver_options")
def driver_options_fixture(pytestconfig: pytest.Config) -> dict[str, Any]:
    """Driver options of the Rackspace account given on the command line."""
    username = pytestconfig.getoption("--rackspace-username")
    api_key = pytestconfig.getoption("--rackspace-api-key")
    if not username or not api_key:
        pytest.skip("Rackspace credentials not given")
    return {
        "region": pytestconfig.getoption("--rackspace-region"),
        "credentials": {"username": username, "api_key": api_key},
    }


@pytest.fixture(scope="module", name="platform_name")
def platform_name_fixture(pytestconfig: pytest.Config) -> str:
    """Platform of the servers to boot."""
    return pytestconfig.getoption("--rackspace-platform")


@pytest.fixture(name="state_file")
def state_file_fixture(tmp_path: Path) -> StateFile:
    """State file of the test instance."""
    return StateFile(tmp_path / f"it-{token_hex(2)}.yml")


@pytest.fixture(name="driver")
def driver_fixture(
    driver_options: dict[str, Any], platform_name: str, state_file: StateFile
) -> Generator[RackspaceDriver, None, None]:
    """Driver of a test instance, whose server is destroyed after the test."""
    driver = RackspaceDriver.from_options(
        driver_options, instance_label=f"it{token_hex(2)}", platform_name=platform_name
    )
    yield driver

    state = state_file.read()
    if state.get(SERVER_ID_KEY):
        logger.info("Cleaning up server %s", state[SERVER_ID_KEY])
        driver.destroy(state)
        state_file.write(state)
