# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for provisioner tests."""

import os


def pytest_addoption(parser):
    """Parse additional pytest options.

    Args:
        parser: Pytest parser.
    """
    parser.addoption(
        "--rackspace-username",
        action="store",
        help="Rackspace username for integration tests.",
        default=os.getenv("RACKSPACE_USERNAME"),
    )
    parser.addoption(
        "--rackspace-api-key",
        action="store",
        help="Rackspace API key for integration tests.",
        default=os.getenv("RACKSPACE_API_KEY"),
    )
    parser.addoption(
        "--rackspace-region",
        action="store",
        help="Rackspace region for integration tests.",
        default=os.getenv("RACKSPACE_REGION", "dfw"),
    )
    parser.addoption(
        "--rackspace-platform",
        action="store",
        help="Platform of the server booted by integration tests.",
        default="ubuntu",
    )
