# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Persistence of the instance state between create and destroy."""

import logging
from pathlib import Path
from typing import Any

import yaml

from rackspace_provisioner.errors import ProvisionerError

logger = logging.getLogger(__name__)


class StateFileError(ProvisionerError):
    """Represents a state file that cannot be read."""


class StateFile:
    """YAML file holding the state of one instance.

    Attributes:
        path: The path of the file.
    """

    def __init__(self, path: Path):
        """Construct the object.

        Args:
            path: The path of the file.
        """
        self.path = path

    def read(self) -> dict[str, Any]:
        """Read the state.

        Raises:
            StateFileError: If the file does not hold a mapping.

        Returns:
            The state, empty if the file does not exist.
        """
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as file:
            state = yaml.safe_load(file)
        if state is None:
            return {}
        if not isinstance(state, dict):
            raise StateFileError(f"State file {self.path} does not hold a mapping")
        return state

    def write(self, state: dict[str, Any]) -> None:
        """Write the state. An empty state removes the file.

        Args:
            state: The state to write.
        """
        if not state:
            logger.debug("Empty state, removing %s", self.path)
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(dict(state), default_flow_style=False), "utf-8")
        logger.debug("State written to %s", self.path)
