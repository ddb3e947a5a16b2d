# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Checks run on a new server before handing it over."""

import logging
import socket
import time

from rackspace_provisioner.errors import ReadinessTimeoutError
from rackspace_provisioner.models import ComputeGateway, ServerRecord

logger = logging.getLogger(__name__)

PROBE_INTERVAL = 5
PROBE_CONNECT_TIMEOUT = 10


def wait_for_tcp(
    address: str, port: int, timeout: float, interval: float = PROBE_INTERVAL
) -> None:
    """Block until a TCP connection to the address can be opened.

    Args:
        address: The host to connect to.
        port: The port to connect to.
        timeout: Seconds to keep trying.
        interval: Seconds between attempts.

    Raises:
        ReadinessTimeoutError: If no connection could be opened in time.
    """
    deadline = time.monotonic() + timeout
    attempts = 0
    while True:
        attempts += 1
        remaining = deadline - time.monotonic()
        try:
            with socket.create_connection(
                (address, port), timeout=max(min(PROBE_CONNECT_TIMEOUT, remaining), 1)
            ):
                logger.info("%s:%s is reachable after %s attempts", address, port, attempts)
                return
        except OSError as exc:
            logger.debug("Attempt %s to reach %s:%s failed: %s", attempts, address, port, exc)

        if time.monotonic() + interval > deadline:
            raise ReadinessTimeoutError(
                f"{address}:{port} not reachable after {timeout} seconds ({attempts} attempts)"
            )
        time.sleep(interval)


class ReadinessChecker:
    """Waits for a new server to accept connections on its management port.

    Attributes:
        port: The port to probe.
        timeout: Seconds to wait for the port.
        skip: Whether to sleep instead of probing the port.
        skip_sleep: Seconds to sleep when the probe is skipped.
    """

    def __init__(self, port: int, timeout: int, skip: bool = False, skip_sleep: int = 120):
        """Construct the object.

        Args:
            port: The port to probe.
            timeout: Seconds to wait for the port.
            skip: Whether to sleep instead of probing the port.
            skip_sleep: Seconds to sleep when the probe is skipped.
        """
        self.port = port
        self.timeout = timeout
        self.skip = skip
        self.skip_sleep = skip_sleep

    def wait(self, address: str) -> None:
        """Block until the server is ready to be used.

        When the probe is skipped, the server is assumed ready after a fixed sleep and its
        port is never checked.

        Args:
            address: The address of the server.
        """
        if self.skip:
            logger.info(
                "Skipping TCP check of %s, sleeping %s seconds instead", address, self.skip_sleep
            )
            time.sleep(self.skip_sleep)
            return
        logger.info("Waiting for %s:%s to accept connections", address, self.port)
        wait_for_tcp(address, self.port, self.timeout)


class NetworkAttachWaiter:
    """Waits for the provider automation to attach the networks of a server.

    Attributes:
        timeout: Seconds to wait for the automation.
    """

    def __init__(self, compute: ComputeGateway, timeout: int):
        """Construct the object.

        Args:
            compute: The compute API.
            timeout: Seconds to wait for the automation.
        """
        self._compute = compute
        self.timeout = timeout

    def wait(self, server: ServerRecord) -> ServerRecord:
        """Block until the networks of the server are attached.

        Args:
            server: The server, already ACTIVE.

        Returns:
            The refreshed server.
        """
        server = self._compute.wait_for_network_attach(server, self.timeout)
        logger.info("Networks of server %s attached", server.id)
        return server
