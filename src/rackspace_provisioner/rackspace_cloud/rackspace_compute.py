# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Class for accessing the Rackspace compute API for managing servers."""
import base64
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, ParamSpec, TypeVar

import keystoneauth1.exceptions
import openstack
import openstack.exceptions
import openstack.utils
from openstack.compute.v2.server import Server as OpenstackServer
from openstack.connection import Connection as OpenstackConnection

from rackspace_provisioner.configuration import Credentials, DriverConfiguration
from rackspace_provisioner.errors import ConfigurationError, GatewayError, MissingCredentialError
from rackspace_provisioner.models import ComputeGateway, ServerRecord, ServerSpec
from rackspace_provisioner.rackspace_cloud.constants import (
    AUTHORIZED_KEYS_PATH,
    DEFAULT_AUTH_URL,
    RACKCONNECT_DEPLOYED,
    RACKCONNECT_FAILURES,
    RACKCONNECT_STATUS_KEY,
    SERVER_POLL_INTERVAL,
)

logger = logging.getLogger(__name__)

_SUPPORTED_VERSION = "v2"
_COMPUTE_API_VERSION = "2"

P = ParamSpec("P")
T = TypeVar("T")


def _catch_openstack_errors(func: Callable[P, T]) -> Callable[P, T]:
    """Decorate a function to wrap OpenStack SDK exceptions in a GatewayError.

    The message of the SDK exception is kept so callers can surface it.

    Args:
        func: The function to decorate.

    Returns:
        The decorated function.
    """

    @functools.wraps(func)
    def exception_handling_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        """Wrap the function with exception handling.

        Args:
            args: The positional arguments.
            kwargs: The keyword arguments.

        Raises:
            GatewayError: If any OpenStack exception is caught.

        Returns:
            The return value of the decorated function.
        """
        try:
            return func(*args, **kwargs)
        except (
            openstack.exceptions.SDKException,
            keystoneauth1.exceptions.ClientException,
        ) as exc:
            logger.error("Rackspace compute API call failure: %s", exc)
            raise GatewayError(str(exc)) from exc

    return exception_handling_wrapper


class RackspaceCompute(ComputeGateway):
    """Client to interact with the Rackspace compute API.

    A new connection is opened for each call and closed once the call returns.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        credentials: Credentials,
        region: str,
        *,
        auth_url: str = DEFAULT_AUTH_URL,
        version: str = _SUPPORTED_VERSION,
        timeout: int = 600,
    ):
        """Create the object.

        Args:
            credentials: The Rackspace API credentials.
            region: The region to manage servers in, e.g. "dfw".
            auth_url: The Rackspace identity endpoint.
            version: The Rackspace cloud generation.
            timeout: Timeout in seconds of the compute API calls.

        Raises:
            ConfigurationError: If the cloud generation is not supported.
        """
        if version != _SUPPORTED_VERSION:
            raise ConfigurationError(
                f"Unsupported Rackspace cloud version {version}, only {_SUPPORTED_VERSION} is"
                " supported"
            )
        self._credentials = credentials
        self.region = region
        self._auth_url = auth_url
        self.timeout = timeout

    @classmethod
    def from_configuration(cls, config: DriverConfiguration) -> "RackspaceCompute":
        """Create a client from the driver configuration.

        The wait_timeout of the configuration is the timeout of the compute API calls.

        Args:
            config: The driver configuration.

        Returns:
            The client.
        """
        return cls(
            credentials=config.credentials,
            region=config.region,
            auth_url=config.auth_url,
            version=config.version,
            timeout=config.wait_timeout,
        )

    @_catch_openstack_errors
    def create_instance(self, spec: ServerSpec) -> ServerRecord:
        """Request the creation of a server.

        Args:
            spec: What to create.

        Returns:
            The server, usually still building.
        """
        logger.info("Creating rackspace server %s", spec.name)
        attrs: dict[str, Any] = {
            "name": spec.name,
            "image_id": spec.image_id,
            "flavor_id": spec.flavor_id,
            "config_drive": spec.config_drive,
            "metadata": dict(spec.metadata),
        }
        if spec.networks is not None:
            attrs["networks"] = [{"uuid": network} for network in spec.networks]
        if spec.public_key is not None:
            attrs["personality"] = [
                {"path": AUTHORIZED_KEYS_PATH, "contents": _b64encode(spec.public_key)}
            ]
        if spec.user_data is not None:
            attrs["user_data"] = _b64encode(spec.user_data)

        with self._get_openstack_connection() as conn:
            server = conn.compute.create_server(**attrs)
        logger.info("Created rackspace server %s (%s)", spec.name, server.id)
        return ServerRecord.from_openstack_server(server)

    @_catch_openstack_errors
    def get_instance(self, server_id: str) -> ServerRecord | None:
        """Get a server by ID.

        Args:
            server_id: The server ID.

        Returns:
            The server if found.
        """
        logger.info("Getting rackspace server %s", server_id)
        with self._get_openstack_connection() as conn:
            server = _get_server(conn, server_id)
        if server is None:
            return None
        return ServerRecord.from_openstack_server(server)

    @_catch_openstack_errors
    def delete_instance(self, server_id: str) -> None:
        """Delete a server. A server already gone is not an error.

        Args:
            server_id: The server ID.
        """
        logger.info("Deleting rackspace server %s", server_id)
        with self._get_openstack_connection() as conn:
            conn.compute.delete_server(server_id, ignore_missing=True)
        logger.info("Deleted rackspace server %s", server_id)

    @_catch_openstack_errors
    def wait_until_ready(self, server: ServerRecord, timeout: int) -> ServerRecord:
        """Block until the server is ACTIVE.

        Args:
            server: The server to wait for.
            timeout: Seconds to wait.

        Returns:
            The server with its addresses assigned.
        """
        logger.info("Waiting up to %s seconds for server %s to be active", timeout, server.id)
        with self._get_openstack_connection() as conn:
            openstack_server = conn.compute.get_server(server.id)
            openstack_server = conn.compute.wait_for_server(
                openstack_server,
                status="ACTIVE",
                failures=["ERROR"],
                interval=SERVER_POLL_INTERVAL,
                wait=timeout,
            )
        return ServerRecord.from_openstack_server(openstack_server)

    @_catch_openstack_errors
    def wait_for_network_attach(self, server: ServerRecord, timeout: int) -> ServerRecord:
        """Block until RackConnect automation has attached the server networks.

        Args:
            server: The server to wait for.
            timeout: Seconds to wait.

        Raises:
            GatewayError: If the RackConnect automation failed.

        Returns:
            The server, whose public address may have been changed by RackConnect.
        """
        logger.info("Waiting up to %s seconds for RackConnect on %s", timeout, server.id)
        with self._get_openstack_connection() as conn:
            for _ in openstack.utils.iterate_timeout(
                timeout,
                f"Timeout waiting for RackConnect automation on server {server.id}",
                wait=SERVER_POLL_INTERVAL,
            ):
                openstack_server = conn.compute.get_server(server.id)
                status = (openstack_server.metadata or {}).get(RACKCONNECT_STATUS_KEY)
                logger.debug("RackConnect status of %s: %s", server.id, status)
                if status == RACKCONNECT_DEPLOYED:
                    return ServerRecord.from_openstack_server(openstack_server)
                if status in RACKCONNECT_FAILURES:
                    raise GatewayError(
                        f"RackConnect automation of server {server.id} ended as {status}"
                    )
        # iterate_timeout raises ResourceTimeout instead of running out.
        raise GatewayError(f"RackConnect automation of server {server.id} did not finish")

    @_catch_openstack_errors
    def list_images(self) -> tuple[str, ...]:
        """List the IDs of the images available to boot from.

        Returns:
            The image IDs.
        """
        with self._get_openstack_connection() as conn:
            return tuple(image.id for image in conn.compute.images())

    @_catch_openstack_errors
    def list_flavors(self) -> tuple[str, ...]:
        """List the IDs of the available flavors.

        Returns:
            The flavor IDs.
        """
        with self._get_openstack_connection() as conn:
            return tuple(flavor.id for flavor in conn.compute.flavors())

    def _check_credentials(self) -> None:
        """Check the credentials are complete before reaching out to the API.

        Raises:
            MissingCredentialError: If the username or the API key is missing.
        """
        if not self._credentials.username:
            raise MissingCredentialError("Missing Rackspace username")
        if not self._credentials.api_key:
            raise MissingCredentialError("Missing Rackspace API key")

    @contextmanager
    def _get_openstack_connection(self) -> Iterator[OpenstackConnection]:
        """Create a connection context managed object, to be used within with statements.

        Using the context manager ensures that the connection is properly closed after use.

        Yields:
            An openstack.connection.Connection object.
        """
        self._check_credentials()
        with openstack.connect(
            auth_url=self._auth_url,
            username=self._credentials.username,
            password=self._credentials.api_key,
            region_name=self.region.upper(),
            compute_api_version=_COMPUTE_API_VERSION,
            api_timeout=self.timeout,
        ) as conn:
            yield conn


def _get_server(conn: OpenstackConnection, server_id: str) -> OpenstackServer | None:
    """Get a server, None when it does not exist.

    Args:
        conn: The connection to the compute API.
        server_id: The server ID.

    Returns:
        The server if found.
    """
    try:
        return conn.compute.get_server(server_id)
    except openstack.exceptions.NotFoundException:
        return None


def _b64encode(text: str) -> str:
    """Encode text for the compute API, which takes file contents and user data in base64."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
