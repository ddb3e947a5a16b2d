# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Driver creating and destroying Rackspace servers for test instances."""

import logging
from typing import Any, Mapping, MutableMapping

from rackspace_provisioner.configuration import DriverConfiguration, resolve_configuration
from rackspace_provisioner.errors import (
    ActionFailedError,
    ConfigurationError,
    GatewayError,
    UnknownPlatformError,
)
from rackspace_provisioner.models import ComputeGateway, ServerRecord, ServerSpec
from rackspace_provisioner.naming import default_server_name
from rackspace_provisioner.rackspace_cloud.constants import DEFAULT_NETWORKS
from rackspace_provisioner.rackspace_cloud.rackspace_compute import RackspaceCompute
from rackspace_provisioner.readiness import NetworkAttachWaiter, ReadinessChecker

logger = logging.getLogger(__name__)

SERVER_ID_KEY = "server_id"
HOSTNAME_KEY = "hostname"

# The caller owned state persisted between create and destroy.
ResultState = MutableMapping[str, Any]


class RackspaceDriver:
    """Create and destroy the Rackspace server of a test instance.

    Attributes:
        instance_label: The short label of the test instance.
    """

    def __init__(
        self,
        config: DriverConfiguration,
        instance_label: str,
        compute: ComputeGateway | None = None,
    ) -> None:
        """Construct the object.

        Args:
            config: The resolved driver configuration.
            instance_label: The short label of the test instance, used in generated names.
            compute: The compute API, a Rackspace client built from the configuration if None.
        """
        self._config = config
        self.instance_label = instance_label
        self._compute = compute
        self._server_name = config.server_name

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        *,
        instance_label: str,
        platform_name: str,
        environ: Mapping[str, str] | None = None,
    ) -> "RackspaceDriver":
        """Construct the driver from unresolved driver options.

        Args:
            options: The driver options given by the user.
            instance_label: The short label of the test instance.
            platform_name: The platform of the test instance.
            environ: Environment to read the credentials from.

        Returns:
            The driver.
        """
        config = resolve_configuration(options, platform_name=platform_name, environ=environ)
        return cls(config, instance_label)

    @property
    def config(self) -> DriverConfiguration:
        """The resolved driver configuration."""
        return self._config

    @property
    def server_name(self) -> str | None:
        """The server name, None until generated on create when not configured."""
        return self._server_name

    @property
    def compute(self) -> ComputeGateway:
        """The compute API.

        The Rackspace client is created on first use, so missing credentials only fail the
        operations that need them.

        Returns:
            The compute API.
        """
        if self._compute is None:
            self._compute = RackspaceCompute.from_configuration(self._config)
        return self._compute

    @property
    def networks(self) -> list[str] | None:
        """The networks to attach new servers to.

        Returns:
            None to let Rackspace attach its default networks, otherwise the default networks
            followed by the configured ones.
        """
        if self._config.networks is None:
            return None
        return [*DEFAULT_NETWORKS, *self._config.networks]

    def create(self, state: ResultState) -> None:
        """Create the server and wait for it to be reachable.

        The server ID is recorded as soon as the server exists and the hostname as soon as
        the server is active, so that a failed wait still leaves enough state to destroy it.

        Args:
            state: The state of the instance, updated with the server ID and hostname.

        Raises:
            ActionFailedError: If the compute API failed or returned a server with no address.
        """
        if self._server_name is None:
            self._server_name = default_server_name(self.instance_label)
            logger.info("Generated server name %s", self._server_name)
        spec = self._server_spec(self._server_name)

        try:
            server = self.compute.create_instance(spec)
            state[SERVER_ID_KEY] = server.id
            logger.info("Rackspace instance <%s> created.", server.id)

            server = self.compute.wait_until_ready(server, self._config.wait_timeout)
            logger.info("Rackspace instance <%s> ready.", server.id)
            if self._config.network_attach_wait:
                server = NetworkAttachWaiter(self.compute, self._config.wait_timeout).wait(server)
        except GatewayError as exc:
            logger.exception("Failed to create server %s", self._server_name)
            raise ActionFailedError(str(exc)) from exc

        hostname = self._hostname(server)
        if hostname is None:
            raise ActionFailedError(f"No usable address found for server {server.id}")
        state[HOSTNAME_KEY] = hostname

        ReadinessChecker(
            port=int(self._config.port),
            timeout=self._config.wait_timeout,
            skip=self._config.skip_tcp_check,
            skip_sleep=self._config.skip_tcp_check_sleep,
        ).wait(hostname)
        logger.info("Rackspace instance <%s> reachable at %s.", server.id, hostname)

    def destroy(self, state: ResultState) -> None:
        """Destroy the server of the instance, if any.

        A state with no server ID and a server already deleted are both fine.

        Args:
            state: The state of the instance, cleared of the server ID and hostname.
        """
        server_id = state.get(SERVER_ID_KEY)
        if server_id is None:
            logger.debug("No server to destroy")
            return

        server = self.compute.get_instance(server_id)
        if server is None:
            logger.warning("Rackspace instance <%s> not found, already destroyed", server_id)
        else:
            self.compute.delete_instance(server.id)
            logger.info("Rackspace instance <%s> destroyed.", server_id)
        state.pop(SERVER_ID_KEY, None)
        state.pop(HOSTNAME_KEY, None)

    def _server_spec(self, name: str) -> ServerSpec:
        """Build what is needed to create the server.

        Args:
            name: The name of the server.

        Raises:
            UnknownPlatformError: If no image is configured or known for the platform.
            ConfigurationError: If the public key cannot be read.

        Returns:
            The server specification.
        """
        if self._config.image_id is None:
            raise UnknownPlatformError(
                "No image to boot from, set image_id for platforms with no default image"
            )
        public_key = None
        if (key_path := self._config.public_key_path) is not None:
            try:
                public_key = key_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(f"Unable to read public key {key_path}") from exc
        return ServerSpec(
            name=name,
            image_id=self._config.image_id,
            flavor_id=self._config.flavor_id,
            networks=self.networks,
            public_key=public_key,
            config_drive=self._config.config_drive,
            user_data=self._config.user_data,
            metadata=dict(self._config.metadata),
        )

    def _hostname(self, server: ServerRecord) -> str | None:
        """Pick the address to reach the server on.

        Args:
            server: The active server.

        Returns:
            The ServiceNet address if configured so, the public address otherwise.
        """
        if self._config.use_private_address:
            return server.private_address
        return server.public_address
