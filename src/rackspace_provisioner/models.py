# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing the server models and the compute gateway interface."""

import abc
from dataclasses import dataclass, field
from typing import Any, Sequence

from openstack.compute.v2.server import Server as OpenstackServer

from rackspace_provisioner.rackspace_cloud.constants import (
    PRIVATE_NETWORK_LABEL,
    PUBLIC_NETWORK_LABEL,
)


@dataclass(frozen=True)
class ServerSpec:
    """What is needed to create a server.

    Attributes:
        name: Name of the server.
        image_id: The image to boot from.
        flavor_id: The flavor of the server.
        networks: The networks to attach, None for the provider defaults.
        public_key: Public key to authorize for root.
        config_drive: Whether to attach a config drive.
        user_data: Cloud-init user data.
        metadata: Metadata of the server.
    """

    name: str
    image_id: str
    flavor_id: str
    networks: Sequence[str] | None = None
    public_key: str | None = None
    config_drive: bool = True
    user_data: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


def _first_ipv4(addresses: dict[str, list[dict[str, Any]]], label: str) -> str | None:
    """Find the first IPv4 address on a network.

    Args:
        addresses: The server addresses keyed by network label.
        label: The network label.

    Returns:
        The address if any.
    """
    for address in addresses.get(label) or []:
        if address.get("version") == 4:
            return address["addr"]
    return None


@dataclass(frozen=True)
class ServerRecord:
    """Represents a Rackspace server.

    Attributes:
        id: ID of server assigned by Rackspace.
        name: Name of the server.
        status: Status of the server.
        public_address: The public IPv4 address, if assigned yet.
        private_address: The ServiceNet IPv4 address, if assigned yet.
        metadata: Metadata of the server.
    """

    id: str
    name: str
    status: str
    public_address: str | None = None
    private_address: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_openstack_server(cls, server: OpenstackServer) -> "ServerRecord":
        """Construct the object.

        The access IPv4 address, rewritten by RackConnect, wins over the public network one.

        Args:
            server: The OpenStack server.

        Returns:
            The ServerRecord.
        """
        addresses = server.addresses or {}
        return cls(
            id=server.id,
            name=server.name,
            status=server.status,
            public_address=server.access_ipv4 or _first_ipv4(addresses, PUBLIC_NETWORK_LABEL),
            private_address=_first_ipv4(addresses, PRIVATE_NETWORK_LABEL),
            metadata=dict(server.metadata or {}),
        )


class ComputeGateway(abc.ABC):
    """Authenticated access to the remote compute API."""

    @abc.abstractmethod
    def create_instance(self, spec: ServerSpec) -> ServerRecord:
        """Request the creation of a server, without waiting for it to be ready.

        Args:
            spec: What to create.
        """

    @abc.abstractmethod
    def get_instance(self, server_id: str) -> ServerRecord | None:
        """Get a server by ID.

        Args:
            server_id: The server ID.
        """

    @abc.abstractmethod
    def delete_instance(self, server_id: str) -> None:
        """Delete a server.

        Args:
            server_id: The server ID.
        """

    @abc.abstractmethod
    def wait_until_ready(self, server: ServerRecord, timeout: int) -> ServerRecord:
        """Block until the provider reports the server as ready.

        Args:
            server: The server to wait for.
            timeout: Seconds to wait.
        """

    @abc.abstractmethod
    def wait_for_network_attach(self, server: ServerRecord, timeout: int) -> ServerRecord:
        """Block until the provider automation has attached the server networks.

        Args:
            server: The server to wait for.
            timeout: Seconds to wait.
        """

    @abc.abstractmethod
    def list_images(self) -> tuple[str, ...]:
        """List the IDs of the images available to boot from."""

    @abc.abstractmethod
    def list_flavors(self) -> tuple[str, ...]:
        """List the IDs of the available flavors."""
