# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Driver configuration and the resolution of its defaults."""

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, TextIO

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rackspace_provisioner.errors import ConfigurationError, UnknownPlatformError
from rackspace_provisioner.images import image_id_for_platform
from rackspace_provisioner.rackspace_cloud.constants import DEFAULT_AUTH_URL

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_KEY_PATH = Path("~/.ssh/id_rsa.pub")
MAX_PORT = 65535

# Each credential field is read from the first non-empty variable of its chain.
CREDENTIAL_ENV_VARS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("username", ("RACKSPACE_USERNAME", "OS_USERNAME")),
    ("api_key", ("RACKSPACE_API_KEY", "OS_PASSWORD")),
)


class Credentials(BaseModel):
    """Rackspace API credentials.

    Attributes:
        username: The Rackspace account username.
        api_key: The API key of the account.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str | None = None
    api_key: str | None = None


class DriverConfiguration(BaseModel):
    """Resolved configuration of the driver.

    Attributes:
        version: The Rackspace cloud generation, only the OpenStack based "v2" is served.
        flavor_id: The flavor (size) of the servers.
        image_id: The image to boot the servers from, None if no image is known.
        public_key_path: Public key to authorize for root on the servers.
        username: The user to log in to the servers as.
        port: The port the servers are reached on.
        server_name: Name of the server, generated on create when not set.
        region: The Rackspace region, e.g. "dfw".
        auth_url: The Rackspace identity endpoint.
        credentials: The credentials for the compute API.
        wait_timeout: Seconds to wait for the server to come up. Also the compute API timeout.
        skip_tcp_check: Whether to sleep instead of probing the server port.
        skip_tcp_check_sleep: Seconds to sleep when the port probe is skipped.
        networks: Extra networks to attach the servers to, None for the provider defaults.
        network_attach_wait: Whether to wait for RackConnect to attach the networks.
        use_private_address: Whether to reach the servers on their ServiceNet address.
        config_drive: Whether to attach a config drive to the servers.
        user_data: Cloud-init user data for the servers.
        metadata: Extra metadata to set on the servers, read-only.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = "v2"
    flavor_id: str = "performance1-1"
    image_id: str | None = None
    public_key_path: Path | None = None
    username: str = "root"
    port: str = "22"
    server_name: str | None = None
    region: str = "dfw"
    auth_url: str = DEFAULT_AUTH_URL
    credentials: Credentials = Field(default_factory=Credentials)
    wait_timeout: int = Field(600, gt=0)
    skip_tcp_check: bool = False
    skip_tcp_check_sleep: int = Field(120, ge=0)
    networks: tuple[str, ...] | None = None
    network_attach_wait: bool = False
    use_private_address: bool = False
    config_drive: bool = True
    user_data: str | None = None
    metadata: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("port", mode="before")
    @classmethod
    def _port_as_string(cls, value: Any) -> Any:
        """Accept numeric ports.

        Args:
            value: The port as given.

        Returns:
            The port as a string if it was an integer.
        """
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: str) -> str:
        """Check the port is a TCP port number.

        Args:
            value: The port.

        Raises:
            ValueError: If the port is not a number between 1 and 65535.

        Returns:
            The port.
        """
        if not value.isdecimal() or not 1 <= int(value) <= MAX_PORT:
            raise ValueError(f"port must be a number between 1 and {MAX_PORT}, got {value!r}")
        return value

    @field_validator("metadata")
    @classmethod
    def _read_only_metadata(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        """Wrap the metadata in a read-only view."""
        return MappingProxyType(dict(value))

    @staticmethod
    def from_yaml_file(
        file: TextIO,
        *,
        platform_name: str,
        environ: Mapping[str, str] | None = None,
        set_api_timeout: Callable[[int], None] | None = None,
    ) -> "DriverConfiguration":
        """Resolve the configuration from a YAML formatted file of driver options.

        Args:
            file: The file object to parse the options from.
            platform_name: The platform of the instance, used to pick the image.
            environ: Environment to read the credentials from.
            set_api_timeout: Receives the resolved compute API timeout.

        Raises:
            ConfigurationError: If the file does not hold a mapping of options.

        Returns:
            The configuration.
        """
        options = yaml.safe_load(file)
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigurationError("Driver options must be a mapping.")
        return resolve_configuration(
            options,
            platform_name=platform_name,
            environ=environ,
            set_api_timeout=set_api_timeout,
        )


def credentials_from_environment(environ: Mapping[str, str]) -> dict[str, str | None]:
    """Read the credentials from the environment.

    Args:
        environ: The environment variables.

    Returns:
        The value of each credential field, None where no variable of its chain is set.
    """
    return {
        field: next((environ[name] for name in names if environ.get(name)), None)
        for field, names in CREDENTIAL_ENV_VARS
    }


def default_public_key_path() -> Path | None:
    """Get the public key of the local user.

    Returns:
        The path to the key if it exists.
    """
    path = DEFAULT_PUBLIC_KEY_PATH.expanduser()
    if path.exists():
        return path
    return None


def resolve_configuration(
    options: Mapping[str, Any],
    *,
    platform_name: str,
    environ: Mapping[str, str] | None = None,
    set_api_timeout: Callable[[int], None] | None = None,
) -> DriverConfiguration:
    """Merge the driver options with the computed defaults.

    Options given by the caller always win, an explicit None included. A platform with no
    known image does not fail here: image_id is left as None and create raises
    UnknownPlatformError unless image_id is given.

    Args:
        options: The driver options given by the user.
        platform_name: The platform of the instance, used to pick the image.
        environ: Environment to read the credentials from, the process environment by default.
        set_api_timeout: Called with the resolved wait_timeout, which is also the timeout of
            the compute API client.

    Raises:
        ConfigurationError: If an option has an invalid value.

    Returns:
        The resolved configuration.
    """
    user_options = dict(options)
    environ = os.environ if environ is None else environ

    credentials = credentials_from_environment(environ)
    credential_overrides = user_options.pop("credentials", None) or {}
    if not isinstance(credential_overrides, Mapping):
        raise ConfigurationError("The credentials option must be a mapping.")
    credentials.update(credential_overrides)

    defaults: dict[str, Any] = {}
    if "public_key_path" not in user_options:
        defaults["public_key_path"] = default_public_key_path()
    if "image_id" not in user_options:
        try:
            defaults["image_id"] = image_id_for_platform(platform_name)
        except UnknownPlatformError:
            logger.warning("No default image for platform %s", platform_name)

    try:
        config = DriverConfiguration.model_validate(
            {**defaults, **user_options, "credentials": credentials}
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid driver configuration: {exc}") from exc

    logger.debug("Using a compute API timeout of %s seconds", config.wait_timeout)
    if set_api_timeout is not None:
        set_api_timeout(config.wait_timeout)
    return config
