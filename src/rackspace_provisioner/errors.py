# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Errors used by the provisioner."""
from __future__ import annotations


class ProvisionerError(Exception):
    """Generic provisioner error as base exception."""


class ConfigurationError(ProvisionerError):
    """Represents an invalid or incomplete driver configuration."""


class MissingCredentialError(ConfigurationError):
    """Represents a missing username or API key for the compute API."""


class UnknownPlatformError(ConfigurationError):
    """Represents a platform with no known image to boot from."""


class CloudError(ProvisionerError):
    """Base class for cloud (as e.g. Rackspace) errors."""


class GatewayError(CloudError):
    """Represents a failed call to the remote compute API."""


class ReadinessTimeoutError(ProvisionerError):
    """Represents an instance that never became reachable in the allowed time."""


class ActionFailedError(ProvisionerError):
    """Represents a failed create or destroy action on an instance."""
