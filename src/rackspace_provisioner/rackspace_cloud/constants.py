#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Common constants for the Rackspace cloud module."""

DEFAULT_AUTH_URL = "https://identity.api.rackspacecloud.com/v2.0/"

# The Rackspace public Internet and ServiceNet networks, attached to every server by default.
PUBLICNET_ID = "00000000-0000-0000-0000-000000000000"
SERVICENET_ID = "11111111-1111-1111-1111-111111111111"
DEFAULT_NETWORKS = (PUBLICNET_ID, SERVICENET_ID)

PUBLIC_NETWORK_LABEL = "public"
PRIVATE_NETWORK_LABEL = "private"

RACKCONNECT_STATUS_KEY = "rackconnect_automation_status"
RACKCONNECT_DEPLOYED = "DEPLOYED"
RACKCONNECT_FAILURES = ("FAILED", "UNPROCESSABLE")

AUTHORIZED_KEYS_PATH = "/root/.ssh/authorized_keys"

SERVER_POLL_INTERVAL = 5
