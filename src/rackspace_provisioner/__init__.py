# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Provisioning driver for ephemeral Rackspace cloud servers."""
