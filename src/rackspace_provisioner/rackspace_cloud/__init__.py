# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module for managing servers on the Rackspace cloud."""
