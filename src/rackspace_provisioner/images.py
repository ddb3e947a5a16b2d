# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Mapping of test platforms to the Rackspace images they boot from."""

import logging

from rackspace_provisioner.errors import UnknownPlatformError

logger = logging.getLogger(__name__)

# Keys are "<name>-<version>", "<name>-<major version>" or a bare "<name>" for the latest
# release of the distribution.
IMAGES: dict[str, str] = {
    "ubuntu-12.04": "a3da5530-71c6-4405-b64f-fd2da99d303c",
    "ubuntu-12": "a3da5530-71c6-4405-b64f-fd2da99d303c",
    "ubuntu": "0766e5df-d60a-4100-ae8c-07f27ec0148f",
    "centos-5.11": "e0748e2d-569f-4ea6-85ad-fe559991db57",
    "centos-5": "e0748e2d-569f-4ea6-85ad-fe559991db57",
    "centos": "bfa5783c-e40e-4668-adc1-feb0ae3d7a46",
}


def candidate_image_keys(platform_name: str) -> list[str]:
    """List the image mapping keys to try for a platform, most specific first.

    Args:
        platform_name: The platform name, e.g. ``ubuntu-12.04``.

    Returns:
        The keys in lookup order, without duplicates.
    """
    name, _, version = platform_name.partition("-")
    candidates = [platform_name]
    if version:
        major = version.split(".")[0]
        candidates.append(f"{name}-{major}")
    candidates.append(name)
    return list(dict.fromkeys(candidates))


def image_id_for_platform(platform_name: str, images: dict[str, str] | None = None) -> str:
    """Find the image ID to boot a platform from.

    Args:
        platform_name: The platform name, e.g. ``ubuntu-12.04`` or ``centos``.
        images: The mapping to search in, the built-in table by default.

    Raises:
        UnknownPlatformError: If no image is mapped for the platform.

    Returns:
        The Rackspace image ID.
    """
    table = IMAGES if images is None else images
    for key in candidate_image_keys(platform_name):
        if key in table:
            logger.debug("Platform %s matched image key %s", platform_name, key)
            return table[key]
    raise UnknownPlatformError(f"No image found for platform {platform_name}")
