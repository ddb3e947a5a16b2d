#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Test the mapping of platforms to images."""

import pytest

from rackspace_provisioner.errors import UnknownPlatformError
from rackspace_provisioner.images import IMAGES, candidate_image_keys, image_id_for_platform


@pytest.mark.parametrize("platform_name, image_id", list(IMAGES.items()))
def test_mapped_platforms(platform_name: str, image_id: str):
    """
    arrange: Every platform of the mapping.
    act: Look up the image of the platform.
    assert: The mapped image is returned.
    """
    assert image_id_for_platform(platform_name) == image_id


@pytest.mark.parametrize(
    "platform_name, expected_keys",
    [
        pytest.param("ubuntu-12.04", ["ubuntu-12.04", "ubuntu-12", "ubuntu"], id="full version"),
        pytest.param("ubuntu-12", ["ubuntu-12", "ubuntu"], id="major version"),
        pytest.param("ubuntu", ["ubuntu"], id="no version"),
    ],
)
def test_candidate_image_keys(platform_name: str, expected_keys: list[str]):
    """
    arrange: Platform names with and without a version.
    act: List the keys to look up.
    assert: The keys go from the most to the least specific.
    """
    assert candidate_image_keys(platform_name) == expected_keys


@pytest.mark.parametrize(
    "platform_name, image_id",
    [
        pytest.param("ubuntu-12.04.5", IMAGES["ubuntu-12"], id="major version fallback"),
        pytest.param("centos-7", IMAGES["centos"], id="name fallback"),
    ],
)
def test_fallback(platform_name: str, image_id: str):
    """
    arrange: Platforms whose exact version is not mapped.
    act: Look up the image of the platform.
    assert: The image of the major version, or of the bare name, is returned.
    """
    assert image_id_for_platform(platform_name) == image_id


def test_unknown_platform():
    """
    arrange: A platform missing from the mapping.
    act: Look up the image of the platform.
    assert: UnknownPlatformError is raised.
    """
    with pytest.raises(UnknownPlatformError):
        image_id_for_platform("windows-2012r2")


def test_custom_mapping():
    """
    arrange: A custom mapping.
    act: Look up the image of a platform in the custom mapping only.
    assert: The custom image is returned.
    """
    assert image_id_for_platform("debian-7", {"debian": "d1"}) == "d1"
