#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Unit test setups and configurations."""

from pathlib import Path

import pytest

from rackspace_provisioner.configuration import CREDENTIAL_ENV_VARS
from tests.unit.fake_compute import FakeCompute


@pytest.fixture(name="home", autouse=True)
def home_fixture(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Isolate the tests from the user home and credentials of the machine running them."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for _, names in CREDENTIAL_ENV_VARS:
        for name in names:
            monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture(name="public_key")
def public_key_fixture(home: Path) -> Path:
    """Create the default public key of the user."""
    ssh_dir = home / ".ssh"
    ssh_dir.mkdir()
    key_path = ssh_dir / "id_rsa.pub"
    key_path.write_text("ssh-rsa AAAAB3NzaC1yc2E test@host\n", encoding="utf-8")
    return key_path


@pytest.fixture(name="fake_compute")
def fake_compute_fixture() -> FakeCompute:
    """Fake compute API with an active server."""
    return FakeCompute()
