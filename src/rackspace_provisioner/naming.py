# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Generation of server names."""

import getpass
import logging
import re
import secrets
import socket

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 63
NO_LOGIN_PLACEHOLDER = "nologin"
NAME_SEPARATOR = "-"
SUFFIX_LENGTH = 6

# Anything but letters and digits, the separator included, is removed from each component.
_STRIPPED_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


def _clean(component: str) -> str:
    """Remove the characters not allowed in a name component."""
    return _STRIPPED_CHARACTERS.sub("", component)


def _fit_lengths(lengths: list[int], available: int) -> list[int]:
    """Shorten the longest lengths first until their sum fits.

    Gives the same lengths as removing one character at a time from the longest length, the
    first one on ties.

    Args:
        lengths: The lengths of the components.
        available: The maximum sum of the lengths.

    Returns:
        The shortened lengths.
    """
    if sum(lengths) <= available:
        return lengths
    # Largest cap keeping the sum within the available length.
    low, high = 0, max(lengths)
    while low < high:
        cap = (low + high + 1) // 2
        if sum(min(length, cap) for length in lengths) <= available:
            low = cap
        else:
            high = cap - 1
    fitted = [min(length, low) for length in lengths]
    # The last components over the cap keep one more character with what is left.
    leftover = available - sum(fitted)
    over_cap = [index for index, length in enumerate(lengths) if length > low]
    for index in over_cap[len(over_cap) - leftover :]:
        fitted[index] += 1
    return fitted


def generate_server_name(
    instance_label: str, login: str | None, hostname: str, suffix: str | None = None
) -> str:
    """Generate a server name identifying the instance, the user and the local host.

    The name is made of four components joined by exactly three hyphens. When the name would
    exceed 63 characters, the longest components are shortened to a common length.

    Args:
        instance_label: The short label of the test instance.
        login: The login name of the local user, None when there is no login.
        hostname: The name of the local host.
        suffix: The random suffix, generated when not given.

    Returns:
        The server name.
    """
    if suffix is None:
        suffix = secrets.token_hex(SUFFIX_LENGTH // 2)
    components = [
        _clean(instance_label),
        _clean(login or NO_LOGIN_PLACEHOLDER),
        _clean(hostname),
        _clean(suffix),
    ]

    available = MAX_NAME_LENGTH - len(NAME_SEPARATOR) * (len(components) - 1)
    lengths = _fit_lengths([len(component) for component in components], available)
    components = [component[:length] for component, length in zip(components, lengths)]

    return NAME_SEPARATOR.join(components)


def _current_login() -> str | None:
    """Get the login name of the local user.

    Returns:
        The login name, None if the process has no login.
    """
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        logger.debug("Unable to determine the login name", exc_info=True)
        return None


def default_server_name(instance_label: str) -> str:
    """Generate a server name for an instance from the local user and host.

    Args:
        instance_label: The short label of the test instance.

    Returns:
        The server name.
    """
    return generate_server_name(instance_label, _current_login(), socket.gethostname())
