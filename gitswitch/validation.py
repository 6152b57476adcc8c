"""Input checks for values that end up in file names and the SSH client config."""

import re

from gitswitch.errors import ValidationError

# Control characters would start new ssh_config lines; / breaks key file
# names; * ? ! are ssh_config pattern characters.
_UNSAFE_NAME = re.compile(r"[\x00-\x1f\x7f/*?!]")
_UNSAFE_HOST = re.compile(r"[\s\x00-\x1f\x7f/*?!]")


def ensure_safe_name(value: str, label: str) -> str:
    """Return value if it can be used in a key file name and a Host alias."""
    if _UNSAFE_NAME.search(value):
        raise ValidationError(
            f"{label.capitalize()} must not contain line breaks, control characters "
            f"or any of / * ? !"
        )
    return value


def ensure_host_name(value: str) -> str:
    """Return value if it is usable as a single HostName token."""
    if _UNSAFE_HOST.search(value):
        raise ValidationError(
            "Host name must be a single word without spaces or any of / * ? !"
        )
    return value
