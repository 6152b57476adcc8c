"""Name normalization and human-friendly display helpers."""

import re
from datetime import datetime, timezone

import humanize

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str, separator: str = "_") -> str:
    """Lower-case name with every whitespace run replaced by separator.

    Key files use "_" (id_rsa_work_account), host aliases use "-"
    (github-work-account).
    """
    return _WHITESPACE.sub(separator, name.strip().lower())


def key_name_for(identity_name: str) -> str:
    """Deterministic key file name for an identity."""
    return f"id_rsa_{slugify(identity_name, '_')}"


def relative_time(epoch_ms: int | None) -> str:
    """Millisecond epoch to an English relative string, e.g. '3 days ago'.

    Empty string for None or non-positive values.
    """
    if not epoch_ms or epoch_ms <= 0:
        return ""
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return humanize.naturaltime(dt, when=datetime.now(timezone.utc))
