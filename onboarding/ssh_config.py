"""Host-alias blocks for the SSH client configuration, appended if absent.

This is not an SSH config parser: an entry counts as present when a `Host`
line lists the alias as one of its patterns. The file is only ever appended
to, never edited in place.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from gitswitch.errors import ConfigWriteError, ValidationError
from gitswitch.utils.formatting import slugify
from gitswitch.validation import ensure_host_name, ensure_safe_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostEntryRequest:
    identity_name: str
    provider: str
    key_name: str
    host_url: str


@dataclass(frozen=True)
class UpsertResult:
    host_alias: str
    clone_example: str
    written: bool


def host_alias_for(provider: str, identity_name: str) -> str:
    """`<provider>-<slug>`, e.g. ("github", "Work Account") -> "github-work-account"."""
    return f"{provider}-{slugify(identity_name, '-')}"


def clone_example_for(host_alias: str) -> str:
    return f"git clone git@{host_alias}:username/repo.git"


def has_host(config_text: str, host_alias: str) -> bool:
    """True if a `Host` line lists host_alias as one of its patterns."""
    pattern = (
        r"^[ \t]*(?i:host)[ \t]+(?:[^\n]*[ \t])?"
        + re.escape(host_alias)
        + r"(?:[ \t\r][^\n]*)?$"
    )
    return re.search(pattern, config_text, re.MULTILINE) is not None


class SSHConfigSynthesizer:
    """Builds and appends Host blocks to one SSH client config file."""

    def __init__(self, config_path: Path, key_dir_display: str = "~/.ssh") -> None:
        self.config_path = config_path
        self.key_dir_display = key_dir_display.rstrip("/")

    def render_block(self, request: HostEntryRequest, host_alias: str) -> str:
        return (
            f"# Git identity: {request.identity_name} ({request.provider})\n"
            f"Host {host_alias}\n"
            f"    HostName {request.host_url}\n"
            f"    User git\n"
            f"    IdentityFile {self.key_dir_display}/{request.key_name}\n"
            f"    IdentitiesOnly yes\n"
        )

    def read(self) -> str:
        """Current file content; empty when the file does not exist."""
        try:
            return self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise ConfigWriteError(f"Failed to read {self.config_path}: {e}") from e

    def upsert_entry(self, request: HostEntryRequest) -> UpsertResult:
        """Append a Host block for request unless its alias is already present.

        An existing alias is success with written=False and no write at all.
        """
        missing = [
            name
            for name in ("identity_name", "provider", "key_name", "host_url")
            if not str(getattr(request, name) or "").strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        ensure_safe_name(request.identity_name, "identity name")
        ensure_safe_name(request.provider, "provider")
        ensure_safe_name(request.key_name, "key name")
        ensure_host_name(request.host_url)

        host_alias = host_alias_for(request.provider, request.identity_name)
        clone_example = clone_example_for(host_alias)

        existing = self.read()
        if has_host(existing, host_alias):
            logger.info("SSH config already has Host %s", host_alias)
            return UpsertResult(host_alias, clone_example, written=False)

        prefix = ""
        if existing:
            prefix = "\n" if existing.endswith("\n") else "\n\n"
        self._append(prefix + self.render_block(request, host_alias))
        logger.info("Added Host %s to %s", host_alias, self.config_path)
        return UpsertResult(host_alias, clone_example, written=True)

    def _append(self, text: str) -> None:
        parent = self.config_path.parent
        try:
            if not parent.exists():
                parent.mkdir(parents=True, mode=0o700)
                parent.chmod(0o700)
            # The mode only applies when O_CREAT creates the file
            fd = os.open(
                self.config_path,
                os.O_WRONLY | os.O_APPEND | os.O_CREAT,
                0o600,
            )
            with open(fd, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise ConfigWriteError(f"Failed to write {self.config_path}: {e}") from e
