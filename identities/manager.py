"""Identity list operations and workspace switching."""

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from gitswitch.errors import DuplicateIdentityError, GitSwitchError, ValidationError
from gitswitch.process import ExternalProcessGateway, GitIdentity
from identities.models import Identity
from identities.store import IdentityStore

logger = logging.getLogger(__name__)

NOT_SET = "Not set"


@dataclass(frozen=True)
class StatusText:
    """Status line for the current workspace identity."""

    text: str
    tooltip: str


class IdentityManager:
    """CRUD over the stored identity list plus git identity read/write."""

    def __init__(self, store: IdentityStore, gateway: ExternalProcessGateway) -> None:
        self.store = store
        self.gateway = gateway

    def list_identities(self) -> list[Identity]:
        return self.store.load()

    def names(self) -> list[str]:
        return [i.name for i in self.store.load()]

    def get(self, name: str) -> Identity | None:
        return next((i for i in self.store.load() if i.name == name), None)

    def add(self, name: str, username: str, email: str) -> Identity:
        """Append a new identity. Raises DuplicateIdentityError if name is taken."""
        try:
            identity = Identity(name=name, username=username, email=email)
        except PydanticValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise ValidationError(f"Missing required fields: {fields}") from e

        identities = self.store.load()
        if any(i.name == identity.name for i in identities):
            raise DuplicateIdentityError(identity.name)

        identities.append(identity)
        self.store.replace_all(identities)
        logger.info("Added identity %s", identity.name)
        return identity

    def delete(self, name: str) -> bool:
        """Remove the identity named name. Returns False (no-op) if absent."""
        identities = self.store.load()
        remaining = [i for i in identities if i.name != name]
        if len(remaining) == len(identities):
            return False
        self.store.replace_all(remaining)
        logger.info("Deleted identity %s", name)
        return True

    async def switch(self, identity: Identity, workspace: Path | None) -> None:
        """Write identity's username/email into the workspace repository config."""
        await self.gateway.write_identity(workspace, identity.username, identity.email)
        logger.info("Switched %s to identity %s", workspace, identity.name)

    async def current(self, workspace: Path | None) -> GitIdentity:
        return await self.gateway.read_identity(workspace)

    async def status_text(self, workspace: Path | None) -> StatusText | None:
        """Status line for workspace, or None when there is nothing to show."""
        try:
            current = await self.current(workspace)
        except GitSwitchError as e:
            logger.debug("No status for %s: %s", workspace, e)
            return None
        username = current.username or NOT_SET
        email = current.email or NOT_SET
        return StatusText(
            text=username,
            tooltip=f"Git: {username} <{email}>\nSelect to switch identity",
        )
