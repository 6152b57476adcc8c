"""Identity persistence. The list is read and replaced wholesale, never patched."""

import logging
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import ValidationError as PydanticValidationError

from identities.models import Identity

logger = logging.getLogger(__name__)

IDENTITIES_KEY = "identities"


@runtime_checkable
class IdentityStore(Protocol):
    """Ordered identity list with load/replace-all semantics."""

    def load(self) -> list[Identity]: ...

    def replace_all(self, identities: list[Identity]) -> None: ...


class MemoryIdentityStore:
    """In-process store. Used by tests and as a scratch store."""

    def __init__(self, identities: list[Identity] | None = None) -> None:
        self._identities = list(identities or [])

    def load(self) -> list[Identity]:
        return [i.model_copy() for i in self._identities]

    def replace_all(self, identities: list[Identity]) -> None:
        self._identities = [i.model_copy() for i in identities]


class YamlIdentityStore:
    """Identity list in a YAML file under the `identities` key."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[Identity]:
        """Return stored identities in order. Invalid entries are skipped."""
        if not self.path.exists():
            return []
        data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        raw = data.get(IDENTITIES_KEY) if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return []
        out: list[Identity] = []
        for item in raw:
            try:
                out.append(Identity.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping invalid identity entry %r: %s", item, e)
        return out

    def replace_all(self, identities: list[Identity]) -> None:
        data = {IDENTITIES_KEY: [i.model_dump() for i in identities]}
        _write_atomic_yaml(self.path, data)


def _write_atomic_yaml(path: Path, data: dict[str, Any]) -> None:
    """Write YAML atomically via temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(suffix=".yaml", prefix="identities_", dir=path.parent)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        Path(tmp).replace(path)
    except Exception:
        Path(tmp).unlink(missing_ok=True)
        raise
