"""Wizard steps and the per-run session."""

from dataclasses import dataclass
from enum import IntEnum


class WizardStep(IntEnum):
    IDENTITY_INFO = 0
    GENERATE_KEY = 1
    PROVIDER_INSTRUCTIONS = 2
    CONFIGURE_AND_TEST = 3


@dataclass
class WizardSession:
    """Fields accumulated while the wizard runs. Never persisted."""

    identity_name: str = ""
    email: str = ""
    provider: str = "github"
    host_name: str = ""
    key_name: str = ""
    public_key: str = ""
    host_alias: str = ""
    clone_example: str = ""
    connection_ok: bool | None = None
    completed: bool = False
