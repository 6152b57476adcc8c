"""Entry point: python -m identities [workspace].

Interactive menu over the stored identities for one workspace (default: the
current directory).
"""

import asyncio
import sys
from pathlib import Path

import questionary
from dotenv import load_dotenv
from questionary import Choice

from gitswitch.errors import GitSwitchError, ValidationError
from gitswitch.logging_config import setup_logging
from gitswitch.settings import get_config_dir, get_setting, load_settings, resolve_path
from gitswitch.utils.formatting import relative_time
from identities.manager import IdentityManager, NOT_SET
from identities.models import Identity
from identities.store import YamlIdentityStore
from onboarding.steps.identity_step import ask_until_nonempty
from onboarding.ui import FAIL, OK, STYLE
from onboarding.wizard import build_gateway, run_wizard

_SWITCH = "switch"
_ADD = "add"
_DELETE = "delete"
_CURRENT = "current"
_SSH = "ssh"
_QUIT = "quit"


def _identity_choices(identities: list[Identity]) -> list[Choice]:
    choices = []
    for identity in identities:
        created = relative_time(identity.id)
        suffix = f", added {created}" if created else ""
        label = f"{identity.name} ({identity.description}{suffix})"
        choices.append(Choice(label, identity.name))
    return choices


def _switch(manager: IdentityManager, workspace: Path) -> None:
    identities = manager.list_identities()
    if not identities:
        print("No identities configured. Add one first.\n")
        return
    name = questionary.select(
        "Select identity to switch to",
        choices=_identity_choices(identities),
        style=STYLE,
    ).ask()
    if name is None:
        return
    identity = manager.get(name)
    if identity is None:
        return
    try:
        asyncio.run(manager.switch(identity, workspace))
    except GitSwitchError as e:
        print(f"  {FAIL} {e}\n")
        return
    print(f'  {OK} Switched to "{identity.name}" for {workspace.name}\n')


def _add(manager: IdentityManager) -> None:
    name = ask_until_nonempty('Identity name (e.g. "Work", "Personal"):')
    if name is None:
        return
    username = ask_until_nonempty("Git username:")
    if username is None:
        return
    email = ask_until_nonempty("Git email:")
    if email is None:
        return
    try:
        manager.add(name, username, email)
    except ValidationError as e:
        print(f"  {FAIL} {e}\n")
        return
    print(f"  {OK} Added identity: {name}\n")


def _delete(manager: IdentityManager) -> None:
    identities = manager.list_identities()
    if not identities:
        print("No identities configured.\n")
        return
    name = questionary.select(
        "Select identity to delete", choices=_identity_choices(identities), style=STYLE
    ).ask()
    if name is None:
        return
    confirm = questionary.confirm(f'Delete identity "{name}"?', default=False, style=STYLE).ask()
    if confirm and manager.delete(name):
        print(f"  {OK} Deleted identity: {name}\n")


def _show_current(manager: IdentityManager, workspace: Path) -> None:
    try:
        current = asyncio.run(manager.current(workspace))
    except GitSwitchError as e:
        print(f"  {FAIL} {e}\n")
        return
    print(f"  Git: {current.username or NOT_SET} <{current.email or NOT_SET}>\n")


def main() -> int:
    load_dotenv()
    config_dir = get_config_dir()
    settings = load_settings(config_dir)
    setup_logging(config_dir, settings)

    workspace = Path(sys.argv[1]).resolve() if len(sys.argv) > 1 else Path.cwd()
    store = YamlIdentityStore(
        resolve_path(get_setting(settings, "identities.file", "identities.yaml"), config_dir)
    )
    manager = IdentityManager(store, build_gateway(settings))

    status = asyncio.run(manager.status_text(workspace))
    if status is not None:
        print(f"\n{status.tooltip.splitlines()[0]}  ({workspace})\n")

    try:
        while True:
            action = questionary.select(
                "Git identities",
                choices=[
                    Choice("Switch identity", _SWITCH),
                    Choice("Add identity", _ADD),
                    Choice("Delete identity", _DELETE),
                    Choice("Show current identity", _CURRENT),
                    Choice("Set up SSH key for an identity", _SSH),
                    Choice("Quit", _QUIT),
                ],
                style=STYLE,
            ).ask()
            if action is None or action == _QUIT:
                return 0
            if action == _SWITCH:
                _switch(manager, workspace)
            elif action == _ADD:
                _add(manager)
            elif action == _DELETE:
                _delete(manager)
            elif action == _CURRENT:
                _show_current(manager, workspace)
            else:
                run_wizard(settings, manager)
    except KeyboardInterrupt:
        print()
        return 0


if __name__ == "__main__":
    sys.exit(main())
