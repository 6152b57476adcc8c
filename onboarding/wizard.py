"""Onboarding wizard orchestration for the terminal."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import questionary

from gitswitch.errors import ValidationError
from gitswitch.process import ExternalProcessGateway
from gitswitch.settings import get_setting
from identities.manager import IdentityManager
from onboarding.constants import STEP_BACK, STEP_CANCEL
from onboarding.controller import WizardController
from onboarding.ssh_config import SSHConfigSynthesizer
from onboarding.state import WizardStep
from onboarding.steps import (
    run_configure_step,
    run_identity_step,
    run_instructions_step,
    run_key_step,
)
from onboarding.steps.identity_step import ask_until_nonempty
from onboarding.ui import FAIL, OK, STYLE

logger = logging.getLogger(__name__)

_STEPS: dict[WizardStep, Callable[[WizardController], str]] = {
    WizardStep.IDENTITY_INFO: run_identity_step,
    WizardStep.GENERATE_KEY: run_key_step,
    WizardStep.PROVIDER_INSTRUCTIONS: run_instructions_step,
    WizardStep.CONFIGURE_AND_TEST: run_configure_step,
}


@dataclass
class WizardResult:
    """Result of running the wizard."""

    success: bool
    summary: dict[str, Any] = field(default_factory=dict)


def build_gateway(settings: dict[str, Any]) -> ExternalProcessGateway:
    return ExternalProcessGateway(
        Path(get_setting(settings, "ssh.dir", "~/.ssh")).expanduser(),
        key_bits=int(get_setting(settings, "ssh.key_bits", 4096)),
        connect_timeout=float(get_setting(settings, "ssh.connect_timeout", 10)),
    )


def build_controller(
    settings: dict[str, Any],
    identity_names: Callable[[], list[str]] | None = None,
) -> WizardController:
    """Controller wired to the SSH dir and config file named in settings."""
    ssh_dir = str(get_setting(settings, "ssh.dir", "~/.ssh"))
    config_file = Path(get_setting(settings, "ssh.config_file", "~/.ssh/config"))
    return WizardController(
        build_gateway(settings),
        SSHConfigSynthesizer(config_file.expanduser(), key_dir_display=ssh_dir),
        identity_names=identity_names,
        provider_overrides=get_setting(settings, "providers", {}),
    )


def run_wizard(
    settings: dict[str, Any],
    manager: IdentityManager | None = None,
) -> WizardResult:
    """Run the four steps with back navigation.

    Returns WizardResult(success=True) once the user finishes step 4, whatever
    the connection test said; success=False when cancelled.
    """
    controller = build_controller(settings, manager.names if manager else None)

    while True:
        current = controller.step
        result = _STEPS[current](controller)
        if result == STEP_CANCEL:
            logger.info("Wizard cancelled at %s", current.name)
            return WizardResult(success=False)
        if result == STEP_BACK:
            controller.back()
            continue
        if current == WizardStep.CONFIGURE_AND_TEST:
            break

    outcome = controller.finish()
    if manager is not None:
        _offer_save_identity(controller, manager)
    return WizardResult(success=True, summary=outcome.data)


def _offer_save_identity(controller: WizardController, manager: IdentityManager) -> None:
    """Add the wizard's identity to the identity list if it is not there yet."""
    session = controller.session
    if manager.get(session.identity_name) is not None:
        return
    save = questionary.confirm(
        f'Save "{session.identity_name}" to your identity list?',
        default=True,
        style=STYLE,
    ).ask()
    if not save:
        return
    username = ask_until_nonempty("Git username (user.name):")
    if username is None:
        return
    try:
        manager.add(session.identity_name, username, session.email)
    except ValidationError as e:
        print(f"  {FAIL} {e}")
        return
    print(f"  {OK} Added identity: {session.identity_name}")
