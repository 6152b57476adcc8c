"""Step 1: identity name, email and Git hosting provider."""

import questionary
from questionary import Choice

from onboarding.constants import STEP_CANCEL, STEP_NEXT
from onboarding.controller import WizardController
from onboarding.providers import OTHER, PROVIDERS
from onboarding.ui import FAIL, STYLE


def ask_until_nonempty(prompt: str, default: str = "") -> str | None:
    """Prompt until non-empty input or user cancelled. Returns None on cancel."""
    while True:
        val = questionary.text(prompt, default=default, style=STYLE).ask()
        if val is None:
            return None
        if val.strip():
            return val.strip()
        print("This field cannot be empty. Try again.\n")


def run_identity_step(controller: WizardController) -> str:
    """Collect identity info until the controller accepts it."""
    print("\nStep 1 of 4: Identity\n")
    session = controller.session

    while True:
        name = ask_until_nonempty(
            'Identity name (e.g. "Work", "Personal"):', default=session.identity_name
        )
        if name is None:
            return STEP_CANCEL

        email = ask_until_nonempty("Email for this identity:", default=session.email)
        if email is None:
            return STEP_CANCEL

        provider = questionary.select(
            "Git hosting provider:",
            choices=[Choice(info.label, pid) for pid, info in PROVIDERS.items()],
            default=session.provider if session.provider in PROVIDERS else None,
            style=STYLE,
        ).ask()
        if provider is None:
            return STEP_CANCEL

        host_name = None
        if provider == OTHER:
            host_name = ask_until_nonempty(
                "Host name of your Git server (e.g. git.example.com):",
                default=session.host_name,
            )
            if host_name is None:
                return STEP_CANCEL

        outcome = controller.submit_identity(name, email, provider, host_name)
        if outcome.success:
            return STEP_NEXT
        print(f"  {FAIL} {outcome.error}\n")
