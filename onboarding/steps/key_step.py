"""Step 2: generate the SSH key pair."""

import asyncio

import questionary
from questionary import Choice

from gitswitch.utils.formatting import key_name_for
from onboarding.constants import STEP_BACK, STEP_CANCEL, STEP_NEXT
from onboarding.controller import WizardController
from onboarding.ui import FAIL, OK, STYLE

_GENERATE = "generate"
_KEEP = "keep"
_EXISTING = "existing"
_BACK = "back"


def run_key_step(controller: WizardController) -> str:
    """Generate a key (retry on failure) or reuse the one on disk."""
    session = controller.session
    key_name = key_name_for(session.identity_name)
    private, _public = controller.gateway.key_paths(key_name)
    print("\nStep 2 of 4: SSH key\n")
    print(f"  Key file: {private}")
    print(f"  Type: RSA {controller.gateway.key_bits} bits, no passphrase\n")

    while True:
        choices = [Choice("Generate SSH key", _GENERATE)]
        if session.public_key:
            choices.insert(0, Choice("Keep the key generated earlier", _KEEP))
        elif private.exists():
            choices.insert(0, Choice(f"Use existing key {key_name}", _EXISTING))
        choices.append(Choice("Back", _BACK))

        action = questionary.select(
            "What would you like to do?", choices=choices, style=STYLE
        ).ask()
        if action is None:
            return STEP_CANCEL
        if action == _BACK:
            return STEP_BACK
        if action == _KEEP:
            controller.advance()
            return STEP_NEXT
        if action == _EXISTING:
            outcome = controller.use_existing_key()
            if outcome.success:
                print(f"  {OK} Using {outcome.data['keyName']}\n")
                return STEP_NEXT
            print(f"  {FAIL} {outcome.error}\n")
            continue

        overwrite = False
        if private.exists():
            overwrite = questionary.confirm(
                f"{key_name} already exists. Replace it? The old key stops working.",
                default=False,
                style=STYLE,
            ).ask()
            if overwrite is None:
                return STEP_CANCEL
            if not overwrite:
                continue

        print("\nGenerating key...")
        outcome = asyncio.run(controller.generate_key(overwrite=overwrite))
        if outcome.success:
            print(f"  {OK} Created {outcome.data['keyName']}\n")
            return STEP_NEXT

        print(f"  {FAIL} {outcome.error}")
        stderr = outcome.data.get("stderr")
        if stderr:
            print(f"    {stderr}")
        print()
