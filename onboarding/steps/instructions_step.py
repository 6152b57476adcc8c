"""Step 3: show the public key and how to register it with the provider."""

import questionary
from questionary import Choice

from onboarding.constants import STEP_BACK, STEP_CANCEL, STEP_NEXT
from onboarding.controller import WizardController
from onboarding.ui import FAIL, OK, STYLE

_COPY = "copy"
_CONTINUE = "continue"
_BACK = "back"


def run_instructions_step(controller: WizardController) -> str:
    instructions = controller.instructions()
    print(f"\nStep 3 of 4: {instructions.title}\n")
    print(instructions.body)
    print("\nYour public key:\n")
    print(controller.session.public_key)
    print()

    while True:
        action = questionary.select(
            "What would you like to do?",
            choices=[
                Choice("Copy public key to clipboard", _COPY),
                Choice("Continue", _CONTINUE),
                Choice("Back", _BACK),
            ],
            style=STYLE,
        ).ask()
        if action is None:
            return STEP_CANCEL
        if action == _BACK:
            return STEP_BACK
        if action == _CONTINUE:
            controller.advance()
            return STEP_NEXT

        outcome = controller.copy_public_key()
        if outcome.success:
            print(f"  {OK} Public key copied to clipboard\n")
        else:
            print(f"  {FAIL} {outcome.error}\n")
