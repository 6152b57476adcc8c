"""Step 4: write the SSH host alias and test the connection.

The connection test is informational: the user can finish either way.
"""

import asyncio

import questionary
from questionary import Choice

from onboarding.constants import STEP_BACK, STEP_CANCEL, STEP_NEXT
from onboarding.controller import WizardController
from onboarding.ui import FAIL, OK, STYLE

_WRITE = "write"
_TEST = "test"
_FINISH = "finish"
_BACK = "back"


def _choices(controller: WizardController) -> list[Choice]:
    session = controller.session
    choices = []
    if not session.host_alias:
        choices.append(Choice("Add host alias to SSH config", _WRITE))
    else:
        choices.append(Choice(f"Test connection to {session.host_alias}", _TEST))
    choices.append(Choice("Finish", _FINISH))
    choices.append(Choice("Back", _BACK))
    return choices


def run_configure_step(controller: WizardController) -> str:
    print("\nStep 4 of 4: Configure & test\n")
    print(f"  SSH config: {controller.synthesizer.config_path}\n")

    while True:
        action = questionary.select(
            "What would you like to do?", choices=_choices(controller), style=STYLE
        ).ask()
        if action is None:
            return STEP_CANCEL
        if action == _BACK:
            return STEP_BACK
        if action == _FINISH:
            return STEP_NEXT

        if action == _WRITE:
            outcome = asyncio.run(controller.update_ssh_config())
            if not outcome.success:
                print(f"  {FAIL} {outcome.error}\n")
                continue
            verb = "Added" if outcome.data["written"] else "Already configured:"
            print(f"  {OK} {verb} Host {outcome.data['hostAlias']}")
            print(f"\n  Clone with:\n    {outcome.data['cloneExample']}\n")
            continue

        print("\nTesting connection (up to 10 seconds)...")
        outcome = asyncio.run(controller.test_connection())
        symbol = OK if outcome.success else FAIL
        print(f"  {symbol} {outcome.error or 'Connection successful'}")
        output = outcome.data.get("output")
        if output:
            print(f"    {output}")
        print()
