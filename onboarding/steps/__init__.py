"""Terminal wizard steps. Each returns STEP_NEXT, STEP_BACK or STEP_CANCEL."""

from onboarding.steps.configure_step import run_configure_step
from onboarding.steps.identity_step import run_identity_step
from onboarding.steps.instructions_step import run_instructions_step
from onboarding.steps.key_step import run_key_step

__all__ = [
    "run_identity_step",
    "run_key_step",
    "run_instructions_step",
    "run_configure_step",
]
