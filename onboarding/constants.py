"""Exit codes for `python -m onboarding`."""

WIZARD_COMPLETE = 0  # Reached the end, whatever the connection test said
WIZARD_CANCELLED = 1  # User cancelled (Ctrl+C or Esc)

# Step navigation results returned by onboarding.steps.run_*_step
STEP_NEXT = "next"
STEP_BACK = "back"
STEP_CANCEL = "cancel"
