"""Runtime shared by the identity switcher and the SSH onboarding wizard."""
