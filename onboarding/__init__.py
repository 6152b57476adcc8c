"""SSH onboarding wizard: key pair, SSH host alias, connection test."""

from onboarding.constants import WIZARD_CANCELLED, WIZARD_COMPLETE

__all__ = ["WIZARD_COMPLETE", "WIZARD_CANCELLED"]
