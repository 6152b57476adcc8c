"""SSH onboarding state machine.

Four steps: identity info -> generate key -> provider instructions ->
configure & test. The controller holds the WizardSession for one wizard run,
delegates side effects to ExternalProcessGateway and SSHConfigSynthesizer,
and reports every trigger as a StepOutcome. Failures of delegated calls never
propagate out of the controller; calling a step before its prerequisites
exist raises WizardSequenceError.

Only one side-effecting trigger may be outstanding at a time. A second
trigger while one is in flight is rejected rather than queued.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from gitswitch.clipboard import copy_to_clipboard
from gitswitch.errors import GitSwitchError, ValidationError, WizardSequenceError
from gitswitch.process import ExternalProcessGateway
from gitswitch.utils.formatting import key_name_for
from gitswitch.validation import ensure_host_name, ensure_safe_name
from onboarding.providers import (
    OTHER,
    ProviderInstructions,
    matcher_for,
    normalize_provider,
    provider_default_host,
    render_instructions,
)
from onboarding.ssh_config import HostEntryRequest, SSHConfigSynthesizer
from onboarding.state import WizardSession, WizardStep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    """Result of one trigger, relayed to the UI."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def ok(cls, **data: Any) -> "StepOutcome":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, **data: Any) -> "StepOutcome":
        return cls(success=False, data=data, error=error)


class WizardController:
    """Drives one wizard session through its four steps."""

    def __init__(
        self,
        gateway: ExternalProcessGateway,
        synthesizer: SSHConfigSynthesizer,
        *,
        clipboard: Callable[[str], None] = copy_to_clipboard,
        identity_names: Callable[[], list[str]] | None = None,
        provider_overrides: dict[str, Any] | None = None,
    ) -> None:
        self.gateway = gateway
        self.synthesizer = synthesizer
        self._clipboard = clipboard
        self._identity_names = identity_names or (lambda: [])
        self._provider_overrides = provider_overrides or {}
        self.session = WizardSession()
        self.step = WizardStep.IDENTITY_INFO
        self._in_flight: str | None = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def _require(self, action: str, *fields: str) -> None:
        missing = [f for f in fields if not getattr(self.session, f)]
        if missing:
            raise WizardSequenceError(
                f"{action} requires {', '.join(missing)} to be set first"
            )

    def _claim(self, action: str) -> StepOutcome | None:
        """Take the in-flight slot. Returns a failed outcome if it is taken."""
        if self._in_flight is not None:
            logger.info("Rejected %s while %s is in progress", action, self._in_flight)
            return StepOutcome.fail(f"Operation already in progress: {self._in_flight}")
        self._in_flight = action
        return None

    def _release(self) -> None:
        self._in_flight = None

    # S0

    def submit_identity(
        self,
        identity_name: str,
        email: str,
        provider: str = "github",
        host_name: str | None = None,
    ) -> StepOutcome:
        """Validate identity info and move to GENERATE_KEY."""
        if self.busy:
            return StepOutcome.fail(f"Operation already in progress: {self._in_flight}")
        name = (identity_name or "").strip()
        email = (email or "").strip()
        pid = normalize_provider(provider)
        host = (host_name or "").strip() or (
            provider_default_host(pid, self._provider_overrides) or ""
        )
        try:
            self._validate_identity(name, email, pid, host)
        except ValidationError as e:
            self.step = WizardStep.IDENTITY_INFO
            return StepOutcome.fail(str(e))

        s = self.session
        if (s.identity_name, s.email, s.provider, s.host_name) != (name, email, pid, host):
            # Downstream artifacts belong to the previous identity info
            self.session = WizardSession(
                identity_name=name, email=email, provider=pid, host_name=host
            )
        self.step = WizardStep.GENERATE_KEY
        return StepOutcome.ok(
            identityName=name,
            email=email,
            provider=pid,
            hostName=self.session.host_name,
            keyName=key_name_for(name),
        )

    def _validate_identity(self, name: str, email: str, provider: str, host: str) -> None:
        missing = [
            label for label, value in (("identity name", name), ("email", email)) if not value
        ]
        if missing:
            raise ValidationError(f"Please fill in: {', '.join(missing)}")
        ensure_safe_name(name, "identity name")
        if provider == OTHER and not host:
            raise ValidationError("Please enter the host name of your Git provider")
        if host:
            ensure_host_name(host)
        key_name = key_name_for(name)
        for existing in self._identity_names():
            if existing != name and key_name_for(existing) == key_name:
                raise ValidationError(
                    f'"{name}" would reuse the key file of identity "{existing}"'
                )

    # S1

    async def generate_key(self, *, overwrite: bool = False) -> StepOutcome:
        """Generate the key pair. Success moves to PROVIDER_INSTRUCTIONS."""
        self._require("generateKey", "identity_name", "email")
        rejected = self._claim("generateKey")
        if rejected:
            return rejected
        try:
            key = await self.gateway.generate_key_pair(
                self.session.identity_name, self.session.email, overwrite=overwrite
            )
        except GitSwitchError as e:
            logger.warning("Key generation failed: %s", e)
            return StepOutcome.fail(str(e), stderr=getattr(e, "stderr", ""))
        except Exception as e:
            logger.exception("Unexpected key generation failure")
            return StepOutcome.fail(f"Failed to generate SSH key: {e}")
        finally:
            self._release()

        self.session.key_name = key.key_name
        self.session.public_key = key.public_key
        self.step = WizardStep.PROVIDER_INSTRUCTIONS
        return StepOutcome.ok(keyName=key.key_name, publicKey=key.public_key)

    def use_existing_key(self) -> StepOutcome:
        """Adopt the key pair a previous run left on disk. Success moves to
        PROVIDER_INSTRUCTIONS exactly like generate_key()."""
        self._require("useExistingKey", "identity_name")
        if self.busy:
            return StepOutcome.fail(f"Operation already in progress: {self._in_flight}")
        try:
            key = self.gateway.load_key_pair(self.session.identity_name)
        except GitSwitchError as e:
            logger.warning("Existing key not usable: %s", e)
            return StepOutcome.fail(str(e))

        self.session.key_name = key.key_name
        self.session.public_key = key.public_key
        self.step = WizardStep.PROVIDER_INSTRUCTIONS
        return StepOutcome.ok(keyName=key.key_name, publicKey=key.public_key)

    # S2

    def instructions(self) -> ProviderInstructions:
        self._require("instructions", "identity_name")
        return render_instructions(
            self.session.provider,
            key_name=self.session.key_name,
            email=self.session.email,
            host_name=self.session.host_name,
        )

    def copy_public_key(self) -> StepOutcome:
        """Copy the public key. Advisory only, never changes the step."""
        self._require("copyPublicKey", "public_key")
        try:
            self._clipboard(self.session.public_key)
        except GitSwitchError as e:
            return StepOutcome.fail(str(e))
        except Exception as e:
            logger.exception("Clipboard write failed")
            return StepOutcome.fail(f"Could not copy to clipboard: {e}")
        return StepOutcome.ok(keyName=self.session.key_name)

    def advance(self) -> StepOutcome:
        """Move to the next step without re-running the current one.

        Leaving PROVIDER_INSTRUCTIONS is unconditional; copying the key is
        not required.
        """
        if self.step == WizardStep.IDENTITY_INFO:
            self._require("next", "identity_name", "email")
        elif self.step in (WizardStep.GENERATE_KEY, WizardStep.PROVIDER_INSTRUCTIONS):
            self._require("next", "key_name", "public_key")
        else:
            return StepOutcome.fail("Already at the last step")
        self.step = WizardStep(self.step + 1)
        return StepOutcome.ok(step=self.step.name)

    # S3

    async def update_ssh_config(self) -> StepOutcome:
        """Append the Host block (no-op if present). Stores host_alias."""
        self._require("updateSSHConfig", "identity_name", "key_name")
        rejected = self._claim("updateSSHConfig")
        if rejected:
            return rejected
        self.step = WizardStep.CONFIGURE_AND_TEST
        request = HostEntryRequest(
            identity_name=self.session.identity_name,
            provider=self.session.provider,
            key_name=self.session.key_name,
            host_url=self.session.host_name,
        )
        try:
            result = self.synthesizer.upsert_entry(request)
        except GitSwitchError as e:
            logger.warning("SSH config update failed: %s", e)
            return StepOutcome.fail(str(e))
        except Exception as e:
            logger.exception("Unexpected SSH config failure")
            return StepOutcome.fail(f"Failed to update SSH config: {e}")
        finally:
            self._release()

        self.session.host_alias = result.host_alias
        self.session.clone_example = result.clone_example
        return StepOutcome.ok(
            hostAlias=result.host_alias,
            cloneExample=result.clone_example,
            written=result.written,
        )

    async def test_connection(self, host_alias: str | None = None) -> StepOutcome:
        """Probe the alias. The result never blocks finish()."""
        alias = host_alias or self.session.host_alias
        if not alias:
            raise WizardSequenceError("testConnection requires host_alias to be set first")
        rejected = self._claim("testConnection")
        if rejected:
            return rejected
        try:
            result = await self.gateway.test_connection(
                alias, matcher_for(self.session.provider)
            )
        except Exception as e:
            logger.exception("Unexpected connection test failure")
            self.session.connection_ok = False
            return StepOutcome.fail(f"Connection test failed: {e}", output="")
        finally:
            self._release()

        self.session.connection_ok = result.success
        if result.success:
            return StepOutcome.ok(hostAlias=alias, output=result.output)
        return StepOutcome.fail(
            "Connection test failed. Check that the key was added to your account.",
            hostAlias=alias,
            output=result.output,
        )

    def finish(self) -> StepOutcome:
        """Close the session. Allowed whatever the connection test said."""
        self.session.completed = True
        return StepOutcome.ok(
            identityName=self.session.identity_name,
            keyName=self.session.key_name,
            hostAlias=self.session.host_alias,
            cloneExample=self.session.clone_example,
            connectionOk=self.session.connection_ok,
        )

    # Navigation and rendering

    def back(self) -> WizardStep:
        if self.step > WizardStep.IDENTITY_INFO:
            self.step = WizardStep(self.step - 1)
        return self.step

    def render(self) -> dict[str, Any]:
        """Snapshot of what the UI should show for the current step."""
        s = self.session
        has_key = bool(s.key_name and s.public_key)
        return {
            "step": self.step.name,
            "session": asdict(s),
            "busy": self.busy,
            "actions": {
                "back": self.step > WizardStep.IDENTITY_INFO,
                "generateKey": bool(s.identity_name and s.email) and not self.busy,
                "next": {
                    WizardStep.IDENTITY_INFO: bool(s.identity_name and s.email),
                    WizardStep.GENERATE_KEY: has_key,
                    WizardStep.PROVIDER_INSTRUCTIONS: True,
                    WizardStep.CONFIGURE_AND_TEST: False,
                }[self.step],
                "copyPublicKey": bool(s.public_key),
                "updateSSHConfig": has_key and not self.busy,
                "testConnection": bool(s.host_alias) and not self.busy,
                "finish": self.step == WizardStep.CONFIGURE_AND_TEST,
            },
        }
