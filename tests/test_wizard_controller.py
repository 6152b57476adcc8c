"""Tests for onboarding.controller (the four-step wizard state machine)."""

import asyncio
from pathlib import Path

import pytest

from gitswitch.errors import ClipboardError, WizardSequenceError
from gitswitch.process import ProcessResult
from onboarding.controller import WizardController
from onboarding.state import WizardStep


async def _through_key(controller: WizardController, name: str = "Work") -> None:
    assert controller.submit_identity(name, "a@b.com", "github").success
    assert (await controller.generate_key()).success


class TestIdentityInfo:
    def test_missing_fields_stay_in_identity_step(self, controller) -> None:
        outcome = controller.submit_identity("", "a@b.com", "github")
        assert outcome.success is False
        assert "identity name" in outcome.error
        assert controller.step == WizardStep.IDENTITY_INFO

        outcome = controller.submit_identity("Work", "   ", "github")
        assert outcome.success is False
        assert "email" in outcome.error
        assert controller.step == WizardStep.IDENTITY_INFO

    def test_valid_info_moves_to_generate_key(self, controller) -> None:
        outcome = controller.submit_identity(" Work ", "a@b.com", "github")

        assert outcome.success is True
        assert outcome.data["keyName"] == "id_rsa_work"
        assert outcome.data["hostName"] == "github.com"
        assert controller.step == WizardStep.GENERATE_KEY
        assert controller.session.identity_name == "Work"

    def test_other_provider_requires_host(self, controller) -> None:
        assert controller.submit_identity("Work", "a@b.com", "other").success is False
        outcome = controller.submit_identity("Work", "a@b.com", "other", "git.example.com")
        assert outcome.success is True
        assert controller.session.host_name == "git.example.com"

    def test_unknown_provider_is_treated_as_other(self, controller) -> None:
        outcome = controller.submit_identity("Work", "a@b.com", "sourcehut", "git.sr.ht")
        assert outcome.success is True
        assert controller.session.provider == "other"

    def test_provider_host_override(self, gateway, synthesizer) -> None:
        controller = WizardController(
            gateway,
            synthesizer,
            clipboard=lambda _text: None,
            provider_overrides={"gitlab": {"host": "gitlab.example.com"}},
        )
        controller.submit_identity("Work", "a@b.com", "gitlab")
        assert controller.session.host_name == "gitlab.example.com"

    def test_key_name_clash_with_stored_identity(self, gateway, synthesizer) -> None:
        """A different stored name with the same key slug is rejected."""
        controller = WizardController(
            gateway,
            synthesizer,
            clipboard=lambda _text: None,
            identity_names=lambda: ["work account", "Personal"],
        )
        outcome = controller.submit_identity("Work  Account", "a@b.com", "github")
        assert outcome.success is False
        assert "work account" in outcome.error

        # Same name as a stored identity is fine: setting up SSH for it
        assert controller.submit_identity("Personal", "a@b.com", "github").success


class TestGenerateKey:
    @pytest.mark.asyncio
    async def test_requires_identity_info(self, controller) -> None:
        with pytest.raises(WizardSequenceError):
            await controller.generate_key()

    @pytest.mark.asyncio
    async def test_success_stores_key_and_advances(self, controller, ssh_dir: Path) -> None:
        controller.submit_identity("Work", "a@b.com", "github")
        outcome = await controller.generate_key()

        assert outcome.success is True
        assert outcome.data["keyName"] == "id_rsa_work"
        assert outcome.data["publicKey"].startswith("ssh-rsa ")
        assert controller.session.key_name == "id_rsa_work"
        assert controller.step == WizardStep.PROVIDER_INSTRUCTIONS
        assert (ssh_dir / "id_rsa_work.pub").exists()

    @pytest.mark.asyncio
    async def test_failure_stays_and_allows_retry(self, controller, fake_runner) -> None:
        controller.submit_identity("Work", "a@b.com", "github")
        fake_runner.keygen_returncode = 1
        fake_runner.keygen_stderr = "boom"

        outcome = await controller.generate_key()
        assert outcome.success is False
        assert "boom" in outcome.error
        assert controller.step == WizardStep.GENERATE_KEY
        assert controller.busy is False

        fake_runner.keygen_returncode = 0
        assert (await controller.generate_key()).success is True

    @pytest.mark.asyncio
    async def test_existing_key_needs_overwrite(self, controller) -> None:
        await _through_key(controller)
        controller.back()

        outcome = await controller.generate_key()
        assert outcome.success is False
        assert "already exists" in outcome.error

        assert (await controller.generate_key(overwrite=True)).success is True

    @pytest.mark.asyncio
    async def test_second_trigger_while_in_flight_is_rejected(
        self, controller, fake_runner
    ) -> None:
        """Only one process per session: a concurrent trigger does not spawn another."""
        controller.submit_identity("Work", "a@b.com", "github")
        fake_runner.gate = asyncio.Event()

        first = asyncio.create_task(controller.generate_key())
        await asyncio.sleep(0)
        assert controller.busy is True
        second = await controller.generate_key()
        assert controller.submit_identity("Other", "x@y.com").success is False

        fake_runner.gate.set()
        first_outcome = await first

        assert second.success is False
        assert "already in progress" in second.error
        assert first_outcome.success is True
        assert fake_runner.tools() == ["ssh-keygen"]

    @pytest.mark.asyncio
    async def test_changing_identity_discards_generated_key(self, controller) -> None:
        await _through_key(controller)
        controller.back()
        controller.back()
        controller.submit_identity("Home", "a@b.com", "github")

        assert controller.session.key_name == ""
        assert controller.session.public_key == ""


class TestInstructionsAndCopy:
    @pytest.mark.asyncio
    async def test_instructions_for_provider(self, controller) -> None:
        await _through_key(controller)
        instructions = controller.instructions()
        assert "GitHub" in instructions.title
        assert "https://github.com/settings/keys" in instructions.body
        assert "id_rsa_work.pub" in instructions.body

    @pytest.mark.asyncio
    async def test_copy_does_not_change_step(self, controller, clipboard: list[str]) -> None:
        await _through_key(controller)
        outcome = controller.copy_public_key()

        assert outcome.success is True
        assert clipboard == [controller.session.public_key]
        assert controller.step == WizardStep.PROVIDER_INSTRUCTIONS

    def test_copy_requires_key(self, controller) -> None:
        with pytest.raises(WizardSequenceError):
            controller.copy_public_key()

    @pytest.mark.asyncio
    async def test_copy_failure_is_reported(self, gateway, synthesizer) -> None:
        def broken(_text: str) -> None:
            raise ClipboardError("no clipboard")

        controller = WizardController(gateway, synthesizer, clipboard=broken)
        await _through_key(controller)
        outcome = controller.copy_public_key()
        assert outcome.success is False
        assert outcome.error == "no clipboard"

    @pytest.mark.asyncio
    async def test_advance_to_configure_is_unconditional(self, controller) -> None:
        await _through_key(controller)
        assert controller.advance().success is True
        assert controller.step == WizardStep.CONFIGURE_AND_TEST
        assert controller.advance().success is False


class TestConfigureAndTest:
    @pytest.mark.asyncio
    async def test_end_to_end_work_identity(self, controller, ssh_dir: Path) -> None:
        """Work / a@b.com / github -> id_rsa_work, github-work, clone example."""
        outcome = controller.submit_identity("Work", "a@b.com", "github")
        assert outcome.success
        key = await controller.generate_key()
        assert key.data["keyName"] == "id_rsa_work"
        controller.advance()

        updated = await controller.update_ssh_config()
        assert updated.success is True
        assert updated.data["hostAlias"] == "github-work"
        assert updated.data["cloneExample"] == "git clone git@github-work:username/repo.git"
        assert controller.session.host_alias == "github-work"
        assert "IdentityFile ~/.ssh/id_rsa_work" in (ssh_dir / "config").read_text()

        tested = await controller.test_connection()
        assert tested.success is True
        assert controller.session.connection_ok is True

        summary = controller.finish()
        assert summary.success is True
        assert summary.data["hostAlias"] == "github-work"

    @pytest.mark.asyncio
    async def test_update_requires_key(self, controller) -> None:
        controller.submit_identity("Work", "a@b.com", "github")
        with pytest.raises(WizardSequenceError):
            await controller.update_ssh_config()

    @pytest.mark.asyncio
    async def test_existing_alias_is_success(self, controller, ssh_dir: Path) -> None:
        ssh_dir.mkdir(parents=True)
        (ssh_dir / "config").write_text("Host github-work\n    HostName github.com\n")
        await _through_key(controller)

        outcome = await controller.update_ssh_config()
        assert outcome.success is True
        assert outcome.data["written"] is False
        assert outcome.data["hostAlias"] == "github-work"

    @pytest.mark.asyncio
    async def test_config_write_error_is_reported(self, controller, ssh_dir: Path) -> None:
        await _through_key(controller)
        (ssh_dir / "config").mkdir()

        outcome = await controller.update_ssh_config()
        assert outcome.success is False
        assert "config" in outcome.error
        assert controller.session.host_alias == ""

    @pytest.mark.asyncio
    async def test_test_connection_requires_alias(self, controller) -> None:
        with pytest.raises(WizardSequenceError):
            await controller.test_connection()

    @pytest.mark.asyncio
    async def test_failed_connection_does_not_block_finish(self, controller, fake_runner) -> None:
        await _through_key(controller)
        await controller.update_ssh_config()
        fake_runner.ssh_result = ProcessResult(255, "", "Permission denied (publickey).")

        tested = await controller.test_connection()
        assert tested.success is False
        assert "Permission denied" in tested.data["output"]

        summary = controller.finish()
        assert summary.success is True
        assert summary.data["connectionOk"] is False
        assert controller.session.completed is True

    @pytest.mark.asyncio
    async def test_gitlab_greeting_counts_as_success(self, controller, fake_runner) -> None:
        controller.submit_identity("Work", "a@b.com", "gitlab")
        await controller.generate_key()
        await controller.update_ssh_config()
        fake_runner.ssh_result = ProcessResult(0, "", "Welcome to GitLab, @octocat!")

        assert (await controller.test_connection()).success is True


class TestNavigation:
    def test_back_stops_at_first_step(self, controller) -> None:
        assert controller.back() == WizardStep.IDENTITY_INFO

    @pytest.mark.asyncio
    async def test_render_reflects_state(self, controller) -> None:
        view = controller.render()
        assert view["step"] == "IDENTITY_INFO"
        assert view["actions"]["next"] is False
        assert view["actions"]["copyPublicKey"] is False

        await _through_key(controller)
        view = controller.render()
        assert view["step"] == "PROVIDER_INSTRUCTIONS"
        assert view["actions"]["copyPublicKey"] is True
        assert view["actions"]["next"] is True
        assert view["actions"]["testConnection"] is False
        assert view["session"]["key_name"] == "id_rsa_work"


class TestExistingKey:
    def test_use_existing_key(self, controller, ssh_dir: Path) -> None:
        ssh_dir.mkdir(parents=True)
        (ssh_dir / "id_rsa_work").write_text("private")
        (ssh_dir / "id_rsa_work.pub").write_text("ssh-rsa AAAAOLD a@b.com\n")
        controller.submit_identity("Work", "a@b.com", "github")

        outcome = controller.use_existing_key()

        assert outcome.success is True
        assert outcome.data["keyName"] == "id_rsa_work"
        assert controller.session.public_key == "ssh-rsa AAAAOLD a@b.com"
        assert controller.step == WizardStep.PROVIDER_INSTRUCTIONS

    def test_use_existing_key_without_files(self, controller) -> None:
        controller.submit_identity("Work", "a@b.com", "github")
        outcome = controller.use_existing_key()
        assert outcome.success is False
        assert "No existing key" in outcome.error
        assert controller.step == WizardStep.GENERATE_KEY

    def test_use_existing_key_requires_identity(self, controller) -> None:
        with pytest.raises(WizardSequenceError):
            controller.use_existing_key()


class TestUnsafeInput:
    @pytest.mark.parametrize(
        "name",
        ["Work\nHost *\n    ProxyCommand nc evil 22", "team/ops", "prod*", "a?b", "x!y", "tab\there"],
    )
    def test_identity_name_rejected(self, controller, name: str) -> None:
        outcome = controller.submit_identity(name, "a@b.com", "github")
        assert outcome.success is False
        assert "must not contain" in outcome.error
        assert controller.step == WizardStep.IDENTITY_INFO

    @pytest.mark.parametrize("host", ["git.example.com\n    ProxyCommand x", "git example", "*.corp"])
    def test_host_name_rejected(self, controller, host: str) -> None:
        outcome = controller.submit_identity("Work", "a@b.com", "other", host)
        assert outcome.success is False
        assert "Host name" in outcome.error

    def test_override_host_is_checked_too(self, gateway, synthesizer) -> None:
        controller = WizardController(
            gateway,
            synthesizer,
            clipboard=lambda _text: None,
            provider_overrides={"gitlab": {"host": "gitlab.example.com ProxyCommand"}},
        )
        assert controller.submit_identity("Work", "a@b.com", "gitlab").success is False
