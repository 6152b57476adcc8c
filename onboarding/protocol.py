"""Wizard message protocol between a UI surface and the WizardController.

The UI sends {"command": ..., "data": {...}}; the handler answers with one
response message per command, posted to the UI and also returned.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from gitswitch.errors import WizardSequenceError
from onboarding.controller import StepOutcome, WizardController


class Commands:
    """UI -> controller."""

    GENERATE_KEY = "generateKey"
    UPDATE_SSH_CONFIG = "updateSSHConfig"
    TEST_CONNECTION = "testConnection"
    COPY_PUBLIC_KEY = "copyPublicKey"


class Responses:
    """Controller -> UI."""

    KEY_GENERATED = "keyGenerated"
    CONFIG_UPDATED = "configUpdated"
    CONNECTION_TESTED = "connectionTested"
    PUBLIC_KEY_COPIED = "publicKeyCopied"
    ERROR = "error"


RESPONSE_FOR = {
    Commands.GENERATE_KEY: Responses.KEY_GENERATED,
    Commands.UPDATE_SSH_CONFIG: Responses.CONFIG_UPDATED,
    Commands.TEST_CONNECTION: Responses.CONNECTION_TESTED,
    Commands.COPY_PUBLIC_KEY: Responses.PUBLIC_KEY_COPIED,
}

logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GenerateKeyPayload(_Payload):
    identity_name: str = Field(default="", alias="identityName")
    email: str = ""
    provider: str = "github"
    host_name: str | None = Field(default=None, alias="hostName")
    overwrite: bool = False


class ProbePayload(_Payload):
    host_alias: str | None = Field(default=None, alias="hostAlias")


@runtime_checkable
class MessagePoster(Protocol):
    """Channel back to the UI surface."""

    async def post_message(self, message: dict[str, Any]) -> None: ...


def outcome_message(command: str, outcome: StepOutcome) -> dict[str, Any]:
    """Flatten an outcome into {command, success, ...data, error?}."""
    message: dict[str, Any] = {"command": command, "success": outcome.success}
    message.update(outcome.data)
    if not outcome.success:
        message["error"] = outcome.error or "Unknown error"
    return message


def error_message(command: str, error: str) -> dict[str, Any]:
    return {"command": command, "success": False, "error": error}


class WizardMessageHandler:
    """Dispatches protocol commands to a controller and posts the responses."""

    def __init__(
        self, controller: WizardController, poster: MessagePoster | None = None
    ) -> None:
        self.controller = controller
        self.poster = poster

    async def handle(self, message: dict[str, Any]) -> dict[str, Any]:
        command = message.get("command")
        data = message.get("data") or {}
        response_command = RESPONSE_FOR.get(command or "")
        if response_command is None:
            logger.warning("Unknown wizard command: %r", command)
            response = error_message(Responses.ERROR, f"Unknown command: {command}")
        else:
            try:
                outcome = await self._dispatch(command, data)
                response = outcome_message(response_command, outcome)
            except WizardSequenceError as e:
                response = error_message(response_command, str(e))
            except PydanticValidationError as e:
                response = error_message(response_command, f"Invalid payload: {e}")
        if self.poster is not None:
            await self.poster.post_message(response)
        return response

    async def _dispatch(self, command: str, data: dict[str, Any]) -> StepOutcome:
        c = self.controller
        if command == Commands.GENERATE_KEY:
            payload = GenerateKeyPayload.model_validate(data)
            if payload.identity_name or payload.email:
                submitted = c.submit_identity(
                    payload.identity_name,
                    payload.email,
                    payload.provider,
                    payload.host_name,
                )
                if not submitted.success:
                    return submitted
            return await c.generate_key(overwrite=payload.overwrite)

        if command == Commands.UPDATE_SSH_CONFIG:
            return await c.update_ssh_config()

        if command == Commands.TEST_CONNECTION:
            probe = ProbePayload.model_validate(data)
            return await c.test_connection(probe.host_alias)

        return c.copy_public_key()
