"""Error taxonomy. Every failure the UIs can surface derives from GitSwitchError.

A failed SSH connection test is not an exception: it is reported as
ConnectionTestResult(success=False) so the wizard can still be completed.
"""


class GitSwitchError(Exception):
    """Base class for all expected, user-facing failures."""


class ValidationError(GitSwitchError):
    """Missing or malformed user input. Handled locally by re-prompting."""


class DuplicateIdentityError(ValidationError):
    """An identity with the same name is already stored."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Identity with this name already exists: {name}")
        self.name = name


class WizardSequenceError(GitSwitchError):
    """A wizard step was triggered before its prerequisites were collected."""


class KeyGenerationError(GitSwitchError):
    """ssh-keygen failed or the generated public key could not be read."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class KeyAlreadyExistsError(KeyGenerationError):
    """A key pair for this identity already exists and overwrite was not requested."""

    def __init__(self, key_name: str) -> None:
        super().__init__(
            f"Key already exists: {key_name}. Regenerate with overwrite to replace it."
        )
        self.key_name = key_name


class ConfigWriteError(GitSwitchError):
    """The SSH client configuration could not be read or written."""


class GitNotRepositoryError(GitSwitchError):
    """No workspace, or the workspace is not inside a Git repository."""


class GitCommandError(GitSwitchError):
    """A git command exited non-zero."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ClipboardError(GitSwitchError):
    """No clipboard mechanism is available."""
