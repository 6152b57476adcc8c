"""External process gateway: ssh-keygen, the ssh probe, and git config.

Every subprocess goes through run_process(), which enforces an optional hard
timeout and always returns decoded output. The gateway turns process results
into typed results or gitswitch.errors exceptions; nothing else in the code
base spawns processes.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Protocol, Sequence

from gitswitch.errors import (
    GitCommandError,
    GitNotRepositoryError,
    KeyAlreadyExistsError,
    KeyGenerationError,
)
from gitswitch.utils.formatting import key_name_for
from gitswitch.validation import ensure_safe_name

logger = logging.getLogger(__name__)

# Hosting services deny shell access, so ssh exits non-zero even when the key
# is accepted. GitHub answers "Hi <user>! You've successfully authenticated".
AUTH_SUCCESS_PHRASE = "successfully authenticated"

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_KEY_BITS = 4096


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one external process."""

    returncode: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


ProcessRunner = Callable[..., Awaitable[ProcessResult]]


async def run_process(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> ProcessResult:
    """Run args without a shell. Kills the process when timeout elapses.

    Raises OSError when the executable cannot be started.
    """
    logger.debug("exec %s (cwd=%s)", args[0], cwd)
    proc = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=os.environ.copy(),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    timed_out = False
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            proc.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        proc.kill()
        stdout_bytes, stderr_bytes = await proc.communicate()
        timed_out = True

    return ProcessResult(
        returncode=proc.returncode,
        stdout=stdout_bytes.decode("utf-8", errors="ignore"),
        stderr=stderr_bytes.decode("utf-8", errors="ignore"),
        timed_out=timed_out,
    )


class AuthSuccessMatcher(Protocol):
    """Decides from probe output whether the remote accepted the key."""

    def matches(self, output: str) -> bool: ...


class PhraseMatcher:
    """Case-insensitive match on any of a set of phrases."""

    def __init__(self, *phrases: str) -> None:
        self.phrases = tuple(p.lower() for p in (phrases or (AUTH_SUCCESS_PHRASE,)))

    def matches(self, output: str) -> bool:
        text = output.lower()
        return any(p in text for p in self.phrases)


DEFAULT_MATCHER = PhraseMatcher(AUTH_SUCCESS_PHRASE)


@dataclass(frozen=True)
class GeneratedKey:
    key_name: str
    public_key: str
    private_path: Path
    public_path: Path


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    output: str


@dataclass(frozen=True)
class GitIdentity:
    """user.name / user.email as git resolves them in a workspace. None = unset."""

    username: str | None
    email: str | None


class ExternalProcessGateway:
    """Key generation, connection probe, and git identity read/write."""

    def __init__(
        self,
        ssh_dir: Path | None = None,
        *,
        key_bits: int = DEFAULT_KEY_BITS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        runner: ProcessRunner = run_process,
    ) -> None:
        self.ssh_dir = ssh_dir or Path.home() / ".ssh"
        self.key_bits = key_bits
        self.connect_timeout = connect_timeout
        self._run = runner

    def key_paths(self, key_name: str) -> tuple[Path, Path]:
        private = self.ssh_dir / key_name
        return private, private.with_name(f"{key_name}.pub")

    def _ensure_ssh_dir(self) -> None:
        if not self.ssh_dir.exists():
            self.ssh_dir.mkdir(parents=True, mode=0o700)
            # mkdir mode is filtered by umask
            self.ssh_dir.chmod(0o700)

    async def generate_key_pair(
        self,
        identity_name: str,
        email: str,
        *,
        overwrite: bool = False,
    ) -> GeneratedKey:
        """Generate an RSA key pair without passphrase for identity_name.

        An existing pair blocks generation unless overwrite is set, in which
        case the old files are removed first.
        """
        ensure_safe_name(identity_name, "identity name")
        key_name = key_name_for(identity_name)
        private, public = self.key_paths(key_name)

        try:
            self._ensure_ssh_dir()
            if private.exists() or public.exists():
                if not overwrite:
                    raise KeyAlreadyExistsError(key_name)
                logger.info("Replacing existing key pair %s", key_name)
                private.unlink(missing_ok=True)
                public.unlink(missing_ok=True)
        except OSError as e:
            raise KeyGenerationError(f"Cannot prepare {self.ssh_dir}: {e}") from e

        args = [
            "ssh-keygen",
            "-t", "rsa",
            "-b", str(self.key_bits),
            "-C", email,
            "-f", str(private),
            "-N", "",
        ]
        try:
            result = await self._run(args)
        except OSError as e:
            raise KeyGenerationError(f"Failed to run ssh-keygen: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            logger.warning("ssh-keygen exited %s: %s", result.returncode, stderr)
            raise KeyGenerationError(
                f"Failed to generate SSH key: {stderr or f'exit code {result.returncode}'}",
                stderr=stderr,
            )

        try:
            public_key = public.read_text(encoding="utf-8").rstrip()
        except OSError as e:
            raise KeyGenerationError(f"Failed to read public key {public}: {e}") from e

        logger.info("Generated key pair %s", key_name)
        return GeneratedKey(
            key_name=key_name,
            public_key=public_key,
            private_path=private,
            public_path=public,
        )

    def load_key_pair(self, identity_name: str) -> GeneratedKey:
        """Read back the key pair an earlier run generated for identity_name.

        Raises KeyGenerationError when the pair is incomplete or unreadable.
        """
        ensure_safe_name(identity_name, "identity name")
        key_name = key_name_for(identity_name)
        private, public = self.key_paths(key_name)
        if not private.is_file():
            raise KeyGenerationError(f"No existing key {private}")
        try:
            public_key = public.read_text(encoding="utf-8").rstrip()
        except OSError as e:
            raise KeyGenerationError(f"Failed to read public key {public}: {e}") from e
        if not public_key:
            raise KeyGenerationError(f"Public key {public} is empty")
        logger.info("Using existing key pair %s", key_name)
        return GeneratedKey(
            key_name=key_name,
            public_key=public_key,
            private_path=private,
            public_path=public,
        )

    async def test_connection(
        self,
        host_alias: str,
        matcher: AuthSuccessMatcher | None = None,
    ) -> ConnectionTestResult:
        """Probe git@host_alias. Never raises; failures come back as success=False."""
        timeout = self.connect_timeout
        args = [
            "ssh",
            "-T",
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={int(timeout)}",
            "-o", "StrictHostKeyChecking=accept-new",
            f"git@{host_alias}",
        ]
        try:
            result = await self._run(args, timeout=timeout)
        except OSError as e:
            logger.warning("ssh probe could not start: %s", e)
            return ConnectionTestResult(success=False, output=str(e))

        output = result.output.strip()
        if result.timed_out:
            message = f"Connection timed out after {timeout:g}s"
            return ConnectionTestResult(
                success=False,
                output=f"{output}\n{message}" if output else message,
            )

        success = (matcher or DEFAULT_MATCHER).matches(output)
        if not success:
            logger.info("ssh probe to %s failed (exit %s)", host_alias, result.returncode)
        return ConnectionTestResult(success=success, output=output)

    async def _git(self, workspace: Path | None, *args: str) -> ProcessResult:
        if workspace is None or not Path(workspace).is_dir():
            raise GitNotRepositoryError("No workspace folder open")
        try:
            result = await self._run(["git", *args], cwd=Path(workspace))
        except OSError as e:
            raise GitCommandError(f"Failed to run git: {e}") from e
        stderr = result.stderr.lower()
        if "not a git repository" in stderr or "not in a git directory" in stderr:
            raise GitNotRepositoryError(f"{workspace} is not a Git repository")
        return result

    async def _ensure_repository(self, workspace: Path | None) -> None:
        # Outside a repository `git config <key>` still answers from the global config
        result = await self._git(workspace, "rev-parse", "--git-dir")
        if result.returncode != 0:
            raise GitNotRepositoryError(f"{workspace} is not a Git repository")

    async def _read_key(self, workspace: Path | None, key: str, *scope: str) -> str | None:
        result = await self._git(workspace, "config", *scope, key)
        if result.returncode == 0:
            return result.stdout.strip() or None
        # git config exits 1 when the key is simply unset
        if result.returncode == 1 and not result.stderr.strip():
            return None
        raise GitCommandError(
            f"git config {key} failed: {result.stderr.strip()}",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    async def _write_key(self, workspace: Path | None, key: str, value: str) -> None:
        result = await self._git(workspace, "config", key, value)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            logger.warning("git config %s exited %s: %s", key, result.returncode, stderr)
            raise GitCommandError(
                f"Failed to switch identity: {stderr or f'exit code {result.returncode}'}",
                returncode=result.returncode,
                stderr=stderr,
            )

    async def _restore_key(self, workspace: Path | None, key: str, value: str | None) -> bool:
        """Put back the repository-local value of key. None means it was unset."""
        if value is None:
            result = await self._git(workspace, "config", "--unset", key)
        else:
            result = await self._git(workspace, "config", key, value)
        if result.returncode != 0:
            logger.warning("Could not restore %s: %s", key, result.stderr.strip())
            return False
        return True

    async def read_identity(self, workspace: Path | None) -> GitIdentity:
        """Read user.name and user.email as git resolves them in workspace."""
        await self._ensure_repository(workspace)
        username = await self._read_key(workspace, "user.name")
        email = await self._read_key(workspace, "user.email")
        return GitIdentity(username=username, email=email)

    async def write_identity(
        self, workspace: Path | None, username: str, email: str
    ) -> None:
        """Set user.name and user.email in the workspace repository config.

        If user.email cannot be written, user.name is put back so the
        repository is not left with half of the new identity.
        """
        await self._ensure_repository(workspace)
        previous_name = await self._read_key(workspace, "user.name", "--local")
        await self._write_key(workspace, "user.name", username)
        try:
            await self._write_key(workspace, "user.email", email)
        except GitCommandError as e:
            if await self._restore_key(workspace, "user.name", previous_name):
                raise
            raise GitCommandError(
                f"{e} (user.name was already set to {username} and could not be restored)",
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e
