"""Git hosting provider catalogue: default hosts, instructions, probe matchers.

Instruction texts are Jinja2 templates under onboarding/instructions/.
Unknown providers and "other" fall back to generic.jinja2.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from gitswitch.process import AUTH_SUCCESS_PHRASE, AuthSuccessMatcher, PhraseMatcher

_INSTRUCTIONS_DIR = Path(__file__).resolve().parent / "instructions"

OTHER = "other"


@dataclass(frozen=True)
class ProviderInfo:
    id: str
    label: str
    host: str | None
    keys_url: str | None
    template: str = "generic.jinja2"
    success_phrases: tuple[str, ...] = field(default=(AUTH_SUCCESS_PHRASE,))


PROVIDERS: dict[str, ProviderInfo] = {
    "github": ProviderInfo(
        id="github",
        label="GitHub",
        host="github.com",
        keys_url="https://github.com/settings/keys",
        template="github.jinja2",
    ),
    "gitlab": ProviderInfo(
        id="gitlab",
        label="GitLab",
        host="gitlab.com",
        keys_url="https://gitlab.com/-/user_settings/ssh_keys",
        template="gitlab.jinja2",
        # GitLab greets with "Welcome to GitLab, @user!"
        success_phrases=(AUTH_SUCCESS_PHRASE, "welcome to gitlab"),
    ),
    "bitbucket": ProviderInfo(
        id="bitbucket",
        label="Bitbucket",
        host="bitbucket.org",
        keys_url="https://bitbucket.org/account/settings/ssh-keys/",
        template="bitbucket.jinja2",
        success_phrases=(AUTH_SUCCESS_PHRASE, "authenticated via ssh key"),
    ),
    OTHER: ProviderInfo(id=OTHER, label="Other", host=None, keys_url=None),
}


@dataclass(frozen=True)
class ProviderInstructions:
    title: str
    body: str
    keys_url: str | None


def normalize_provider(provider: str | None) -> str:
    """Known provider id, or "other"."""
    pid = (provider or "").strip().lower()
    return pid if pid in PROVIDERS else OTHER


def get_provider(provider: str | None) -> ProviderInfo:
    return PROVIDERS[normalize_provider(provider)]


def provider_default_host(
    provider: str | None, overrides: dict[str, Any] | None = None
) -> str | None:
    """Real host name for provider. settings["providers"][id]["host"] wins."""
    info = get_provider(provider)
    override = ((overrides or {}).get(info.id) or {}).get("host")
    return override or info.host


def matcher_for(provider: str | None) -> AuthSuccessMatcher:
    return PhraseMatcher(*get_provider(provider).success_phrases)


def _env() -> Environment:
    return Environment(
        loader=FileSystemLoader(_INSTRUCTIONS_DIR),
        autoescape=select_autoescape(enabled_extensions=()),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_instructions(
    provider: str | None,
    *,
    key_name: str = "",
    email: str = "",
    host_name: str = "",
) -> ProviderInstructions:
    """Provider-specific steps for registering the public key."""
    info = get_provider(provider)
    template = _env().get_template(info.template)
    body = template.render(
        label=info.label,
        keys_url=info.keys_url,
        key_name=key_name,
        email=email,
        host_name=host_name or info.host or "",
    ).strip()
    title = (
        f"Add your SSH key to {info.label}"
        if info.id != OTHER
        else "Add your SSH key to your Git hosting provider"
    )
    return ProviderInstructions(title=title, body=body, keys_url=info.keys_url)
