"""Entry point: python -m onboarding."""

import sys

from dotenv import load_dotenv

from gitswitch.logging_config import setup_logging
from gitswitch.settings import get_config_dir, get_setting, load_settings, resolve_path
from identities.manager import IdentityManager
from identities.store import YamlIdentityStore
from onboarding.constants import WIZARD_CANCELLED, WIZARD_COMPLETE
from onboarding.wizard import build_gateway, run_wizard


def main() -> int:
    """Run the SSH onboarding wizard. Returns the process exit code."""
    load_dotenv()
    config_dir = get_config_dir()
    settings = load_settings(config_dir)
    setup_logging(config_dir, settings)

    store = YamlIdentityStore(
        resolve_path(get_setting(settings, "identities.file", "identities.yaml"), config_dir)
    )
    manager = IdentityManager(store, build_gateway(settings))

    try:
        result = run_wizard(settings, manager)
    except KeyboardInterrupt:
        print("\n\nSetup cancelled.")
        return WIZARD_CANCELLED

    if not result.success:
        print("\nSetup cancelled.")
        return WIZARD_CANCELLED

    alias = result.summary.get("hostAlias")
    if alias:
        print(f"\n✅ SSH setup complete. Use git@{alias}:<owner>/<repo>.git as remote.\n")
    else:
        print("\n✅ Key created. Run the wizard again to add the SSH host alias.\n")
    return WIZARD_COMPLETE


if __name__ == "__main__":
    sys.exit(main())
