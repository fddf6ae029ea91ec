"""Shared boot step for CLI commands."""

import sys

from cureconnect.app import PACKAGE_ROOT, Application
from cureconnect.config import instance_root
from cureconnect.errors import CureConnectError
from cureconnect.main import prepare_environment


def boot_or_exit() -> Application:
    """Boot the application, or print the error and exit with status 1."""
    try:
        instance = instance_root()
        config = prepare_environment(instance)
        return Application.boot(PACKAGE_ROOT, config=config, instance_path=instance)
    except CureConnectError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
