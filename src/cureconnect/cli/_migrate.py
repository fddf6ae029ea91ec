"""``cureconnect migrate``: apply pending migrations for the configured driver."""

import argparse
import sys

from cureconnect.app import PACKAGE_ROOT
from cureconnect.config import instance_root
from cureconnect.data import Database, migrate
from cureconnect.errors import CureConnectError
from cureconnect.main import prepare_environment


def run_migrate(args: argparse.Namespace) -> None:
    try:
        instance = instance_root()
        config = prepare_environment(instance)
        db = Database(config.database, instance)
        db.connect()
    except CureConnectError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        result = migrate(db, PACKAGE_ROOT / "migrations" / db.driver)
    except CureConnectError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    finally:
        db.disconnect()
    print(result.summary)
