"""``cureconnect routes``: list the route table."""

import argparse

from cureconnect.cli._boot import boot_or_exit


def run_routes(args: argparse.Namespace) -> None:
    """Print PATH and CONTROLLER.ACTION for every route."""
    app = boot_or_exit()
    rows = [(route.path, route.target) for route in app.routes]
    if not rows:
        print("No routes registered.")
        return

    width = max(4, *(len(path) for path, _ in rows))
    fmt = f"{{:<{width}}}  {{}}"
    print(fmt.format("PATH", "HANDLER"))
    print("-" * min(width + 2 + max(len(target) for _, target in rows), 80))
    for path, target in rows:
        print(fmt.format(path, target))
