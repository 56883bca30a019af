"""Command line entry point.

Usage:
    vmrunner serve [--host HOST] [--port PORT]
    vmrunner configure [--vm-id VM_ID] [--token TOKEN]
    vmrunner status
    vmrunner {start,stop,restart} [--watch]
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from vmrunner.compute import ComputeClient
from vmrunner.config import Settings, load_settings
from vmrunner.credentials import TOKEN_KEY, VM_ID_KEY, CredentialStore
from vmrunner.dashboard import VMDashboard
from vmrunner.gate import VMAction
from vmrunner.server import configure_logging, create_app
from vmrunner.status import build_rules

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vmrunner", description="Single VM power control panel")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web control panel")
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")

    configure = subparsers.add_parser("configure", help="Save the VM ID and/or bearer token")
    configure.add_argument("--vm-id", help="VM identifier")
    configure.add_argument("--token", help="Bearer token for the compute API")

    subparsers.add_parser("status", help="Show the VM status")

    for action in VMAction:
        sub = subparsers.add_parser(action.value, help=f"{action.value.capitalize()} the VM")
        sub.add_argument(
            "--watch",
            action="store_true",
            help="Wait for the follow-up status checks and print each result",
        )

    return parser


def _dashboard(settings: Settings, client: ComputeClient, watch: bool = False) -> VMDashboard:
    on_refresh = None
    if watch:
        def on_refresh(state):
            print(f"status: {state.value if state else 'unknown'}")
    return VMDashboard(
        CredentialStore(settings.credentials_file),
        client,
        rules=build_rules(settings.status_fields),
        repoll_delays=settings.repoll_delays,
        on_refresh=on_refresh,
    )


async def show_status(settings: Settings, client: ComputeClient) -> int:
    dashboard = _dashboard(settings, client)
    if not dashboard.credentials.complete:
        print("VM ID and bearer token are required, run 'vmrunner configure' first", file=sys.stderr)
        return 1
    state = await dashboard.refresh()
    print(state.value.upper())
    return 0


async def run_action(settings: Settings, client: ComputeClient, action: VMAction, watch: bool) -> int:
    dashboard = _dashboard(settings, client, watch=watch)
    try:
        if dashboard.credentials.complete:
            await dashboard.refresh()
        outcome = await dashboard.perform(action)
        stream = sys.stdout if outcome.notification.level != "error" else sys.stderr
        print(outcome.notification.message, file=stream)
        if watch:
            await dashboard.wait_for_repolls()
        return 0 if outcome.success or outcome.notification.level == "info" else 1
    finally:
        await dashboard.close()


def main(argv: Optional[List[str]] = None, transport=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(settings)

    if args.command == "serve":
        try:
            app = create_app(settings)
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2
        logger.info(f"Starting control panel on {args.host}:{args.port}")
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    if args.command == "configure":
        store = CredentialStore(settings.credentials_file)
        if args.vm_id is not None:
            store.save(VM_ID_KEY, args.vm_id)
        if args.token is not None:
            store.save(TOKEN_KEY, args.token)
        print(f"Credentials saved to {settings.credentials_file}")
        return 0

    async def run() -> int:
        async with ComputeClient(settings.compute_base_url, transport=transport) as client:
            if args.command == "status":
                return await show_status(settings, client)
            return await run_action(settings, client, VMAction(args.command), args.watch)

    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
