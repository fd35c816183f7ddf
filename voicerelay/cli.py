"""
VoiceRelay operator CLI.

Inspect and drain the offline queue, probe the collector, or run the
development collector locally::

    python -m voicerelay status --check
    python -m voicerelay sync
    python -m voicerelay clear --yes
    python -m voicerelay collector --port 8080
"""

import argparse
import asyncio
import logging
import sys

from voicerelay.core.config import get_settings
from voicerelay.services.sync import SyncCoordinator, create_coordinator


async def _with_coordinator(action) -> int:
    coordinator: SyncCoordinator = create_coordinator()
    await coordinator.start()
    try:
        return await action(coordinator)
    finally:
        await coordinator.aclose()


async def _status(coordinator: SyncCoordinator, check: bool) -> int:
    print(f"Pending offline entries: {coordinator.pending_count()}")
    if check:
        reachable = await coordinator.check_connection()
        print(f"Collector: {'reachable' if reachable else 'unreachable'}")
    return 0


async def _sync(coordinator: SyncCoordinator) -> int:
    result = await coordinator.drain()
    print(result.message)
    return 0 if result.success else 1


async def _health(coordinator: SyncCoordinator) -> int:
    if await coordinator.check_connection():
        print("Collector is reachable")
        return 0
    print("Collector is unreachable")
    return 1


async def _clear(coordinator: SyncCoordinator) -> int:
    result = await coordinator.clear_queue()
    print(result.message)
    return 0 if result.success else 1


def _serve_collector(host: str, port: int) -> int:
    import uvicorn

    from voicerelay.api.collector import create_collector_app

    uvicorn.run(create_collector_app(), host=host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicerelay",
        description="Offline queue and sync tooling for voice data delivery",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="Show the offline backlog size")
    status.add_argument(
        "--check", action="store_true", help="Also probe the collector's /health endpoint"
    )

    sub.add_parser("sync", help="Send all pending entries to the collector once")
    sub.add_parser("health", help="Probe the collector's /health endpoint")

    clear = sub.add_parser("clear", help="Discard every pending entry")
    clear.add_argument(
        "--yes",
        action="store_true",
        help="Confirm the collector does not need the discarded entries",
    )

    collector = sub.add_parser("collector", help="Run the development collector")
    collector.add_argument("--host", default=None, help="Bind address")
    collector.add_argument("--port", type=int, default=None, help="Bind port")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "collector":
        return _serve_collector(
            args.host or settings.collector_host,
            args.port or settings.collector_port,
        )
    if args.command == "clear" and not args.yes:
        print("Refusing to clear the offline queue without --yes")
        return 1

    actions = {
        "status": lambda c: _status(c, args.check),
        "sync": _sync,
        "health": _health,
        "clear": _clear,
    }
    return asyncio.run(_with_coordinator(actions[args.command]))


if __name__ == "__main__":
    sys.exit(main())
