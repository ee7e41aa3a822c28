from __future__ import annotations

import argparse
import asyncio
import logging

from shootaround.config import get_settings
from shootaround.sessions.adapters import attempt_count, format_status, format_timestamp
from shootaround.sessions.controller import SessionController
from shootaround.sessions.local_cache import LocalSessionCache
from shootaround.sessions.locations import PLAYER_NAME_SUGGESTION
from shootaround.sessions.remote import SessionStoreClient


def build_controller() -> SessionController:
    return SessionController(LocalSessionCache(), SessionStoreClient.from_settings())


async def _list_incomplete(controller: SessionController) -> int:
    sessions = await controller.load_incomplete_sessions()
    if controller.state.sessions_load_error:
        print(controller.state.sessions_load_error)
    if not sessions:
        print("No sessions in progress.")
        return 0
    for session in sessions:
        print(
            f"{session.id or '-'}  {session.player_name:<20} "
            f"{format_status(session.status):<12} {format_timestamp(session):<24} "
            f"{attempt_count(session)} shots ({session.source})"
        )
    return 0


async def _list_previous(controller: SessionController, player: str) -> int:
    if not controller.begin_session(player):
        print(controller.state.player_name_error)
        return 1
    previous = await controller.load_previous_sessions()
    if not previous:
        print(f"No completed sessions for {controller.state.player_name}.")
        return 0
    for entry in previous:
        stats = entry.stats
        print(
            f"{format_timestamp(entry.session):<24} "
            f"{stats.makes}/{stats.attempts} ({stats.percentage}%)"
        )
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("shootaround.app:app", host=host, port=port)
    return 0


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Shootaround session tools.")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the reference session store.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=None)

    sessions = sub.add_parser(
        "sessions", help="List sessions in progress, or a player's recent sessions."
    )
    sessions.add_argument(
        "--player",
        default=None,
        help=f"Show recent completed sessions for this player (e.g. {PLAYER_NAME_SUGGESTION}).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "serve":
        return _serve(args.host, args.port or get_settings().server_port)

    controller = build_controller()
    if args.player:
        return asyncio.run(_list_previous(controller, args.player))
    return asyncio.run(_list_incomplete(controller))


if __name__ == "__main__":
    raise SystemExit(main())
