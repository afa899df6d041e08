from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from datetime import datetime
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING, NoReturn

from dotenv import load_dotenv

from labres.app import (
    RepositoryKind,
    cancel_reservation,
    list_reservations,
    register_user,
    reserve,
    update_reservation,
    watch,
)
from labres.config import ConfigurationError, configure_logging
from labres.domain.device_spec import format_device_spec
from labres.domain.errors import FetchError, LabresError, RepositoryError
from labres.domain.reservations import ReservationChanges, ReservationRequest

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from labres.domain.access_grant import GrantSummary
    from labres.domain.model import ResourceUsage
    from labres.domain.reservations import Reservation

log = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_USAGE = 2


def _add_repository_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repository",
        type=RepositoryKind,
        choices=list(RepositoryKind),
        default=RepositoryKind.GOOGLE_CALENDAR,
        help="Reservation backend (default: google_calendar)",
    )


def _add_actor_options(parser: argparse.ArgumentParser) -> None:
    actor = parser.add_mutually_exclusive_group(required=True)
    actor.add_argument("--chat-user", type=str, help="Chat user id with a registered email")
    actor.add_argument("--owner", type=str, help="Email address acting on the reservation")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lab resource reservation watcher")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser("watch", help="Poll reservations and send notifications")
    _add_repository_option(watch_parser)
    watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls (defaults to POLLING_INTERVAL or 60)",
    )

    for name, help_text in (
        ("register", "Register your email and get access to every calendar"),
        ("link-user", "Link a chat user to an email on their behalf"),
    ):
        register_parser = subparsers.add_parser(name, help=help_text)
        _add_repository_option(register_parser)
        register_parser.add_argument("--chat-user", type=str, required=True, help="Chat user id")
        register_parser.add_argument("--email", type=str, required=True, help="Email address")

    reserve_parser = subparsers.add_parser("reserve", help="Create a reservation")
    _add_repository_option(reserve_parser)
    reserve_parser.add_argument("--collection", type=str, required=True, help="Server or room name")
    reserve_parser.add_argument("--start", type=str, required=True, help="ISO-8601 start with offset")
    reserve_parser.add_argument("--end", type=str, required=True, help="ISO-8601 end with offset")
    reserve_parser.add_argument("--devices", type=str, help="Device spec such as 0-2,5 or 'all'")
    reserve_parser.add_argument("--notes", type=str, help="Free-form notes")
    _add_actor_options(reserve_parser)

    update_parser = subparsers.add_parser("update", help="Change one of your reservations")
    _add_repository_option(update_parser)
    update_parser.add_argument("--collection", type=str, required=True, help="Server or room name")
    update_parser.add_argument("--id", dest="usage_id", type=str, required=True, help="Usage id")
    update_parser.add_argument("--start", type=str, help="New ISO-8601 start")
    update_parser.add_argument("--end", type=str, help="New ISO-8601 end")
    update_parser.add_argument("--devices", type=str, help="New device spec")
    update_parser.add_argument("--notes", type=str, help="New notes (empty string clears them)")
    _add_actor_options(update_parser)

    cancel_parser = subparsers.add_parser("cancel", help="Cancel one of your reservations")
    _add_repository_option(cancel_parser)
    cancel_parser.add_argument("--collection", type=str, required=True, help="Server or room name")
    cancel_parser.add_argument("--id", dest="usage_id", type=str, required=True, help="Usage id")
    _add_actor_options(cancel_parser)

    list_parser = subparsers.add_parser("list", help="Show upcoming reservations and their ids")
    _add_repository_option(list_parser)
    list_parser.add_argument("--collection", type=str, required=True, help="Server or room name")
    whose = list_parser.add_mutually_exclusive_group(required=True)
    whose.add_argument("--chat-user", type=str, help="Chat user id with a registered email")
    whose.add_argument("--owner", type=str, help="Email address owning the reservations")
    whose.add_argument("--all", action="store_true", help="Reservations of every owner")

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp must include a UTC offset: {value}")
    return parsed


def _optional_datetime(value: str | None) -> datetime | None:
    return _parse_iso_datetime(value) if value is not None else None


def _build_request(args: argparse.Namespace) -> ReservationRequest:
    return ReservationRequest(
        collection=args.collection,
        start=_parse_iso_datetime(args.start),
        end=_parse_iso_datetime(args.end),
        owner=args.owner or "",
        devices=args.devices,
        notes=args.notes,
    )


def _build_changes(args: argparse.Namespace) -> ReservationChanges:
    changes = ReservationChanges(
        start=_optional_datetime(args.start),
        end=_optional_datetime(args.end),
        devices=args.devices,
        notes=args.notes,
    )
    if changes == ReservationChanges():
        raise ValueError("Nothing to update: pass at least one of --start/--end/--devices/--notes")
    return changes


async def _watch(args: argparse.Namespace) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (SIGINT, SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop.set)
    await watch(repository_kind=args.repository, interval_seconds=args.interval, stop=stop)


def _report_grants(summary: GrantSummary) -> None:
    log.info(f"Linked {summary.link.chat_user_id} to {summary.link.email}")
    for collection in summary.granted:
        log.info(f"Access granted: {collection.name}")
    for failure in summary.failed:
        log.error(f"Access not granted for {failure.collection.name}: {failure.error}")
    if summary.failed:
        sys.exit(EXIT_FAILURE)


def _report_reservation(reservation: Reservation) -> None:
    reservation.raise_for_status()
    usage = reservation.usage
    if usage is not None:
        log.info(
            f"{reservation.status}: {usage.id} on {reservation.collection_name} "
            f"({usage.start.isoformat()} - {usage.end.isoformat()})"
        )


def _print_usages(usages: Sequence[ResourceUsage]) -> None:
    if not usages:
        print("No upcoming reservations")
        return
    for usage in usages:
        devices = format_device_spec(usage.devices) if usage.devices else "-"
        print(
            f"{usage.id}\t{usage.start.isoformat()} - {usage.end.isoformat()}\t"
            f"{devices}\t{usage.owner}"
        )


def _exit_code_for(error: BaseException) -> int:
    if isinstance(error, (FetchError, RepositoryError)):
        return EXIT_FAILURE
    if isinstance(error, (ValueError, ConfigurationError, LabresError)):
        return EXIT_USAGE
    return EXIT_FAILURE


def _fail(error: Exception) -> NoReturn:
    code = _exit_code_for(error)
    if code == EXIT_USAGE:
        log.error(f"{type(error).__name__}: {error}")
    else:
        log.error("Command failed", exc_info=error)
    sys.exit(code)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "watch":
            asyncio.run(_watch(parsed_args))
        elif parsed_args.command in {"register", "link-user"}:
            summary = asyncio.run(
                register_user(
                    chat_user_id=parsed_args.chat_user,
                    email=parsed_args.email,
                    repository_kind=parsed_args.repository,
                )
            )
            _report_grants(summary)
        elif parsed_args.command == "reserve":
            reservation = asyncio.run(
                reserve(
                    _build_request(parsed_args),
                    chat_user_id=parsed_args.chat_user,
                    repository_kind=parsed_args.repository,
                )
            )
            _report_reservation(reservation)
        elif parsed_args.command == "update":
            reservation = asyncio.run(
                update_reservation(
                    collection=parsed_args.collection,
                    usage_id=parsed_args.usage_id,
                    changes=_build_changes(parsed_args),
                    actor=parsed_args.owner,
                    chat_user_id=parsed_args.chat_user,
                    repository_kind=parsed_args.repository,
                )
            )
            _report_reservation(reservation)
        elif parsed_args.command == "cancel":
            reservation = asyncio.run(
                cancel_reservation(
                    collection=parsed_args.collection,
                    usage_id=parsed_args.usage_id,
                    actor=parsed_args.owner,
                    chat_user_id=parsed_args.chat_user,
                    repository_kind=parsed_args.repository,
                )
            )
            _report_reservation(reservation)
        elif parsed_args.command == "list":
            usages = asyncio.run(
                list_reservations(
                    collection=parsed_args.collection,
                    owner=parsed_args.owner,
                    chat_user_id=parsed_args.chat_user,
                    repository_kind=parsed_args.repository,
                )
            )
            _print_usages(usages)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception as exc:  # noqa: BLE001
        _fail(exc)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
