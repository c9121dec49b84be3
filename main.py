#!/usr/bin/env python3
"""
MediChain identity -- administration commands.

Works directly against the user store configured by DATABASE_URL, so it can
be run on the server without going through the HTTP API.

Usage:
  python main.py list-users
  python main.py create-admin root --email root@medichain.local --first-name Ops --last-name Team \
      --phone 0000000000 --dob 1990-01-01
  python main.py deactivate alice
  python main.py activate alice

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the user store (default: medichain_identity.db)
  SECRET_KEY    Required unless DEBUG=true; same rules as the API server
"""

from __future__ import annotations

import argparse
import getpass
import logging
from datetime import date, datetime

from auth.errors import IdentityError
from auth.models import DATE_FORMAT, TIMESTAMP_FORMAT, RegistrationRequest, UserRole
from auth.service import IdentityService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

logger = logging.getLogger("medichain.cli")


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not a yyyy-MM-dd date") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medichain-identity",
        description="Administer MediChain identity accounts.",
    )
    parser.add_argument(
        "--db",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list-users", help="List every account with its role and status")

    admin = sub.add_parser("create-admin", help="Create an ADMIN account (not possible through the API)")
    admin.add_argument("username")
    admin.add_argument("--email", required=True)
    admin.add_argument("--first-name", required=True)
    admin.add_argument("--last-name", required=True)
    admin.add_argument("--phone", required=True)
    admin.add_argument("--dob", required=True, type=_parse_date, help="Date of birth, yyyy-MM-dd")
    admin.add_argument("--password", default=None, help="Prompted for when omitted")

    for name, text in (("deactivate", "Block an account from logging in"), ("activate", "Re-enable an account")):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument("username")

    return parser


def _read_password(args: argparse.Namespace) -> tuple[str, str]:
    if args.password is not None:
        return args.password, args.password
    return getpass.getpass("Password: "), getpass.getpass("Confirm password: ")


def run(args: argparse.Namespace, identity: IdentityService) -> None:
    """Execute one parsed command. Domain failures propagate as IdentityError."""
    if args.command == "list-users":
        users = identity.repository.list_users()
        if not users:
            print("  No users registered.")
        for user in users:
            status = "active" if user.is_active else "inactive"
            created = user.created_at.strftime(TIMESTAMP_FORMAT) if user.created_at else "-"
            print(f"  {user.id:>4}  {user.username:<24} {user.role.value:<13} {status:<9} {created}")

    elif args.command == "create-admin":
        password, confirm = _read_password(args)
        summary = identity.register(
            RegistrationRequest(
                username=args.username,
                first_name=args.first_name,
                last_name=args.last_name,
                mail_id=args.email,
                phone=args.phone,
                dob=args.dob,
                password=password,
                confirm_password=confirm,
                role=UserRole.ADMIN,
            )
        )
        print(f"  Created admin '{summary.username}' (id={summary.id}).")

    elif args.command == "deactivate":
        identity.deactivate(args.username)
        print(f"  '{args.username}' deactivated. Existing tokens expire on their own.")

    elif args.command == "activate":
        identity.activate(args.username)
        print(f"  '{args.username}' activated.")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)-5s %(name)s %(message)s")

    settings = get_settings()
    store = UserStore(args.db or settings.database_url)
    identity = IdentityService(store, TokenService.from_settings(settings))
    try:
        run(args, identity)
    except IdentityError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
