"""Account administration CLI (SQLite).

Usage:
  python -m src.manage_accounts invite --email user@example.com
  python -m src.manage_accounts users
  python -m src.manage_accounts delete-user --id <user-id>
  python -m src.manage_accounts purge-resets

This tool writes to the auth DB at {DATA_DIR}/app.db (or DB_PATH override).
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from config import LOG_LEVEL
from src.services.auth_service import AuthService
from src.services.errors import AuthError


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage user accounts and invitations (SQLite).")
    parser.add_argument("--db-path", type=Path, default=None, help="Override DB path (default: config.DB_PATH)")

    sub = parser.add_subparsers(dest="command", required=True)

    p_invite = sub.add_parser("invite", help="Invite an email (replaces any pending invitation)")
    p_invite.add_argument("--email", required=True, help="Email to invite")

    sub.add_parser("users", help="List users")

    p_delete = sub.add_parser("delete-user", help="Delete a user by id")
    p_delete.add_argument("--id", dest="user_id", required=True, help="User ID to delete")

    sub.add_parser("purge-resets", help="Remove expired password reset tokens")

    return parser.parse_args(argv)


def _print_users(users: list[dict]) -> None:
    if not users:
        print("No users found.")
        return
    for u in users:
        print(f"- id={u['id']} username={u.get('username') or ''} email={u['email']}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    service = AuthService(db_path=args.db_path) if args.db_path else AuthService()

    if args.command == "invite":
        try:
            token = service.invite(args.email)
        except AuthError as exc:
            print(f"Error: {exc}")
            return 1
        print("Invitation created:")
        print(f"- email: {args.email.strip().lower()}")
        print(f"- token: {token}")
        return 0

    if args.command == "users":
        _print_users(service.list_users())
        return 0

    if args.command == "delete-user":
        ok = service.delete_user(args.user_id)
        print("Deleted." if ok else "No user found for that id.")
        return 0 if ok else 1

    if args.command == "purge-resets":
        count = service.resets.purge_expired()
        print(f"Purged {count} expired reset token(s).")
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
