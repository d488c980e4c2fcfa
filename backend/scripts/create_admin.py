"""
Create an administrator account, or promote an existing user to administrator.

Usage:
  python scripts/create_admin.py alice alice@lab.org              # prompts for the password
  python scripts/create_admin.py alice alice@lab.org --password s3cretpass
  python scripts/create_admin.py --promote bob                    # make an existing user admin
"""

from __future__ import annotations

import argparse
import getpass
import sys
from typing import List, Optional

from labnotes.core.config import settings
from labnotes.core.security import get_password_hash
from labnotes.db.session import Database
from labnotes.db.storage import Storage

MIN_PASSWORD_LENGTH = 8


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a lab notebook administrator")
    parser.add_argument("username", nargs="?")
    parser.add_argument("email", nargs="?")
    parser.add_argument("--password")
    parser.add_argument("--display-name")
    parser.add_argument("--promote", metavar="USERNAME", help="grant admin rights to an existing user")
    args = parser.parse_args(argv)

    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    database.create_all()
    db = database.session()
    try:
        storage = Storage(db, max_attempts=settings.DB_RETRY_ATTEMPTS, base_delay=settings.DB_RETRY_BASE_DELAY)

        if args.promote:
            user = storage.get_user_by_username(args.promote)
            if user is None:
                print(f"No user named {args.promote}", file=sys.stderr)
                return 1
            storage.update_user(user, is_admin=True, role="Administrator")
            print(f"{user.username} is now an administrator")
            return 0

        if not args.username or not args.email:
            parser.error("username and email are required unless --promote is given")

        if storage.get_user_by_username(args.username) or storage.get_user_by_email(args.email):
            print("A user with that username or email already exists", file=sys.stderr)
            return 1

        password = args.password or getpass.getpass("Password: ")
        if len(password) < MIN_PASSWORD_LENGTH:
            print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", file=sys.stderr)
            return 1

        user = storage.create_user(
            username=args.username,
            email=args.email,
            hashed_password=get_password_hash(password),
            display_name=args.display_name or args.username,
            role="Administrator",
            is_admin=True,
            is_verified=True,
        )
        print(f"Created administrator {user.username} (id={user.id})")
        return 0
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
