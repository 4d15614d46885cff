"""Issue a bearer token for an existing user (development use).

Login lives outside this service; this lets operators and local frontends
act as a seeded user:

    python -m food_connect.scripts.tokens 1
"""
from __future__ import annotations

import argparse
import sys

from food_connect.core.security import create_access_token
from food_connect.db.session import SessionLocal
from food_connect.models import User


def issue_token(user_id: int) -> str:
    """Return a signed token for ``user_id``.

    Raises:
        LookupError: If the user does not exist or is inactive.
    """
    db = SessionLocal()
    try:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise LookupError(f"No active user with id {user_id}")
        return create_access_token(user.id)
    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Issue a bearer token for a user")
    parser.add_argument("user_id", type=int, help="Id of an existing user")
    args = parser.parse_args(argv)

    try:
        token = issue_token(args.user_id)
    except LookupError as exc:
        print(f"[tokens] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    print(token)


if __name__ == "__main__":
    main()
