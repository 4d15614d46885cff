"""Create tables and insert demo users and places for local development."""
from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from food_connect.core.security import ROLE_ADMIN, ROLE_USER
from food_connect.db.session import SessionLocal, create_tables, drop_tables
from food_connect.models import Place, User

DEMO_USERS = (
    ("Ada Baker", "ada@example.com", ROLE_USER),
    ("Basil Cook", "basil@example.com", ROLE_USER),
    ("Mod Erator", "admin@example.com", ROLE_ADMIN),
)

DEMO_PLACES = (
    ("Corner Noodle Bar", ["https://images.example.com/noodles.jpg"]),
    ("Sunday Farmers Market", []),
    ("Taqueria El Sol", ["https://images.example.com/tacos.jpg"]),
)


def seed(db: Session) -> tuple[int, int]:
    """Insert missing demo rows; return how many users and places were added."""
    added_users = 0
    for name, email, role in DEMO_USERS:
        if db.query(User).filter(User.email == email).first() is None:
            db.add(User(name=name, email=email, role=role))
            added_users += 1

    added_places = 0
    for name, images in DEMO_PLACES:
        if db.query(Place).filter(Place.name == name).first() is None:
            db.add(Place(name=name, images=list(images)))
            added_places += 1

    db.commit()
    return added_users, added_places


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the database with demo data")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all tables before recreating them.",
    )
    args = parser.parse_args(argv)

    if args.reset:
        drop_tables()
    create_tables()

    db = SessionLocal()
    try:
        users, places = seed(db)
    finally:
        db.close()
    print(f"[seed] added {users} users and {places} places")


if __name__ == "__main__":
    main()
