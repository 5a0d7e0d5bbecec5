"""Seed a user with one overdue and one fresh information request."""
from __future__ import annotations

from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

from sentalerts import db, models
from sentalerts.config import get_settings
from sentalerts.utils.time import utctoday


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")

    db.create_all()
    session = db.get_sessionmaker()()
    today = utctoday()

    try:
        alice = models.User(name="Alice Example", email="alice@example.com")
        session.add(alice)
        session.flush()
        session.add_all(
            [
                models.InfoRequest(
                    title="Council parking budget",
                    url_title="council_parking_budget",
                    user_id=alice.id,
                    date_response_required_by=today - timedelta(days=3),
                ),
                models.InfoRequest(
                    title="School meal suppliers",
                    url_title="school_meal_suppliers",
                    user_id=alice.id,
                    date_response_required_by=today + timedelta(days=20),
                ),
            ]
        )
        session.commit()
        print("Seed data inserted.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
