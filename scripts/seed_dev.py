"""Reset the development database and fill it with a small demo hunt."""

from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker

from qrhunt.auth import hash_password
from qrhunt.db.engine import make_engine
from qrhunt.models import (
    ROLE_ADMIN,
    Account,
    Base,
    Drawing,
    Scan,
    SchoolClass,
    Station,
)
from qrhunt.workflows import reconcile_class_progress

DEV_PASSWORD = "password123"


def main() -> None:
    """Seed the development database with sample data."""
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    start = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=2)

    with Session.begin() as session:
        admin = Account(
            name="Hunt Admin",
            email="admin@example.com",
            password_hash=hash_password(DEV_PASSWORD),
            role=ROLE_ADMIN,
        )
        teacher = Account(
            name="Ms. Rivera",
            email="teacher@example.com",
            password_hash=hash_password(DEV_PASSWORD),
            school="Eureka Elementary",
        )
        session.add_all([admin, teacher])
        session.flush()

        stations = [
            Station(
                name="Solar Power",
                description="How sunlight becomes electricity.",
                fun_facts=["The sun delivers more energy in an hour than we use in a year."],
                activity_type="Hands-on Activity",
                estimated_time=10,
                display_order=1,
            ),
            Station(
                name="Robotics Lab",
                description="Drive a line-following robot.",
                activity_type="Interactive Demo",
                difficulty="Medium",
                estimated_time=15,
                display_order=2,
            ),
            Station(
                name="Water Cycle",
                description="Follow a raindrop from cloud to river.",
                safety_tips=["Keep water away from the electronics table."],
                display_order=3,
            ),
        ]
        session.add_all(stations)
        session.flush()

        finished = SchoolClass(
            name="4B Explorers",
            teacher=teacher,
            school="Eureka Elementary",
            grade="4",
            student_count=24,
        )
        halfway = SchoolClass(
            name="5A Scientists",
            teacher=teacher,
            school="Eureka Elementary",
            grade="5",
            student_count=27,
        )
        session.add_all([finished, halfway])
        session.flush()

        for offset, station in enumerate(stations):
            session.add(
                Scan(
                    class_id=finished.id,
                    station_id=station.id,
                    scanned_at=start + timedelta(minutes=20 * offset),
                    scanned_by_id=teacher.id,
                )
            )
        session.add(
            Scan(
                class_id=halfway.id,
                station_id=stations[0].id,
                scanned_at=start + timedelta(minutes=5),
                scanned_by_id=teacher.id,
            )
        )
        session.flush()

        for school_class in (finished, halfway):
            reconcile_class_progress(
                session, school_class, now=start + timedelta(minutes=40)
            )

        session.add(
            Drawing(
                name="Education Day Raffle",
                date=start + timedelta(hours=4),
                created_by_id=admin.id,
            )
        )

    print(f"Seeded demo hunt; log in as admin@example.com / {DEV_PASSWORD}")


if __name__ == "__main__":
    main()
