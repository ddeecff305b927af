import json
import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from qrhunt.models import Account, Base, Drawing, DrawingWinner, Scan, SchoolClass, Station


class SerializationTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _seed(self, session):
        teacher = Account(
            name="Ada", email="ada@example.com", password_hash="secret-hash", school="North"
        )
        station = Station(
            name="Solar",
            description="Sunlight to power",
            fun_facts=["Fact"],
            estimated_time=10,
            display_order=1,
        )
        session.add_all([teacher, station])
        session.flush()
        school_class = SchoolClass(
            name="4B", teacher=teacher, school="North", grade="4", student_count=20
        )
        session.add(school_class)
        session.flush()
        return teacher, station, school_class

    def test_account_to_json_hides_password(self):
        with self.Session() as session:
            teacher, _, _ = self._seed(session)
            data = teacher.to_json()
            self.assertEqual(data["email"], "ada@example.com")
            self.assertEqual(data["role"], "teacher")
            self.assertNotIn("password_hash", data)
            self.assertNotIn("secret-hash", json.dumps(data))

    def test_station_to_json(self):
        with self.Session() as session:
            _, station, _ = self._seed(session)
            data = station.to_json()
            self.assertEqual(data["qrCode"], station.qr_code)
            self.assertEqual(data["funFacts"], ["Fact"])
            self.assertEqual(data["order"], 1)
            self.assertTrue(data["isActive"])
            self.assertNotIn("qrCode", station.display_json())
            json.dumps(data)

    def test_class_to_json(self):
        with self.Session() as session:
            teacher, station, school_class = self._seed(session)
            school_class.stations_scanned.add(station)
            session.flush()

            data = school_class.to_json()
            self.assertEqual(data["classCode"], school_class.class_code)
            self.assertEqual(data["teacher"]["id"], teacher.id)
            self.assertEqual(data["stationsScanned"], [station.id])
            self.assertFalse(data["isCompleted"])
            self.assertIsNone(data["completedAt"])

            detailed = school_class.to_json(include_stations=True)
            self.assertEqual(detailed["stationsScanned"], [{"id": station.id, "name": "Solar"}])

    def test_scan_to_json(self):
        at = datetime(2025, 5, 10, 10, 0, tzinfo=timezone.utc)
        with self.Session() as session:
            _, station, school_class = self._seed(session)
            scan = Scan(
                class_id=school_class.id,
                station_id=station.id,
                scanned_at=at,
                device_type="mobile",
                device_browser="Safari",
                device_ip="10.0.0.1",
            )
            session.add(scan)
            session.commit()

            data = scan.to_json()
            self.assertEqual(data["scannedAt"], "2025-05-10T10:00:00+00:00")
            self.assertEqual(
                data["deviceInfo"], {"type": "mobile", "browser": "Safari", "ip": "10.0.0.1"}
            )

    def test_drawing_to_json(self):
        with self.Session() as session:
            teacher, _, school_class = self._seed(session)
            drawing = Drawing(name="Raffle", stations_found_factor=2.0, created_by_id=teacher.id)
            drawing.winners = [DrawingWinner(class_id=school_class.id, position=1, prize="Pizza")]
            session.add(drawing)
            session.flush()

            data = drawing.to_json()
            self.assertEqual(data["status"], "pending")
            self.assertEqual(
                data["weightingFactors"], {"completionTime": 1.0, "stationsFound": 2.0}
            )
            self.assertEqual(
                data["winners"],
                [
                    {
                        "class": school_class.id,
                        "className": "4B",
                        "school": "North",
                        "prize": "Pizza",
                        "notified": False,
                    }
                ],
            )
            self.assertEqual(data["createdBy"]["email"], "ada@example.com")
            json.dumps(data)


if __name__ == "__main__":
    unittest.main()
