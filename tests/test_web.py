import unittest

from sqlalchemy.pool import StaticPool

from qrhunt import __version__
from qrhunt.auth import issue_token
from qrhunt.config import Settings
from qrhunt.db.engine import get_sessionmaker, make_engine
from qrhunt.models import ROLE_ADMIN, Base
from qrhunt.web import create_app
from qrhunt.workflows import register_account


class RecordingMailClient:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, text=None, html=None):
        self.sent.append((to, subject))
        return {"id": len(self.sent)}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine(
            "sqlite+pysqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        self.settings = Settings(jwt_secret="test-secret")
        self.app = create_app(self.settings, self.Session)
        self.app.testing = True
        self.mail = RecordingMailClient()
        self.app.config["MAIL_CLIENT_FACTORY"] = lambda: self.mail
        self.client = self.app.test_client()

        with self.Session() as session:
            admin = register_account(
                session,
                name="Admin",
                email="admin@example.com",
                password="adminpass",
                role=ROLE_ADMIN,
            )
            session.commit()
            self.admin_token = issue_token(admin, self.settings)

    def tearDown(self):
        self.engine.dispose()

    @staticmethod
    def auth(token):
        return {"Authorization": f"Bearer {token}"}

    def register_teacher(self, email="teacher@example.com"):
        response = self.client.post(
            "/api/auth/register",
            json={
                "name": "Ms. Rivera",
                "email": email,
                "password": "secret1",
                "school": "Eureka Elementary",
            },
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["token"]

    def create_station(self, name, order):
        response = self.client.post(
            "/api/stations",
            json={"name": name, "description": f"About {name}", "order": order},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]

    def create_class(self, token, name="4B"):
        response = self.client.post(
            "/api/classes",
            json={"name": name, "school": "Eureka Elementary", "grade": "4", "studentCount": 24},
            headers=self.auth(token),
        )
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]

    def scan(self, token, class_id, station_ref):
        return self.client.post(
            "/api/scans",
            json={
                "classId": class_id,
                "stationQRCode": station_ref,
                "deviceInfo": {"type": "mobile", "browser": "Safari"},
            },
            headers=self.auth(token),
        )


class HealthAndErrorTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "ok", "version": __version__})

    def test_missing_token(self):
        response = self.client.get("/api/stations")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.get_json(),
            {"success": False, "error": "Not authorized to access this route"},
        )

    def test_wrong_role(self):
        token = self.register_teacher()
        response = self.client.post(
            "/api/stations", json={"name": "Nope"}, headers=self.auth(token)
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.get_json()["error"],
            "User role teacher is not authorized to access this route",
        )

    def test_unknown_route(self):
        response = self.client.get("/api/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])

    def test_station_not_found(self):
        response = self.client.get("/api/stations/99", headers=self.auth(self.admin_token))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.get_json(),
            {"success": False, "error": "Station not found with id of 99"},
        )


class AuthRouteTests(ApiTestCase):
    def test_register_login_and_me(self):
        self.register_teacher()

        response = self.client.post(
            "/api/auth/login", json={"email": "teacher@example.com", "password": "secret1"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["user"]["role"], "teacher")

        me = self.client.get("/api/auth/me", headers=self.auth(body["token"]))
        self.assertEqual(me.get_json()["data"]["email"], "teacher@example.com")

    def test_register_ignores_requested_role(self):
        response = self.client.post(
            "/api/auth/register",
            json={
                "name": "Sneaky",
                "email": "sneaky@example.com",
                "password": "secret1",
                "school": "Eureka Elementary",
                "role": "admin",
            },
        )
        self.assertEqual(response.get_json()["user"]["role"], "teacher")

    def test_duplicate_email(self):
        self.register_teacher()
        response = self.client.post(
            "/api/auth/register",
            json={
                "name": "Again",
                "email": "teacher@example.com",
                "password": "secret1",
                "school": "Eureka Elementary",
            },
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "User already exists with this email")

    def test_bad_login(self):
        self.register_teacher()
        response = self.client.post(
            "/api/auth/login", json={"email": "teacher@example.com", "password": "wrong!"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "Invalid credentials")


class StationRouteTests(ApiTestCase):
    def test_create_list_and_filter(self):
        first = self.create_station("Solar Power", 1)
        self.create_station("Robotics", 2)
        self.assertTrue(first["qrCode"])

        self.client.put(
            f"/api/stations/{first['id']}",
            json={"isActive": False},
            headers=self.auth(self.admin_token),
        )

        everything = self.client.get("/api/stations", headers=self.auth(self.admin_token))
        self.assertEqual(everything.get_json()["count"], 2)
        active = self.client.get(
            "/api/stations?active=true", headers=self.auth(self.admin_token)
        )
        self.assertEqual([s["name"] for s in active.get_json()["data"]], ["Robotics"])

    def test_delete_unscanned_station(self):
        station = self.create_station("Solar Power", 1)
        response = self.client.delete(
            f"/api/stations/{station['id']}", headers=self.auth(self.admin_token)
        )
        self.assertEqual(response.get_json(), {"success": True, "deleted": True, "data": {}})

    def test_validation_error(self):
        response = self.client.post(
            "/api/stations", json={"description": "no name"}, headers=self.auth(self.admin_token)
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Please add a station name")


class HuntFlowTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.stations = [self.create_station("Solar Power", 1), self.create_station("Robotics", 2)]
        self.teacher_token = self.register_teacher()
        self.school_class = self.create_class(self.teacher_token)

    def test_scan_then_rescan(self):
        class_id = self.school_class["id"]
        first = self.scan(self.teacher_token, class_id, self.stations[0]["id"])
        self.assertEqual(first.status_code, 201)
        body = first.get_json()
        self.assertEqual(body["message"], "Scan recorded successfully for station: Solar Power!")
        self.assertEqual(body["stationData"]["name"], "Solar Power")
        self.assertEqual(body["progress"]["completedCount"], 1)
        self.assertEqual(body["progress"]["progressPercentage"], 50)
        self.assertEqual(body["data"]["deviceInfo"]["type"], "mobile")

        again = self.scan(self.teacher_token, class_id, self.stations[0]["qrCode"])
        self.assertEqual(again.status_code, 200)
        self.assertTrue(again.get_json()["existing"])
        self.assertEqual(again.get_json()["data"]["id"], body["data"]["id"])

        scans = self.client.get(
            f"/api/scans/class/{class_id}", headers=self.auth(self.teacher_token)
        )
        self.assertEqual(scans.get_json()["count"], 1)

    def test_progress_and_details(self):
        class_id = self.school_class["id"]
        for station in self.stations:
            self.scan(self.teacher_token, class_id, station["id"])

        progress = self.client.get(
            f"/api/classes/{class_id}/progress", headers=self.auth(self.teacher_token)
        ).get_json()["data"]
        self.assertTrue(progress["isCompleted"])
        self.assertEqual(progress["completedCount"], 2)
        self.assertIsNotNone(progress["completedAt"])

        details = self.client.get(
            f"/api/classes/{class_id}/details", headers=self.auth(self.admin_token)
        ).get_json()["data"]
        self.assertEqual(
            [s["station"]["name"] for s in details["scannedStations"]],
            ["Solar Power", "Robotics"],
        )
        self.assertTrue(details["class"]["isCompleted"])

    def test_other_teacher_cannot_read_class(self):
        other = self.register_teacher("other@example.com")
        response = self.client.get(
            f"/api/classes/{self.school_class['id']}", headers=self.auth(other)
        )
        self.assertEqual(response.status_code, 403)

    def test_drawing_run(self):
        class_id = self.school_class["id"]
        for station in self.stations:
            self.scan(self.teacher_token, class_id, station["id"])

        eligible = self.client.get(
            "/api/drawings/eligible-classes", headers=self.auth(self.admin_token)
        ).get_json()
        self.assertEqual(eligible["count"], 1)
        self.assertEqual(eligible["data"][0]["id"], class_id)

        created = self.client.post(
            "/api/drawings",
            json={"name": "Raffle", "weightingFactors": {"completionTime": 2}},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(created.status_code, 201)
        drawing = created.get_json()["data"]
        self.assertEqual(drawing["status"], "pending")
        self.assertEqual(drawing["weightingFactors"]["completionTime"], 2.0)

        run = self.client.post(
            f"/api/drawings/{drawing['id']}/run",
            json={"numberOfWinners": "1", "prizeDescription": "Pizza party"},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(run.status_code, 200)
        result = run.get_json()["data"]
        self.assertEqual(result["status"], "completed")
        self.assertEqual(result["eligibleClasses"], [class_id])
        self.assertEqual(len(result["winners"]), 1)
        self.assertEqual(result["winners"][0]["prize"], "Pizza party")
        self.assertTrue(result["winners"][0]["notified"])
        self.assertEqual(self.mail.sent[0][0], "teacher@example.com")

        again = self.client.post(
            f"/api/drawings/{drawing['id']}/run",
            json={"numberOfWinners": 1},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(again.status_code, 409)
        self.assertEqual(len(self.mail.sent), 1)

    def test_drawing_without_eligible_classes(self):
        created = self.client.post(
            "/api/drawings", json={"name": "Raffle"}, headers=self.auth(self.admin_token)
        ).get_json()["data"]
        response = self.client.post(
            f"/api/drawings/{created['id']}/run",
            json={"numberOfWinners": 1},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json()["error"],
            "No classes are eligible for the drawing based on current criteria.",
        )

    def test_invalid_winner_count(self):
        created = self.client.post(
            "/api/drawings", json={"name": "Raffle"}, headers=self.auth(self.admin_token)
        ).get_json()["data"]
        response = self.client.post(
            f"/api/drawings/{created['id']}/run",
            json={"numberOfWinners": 0},
            headers=self.auth(self.admin_token),
        )
        self.assertEqual(response.status_code, 400)


class ProfileRouteTests(ApiTestCase):
    def test_update_profile(self):
        token = self.register_teacher()
        response = self.client.put(
            "/api/auth/profile",
            json={
                "bio": "Science lead",
                "phone": "555-0100",
                "profilePicture": "https://img.example.com/me.png",
                "email": "hijack@example.com",
            },
            headers=self.auth(token),
        )
        self.assertEqual(response.status_code, 200)
        user = response.get_json()["user"]
        self.assertEqual(user["bio"], "Science lead")
        self.assertEqual(user["profilePicture"], "https://img.example.com/me.png")
        self.assertEqual(user["email"], "teacher@example.com")

        me = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(me.get_json()["data"]["phone"], "555-0100")

    def test_profile_requires_token(self):
        response = self.client.put("/api/auth/profile", json={"bio": "x"})
        self.assertEqual(response.status_code, 401)

    def test_logout(self):
        response = self.client.get("/api/auth/logout")
        self.assertEqual(
            response.get_json(), {"success": True, "message": "Logged out successfully"}
        )


class StationQrCodeRouteTests(ApiTestCase):
    def test_admin_gets_png(self):
        station = self.create_station("Solar Power", 1)
        response = self.client.get(
            f"/api/stations/{station['id']}/qrcode", headers=self.auth(self.admin_token)
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(
            data["scanUrl"], f"http://localhost:5173/scan-station/{station['id']}"
        )
        self.assertTrue(data["qrCodeDataURL"].startswith("data:image/png;base64,"))

    def test_teacher_is_rejected(self):
        station = self.create_station("Solar Power", 1)
        token = self.register_teacher()
        response = self.client.get(
            f"/api/stations/{station['id']}/qrcode", headers=self.auth(token)
        )
        self.assertEqual(response.status_code, 403)


class DashboardTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.stations = [self.create_station("Solar Power", 1), self.create_station("Robotics", 2)]
        self.teacher_token = self.register_teacher()
        self.done = self.create_class(self.teacher_token, "4B")
        self.idle = self.create_class(self.teacher_token, "5C")
        for station in self.stations:
            self.scan(self.teacher_token, self.done["id"], station["id"])

    def get(self, path, token=None):
        return self.client.get(path, headers=self.auth(token or self.admin_token))


class AdminRouteTests(DashboardTestCase):
    def test_stats(self):
        body = self.get("/api/admin/stats").get_json()
        self.assertEqual(
            body["data"],
            {"totalTeachers": 1, "totalClasses": 2, "activeStations": 2, "completedHunts": 1},
        )

    def test_recent_activity(self):
        activity = self.get("/api/admin/recent-activity?limit=1").get_json()["data"]
        self.assertEqual(len(activity), 1)
        self.assertEqual(activity[0]["className"], "4B")
        self.assertEqual(activity[0]["teacherName"], "Ms. Rivera")
        self.assertEqual(activity[0]["progress"]["progressPercentage"], 100)

        fallback = self.get("/api/admin/recent-activity?limit=abc").get_json()["data"]
        self.assertEqual(len(fallback), 2)

    def test_listings(self):
        teachers = self.get("/api/admin/teachers-list").get_json()
        self.assertEqual(teachers["count"], 1)
        self.assertEqual(teachers["data"][0]["email"], "teacher@example.com")

        classes = self.get("/api/admin/all-classes").get_json()
        self.assertEqual(classes["count"], 2)
        progress = {c["name"]: c["progress"]["completedCount"] for c in classes["data"]}
        self.assertEqual(progress, {"4B": 2, "5C": 0})

        hunts = self.get("/api/admin/completed-hunts").get_json()
        self.assertEqual(hunts["count"], 1)
        self.assertEqual(hunts["data"][0]["id"], self.done["id"])
        self.assertEqual(hunts["data"][0]["stationsScanned"], 2)
        self.assertEqual(hunts["data"][0]["completionTimeHours"], 0)

    def test_teacher_is_rejected(self):
        response = self.get("/api/admin/stats", self.teacher_token)
        self.assertEqual(response.status_code, 403)


class AnalyticsRouteTests(DashboardTestCase):
    def test_overview(self):
        data = self.get("/api/analytics/overview").get_json()["data"]
        self.assertEqual(data["overview"]["totalClasses"], 2)
        self.assertEqual(data["overview"]["completionRate"], 50)
        self.assertEqual(data["gradeDistribution"], [{"grade": "4", "count": 2, "students": 48}])

    def test_future_window_is_empty(self):
        data = self.get("/api/analytics/overview?startDate=2999-01-01T00:00:00Z").get_json()
        self.assertEqual(data["data"]["overview"]["totalClasses"], 0)

    def test_bad_date(self):
        response = self.get("/api/analytics/station-heatmap?endDate=yesterday")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "endDate must be an ISO 8601 date")

    def test_heatmap_and_patterns(self):
        heatmap = self.get("/api/analytics/station-heatmap").get_json()["data"]
        self.assertEqual([row["scanCount"] for row in heatmap], [1, 1])

        patterns = self.get("/api/analytics/time-patterns?groupBy=day").get_json()["data"]
        self.assertEqual(patterns["groupBy"], "day")
        self.assertEqual(sum(p["scanCount"] for p in patterns["timePatterns"]), 2)

    def test_engagement(self):
        data = self.get("/api/analytics/engagement").get_json()["data"]
        self.assertEqual(data["dropoutAnalysis"]["classesWithScans"], 1)
        self.assertEqual(data["schoolParticipation"][0]["school"], "Eureka Elementary")

    def test_historical(self):
        history = self.get("/api/analytics/historical?compareYears=3").get_json()["data"]
        self.assertEqual(len(history), 3)
        self.assertEqual(history[0]["totalClasses"], 2)
        self.assertEqual(history[0]["totalScans"], 2)

        response = self.get("/api/analytics/historical?compareYears=-1")
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
