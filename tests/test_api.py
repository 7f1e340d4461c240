"""
End-to-end checks of the HTTP API against a temporary SQLite database.
"""
import itertools
import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from carhub import clock
from carhub.main import app

_plates = itertools.count(1)


def money(value):
    return Decimal(str(value))


class ApiTestCase(unittest.TestCase):
    client = None
    headers = None

    @classmethod
    def setUpClass(cls):
        cls._client_cm = TestClient(app)
        cls.client = cls._client_cm.__enter__()
        response = cls.client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
        assert response.status_code == 200, response.text
        cls.headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    @classmethod
    def tearDownClass(cls):
        cls._client_cm.__exit__(None, None, None)

    def create_customer(self, name="Maria Souza"):
        response = self.client.post("/api/customers", json={"name": name}, headers=self.headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def create_vehicle(self, customer_id):
        plate = f"TST{next(_plates):04d}"
        response = self.client.post(
            "/api/vehicles",
            json={"customer_id": customer_id, "license_plate": plate, "brand": "Fiat", "model": "Uno", "year": 2018},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def create_service(self, **fields):
        response = self.client.post("/api/services", json=fields, headers=self.headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def set_status(self, service_id, status):
        return self.client.put(f"/api/services/{service_id}", json={"status": status}, headers=self.headers)


class TestSystem(ApiTestCase):

    def test_1_health_check(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_2_login(self):
        response = self.client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
        self.assertEqual(response.status_code, 401)

        response = self.client.get("/api/auth/me", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "admin")

    def test_3_requires_token(self):
        self.assertEqual(self.client.get("/api/customers").status_code, 401)

    def test_4_validation_errors(self):
        response = self.client.post("/api/customers", json={"name": "X", "email": "not-an-email"}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["message"], "Invalid data")
        self.assertTrue(body["errors"])

    def test_5_seeded_service_types(self):
        response = self.client.get("/api/service-types", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        names = {entry["name"] for entry in response.json()}
        self.assertIn("Oil Change", names)
        self.assertEqual(len(names), 9)


class TestVehicleDeletion(ApiTestCase):

    def test_vehicle_with_open_service_cannot_be_deleted(self):
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        service = self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"], estimated_value="80.00")

        response = self.client.delete(f"/api/vehicles/{vehicle['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertIn("1 open service", response.json()["detail"])

        self.assertEqual(self.set_status(service["id"], "in_progress").status_code, 200)
        response = self.client.delete(f"/api/vehicles/{vehicle['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 400)

        self.assertEqual(self.set_status(service["id"], "cancelled").status_code, 200)
        response = self.client.delete(f"/api/vehicles/{vehicle['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)

        self.assertEqual(self.client.get(f"/api/vehicles/{vehicle['id']}", headers=self.headers).status_code, 404)
        self.assertEqual(self.client.get(f"/api/services/{service['id']}", headers=self.headers).status_code, 404)

    def test_vehicle_without_services_is_deleted(self):
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        response = self.client.delete(f"/api/vehicles/{vehicle['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)

    def test_customer_with_vehicles_cannot_be_deleted(self):
        customer = self.create_customer()
        self.create_vehicle(customer["id"])
        response = self.client.delete(f"/api/customers/{customer['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_duplicate_plate_rejected(self):
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        response = self.client.post(
            "/api/vehicles",
            json={"customer_id": customer["id"], "license_plate": vehicle["license_plate"],
                  "brand": "VW", "model": "Gol", "year": 2010},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)


class TestServiceLifecycle(ApiTestCase):

    def setUp(self):
        self.customer = self.create_customer("Lifecycle Customer")
        self.vehicle = self.create_vehicle(self.customer["id"])

    def test_defaults_to_business_date(self):
        service = self.create_service(customer_id=self.customer["id"], vehicle_id=self.vehicle["id"])
        self.assertEqual(service["status"], "scheduled")
        self.assertEqual(service["scheduled_date"], clock.today().isoformat())
        self.assertEqual(service["customer"]["name"], "Lifecycle Customer")

    def test_vehicle_must_belong_to_customer(self):
        other = self.create_customer("Someone Else")
        response = self.client.post(
            "/api/services",
            json={"customer_id": other["id"], "vehicle_id": self.vehicle["id"]},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_completion_awards_points_and_locks_status(self):
        types = self.client.get("/api/service-types", headers=self.headers).json()
        oil_change = next(entry for entry in types if entry["name"] == "Oil Change")
        service = self.create_service(
            customer_id=self.customer["id"],
            vehicle_id=self.vehicle["id"],
            service_type_id=oil_change["id"],
            estimated_value="80.00",
        )

        response = self.set_status(service["id"], "completed")
        self.assertEqual(response.status_code, 200)
        self.assertIsNotNone(response.json()["completed_at"])

        customer = self.client.get(f"/api/customers/{self.customer['id']}", headers=self.headers).json()
        self.assertEqual(customer["loyalty_points"], oil_change["loyalty_points"])

        self.assertEqual(self.set_status(service["id"], "scheduled").status_code, 400)

        response = self.client.delete(f"/api/services/{service['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)

    def test_open_service_cannot_be_deleted(self):
        service = self.create_service(customer_id=self.customer["id"], vehicle_id=self.vehicle["id"])
        response = self.client.delete(f"/api/services/{service['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_items_are_totalled(self):
        types = self.client.get("/api/service-types", headers=self.headers).json()
        service = self.create_service(
            customer_id=self.customer["id"],
            vehicle_id=self.vehicle["id"],
            items=[{"service_type_id": types[0]["id"], "quantity": 2, "unit_price": "35.00"}],
        )
        self.assertEqual(len(service["items"]), 1)
        self.assertEqual(money(service["items"][0]["total_price"]), Decimal("70.00"))

    def test_payments_update_paid_totals(self):
        service = self.create_service(
            customer_id=self.customer["id"], vehicle_id=self.vehicle["id"], estimated_value="200.00"
        )
        for method, amount in (("pix", "50.00"), ("card", "25.50")):
            response = self.client.post(
                "/api/payments",
                json={"service_id": service["id"], "amount": amount, "payment_method": method},
                headers=self.headers,
            )
            self.assertEqual(response.status_code, 201, response.text)
            self.assertEqual(response.json()["payment_date"], clock.today().isoformat())

        data = self.client.get(f"/api/services/{service['id']}", headers=self.headers).json()
        self.assertEqual(money(data["amount_paid"]), Decimal("75.50"))
        self.assertEqual(money(data["pix_paid"]), Decimal("50.00"))
        self.assertEqual(money(data["card_paid"]), Decimal("25.50"))

        payments = self.client.get(f"/api/services/{service['id']}/payments", headers=self.headers).json()
        self.assertEqual(len(payments), 2)

        response = self.client.delete(f"/api/payments/{payments[0]['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)
        data = self.client.get(f"/api/services/{service['id']}", headers=self.headers).json()
        self.assertEqual(money(data["amount_paid"]), Decimal("25.50"))

    def test_payment_amount_must_be_positive(self):
        service = self.create_service(customer_id=self.customer["id"], vehicle_id=self.vehicle["id"])
        response = self.client.post(
            "/api/payments",
            json={"service_id": service["id"], "amount": "0", "payment_method": "cash"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)


class TestDashboard(ApiTestCase):

    def test_stats_include_todays_service(self):
        before = self.client.get("/api/dashboard/stats", headers=self.headers).json()
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"], estimated_value="150.00")

        after = self.client.get("/api/dashboard/stats", headers=self.headers).json()
        self.assertEqual(after["daily_services"], before["daily_services"] + 1)
        self.assertAlmostEqual(after["daily_revenue"], before["daily_revenue"] + 150.0)

    def test_revenue_series_length(self):
        response = self.client.get("/api/dashboard/revenue", params={"days": 10}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        series = response.json()
        self.assertEqual(len(series), 10)
        self.assertEqual(series[-1]["date"], clock.today().isoformat())

        series = self.client.get("/api/dashboard/realized-revenue", headers=self.headers).json()
        self.assertEqual(len(series), 7)

        series = self.client.get("/api/dashboard/revenue", params={"days": 1000}, headers=self.headers).json()
        self.assertEqual(len(series), 366)

        series = self.client.get("/api/dashboard/revenue", params={"days": 0}, headers=self.headers).json()
        self.assertEqual(len(series), 7)

    def test_reports(self):
        statuses = self.client.get("/api/dashboard/service-status", headers=self.headers).json()
        self.assertEqual({entry["status"] for entry in statuses},
                         {"scheduled", "in_progress", "completed", "cancelled"})

        for path in ("top-services", "recent-services", "upcoming-appointments"):
            with self.subTest(path=path):
                response = self.client.get(f"/api/dashboard/{path}", headers=self.headers)
                self.assertEqual(response.status_code, 200)
                self.assertIsInstance(response.json(), list)

        analytics = self.client.get("/api/dashboard/analytics", headers=self.headers).json()
        self.assertIn("customers", analytics)
        self.assertIn("vehicles", analytics)


class TestUsersAndNotifications(ApiTestCase):

    def test_technician_sees_only_own_services(self):
        response = self.client.post(
            "/api/admin/users",
            json={"username": "tech1", "password": "secret1", "role": "technician"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        technician = response.json()

        login = self.client.post("/api/auth/login", json={"username": "tech1", "password": "secret1"})
        tech_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"])
        own = self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"], technician_id=technician["id"])

        services = self.client.get("/api/services", headers=tech_headers).json()
        self.assertEqual([entry["id"] for entry in services], [own["id"]])

        self.assertEqual(self.client.get("/api/admin/users", headers=tech_headers).status_code, 403)

        response = self.client.put(
            f"/api/admin/users/{technician['id']}/permissions",
            json={"permissions": ["reports", "customers"]},
            headers=self.headers,
        )
        self.assertEqual(response.json()["permissions"], ["customers", "reports"])

    def test_push_subscription(self):
        response = self.client.get("/api/notifications/vapid-key", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["public_key"])

        response = self.client.post(
            "/api/notifications/subscribe",
            json={"endpoint": "https://push.example/abc", "keys": {"p256dh": "key", "auth": "secret"}},
            headers=self.headers,
        )
        self.assertTrue(response.json()["success"])

        # No VAPID keys configured, so nothing is delivered
        response = self.client.post("/api/notifications/test", headers=self.headers)
        self.assertFalse(response.json()["success"])

        response = self.client.post("/api/notifications/unsubscribe", headers=self.headers)
        self.assertEqual(response.json()["message"], "Removed 1 subscription(s)")


class TestPhotos(ApiTestCase):

    def test_photo_metadata(self):
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        photo = {
            "entity_type": "vehicle",
            "entity_id": vehicle["id"],
            "category": "damage",
            "file_name": "dent.jpg",
            "original_name": "IMG_0001.jpg",
            "mime_type": "image/jpeg",
            "file_size": 2048,
            "url": "/uploads/dent.jpg",
        }
        response = self.client.post("/api/photos", json=photo, headers=self.headers)
        self.assertEqual(response.status_code, 201, response.text)
        created = response.json()
        self.assertIsNotNone(created["uploaded_by"])

        listed = self.client.get(
            "/api/photos", params={"entity_type": "vehicle", "entity_id": vehicle["id"]}, headers=self.headers
        ).json()
        self.assertEqual([entry["id"] for entry in listed], [created["id"]])

        response = self.client.post(
            "/api/photos", json={**photo, "mime_type": "application/pdf"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.delete(f"/api/photos/{created['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)


class TestPartialUpdates(ApiTestCase):

    def test_required_fields_cannot_be_nulled(self):
        customer = self.create_customer("Null Check")
        vehicle = self.create_vehicle(customer["id"])
        service = self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"])

        cases = [
            (f"/api/customers/{customer['id']}", {"name": None}),
            (f"/api/vehicles/{vehicle['id']}", {"license_plate": None}),
            (f"/api/vehicles/{vehicle['id']}", {"year": None}),
            (f"/api/services/{service['id']}", {"pix_paid": None}),
            (f"/api/services/{service['id']}", {"vehicle_id": None}),
        ]
        for path, body in cases:
            with self.subTest(path=path, body=body):
                response = self.client.put(path, json=body, headers=self.headers)
                self.assertEqual(response.status_code, 400, response.text)
                self.assertEqual(response.json()["message"], "Invalid data")

        data = self.client.get(f"/api/customers/{customer['id']}", headers=self.headers).json()
        self.assertEqual(data["name"], "Null Check")

    def test_nullable_fields_can_be_cleared(self):
        customer = self.create_customer()
        response = self.client.put(
            f"/api/customers/{customer['id']}", json={"phone": "555-0100"}, headers=self.headers
        )
        self.assertEqual(response.json()["phone"], "555-0100")
        response = self.client.put(f"/api/customers/{customer['id']}", json={"phone": None}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["phone"])


class TestTechnicianScope(ApiTestCase):

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        response = cls.client.post(
            "/api/admin/users",
            json={"username": "scoped_tech", "password": "secret1", "role": "technician"},
            headers=cls.headers,
        )
        assert response.status_code == 201, response.text
        cls.technician = response.json()
        login = cls.client.post("/api/auth/login", json={"username": "scoped_tech", "password": "secret1"})
        cls.tech_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    def setUp(self):
        customer = self.create_customer()
        vehicle = self.create_vehicle(customer["id"])
        self.other = self.create_service(customer_id=customer["id"], vehicle_id=vehicle["id"])
        self.own = self.create_service(
            customer_id=customer["id"], vehicle_id=vehicle["id"], technician_id=self.technician["id"]
        )

    def pay(self, service_id, headers):
        return self.client.post(
            "/api/payments",
            json={"service_id": service_id, "amount": "10.00", "payment_method": "cash"},
            headers=headers,
        )

    def test_payments_on_other_services_are_hidden(self):
        self.assertEqual(self.pay(self.other["id"], self.tech_headers).status_code, 404)
        self.assertEqual(self.pay(self.own["id"], self.tech_headers).status_code, 201)

        payment = self.pay(self.other["id"], self.headers).json()
        path = f"/api/payments/{payment['id']}"
        self.assertEqual(self.client.get(path, headers=self.tech_headers).status_code, 404)
        self.assertEqual(self.client.delete(path, headers=self.tech_headers).status_code, 404)
        self.assertEqual(self.client.get(path, headers=self.headers).status_code, 200)

        data = self.client.get(f"/api/services/{self.other['id']}", headers=self.headers).json()
        self.assertEqual(money(data["amount_paid"]), Decimal("10.00"))

    def test_photos_on_other_services_are_hidden(self):
        photo = {
            "entity_type": "service",
            "category": "before",
            "file_name": "before.jpg",
            "original_name": "before.jpg",
            "mime_type": "image/jpeg",
            "file_size": 1024,
            "url": "/uploads/before.jpg",
        }
        response = self.client.post(
            "/api/photos", json={**photo, "entity_id": self.other["id"]}, headers=self.tech_headers
        )
        self.assertEqual(response.status_code, 404)

        response = self.client.post(
            "/api/photos", json={**photo, "entity_id": self.own["id"]}, headers=self.tech_headers
        )
        self.assertEqual(response.status_code, 201, response.text)

        foreign = self.client.post(
            "/api/photos", json={**photo, "entity_id": self.other["id"]}, headers=self.headers
        ).json()
        self.assertEqual(
            self.client.get(f"/api/photos/{foreign['id']}", headers=self.tech_headers).status_code, 404
        )
        listed = self.client.get("/api/photos", headers=self.tech_headers).json()
        self.assertNotIn(foreign["id"], [entry["id"] for entry in listed])


class TestUserDeletion(ApiTestCase):

    def test_deleting_an_uploader_keeps_their_photos(self):
        response = self.client.post(
            "/api/admin/users",
            json={"username": "leaving_tech", "password": "secret1", "role": "technician"},
            headers=self.headers,
        )
        user = response.json()
        login = self.client.post("/api/auth/login", json={"username": "leaving_tech", "password": "secret1"})
        tech_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        response = self.client.post(
            "/api/photos",
            json={
                "file_name": "wheel.jpg",
                "original_name": "wheel.jpg",
                "mime_type": "image/png",
                "file_size": 512,
                "url": "/uploads/wheel.jpg",
            },
            headers=tech_headers,
        )
        photo = response.json()
        self.assertEqual(photo["uploaded_by"], user["id"])

        response = self.client.delete(f"/api/admin/users/{user['id']}", headers=self.headers)
        self.assertEqual(response.status_code, 204)

        data = self.client.get(f"/api/photos/{photo['id']}", headers=self.headers).json()
        self.assertIsNone(data["uploaded_by"])


if __name__ == '__main__':
    unittest.main()
